"""Session models."""

from .session import (
    CredentialEvent,
    ProviderSession,
    SessionCredentials,
    SessionResolution,
)

__all__ = [
    "CredentialEvent",
    "ProviderSession",
    "SessionCredentials",
    "SessionResolution",
]
