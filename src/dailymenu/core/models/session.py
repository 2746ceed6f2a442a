"""Session models exchanged with the auth provider."""

import time
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, Field

from src.dailymenu.entities.core.user.entity import ExternalIdentity


class CredentialEvent(StrEnum):
    """How an external identity was obtained."""

    PASSWORD_SIGN_IN = "password_sign_in"
    OAUTH_CALLBACK = "oauth_callback"


class ProviderSession(BaseModel):
    """Token pair issued by the provider after a successful credential exchange."""

    access_token: str = Field(description="Bearer token presented on each request")
    token_type: str = Field(default="bearer", description="Token type, typically 'bearer'")
    expires_in: int = Field(default=3600, description="Access token lifetime in seconds")
    refresh_token: str | None = Field(default=None, description="Token used to renew the session")
    identity: ExternalIdentity = Field(description="Identity the tokens belong to")
    issued_at: int = Field(default_factory=lambda: int(time.time()))

    @property
    def expires_at(self) -> int:
        """Absolute expiry timestamp of the access token."""
        return self.issued_at + self.expires_in


@dataclass(frozen=True)
class SessionCredentials:
    """Credential material that arrived with a request. Never logged."""

    access_token: str | None = None
    refresh_token: str | None = None

    @property
    def present(self) -> bool:
        return bool(self.access_token or self.refresh_token)


@dataclass(frozen=True)
class SessionResolution:
    """Outcome of validating a request's credentials.

    ``renewed`` is set when an expired access token was exchanged for a
    fresh pair; the caller must write it back to the client.
    """

    identity: ExternalIdentity | None
    renewed: ProviderSession | None = None
