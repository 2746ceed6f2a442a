"""Exception taxonomy for the access core.

"No session" and "identity not found" are deliberately absent: both are
ordinary ``None`` results that the authorizer maps to the login redirect.
"""


class DailyMenuError(Exception):
    """Base exception for the application."""


class AuthProviderError(DailyMenuError):
    """Raised when the external auth provider fails or is unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidCredentialsError(AuthProviderError):
    """Raised when the provider rejects a credential (password, code, refresh token)."""


class StoreError(DailyMenuError):
    """Raised when a read or write against the users relation fails."""


class ReconciliationError(DailyMenuError):
    """Raised when an external identity cannot be backed by an internal user."""

    def __init__(self, message: str, external_id: str, email: str) -> None:
        super().__init__(message)
        self.external_id = external_id
        self.email = email


class CreateFailedError(ReconciliationError):
    """The elevated insert of a brand-new user row failed."""


class UpdateFailedError(ReconciliationError):
    """The elevated relink or profile update of an existing row failed."""


class PolicyViolationError(StoreError):
    """Raised when a restricted caller attempts a write its row policy forbids."""
