from fastapi import Request
from loguru import logger

from src.dailymenu.core.exceptions import AuthProviderError, InvalidCredentialsError
from src.dailymenu.core.models.session import SessionCredentials, SessionResolution
from src.dailymenu.core.services.auth_provider_client import AuthProviderClient
from src.dailymenu.entities.core.user.entity import ExternalIdentity
from src.dailymenu.runtime.config.config_data import AuthProviderConfig


class SessionValidator:
    """Resolves a request's credentials into a freshly verified identity.

    Every check goes to the provider; a locally decoded token is never
    trusted. A missing, invalid or expired session yields ``None``, which is
    the ordinary logged-out outcome rather than an error.
    """

    def __init__(self, provider: AuthProviderClient, config: AuthProviderConfig) -> None:
        self._provider = provider
        self._config = config

    def extract_credentials(self, request: Request) -> SessionCredentials:
        """Read the session cookies, falling back to a Bearer header."""
        access_token = request.cookies.get(self._config.access_token_cookie)
        if not access_token:
            auth_header = request.headers.get("Authorization", "")
            if auth_header.startswith("Bearer "):
                access_token = auth_header.split(" ", 1)[1].strip() or None

        return SessionCredentials(
            access_token=access_token,
            refresh_token=request.cookies.get(self._config.refresh_token_cookie),
        )

    async def validate_session(self, credentials: SessionCredentials) -> ExternalIdentity | None:
        """Return the identity behind the access token, or None."""
        if not credentials.access_token:
            return None

        try:
            return await self._provider.get_user(credentials.access_token)
        except AuthProviderError as e:
            logger.error(
                "Session validation failed at provider",
                status_code=e.status_code,
                error=str(e),
            )
            return None

    async def resolve(self, credentials: SessionCredentials) -> SessionResolution:
        """Validate the access token, renewing it with the refresh token if needed."""
        identity = await self.validate_session(credentials)
        if identity is not None or not credentials.refresh_token:
            return SessionResolution(identity=identity)

        try:
            renewed = await self._provider.refresh_session(credentials.refresh_token)
        except InvalidCredentialsError:
            logger.debug("Refresh token rejected; treating request as logged out")
            return SessionResolution(identity=None)
        except AuthProviderError as e:
            logger.error(
                "Session refresh failed at provider",
                status_code=e.status_code,
                error=str(e),
            )
            return SessionResolution(identity=None)

        logger.info("Session renewed", external_id=renewed.identity.external_id)
        return SessionResolution(identity=renewed.identity, renewed=renewed)
