"""Client for the external auth provider (GoTrue-compatible REST API).

The provider owns credentials and tokens. This client only forwards them and
maps the responses into ``ExternalIdentity`` / ``ProviderSession``; it never
decodes a token locally.
"""

from urllib.parse import urlencode

import httpx
from loguru import logger

from src.dailymenu.core.exceptions import AuthProviderError, InvalidCredentialsError
from src.dailymenu.core.models.session import ProviderSession
from src.dailymenu.entities.core.user.entity import ExternalIdentity
from src.dailymenu.runtime.config.config_data import AuthProviderConfig

# Statuses the provider uses for a rejected token or credential.
_REJECTED = {400, 401, 403, 422}


class AuthProviderClient:
    """Thin async wrapper over the provider's auth endpoints."""

    def __init__(
        self,
        config: AuthProviderConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.url.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._config.request_timeout,
            transport=self._transport,
            headers={"apikey": self._config.anon_key},
        )

    async def get_user(self, access_token: str) -> ExternalIdentity | None:
        """Ask the provider who owns ``access_token``.

        Returns:
            The verified identity, or None when the token is invalid or expired.

        Raises:
            AuthProviderError: The provider could not be reached or misbehaved.
        """
        try:
            async with self._client() as client:
                response = await client.get(
                    "/auth/v1/user", headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"user lookup failed: {type(e).__name__}") from e

        if response.status_code in _REJECTED:
            return None
        if response.status_code != 200:
            raise AuthProviderError("user lookup failed", response.status_code)
        return ExternalIdentity.from_provider_user(response.json())

    async def _token_grant(self, grant_type: str, payload: dict) -> ProviderSession:
        try:
            async with self._client() as client:
                response = await client.post(
                    "/auth/v1/token", params={"grant_type": grant_type}, json=payload
                )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"{grant_type} grant failed: {type(e).__name__}") from e

        if response.status_code in _REJECTED:
            body = _safe_json(response)
            message = body.get("error_description") or body.get("msg") or "credential rejected"
            raise InvalidCredentialsError(message, response.status_code)
        if response.status_code != 200:
            raise AuthProviderError(f"{grant_type} grant failed", response.status_code)

        data = response.json()
        return ProviderSession(
            access_token=data["access_token"],
            token_type=data.get("token_type", "bearer"),
            expires_in=data.get("expires_in", 3600),
            refresh_token=data.get("refresh_token"),
            identity=ExternalIdentity.from_provider_user(data["user"]),
        )

    async def sign_in_with_password(self, email: str, password: str) -> ProviderSession:
        """Exchange an email and password for a session."""
        return await self._token_grant("password", {"email": email, "password": password})

    async def exchange_code(self, code: str, code_verifier: str) -> ProviderSession:
        """Exchange an OAuth authorization code (PKCE flow) for a session."""
        return await self._token_grant(
            "pkce", {"auth_code": code, "code_verifier": code_verifier}
        )

    async def refresh_session(self, refresh_token: str) -> ProviderSession:
        """Trade a refresh token for a new token pair."""
        return await self._token_grant("refresh_token", {"refresh_token": refresh_token})

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind ``access_token``.

        An already-invalid token counts as signed out.
        """
        try:
            async with self._client() as client:
                response = await client.post(
                    "/auth/v1/logout", headers={"Authorization": f"Bearer {access_token}"}
                )
        except httpx.HTTPError as e:
            raise AuthProviderError(f"sign out failed: {type(e).__name__}") from e

        if response.status_code in _REJECTED:
            logger.debug("Sign out with an already invalid token")
            return
        if response.status_code >= 300:
            raise AuthProviderError("sign out failed", response.status_code)

    def authorize_url(self, provider: str, code_challenge: str) -> str:
        """Build the URL that starts an OAuth sign-in with ``provider``."""
        params = {
            "provider": provider,
            "redirect_to": self._config.callback_url,
            "code_challenge": code_challenge,
            "code_challenge_method": "s256",
            "access_type": "offline",
            "prompt": "consent",
        }
        return f"{self._base_url}/auth/v1/authorize?{urlencode(params)}"


def _safe_json(response: httpx.Response) -> dict:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
