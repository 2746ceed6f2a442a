"""Security utilities for the browser sign-in flow."""

import base64
import hashlib
import secrets
from urllib.parse import urlparse

from starlette.responses import Response

from src.dailymenu.core.models.session import ProviderSession
from src.dailymenu.runtime.config.config_data import AuthProviderConfig, SecurityConfig


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token.

    Args:
        length: Number of random bytes to generate (default 32)

    Returns:
        URL-safe base64 encoded token
    """
    return (
        base64.urlsafe_b64encode(secrets.token_bytes(length))
        .decode("utf-8")
        .rstrip("=")
    )


def generate_pkce_pair() -> tuple[str, str]:
    """Generate PKCE code verifier and challenge pair.

    Returns:
        Tuple of (code_verifier, code_challenge)
    """
    code_verifier = generate_secure_token(32)

    challenge_bytes = hashlib.sha256(code_verifier.encode("utf-8")).digest()
    code_challenge = (
        base64.urlsafe_b64encode(challenge_bytes).decode("utf-8").rstrip("=")
    )

    return code_verifier, code_challenge


def sanitize_return_url(
    return_to: str | None, allowed_hosts: list[str] | None = None
) -> str | None:
    """Sanitize a post-login return URL to prevent open redirects.

    Args:
        return_to: User-provided return URL
        allowed_hosts: Optional list of allowed hosts for absolute URLs

    Returns:
        The URL when it is a local path or an allowed absolute URL, else None
    """
    if not return_to:
        return None

    return_to = return_to.strip()

    if return_to.startswith("/") and not return_to.startswith("//"):
        if all(ord(c) >= 32 for c in return_to) and "\\" not in return_to:
            return return_to
        return None

    if allowed_hosts and return_to.startswith(("http://", "https://")):
        parsed = urlparse(return_to)
        if parsed.hostname in allowed_hosts:
            return return_to

    return None


def set_session_cookies(
    response: Response,
    session: ProviderSession,
    auth: AuthProviderConfig,
    security: SecurityConfig,
) -> None:
    """Store the provider's token pair in httpOnly cookies."""
    response.set_cookie(
        key=auth.access_token_cookie,
        value=session.access_token,
        max_age=session.expires_in,
        httponly=True,
        secure=security.secure_cookies,
        samesite=security.cookie_samesite,
        path="/",
    )
    if session.refresh_token:
        response.set_cookie(
            key=auth.refresh_token_cookie,
            value=session.refresh_token,
            max_age=auth.refresh_token_max_age,
            httponly=True,
            secure=security.secure_cookies,
            samesite=security.cookie_samesite,
            path="/",
        )


def clear_session_cookies(response: Response, auth: AuthProviderConfig) -> None:
    response.delete_cookie(auth.access_token_cookie, path="/")
    response.delete_cookie(auth.refresh_token_cookie, path="/")
    response.delete_cookie(auth.code_verifier_cookie, path="/")
    response.delete_cookie(auth.return_to_cookie, path="/")


def mark_identity_changed(response: Response) -> None:
    """Drop browser-cached copies of identity-dependent pages."""
    response.headers["Clear-Site-Data"] = '"cache"'
    response.headers["Cache-Control"] = "no-store"
