"""Browser sign-in endpoints: password, OAuth (PKCE) and sign-out.

Both sign-in paths end in ``_complete_sign_in``, which reconciles the
provider identity with the ``users`` relation before any session cookie is
written. A failed reconciliation signs the provider session out again.
"""

from typing import Any
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from loguru import logger
from pydantic import BaseModel, Field

from src.dailymenu.api.http.deps import (
    get_auth_provider,
    get_current_user,
    get_identity_reconciler,
)
from src.dailymenu.core.exceptions import (
    AuthProviderError,
    InvalidCredentialsError,
    ReconciliationError,
)
from src.dailymenu.core.models.session import CredentialEvent, ProviderSession
from src.dailymenu.core.security import (
    clear_session_cookies,
    generate_pkce_pair,
    mark_identity_changed,
    sanitize_return_url,
    set_session_cookies,
)
from src.dailymenu.core.services import (
    AuthProviderClient,
    IdentityReconciler,
    dashboard_for,
)
from src.dailymenu.entities.core.user import InternalUser
from src.dailymenu.runtime.context import get_config

router = APIRouter(tags=["auth"])

ERROR_MESSAGES = {
    "oauth_failed": "Sign-in with the external provider failed. Please try again.",
    "invalid_credentials": "Incorrect email or password.",
    "provider_unavailable": "Sign-in is temporarily unavailable. Please try again later.",
    "account_setup_failed": (
        "Your account could not be set up. Please contact an administrator."
    ),
    "account_inactive": "Your account is inactive. Please contact an administrator.",
}

# Lifetime of the PKCE verifier and return-path cookies.
OAUTH_FLOW_MAX_AGE = 600


class LoginPage(BaseModel):
    error: str | None = None
    message: str | None = None
    redirect: str | None = None
    oauth_providers: list[str] = Field(default_factory=list)


class PasswordSignIn(BaseModel):
    email: str
    password: str
    redirect: str | None = None


class CurrentUser(BaseModel):
    id: str
    email: str
    full_name: str | None
    phone: str | None
    company_id: str | None
    role: str
    is_active: bool
    dashboard: str


def _login_url(error: str, redirect: str | None = None) -> str:
    params = {"error": error}
    if redirect:
        params["redirect"] = redirect
    return f"/login?{urlencode(params)}"


def _flow_cookie_settings() -> dict[str, Any]:
    security = get_config().security
    return {
        "max_age": OAUTH_FLOW_MAX_AGE,
        "httponly": True,
        "secure": security.secure_cookies,
        "samesite": "lax",
        "path": "/",
    }


async def _sign_out_quietly(provider: AuthProviderClient, access_token: str) -> None:
    try:
        await provider.sign_out(access_token)
    except AuthProviderError as e:
        logger.warning("Provider sign out failed", status_code=e.status_code)


async def _complete_sign_in(
    session: ProviderSession,
    event: CredentialEvent,
    return_to: str | None,
    provider: AuthProviderClient,
    reconciler: IdentityReconciler,
    status_code: int,
) -> RedirectResponse:
    config = get_config()
    identity = session.identity

    try:
        user = await reconciler.reconcile(identity, event)
    except ReconciliationError as e:
        logger.error(
            "Sign-in aborted: no backing user row",
            external_id=e.external_id,
            email=e.email,
            event=event.value,
            error_type=type(e).__name__,
        )
        await _sign_out_quietly(provider, session.access_token)
        response = RedirectResponse(_login_url("account_setup_failed"), status_code)
        clear_session_cookies(response, config.auth)
        return response

    if not user.is_active:
        logger.info(
            "Sign-in refused for inactive account",
            external_id=user.id,
            email=user.email,
        )
        await _sign_out_quietly(provider, session.access_token)
        response = RedirectResponse(_login_url("account_inactive"), status_code)
        clear_session_cookies(response, config.auth)
        return response

    target = sanitize_return_url(return_to, config.auth.allowed_redirect_hosts)
    response = RedirectResponse(target or dashboard_for(user.role), status_code)
    set_session_cookies(response, session, config.auth, config.security)
    response.delete_cookie(config.auth.code_verifier_cookie, path="/")
    response.delete_cookie(config.auth.return_to_cookie, path="/")
    mark_identity_changed(response)

    logger.info(
        "User signed in",
        external_id=user.id,
        role=user.role.value,
        event=event.value,
    )
    return response


@router.get("/login", response_model=LoginPage)
async def login_page(error: str | None = None, redirect: str | None = None) -> LoginPage:
    """Data the login page renders: error banner, return path and OAuth buttons."""
    config = get_config()
    return LoginPage(
        error=error if error in ERROR_MESSAGES else None,
        message=ERROR_MESSAGES.get(error) if error else None,
        redirect=sanitize_return_url(redirect, config.auth.allowed_redirect_hosts),
        oauth_providers=config.auth.oauth_providers,
    )


@router.post("/login/password")
async def sign_in_with_password(
    payload: PasswordSignIn,
    provider: AuthProviderClient = Depends(get_auth_provider),
    reconciler: IdentityReconciler = Depends(get_identity_reconciler),
) -> RedirectResponse:
    """Sign in with email and password."""
    email = payload.email.strip().lower()
    try:
        session = await provider.sign_in_with_password(email, payload.password)
    except InvalidCredentialsError:
        logger.info("Password sign-in rejected", email=email)
        return RedirectResponse(
            _login_url("invalid_credentials", payload.redirect),
            status.HTTP_303_SEE_OTHER,
        )
    except AuthProviderError as e:
        logger.error("Password sign-in failed at provider", email=email, status_code=e.status_code)
        return RedirectResponse(
            _login_url("provider_unavailable", payload.redirect),
            status.HTTP_303_SEE_OTHER,
        )

    return await _complete_sign_in(
        session,
        CredentialEvent.PASSWORD_SIGN_IN,
        payload.redirect,
        provider,
        reconciler,
        status.HTTP_303_SEE_OTHER,
    )


@router.get("/login/oauth")
async def start_oauth(
    provider_name: str = Query("google", alias="provider"),
    redirect: str | None = None,
    provider: AuthProviderClient = Depends(get_auth_provider),
) -> RedirectResponse:
    """Send the browser to the provider's OAuth sign-in page (PKCE)."""
    config = get_config()
    if provider_name not in config.auth.oauth_providers:
        raise HTTPException(status_code=400, detail=f"Unknown provider: {provider_name}")

    code_verifier, code_challenge = generate_pkce_pair()
    response = RedirectResponse(
        provider.authorize_url(provider_name, code_challenge),
        status_code=status.HTTP_302_FOUND,
    )
    cookie_settings = _flow_cookie_settings()
    response.set_cookie(config.auth.code_verifier_cookie, code_verifier, **cookie_settings)

    safe_return = sanitize_return_url(redirect, config.auth.allowed_redirect_hosts)
    if safe_return:
        response.set_cookie(config.auth.return_to_cookie, safe_return, **cookie_settings)
    return response


@router.get("/auth/callback")
async def oauth_callback(
    request: Request,
    code: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    provider: AuthProviderClient = Depends(get_auth_provider),
    reconciler: IdentityReconciler = Depends(get_identity_reconciler),
) -> RedirectResponse:
    """Exchange the OAuth code for a session and reconcile the user."""
    config = get_config()
    code_verifier = request.cookies.get(config.auth.code_verifier_cookie)

    if error or not code or not code_verifier:
        logger.warning(
            "OAuth callback without a usable code",
            provider_error=error,
            provider_error_description=error_description,
            has_code=bool(code),
            has_verifier=bool(code_verifier),
        )
        response = RedirectResponse(_login_url("oauth_failed"), status.HTTP_302_FOUND)
        response.delete_cookie(config.auth.code_verifier_cookie, path="/")
        return response

    try:
        session = await provider.exchange_code(code, code_verifier)
    except AuthProviderError as e:
        logger.error(
            "OAuth code exchange failed",
            status_code=e.status_code,
            error_type=type(e).__name__,
        )
        response = RedirectResponse(_login_url("oauth_failed"), status.HTTP_302_FOUND)
        response.delete_cookie(config.auth.code_verifier_cookie, path="/")
        return response

    return await _complete_sign_in(
        session,
        CredentialEvent.OAUTH_CALLBACK,
        request.cookies.get(config.auth.return_to_cookie),
        provider,
        reconciler,
        status.HTTP_302_FOUND,
    )


@router.post("/auth/signout")
async def sign_out(
    request: Request,
    provider: AuthProviderClient = Depends(get_auth_provider),
) -> RedirectResponse:
    """End the session at the provider and drop the session cookies."""
    config = get_config()
    access_token = request.cookies.get(config.auth.access_token_cookie)
    if access_token:
        await _sign_out_quietly(provider, access_token)

    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    clear_session_cookies(response, config.auth)
    mark_identity_changed(response)
    return response


@router.get("/auth/me", response_model=CurrentUser)
async def me(user: InternalUser = Depends(get_current_user)) -> CurrentUser:
    """Return the signed-in user and their dashboard path."""
    return CurrentUser(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        phone=user.phone,
        company_id=user.company_id,
        role=user.role.value,
        is_active=user.is_active,
        dashboard=dashboard_for(user.role),
    )
