"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import Iterator

from fastapi import Depends, HTTPException, Request
from sqlmodel import Session

from src.dailymenu.api.http.app_data import ApplicationDependencies
from src.dailymenu.core.services import (
    AuthProviderClient,
    IdentityReconciler,
    RoleAuthorizer,
    SessionValidator,
)
from src.dailymenu.entities.core.user import InternalUser, RestrictedUserStore, Role


def get_app_dependencies(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


def get_auth_provider(request: Request) -> AuthProviderClient:
    """Get the auth provider client."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.auth_provider


def get_session_validator(request: Request) -> SessionValidator:
    """Get the session validator."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.session_validator


def get_identity_reconciler(request: Request) -> IdentityReconciler:
    """Get the identity reconciler (elevated access)."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.identity_reconciler


def get_role_authorizer(request: Request) -> RoleAuthorizer:
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    return app_deps.role_authorizer


def get_db_session(request: Request) -> Iterator[Session]:
    """Yield a session on the ordinary (row-restricted) connection."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    session = app_deps.database_service.get_session()
    try:
        yield session
    finally:
        session.close()


async def get_optional_user(request: Request) -> InternalUser | None:
    """Return the user resolved by the access control middleware, if any."""
    return getattr(request.state, "current_user", None)


async def get_current_user(
    user: InternalUser | None = Depends(get_optional_user),
) -> InternalUser:
    """Return the active signed-in user or fail with 401."""
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


def require_role(*roles: Role):
    """Create a dependency that requires one of ``roles`` for the current user."""
    allowed = frozenset(roles)

    async def dep(user: InternalUser = Depends(get_current_user)) -> InternalUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=403,
                detail=f"Requires one of roles: {', '.join(sorted(allowed))}",
            )
        return user

    return dep


def get_restricted_user_store(
    user: InternalUser = Depends(get_current_user),
    db: Session = Depends(get_db_session),
) -> RestrictedUserStore:
    """Users store scoped to the current caller's row policy."""
    return RestrictedUserStore(db, caller_id=user.id)
