"""Core services exports."""

from .access.dashboards import DASHBOARDS, dashboard_for
from .access.role_authorizer import (
    DEFAULT_ROUTE_TABLE,
    AccessDecision,
    AccessState,
    AuthorizationResult,
    RoleAuthorizer,
    RouteRule,
    RouteTable,
)
from .auth_provider_client import AuthProviderClient
from .database.db_session import DbSessionService
from .session.session_validator import SessionValidator
from .user.identity_reconciler import IdentityReconciler

__all__ = [
    # Access
    "AccessDecision",
    "AccessState",
    "AuthorizationResult",
    "DASHBOARDS",
    "DEFAULT_ROUTE_TABLE",
    "RoleAuthorizer",
    "RouteRule",
    "RouteTable",
    "dashboard_for",
    # Auth provider and sessions
    "AuthProviderClient",
    "SessionValidator",
    # Users
    "IdentityReconciler",
    # Database Service
    "DbSessionService",
]
