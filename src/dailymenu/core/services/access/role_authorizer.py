"""Per-request route authorization.

Every request ends in exactly one of four outcomes: allow, redirect to the
login page with a return path, redirect to the login page with the
``account_inactive`` error, or redirect to the caller's own dashboard.
"""

from collections.abc import Iterable
from contextlib import closing
from dataclasses import dataclass
from enum import StrEnum
from urllib.parse import urlencode

from loguru import logger

from src.dailymenu.core.exceptions import StoreError
from src.dailymenu.core.models.session import ProviderSession, SessionCredentials
from src.dailymenu.core.services.access.dashboards import dashboard_for
from src.dailymenu.core.services.database.db_session import DbSessionService
from src.dailymenu.core.services.session.session_validator import SessionValidator
from src.dailymenu.entities.core.user.entity import ExternalIdentity, InternalUser, Role
from src.dailymenu.entities.core.user.store import ElevatedUserStore

LANDING_PATH = "/"
LOGIN_PATH = "/login"
CALLBACK_PATH = "/auth/callback"
INACTIVE_ERROR = "account_inactive"
INACTIVE_REDIRECT = f"{LOGIN_PATH}?{urlencode({'error': INACTIVE_ERROR})}"

# Matched exactly or as a parent of the requested path.
PUBLIC_PREFIXES = (LOGIN_PATH, CALLBACK_PATH)


class AccessState(StrEnum):
    PUBLIC = "public"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED_INACTIVE = "authenticated_inactive"
    AUTHENTICATED_ACTIVE_ALLOWED = "authenticated_active_allowed"
    AUTHENTICATED_ACTIVE_DENIED = "authenticated_active_denied"


@dataclass(frozen=True)
class AccessDecision:
    state: AccessState
    redirect_to: str | None = None

    @property
    def allowed(self) -> bool:
        return self.redirect_to is None


@dataclass(frozen=True)
class AuthorizationResult:
    decision: AccessDecision
    identity: ExternalIdentity | None = None
    user: InternalUser | None = None
    renewed: ProviderSession | None = None


@dataclass(frozen=True)
class RouteRule:
    prefix: str
    roles: frozenset[Role]


class RouteTable:
    """Protected path prefixes and the roles allowed under each.

    Matching is by plain string prefix and the longest matching prefix
    decides, whatever order the rules were given in.
    """

    def __init__(self, rules: Iterable[RouteRule]) -> None:
        self._rules = sorted(rules, key=lambda rule: len(rule.prefix), reverse=True)

    @property
    def rules(self) -> tuple[RouteRule, ...]:
        return tuple(self._rules)

    def match(self, path: str) -> RouteRule | None:
        for rule in self._rules:
            if path.startswith(rule.prefix):
                return rule
        return None


DEFAULT_ROUTE_TABLE = RouteTable(
    [
        RouteRule("/admin", frozenset({Role.ADMIN})),
        RouteRule("/editor", frozenset({Role.MENU_EDITOR, Role.ADMIN})),
        RouteRule("/employee", frozenset({Role.EMPLOYEE, Role.ADMIN})),
        RouteRule("/kitchen", frozenset({Role.KITCHEN, Role.ADMIN})),
    ]
)


def is_public(path: str) -> bool:
    if path == LANDING_PATH:
        return True
    return any(path == prefix or path.startswith(prefix + "/") for prefix in PUBLIC_PREFIXES)


def login_redirect(path: str) -> str:
    return f"{LOGIN_PATH}?{urlencode({'redirect': path})}"


class RoleAuthorizer:
    def __init__(
        self,
        session_validator: SessionValidator,
        elevated_db: DbSessionService,
        route_table: RouteTable = DEFAULT_ROUTE_TABLE,
    ) -> None:
        self._session_validator = session_validator
        self._elevated_db = elevated_db
        self._route_table = route_table

    @property
    def route_table(self) -> RouteTable:
        return self._route_table

    def decide(
        self, path: str, has_session: bool, user: InternalUser | None
    ) -> AccessDecision:
        """Pure access decision for an already resolved session and user."""
        if is_public(path):
            if path == LANDING_PATH and user is not None and user.is_active:
                return AccessDecision(
                    AccessState.AUTHENTICATED_ACTIVE_ALLOWED, dashboard_for(user.role)
                )
            return AccessDecision(AccessState.PUBLIC)

        if not has_session or user is None:
            return AccessDecision(AccessState.UNAUTHENTICATED, login_redirect(path))

        if not user.is_active:
            return AccessDecision(AccessState.AUTHENTICATED_INACTIVE, INACTIVE_REDIRECT)

        rule = self._route_table.match(path)
        if rule is not None and user.role not in rule.roles:
            return AccessDecision(
                AccessState.AUTHENTICATED_ACTIVE_DENIED, dashboard_for(user.role)
            )
        return AccessDecision(AccessState.AUTHENTICATED_ACTIVE_ALLOWED)

    async def authorize(
        self, path: str, credentials: SessionCredentials
    ) -> AuthorizationResult:
        """Validate the session, load the caller's row and decide access to ``path``."""
        # Login and callback pages never depend on who is asking.
        if is_public(path) and path != LANDING_PATH:
            return AuthorizationResult(decision=self.decide(path, False, None))

        resolution = await self._session_validator.resolve(credentials)
        identity = resolution.identity
        user = self._load_user(identity) if identity is not None else None

        decision = self.decide(path, identity is not None, user)
        if decision.state is AccessState.AUTHENTICATED_ACTIVE_DENIED:
            logger.info(
                "Route denied for role; redirecting to own dashboard",
                path=path,
                role=user.role if user else None,
                external_id=identity.external_id if identity else None,
            )
        return AuthorizationResult(
            decision=decision,
            identity=identity,
            user=user,
            renewed=resolution.renewed,
        )

    def _load_user(self, identity: ExternalIdentity) -> InternalUser | None:
        with closing(self._elevated_db.get_session()) as session:
            try:
                return ElevatedUserStore(session).find_by_id(identity.external_id)
            except StoreError as e:
                logger.error(
                    "Could not read users row for session",
                    external_id=identity.external_id,
                    email=identity.email,
                    error_type=type(e).__name__,
                )
                return None
