"""Unit tests for per-request route authorization."""

import pytest

from src.dailymenu.core.models.session import SessionCredentials
from src.dailymenu.core.services.access.role_authorizer import (
    DEFAULT_ROUTE_TABLE,
    INACTIVE_REDIRECT,
    AccessState,
    RoleAuthorizer,
    RouteRule,
    RouteTable,
    is_public,
    login_redirect,
)
from src.dailymenu.entities.core.user import InternalUser, Role

PUBLIC_PATHS = ["/", "/login", "/login/password", "/login/oauth", "/auth/callback"]
PROTECTED_PATHS = ["/admin", "/admin/users/7", "/editor/menus", "/employee", "/kitchen/orders"]


def make_user(role: Role = Role.EMPLOYEE, is_active: bool = True) -> InternalUser:
    return InternalUser(
        id=f"auth-{role.value}",
        email=f"{role.value}@example.com",
        full_name=role.value,
        role=role,
        is_active=is_active,
    )


def all_users() -> list[InternalUser | None]:
    users: list[InternalUser | None] = [None]
    for role in Role:
        users.append(make_user(role))
        users.append(make_user(role, is_active=False))
    return users


class TestPublicRoutes:
    @pytest.mark.parametrize("path", PUBLIC_PATHS)
    def test_public_paths_are_recognized(self, path):
        assert is_public(path)

    @pytest.mark.parametrize("path", ["/admin", "/loginx", "/auth/me", "/employee"])
    def test_other_paths_are_not_public(self, path):
        assert not is_public(path)

    @pytest.mark.parametrize("path", PUBLIC_PATHS)
    def test_public_paths_never_redirect_to_login(self, authorizer: RoleAuthorizer, path):
        for user in all_users():
            for has_session in (False, True):
                decision = authorizer.decide(path, has_session, user)
                assert decision.redirect_to is None or not decision.redirect_to.startswith(
                    "/login"
                ), (path, user, has_session)

    def test_landing_redirects_active_user_to_own_dashboard(self, authorizer: RoleAuthorizer):
        decision = authorizer.decide("/", True, make_user(Role.KITCHEN))

        assert decision.state is AccessState.AUTHENTICATED_ACTIVE_ALLOWED
        assert decision.redirect_to == "/kitchen"

    def test_landing_is_shown_to_anonymous_and_inactive_visitors(
        self, authorizer: RoleAuthorizer
    ):
        assert authorizer.decide("/", False, None).allowed
        inactive = authorizer.decide("/", True, make_user(is_active=False))
        assert inactive.allowed
        assert inactive.state is AccessState.PUBLIC

    def test_login_page_stays_reachable_when_signed_in(self, authorizer: RoleAuthorizer):
        decision = authorizer.decide("/login", True, make_user(Role.ADMIN))
        assert decision.allowed
        assert decision.state is AccessState.PUBLIC


class TestUnauthenticated:
    @pytest.mark.parametrize("path", PROTECTED_PATHS + ["/profile"])
    def test_no_session_redirects_to_login_with_return_path(
        self, authorizer: RoleAuthorizer, path
    ):
        decision = authorizer.decide(path, False, None)

        assert decision.state is AccessState.UNAUTHENTICATED
        assert decision.redirect_to == login_redirect(path)

    def test_return_path_is_url_encoded(self):
        assert login_redirect("/admin/users/7") == "/login?redirect=%2Fadmin%2Fusers%2F7"

    def test_session_without_user_row_is_treated_as_unauthenticated(
        self, authorizer: RoleAuthorizer
    ):
        decision = authorizer.decide("/employee", True, None)

        assert decision.state is AccessState.UNAUTHENTICATED
        assert decision.redirect_to == "/login?redirect=%2Femployee"


class TestInactiveUsers:
    @pytest.mark.parametrize("role", list(Role))
    @pytest.mark.parametrize("path", PROTECTED_PATHS + ["/profile", "/auth/me"])
    def test_inactive_user_always_gets_inactive_redirect(
        self, authorizer: RoleAuthorizer, role, path
    ):
        decision = authorizer.decide(path, True, make_user(role, is_active=False))

        assert decision.state is AccessState.AUTHENTICATED_INACTIVE
        assert decision.redirect_to == INACTIVE_REDIRECT == "/login?error=account_inactive"


class TestRoleRules:
    @pytest.mark.parametrize("role", list(Role))
    @pytest.mark.parametrize("path", PROTECTED_PATHS)
    def test_excluded_role_is_sent_to_own_dashboard(
        self, authorizer: RoleAuthorizer, role, path
    ):
        rule = DEFAULT_ROUTE_TABLE.match(path)
        assert rule is not None
        decision = authorizer.decide(path, True, make_user(role))

        if role in rule.roles:
            assert decision.allowed
            assert decision.state is AccessState.AUTHENTICATED_ACTIVE_ALLOWED
        else:
            assert not decision.allowed
            assert decision.state is AccessState.AUTHENTICATED_ACTIVE_DENIED
            assert decision.redirect_to == {
                Role.EMPLOYEE: "/employee",
                Role.KITCHEN: "/kitchen",
                Role.MENU_EDITOR: "/editor",
                Role.ADMIN: "/admin",
            }[role]

    def test_admin_is_allowed_everywhere(self, authorizer: RoleAuthorizer):
        admin = make_user(Role.ADMIN)
        for path in PROTECTED_PATHS:
            assert authorizer.decide(path, True, admin).allowed

    def test_unprotected_path_is_allowed_for_any_active_role(
        self, authorizer: RoleAuthorizer
    ):
        for role in Role:
            assert authorizer.decide("/profile", True, make_user(role)).allowed

    def test_prefix_match_is_by_plain_string(self, authorizer: RoleAuthorizer):
        decision = authorizer.decide("/administrator", True, make_user(Role.EMPLOYEE))

        assert decision.redirect_to == "/employee"


class TestRouteTable:
    def test_default_table_matches_admin_subpaths_against_admin_rule(self):
        rule = DEFAULT_ROUTE_TABLE.match("/admin/users/7")

        assert rule is not None
        assert rule.prefix == "/admin"

    def test_unmatched_path(self):
        assert DEFAULT_ROUTE_TABLE.match("/profile") is None

    def test_longest_prefix_wins_regardless_of_rule_order(
        self, session_validator, elevated_db_service
    ):
        specific = RouteRule("/admin/users", frozenset({Role.MENU_EDITOR}))
        table = RouteTable([*DEFAULT_ROUTE_TABLE.rules, specific])
        reversed_table = RouteTable([specific, *DEFAULT_ROUTE_TABLE.rules])

        for route_table in (table, reversed_table):
            assert route_table.match("/admin/users/7") == specific
            assert route_table.match("/admin/settings").prefix == "/admin"

            authorizer = RoleAuthorizer(session_validator, elevated_db_service, route_table)
            editor = make_user(Role.MENU_EDITOR)
            admin = make_user(Role.ADMIN)

            assert authorizer.decide("/admin/users/7", True, editor).allowed
            denied = authorizer.decide("/admin/users/7", True, admin)
            assert denied.state is AccessState.AUTHENTICATED_ACTIVE_DENIED
            assert denied.redirect_to == "/admin"
            assert authorizer.decide("/admin/settings", True, editor).redirect_to == "/editor"


class TestAuthorize:
    @pytest.mark.asyncio
    async def test_no_credentials(self, authorizer: RoleAuthorizer):
        result = await authorizer.authorize("/employee", SessionCredentials())

        assert result.decision.redirect_to == "/login?redirect=%2Femployee"
        assert result.identity is None
        assert result.user is None

    @pytest.mark.asyncio
    async def test_active_user_with_valid_token(
        self, authorizer, fake_provider, identity_factory, user_factory
    ):
        identity = identity_factory("auth-1", "ana@example.com")
        user_factory("auth-1", "ana@example.com", role=Role.EMPLOYEE)
        session = fake_provider.issue(identity)

        result = await authorizer.authorize(
            "/employee/orders", SessionCredentials(access_token=session.access_token)
        )

        assert result.decision.allowed
        assert result.user is not None
        assert result.user.id == "auth-1"
        assert result.identity == identity
        assert result.renewed is None

    @pytest.mark.asyncio
    async def test_valid_token_without_user_row(
        self, authorizer, fake_provider, identity_factory
    ):
        session = fake_provider.issue(identity_factory("auth-ghost", "ghost@example.com"))

        result = await authorizer.authorize(
            "/employee", SessionCredentials(access_token=session.access_token)
        )

        assert result.decision.state is AccessState.UNAUTHENTICATED
        assert result.decision.redirect_to == "/login?redirect=%2Femployee"
        assert result.identity is not None
        assert result.user is None

    @pytest.mark.asyncio
    async def test_unknown_stored_role_is_treated_as_missing_user(
        self, authorizer, fake_provider, identity_factory, unknown_role_user
    ):
        unknown_role_user("auth-3", "odd@example.com")
        session = fake_provider.issue(identity_factory("auth-3", "odd@example.com"))

        result = await authorizer.authorize(
            "/kitchen/orders", SessionCredentials(access_token=session.access_token)
        )

        assert result.decision.state is AccessState.UNAUTHENTICATED
        assert result.decision.redirect_to == "/login?redirect=%2Fkitchen%2Forders"
        assert result.user is None

    @pytest.mark.asyncio
    async def test_inactive_user(self, authorizer, fake_provider, identity_factory, user_factory):
        identity = identity_factory("auth-2", "off@example.com")
        user_factory("auth-2", "off@example.com", role=Role.ADMIN, is_active=False)
        session = fake_provider.issue(identity)

        result = await authorizer.authorize(
            "/admin", SessionCredentials(access_token=session.access_token)
        )

        assert result.decision.redirect_to == "/login?error=account_inactive"

    @pytest.mark.asyncio
    async def test_landing_page_redirects_signed_in_user(
        self, authorizer, fake_provider, identity_factory, user_factory
    ):
        identity = identity_factory("auth-3", "chef@example.com")
        user_factory("auth-3", "chef@example.com", role=Role.KITCHEN)
        session = fake_provider.issue(identity)

        result = await authorizer.authorize(
            "/", SessionCredentials(access_token=session.access_token)
        )

        assert result.decision.redirect_to == "/kitchen"

    @pytest.mark.asyncio
    async def test_expired_token_is_renewed_with_refresh_token(
        self, authorizer, fake_provider, identity_factory, user_factory
    ):
        identity = identity_factory("auth-4", "late@example.com")
        user_factory("auth-4", "late@example.com", role=Role.MENU_EDITOR)
        session = fake_provider.issue(identity)
        fake_provider.access_tokens.clear()

        result = await authorizer.authorize(
            "/editor",
            SessionCredentials(access_token=session.access_token, refresh_token=session.refresh_token),
        )

        assert result.decision.allowed
        assert result.renewed is not None
        assert result.renewed.access_token != session.access_token

    @pytest.mark.asyncio
    async def test_provider_outage_is_treated_as_no_session(
        self, authorizer, fake_provider, identity_factory, user_factory
    ):
        identity = identity_factory("auth-5", "ana@example.com")
        user_factory("auth-5", "ana@example.com")
        session = fake_provider.issue(identity)
        fake_provider.outage = True

        result = await authorizer.authorize(
            "/employee", SessionCredentials(access_token=session.access_token)
        )

        assert result.decision.state is AccessState.UNAUTHENTICATED

    @pytest.mark.asyncio
    async def test_public_pages_skip_the_provider(self, authorizer, fake_provider):
        fake_provider.outage = True

        result = await authorizer.authorize(
            "/login", SessionCredentials(access_token="anything")
        )

        assert result.decision.allowed
        assert result.decision.state is AccessState.PUBLIC
