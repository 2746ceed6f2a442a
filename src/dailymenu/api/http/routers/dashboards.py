"""Landing page and the four role dashboards.

Route access is already enforced by ``AccessControlMiddleware``; the role
dependencies here repeat the check for callers that reach a handler
without going through it.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.dailymenu.api.http.deps import get_optional_user, get_restricted_user_store, require_role
from src.dailymenu.core.exceptions import StoreError
from src.dailymenu.core.services import dashboard_for
from src.dailymenu.entities.core.company import Company
from src.dailymenu.entities.core.user import InternalUser, RestrictedUserStore, Role

router = APIRouter(tags=["dashboards"])


class LandingPage(BaseModel):
    signed_in: bool
    dashboard: str | None = None


class DashboardView(BaseModel):
    dashboard: str
    user: InternalUser
    company: Company | None = None
    awaiting_company: bool = False


def _dashboard_view(
    name: str, user: InternalUser, store: RestrictedUserStore
) -> DashboardView:
    company = None
    if user.company_id:
        try:
            company = store.get_company(user.company_id)
        except StoreError:
            company = None
    return DashboardView(
        dashboard=name,
        user=user,
        company=company,
        awaiting_company=user.company_id is None and user.role == Role.EMPLOYEE,
    )


@router.get("/", response_model=LandingPage)
async def landing(user: InternalUser | None = Depends(get_optional_user)) -> LandingPage:
    """Public landing page. Active users are redirected before reaching it."""
    if user is None or not user.is_active:
        return LandingPage(signed_in=False)
    return LandingPage(signed_in=True, dashboard=dashboard_for(user.role))


@router.get("/admin", response_model=DashboardView)
async def admin_dashboard(
    user: InternalUser = Depends(require_role(Role.ADMIN)),
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> DashboardView:
    return _dashboard_view("admin", user, store)


@router.get("/editor", response_model=DashboardView)
async def editor_dashboard(
    user: InternalUser = Depends(require_role(Role.MENU_EDITOR, Role.ADMIN)),
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> DashboardView:
    return _dashboard_view("editor", user, store)


@router.get("/employee", response_model=DashboardView)
async def employee_dashboard(
    user: InternalUser = Depends(require_role(Role.EMPLOYEE, Role.ADMIN)),
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> DashboardView:
    return _dashboard_view("employee", user, store)


@router.get("/kitchen", response_model=DashboardView)
async def kitchen_dashboard(
    user: InternalUser = Depends(require_role(Role.KITCHEN, Role.ADMIN)),
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> DashboardView:
    return _dashboard_view("kitchen", user, store)
