from src.dailymenu.entities.core.user.entity import Role

DASHBOARDS: dict[str, str] = {
    Role.ADMIN.value: "/admin",
    Role.MENU_EDITOR.value: "/editor",
    Role.EMPLOYEE.value: "/employee",
    Role.KITCHEN.value: "/kitchen",
}

DEFAULT_DASHBOARD = DASHBOARDS[Role.EMPLOYEE.value]


def dashboard_for(role: Role | str | None) -> str:
    """Return the landing path for ``role``.

    Any role not in ``DASHBOARDS`` lands on the employee dashboard.
    """
    if role is None:
        return DEFAULT_DASHBOARD
    key = role.value if isinstance(role, Role) else str(role)
    return DASHBOARDS.get(key, DEFAULT_DASHBOARD)
