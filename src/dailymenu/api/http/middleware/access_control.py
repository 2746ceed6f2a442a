import re

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse, Response

from src.dailymenu.api.http.app_data import ApplicationDependencies
from src.dailymenu.core.security import set_session_cookies
from src.dailymenu.runtime.context import get_config

# Infrastructure, static assets and sign-out bypass route authorization.
EXEMPT_PATHS = re.compile(
    r"^/(health|docs|redoc|static)(/|$)"
    r"|^/(openapi\.json|favicon\.ico|auth/signout)$"
)


class AccessControlMiddleware(BaseHTTPMiddleware):
    """Run the role authorizer before every page request.

    The resolved identity and internal user are left on ``request.state``
    for route dependencies. A session renewed through the refresh token is
    written back as cookies on whatever response goes out.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if EXEMPT_PATHS.search(path):
            return await call_next(request)

        deps: ApplicationDependencies = request.app.state.app_dependencies
        credentials = deps.session_validator.extract_credentials(request)
        result = await deps.role_authorizer.authorize(path, credentials)

        request.state.identity = result.identity
        request.state.current_user = result.user

        decision = result.decision
        if decision.allowed:
            response = await call_next(request)
        else:
            logger.debug(
                "Access redirect",
                path=path,
                state=decision.state.value,
                location=decision.redirect_to,
            )
            response = RedirectResponse(decision.redirect_to, status_code=307)

        if result.renewed is not None:
            config = get_config()
            set_session_cookies(response, result.renewed, config.auth, config.security)
        return response
