"""FastAPI application factory and setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.dailymenu.api.http.app_data import ApplicationDependencies
from src.dailymenu.api.http.middleware.access_control import AccessControlMiddleware
from src.dailymenu.api.http.middleware.request_logging import RequestLoggingMiddleware
from src.dailymenu.api.http.middleware.security_headers import SecurityHeadersMiddleware
from src.dailymenu.api.http.routers.admin_users import router as admin_users_router
from src.dailymenu.api.http.routers.auth import router as auth_router
from src.dailymenu.api.http.routers.dashboards import router as dashboards_router
from src.dailymenu.api.http.routers.health import router as health_router
from src.dailymenu.api.utils.app_startup import configure_logging
from src.dailymenu.core.services import (
    AuthProviderClient,
    DbSessionService,
    IdentityReconciler,
    RoleAuthorizer,
    SessionValidator,
)
from src.dailymenu.runtime.config.config_data import ConfigData
from src.dailymenu.runtime.context import get_config

__all__ = ["app", "build_dependencies", "create_app"]


def build_dependencies(config: ConfigData) -> ApplicationDependencies:
    """Construct the per-process services, including both database access levels."""
    environment = config.app.environment
    database_service = DbSessionService(
        config.database.url,
        config.database,
        access_level="ordinary",
        environment=environment,
    )
    elevated_database_service = DbSessionService(
        config.database.elevated_connection_string,
        config.database,
        access_level="elevated",
        environment=environment,
    )
    if not config.database.elevated_url:
        logger.warning(
            "database.elevated_url not set; elevated access shares the ordinary connection"
        )

    auth_provider = AuthProviderClient(config.auth)
    session_validator = SessionValidator(auth_provider, config.auth)
    return ApplicationDependencies(
        auth_provider=auth_provider,
        session_validator=session_validator,
        database_service=database_service,
        elevated_database_service=elevated_database_service,
        identity_reconciler=IdentityReconciler(elevated_database_service),
        role_authorizer=RoleAuthorizer(session_validator, elevated_database_service),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)
    app.state.app_dependencies = build_dependencies(config)
    try:
        yield
    finally:
        logger.info("Shutting down application")
        deps: ApplicationDependencies = app.state.app_dependencies
        deps.database_service.dispose()
        deps.elevated_database_service.dispose()


def _add_middleware(app: FastAPI, config: ConfigData) -> None:
    production = config.app.environment == "production"
    cors = config.app.cors
    if production and "*" in cors.origins:
        raise RuntimeError(
            "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
        )

    # Added innermost first; access control runs inside the request log context.
    app.add_middleware(AccessControlMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, hsts=production)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )
    app.add_middleware(RequestLoggingMiddleware)


def create_app(config: ConfigData | None = None) -> FastAPI:
    config = config or get_config()
    show_docs = config.app.environment != "production"

    app = FastAPI(
        title="Daily Menu",
        lifespan=lifespan,
        docs_url="/docs" if show_docs else None,
        redoc_url="/redoc" if show_docs else None,
    )
    _add_middleware(app, config)

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(admin_users_router)
    app.include_router(dashboards_router)
    return app


configure_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_config().app
    # Access lines come from RequestLoggingMiddleware.
    uvicorn.run(app, host=settings.host, port=settings.port, access_log=False)
