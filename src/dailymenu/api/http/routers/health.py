"""Health check endpoints router for monitoring service availability."""

from typing import Any

from fastapi import APIRouter, Request
from starlette.responses import JSONResponse

from src.dailymenu.api.http.app_data import ApplicationDependencies
from src.dailymenu.core.services import DbSessionService

router = APIRouter(prefix="/health", tags=["health"])


def _database_check(db: DbSessionService) -> dict[str, str]:
    dialect = db.engine.dialect.name
    healthy = db.health_check()
    return {"status": "healthy" if healthy else "unhealthy", "type": dialect}


@router.get("")
async def health() -> dict[str, str]:
    """Liveness probe: 200 while the process is running."""
    return {"status": "healthy", "service": "dailymenu"}


@router.get("/ready", response_model=None)
async def readiness(request: Request) -> dict[str, Any] | JSONResponse:
    """Readiness probe: both database connections must answer.

    Returns 200 when ready and 503 when either connection is down.
    """
    app_deps: ApplicationDependencies = request.app.state.app_dependencies

    checks = {
        "database": _database_check(app_deps.database_service),
        "database_elevated": _database_check(app_deps.elevated_database_service),
    }
    ready = all(check["status"] == "healthy" for check in checks.values())
    body = {"status": "ready" if ready else "not_ready", "checks": checks}

    if not ready:
        return JSONResponse(status_code=503, content=body)
    return body
