"""Database initialization script."""

from src.dailymenu.core.services.database.db_manage import DbManageService
from src.dailymenu.core.services.database.db_session import DbSessionService
from src.dailymenu.runtime.context import get_config


def init_db() -> None:
    """Create all database tables through the elevated connection."""
    config = get_config()
    db_service = DbSessionService(
        config.database.elevated_connection_string,
        config.database,
        access_level="elevated",
        environment=config.app.environment,
    )
    try:
        DbManageService(db_service).create_all()
    finally:
        db_service.dispose()


if __name__ == "__main__":
    init_db()
