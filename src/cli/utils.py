"""Shared helpers for CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlmodel import Session

from src.dailymenu.core.services.database.db_session import DbSessionService
from src.dailymenu.runtime.context import get_config


@contextmanager
def elevated_session() -> Iterator[Session]:
    """Open a session on the elevated connection; operators bypass row policies."""
    config = get_config()
    db = DbSessionService(
        config.database.elevated_connection_string,
        config.database,
        access_level="elevated",
        environment=config.app.environment,
    )
    session = db.get_session()
    try:
        yield session
    finally:
        session.close()
        db.dispose()
