"""Database engine and session factory used across the application.

Two instances exist per process: one bound to the ordinary connection (row
policies apply) and one bound to the elevated service connection. Both are
built during startup and handed out through ``ApplicationDependencies``.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlmodel import Session, create_engine

from src.dailymenu.runtime.config.config_data import DatabaseConfig


class DbSessionService:
    def __init__(
        self,
        connection_string: str,
        db_config: DatabaseConfig | None = None,
        *,
        access_level: str = "ordinary",
        environment: str = "development",
        engine: Engine | None = None,
    ):
        """Initialize the engine and session factory for one access level."""
        self._access_level = access_level

        if engine is not None:
            self._engine = engine
            return

        db_config = db_config or DatabaseConfig()
        logger.info(
            "Configuring {} database engine for environment: {}", access_level, environment
        )

        engine_kwargs: dict = {
            "pool_pre_ping": True,
            "echo": False,
            "connect_args": self._get_connect_args(connection_string, environment),
        }
        if not connection_string.startswith("sqlite"):
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        self._engine = create_engine(connection_string, **engine_kwargs)

    @property
    def access_level(self) -> str:
        return self._access_level

    @property
    def engine(self) -> Engine:
        return self._engine

    def _get_connect_args(self, connection_string: str, environment: str) -> dict:
        """Get database-specific connection arguments."""
        connect_args = {}

        if "postgresql" in connection_string:
            connect_args.update(
                {
                    "application_name": f"{environment}_dailymenu_{self._access_level}",
                    "connect_timeout": 30,
                }
            )

        elif connection_string.startswith("sqlite"):
            connect_args.update({"check_same_thread": False, "timeout": 20})

            if environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for role-separated connections."
                )

        return connect_args

    def get_session(self) -> Session:
        """Return a new SQLModel session bound to this engine."""
        return Session(
            self._engine,
            expire_on_commit=False,
            autoflush=True,
        )

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Open a session that commits on success and rolls back on error."""
        db = self.get_session()
        try:
            yield db
            db.commit()
        except Exception as e:
            db.rollback()
            logger.error(
                "Database transaction failed",
                access_level=self._access_level,
                error_type=type(e).__name__,
            )
            raise
        finally:
            db.close()

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(
                "Database health check failed",
                access_level=self._access_level,
                error_type=type(e).__name__,
            )
            return False

    def dispose(self) -> None:
        self._engine.dispose()
