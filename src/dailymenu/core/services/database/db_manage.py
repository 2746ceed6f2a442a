"""Schema management for the users and companies relations."""

from loguru import logger
from sqlmodel import SQLModel

from src.dailymenu.core.services.database.db_session import DbSessionService


class DbManageService:
    def __init__(self, db_service: DbSessionService):
        self._db_service = db_service

    def create_all(self) -> None:
        """Create all database tables."""
        from src.dailymenu.entities.core.company import CompanyTable  # noqa: F401
        from src.dailymenu.entities.core.user import UserTable  # noqa: F401

        SQLModel.metadata.create_all(self._db_service.engine)
        logger.info("Database initialized with tables.")
