"""Company database table model."""

from sqlmodel import Field

from src.dailymenu.entities.core._base import EntityTable


class CompanyTable(EntityTable, table=True):
    """Database persistence model for the ``companies`` relation."""

    __tablename__ = "companies"

    name: str
    is_active: bool = Field(default=True)
