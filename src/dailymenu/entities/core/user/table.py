"""User database table model."""

from sqlalchemy import Column, String
from sqlmodel import Field

from src.dailymenu.entities.core._base import EntityTable
from src.dailymenu.entities.core.user.entity import Role


class UserTable(EntityTable, table=True):
    """Database persistence model for the ``users`` relation."""

    __tablename__ = "users"

    email: str = Field(sa_column=Column(String(320), nullable=False, unique=True, index=True))
    full_name: str | None = None
    phone: str | None = None
    company_id: str | None = Field(default=None, foreign_key="companies.id", index=True)
    role: str = Field(default=Role.EMPLOYEE.value, max_length=32)
    is_active: bool = Field(default=True)
