"""Columns shared by every relation: an opaque string id and audit timestamps."""

import uuid
from datetime import UTC, datetime

import sqlalchemy as sa
from pydantic import BaseModel
from pydantic import Field as PydanticField
from sqlmodel import Field, SQLModel


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(UTC)


class Entity(BaseModel):
    """Domain model base. Ids are opaque strings; provider ids are not UUIDs."""

    id: str = PydanticField(default_factory=new_id, description="Opaque identifier")
    created_at: datetime = PydanticField(
        default_factory=utc_now, description="When the row was created (UTC)"
    )
    updated_at: datetime = PydanticField(
        default_factory=utc_now, description="When the row last changed (UTC)"
    )


class EntityTable(SQLModel, table=False):
    id: str = Field(primary_key=True, default_factory=new_id, max_length=255)
    created_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        sa_column_kwargs={"server_default": sa.func.now()},
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        nullable=False,
        sa_column_kwargs={
            "server_default": sa.func.now(),
            "onupdate": sa.func.now(),
        },
    )
