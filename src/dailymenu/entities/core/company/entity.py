"""Company domain entity."""

from pydantic import Field

from src.dailymenu.entities.core._base import Entity


class Company(Entity):
    """A subscribed company whose employees order from the daily menu."""

    name: str = Field(description="Company name")
    is_active: bool = Field(default=True, description="Whether the subscription is active")
