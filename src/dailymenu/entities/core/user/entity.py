"""User domain entity."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from src.dailymenu.entities.core._base import Entity


class Role(StrEnum):
    """Roles that decide dashboard and route access."""

    EMPLOYEE = "employee"
    KITCHEN = "kitchen"
    MENU_EDITOR = "menu_editor"
    ADMIN = "admin"


class InternalUser(Entity):
    """The system's own record of a person: role, company and active flag.

    ``id`` equals the auth provider's external id once the row has been
    reconciled. A ``None`` company means the account is waiting for an admin
    to assign it.
    """

    email: str = Field(description="Unique email address")
    full_name: str | None = Field(default=None, description="Display name")
    phone: str | None = Field(default=None, description="Phone number")
    company_id: str | None = Field(
        default=None, description="Company the user orders for"
    )
    role: Role = Field(default=Role.EMPLOYEE, description="Access role")
    is_active: bool = Field(default=True, description="Inactive users are locked out")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class ExternalIdentity(BaseModel):
    """Identity asserted by the auth provider after verifying a credential.

    Passed through the core, never persisted.
    """

    external_id: str = Field(description="Provider-side user id")
    email: str = Field(description="Email the provider verified")
    display_name: str | None = Field(default=None, description="Profile name, if any")
    phone: str | None = Field(default=None, description="Profile phone, if any")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @classmethod
    def from_provider_user(cls, payload: dict) -> "ExternalIdentity":
        """Build an identity from the provider's user object."""
        metadata = payload.get("user_metadata") or {}
        return cls(
            external_id=payload["id"],
            email=payload.get("email") or "",
            display_name=metadata.get("full_name") or metadata.get("name") or None,
            phone=metadata.get("phone") or payload.get("phone") or None,
        )

    @property
    def email_local_part(self) -> str:
        return self.email.split("@", 1)[0]


class UserUpdate(BaseModel):
    """Admin-editable fields of a user; unset fields are left untouched."""

    full_name: str | None = None
    phone: str | None = None
    company_id: str | None = None
    role: Role | None = None
    is_active: bool | None = None
