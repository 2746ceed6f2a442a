"""Data access for the ``users`` relation at two privilege levels.

``RestrictedUserStore`` applies the per-row policy of the ordinary
connection: a caller sees and edits only its own row, unless it is an active
admin. ``ElevatedUserStore`` has no row policy and is handed only to
identity bootstrap and the per-request role lookup.
"""

from collections.abc import Sequence

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from src.dailymenu.core.exceptions import PolicyViolationError, StoreError
from src.dailymenu.entities.core._base import utc_now
from src.dailymenu.entities.core.company.entity import Company
from src.dailymenu.entities.core.company.table import CompanyTable
from src.dailymenu.entities.core.user.entity import InternalUser, Role, UserUpdate
from src.dailymenu.entities.core.user.table import UserTable

# Fields a non-admin caller may change on its own row.
SELF_EDITABLE_FIELDS = frozenset({"full_name", "phone"})


def _validate(row: UserTable) -> InternalUser:
    """Convert a row; a stored value outside the model (e.g. an unknown role) is a StoreError."""
    try:
        return InternalUser.model_validate(row, from_attributes=True)
    except ValidationError as e:
        logger.error("users row {} failed validation: {}", row.id, e.error_count())
        raise StoreError(f"users row {row.id} is invalid") from e


def _to_user(row: UserTable | None) -> InternalUser | None:
    if row is None:
        return None
    return _validate(row)


class _UserStoreBase:
    def __init__(self, session: Session) -> None:
        self._session = session

    def _first(self, statement) -> UserTable | None:
        try:
            return self._session.exec(statement).first()
        except SQLAlchemyError as e:
            raise StoreError(f"users lookup failed: {type(e).__name__}") from e

    def _commit(self, row: UserTable, action: str) -> InternalUser:
        try:
            self._session.add(row)
            self._session.commit()
            self._session.refresh(row)
        except SQLAlchemyError as e:
            self._session.rollback()
            logger.error("users {} failed for {}: {}", action, row.email, type(e).__name__)
            raise StoreError(f"users {action} failed: {type(e).__name__}") from e
        return _validate(row)

    def _apply(self, row: UserTable, changes: UserUpdate) -> None:
        for field, value in changes.model_dump(exclude_unset=True).items():
            if field in ("role", "is_active") and value is None:
                continue
            if field == "role":
                value = Role(value).value
            setattr(row, field, value)
        row.updated_at = utc_now()


class ElevatedUserStore(_UserStoreBase):
    """Unrestricted access to ``users``; every write commits before returning."""

    def find_by_id(self, user_id: str) -> InternalUser | None:
        return _to_user(self._first(select(UserTable).where(UserTable.id == user_id)))

    def find_by_email(self, email: str) -> InternalUser | None:
        statement = select(UserTable).where(
            func.lower(UserTable.email) == email.strip().lower()
        )
        return _to_user(self._first(statement))

    def insert(self, user: InternalUser) -> InternalUser:
        row = UserTable(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            phone=user.phone,
            company_id=user.company_id,
            role=user.role.value,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        return self._commit(row, "insert")

    def relink(self, email: str, new_id: str) -> InternalUser:
        """Point the row owning ``email`` at ``new_id``.

        Keyed by email, so repeating the call with the same id is a no-op
        write that converges on the same row.
        """
        statement = select(UserTable).where(
            func.lower(UserTable.email) == email.strip().lower()
        )
        row = self._first(statement)
        if row is None:
            raise StoreError(f"no users row for {email} to relink")
        if row.id == new_id:
            return _validate(row)
        row.id = new_id
        row.updated_at = utc_now()
        return self._commit(row, "relink")

    def update(self, user_id: str, changes: UserUpdate) -> InternalUser | None:
        row = self._first(select(UserTable).where(UserTable.id == user_id))
        if row is None:
            return None
        self._apply(row, changes)
        return self._commit(row, "update")

    def list_all(self) -> list[InternalUser]:
        try:
            rows = self._session.exec(select(UserTable).order_by(UserTable.email)).all()
        except SQLAlchemyError as e:
            raise StoreError(f"users listing failed: {type(e).__name__}") from e
        return [_validate(r) for r in rows]


class RestrictedUserStore(_UserStoreBase):
    """Access to ``users`` on behalf of one authenticated caller."""

    def __init__(self, session: Session, caller_id: str) -> None:
        super().__init__(session)
        self._caller_id = caller_id
        self._caller_is_admin: bool | None = None

    @property
    def caller_id(self) -> str:
        return self._caller_id

    def caller_is_admin(self) -> bool:
        if self._caller_is_admin is None:
            statement = select(UserTable).where(
                UserTable.id == self._caller_id,
                UserTable.role == Role.ADMIN.value,
                UserTable.is_active == True,  # noqa: E712
            )
            self._caller_is_admin = self._first(statement) is not None
        return self._caller_is_admin

    def _visible(self, statement):
        if self.caller_is_admin():
            return statement
        return statement.where(UserTable.id == self._caller_id)

    def get(self, user_id: str) -> InternalUser | None:
        statement = self._visible(select(UserTable).where(UserTable.id == user_id))
        return _to_user(self._first(statement))

    def get_current(self) -> InternalUser | None:
        return self.get(self._caller_id)

    def list_users(
        self,
        company_id: str | None = None,
        role: Role | None = None,
        is_active: bool | None = None,
    ) -> Sequence[InternalUser]:
        statement = self._visible(select(UserTable))
        if company_id is not None:
            statement = statement.where(UserTable.company_id == company_id)
        if role is not None:
            statement = statement.where(UserTable.role == role.value)
        if is_active is not None:
            statement = statement.where(UserTable.is_active == is_active)
        try:
            rows = self._session.exec(statement.order_by(UserTable.created_at.desc())).all()
        except SQLAlchemyError as e:
            raise StoreError(f"users listing failed: {type(e).__name__}") from e
        return [_validate(r) for r in rows]

    def update(self, user_id: str, changes: UserUpdate) -> InternalUser | None:
        """Apply ``changes`` to a visible row; ``None`` when the row is not visible."""
        statement = self._visible(select(UserTable).where(UserTable.id == user_id))
        row = self._first(statement)
        if row is None:
            return None
        if not self.caller_is_admin():
            forbidden = set(changes.model_dump(exclude_unset=True)) - SELF_EDITABLE_FIELDS
            if forbidden:
                raise PolicyViolationError(
                    f"caller may not change {', '.join(sorted(forbidden))}"
                )
        self._apply(row, changes)
        return self._commit(row, "update")

    def get_company(self, company_id: str) -> Company | None:
        try:
            row = self._session.get(CompanyTable, company_id)
        except SQLAlchemyError as e:
            raise StoreError(f"companies lookup failed: {type(e).__name__}") from e
        if row is None:
            return None
        return Company.model_validate(row, from_attributes=True)
