from fastapi import APIRouter, Depends, HTTPException

from src.dailymenu.api.http.deps import get_restricted_user_store, require_role
from src.dailymenu.core.exceptions import PolicyViolationError, StoreError
from src.dailymenu.entities.core.user import InternalUser, RestrictedUserStore, Role, UserUpdate

router = APIRouter(
    prefix="/admin/users",
    tags=["admin"],
    dependencies=[Depends(require_role(Role.ADMIN))],
)


@router.get("", response_model=list[InternalUser])
async def list_users(
    company_id: str | None = None,
    role: Role | None = None,
    is_active: bool | None = None,
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> list[InternalUser]:
    """List users, newest first, optionally filtered."""
    try:
        return list(store.list_users(company_id=company_id, role=role, is_active=is_active))
    except StoreError as e:
        raise HTTPException(status_code=503, detail="Users are unavailable") from e


@router.get("/{user_id}", response_model=InternalUser)
async def get_user(
    user_id: str,
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> InternalUser:
    user = store.get(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.patch("/{user_id}", response_model=InternalUser)
async def update_user(
    user_id: str,
    changes: UserUpdate,
    store: RestrictedUserStore = Depends(get_restricted_user_store),
) -> InternalUser:
    """Change a user's role, company, active flag or profile fields."""
    try:
        updated = store.update(user_id, changes)
    except PolicyViolationError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except StoreError as e:
        raise HTTPException(status_code=400, detail="User could not be updated") from e
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return updated
