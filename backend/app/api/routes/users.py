from fastapi import APIRouter, Depends, Query

from app.api.deps import get_user_store, require_role
from app.models.user import User, UserRole
from app.schemas.auth import MessageOut
from app.schemas.users import UserAdminOut, UserListOut, UserUpdateIn
from app.services.user_store import UserStore
from app.services.users import UserAdminService

router = APIRouter()

admin_only = require_role(UserRole.ADMIN)


def get_user_admin_service(store: UserStore = Depends(get_user_store)) -> UserAdminService:
    return UserAdminService(store)


@router.get("", response_model=UserListOut)
def list_users(
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current: User = Depends(admin_only),
    users: UserAdminService = Depends(get_user_admin_service),
):
    return users.find_all(offset=offset, limit=limit)


@router.get("/{user_id}", response_model=UserAdminOut)
def get_user(
    user_id: str,
    current: User = Depends(admin_only),
    users: UserAdminService = Depends(get_user_admin_service),
):
    return users.find_one(user_id)


@router.patch("/{user_id}", response_model=UserAdminOut)
def update_user(
    user_id: str,
    payload: UserUpdateIn,
    current: User = Depends(admin_only),
    users: UserAdminService = Depends(get_user_admin_service),
):
    return users.update(current, user_id, payload)


@router.delete("/{user_id}", response_model=MessageOut)
def delete_user(
    user_id: str,
    current: User = Depends(admin_only),
    users: UserAdminService = Depends(get_user_admin_service),
):
    users.remove(current, user_id)
    return MessageOut(message="User deleted successfully")
