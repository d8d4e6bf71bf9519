from datetime import datetime

from pydantic import BaseModel, Field

from app.models.user import UserRole
from app.schemas.auth import UserOut


class UserAdminOut(UserOut):
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_login_at: datetime | None = None


class UserListOut(BaseModel):
    rows: list[UserAdminOut]
    total: int
    offset: int
    limit: int


class UserUpdateIn(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=80)
    last_name: str | None = Field(default=None, min_length=1, max_length=80)
    role: UserRole | None = None
    is_active: bool | None = None
