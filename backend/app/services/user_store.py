from __future__ import annotations

from datetime import datetime
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import Conflict, NotFound, StaleWrite
from app.models.user import User

LOOKUP_FIELDS = {"id", "email", "phone", "reset_password_token"}


def _try_uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


def _not_found(user_id) -> NotFound:
    return NotFound(f"User with ID {user_id} not found")


class UserStore:
    """Persistence boundary for user records.

    Each write is one statement committed on its own. ``update`` accepts an
    ``expected`` mapping that turns it into a compare-and-set: the row is only
    written if every listed column still holds the value the caller read.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_by_field(self, field: str, value) -> User | None:
        if field not in LOOKUP_FIELDS:
            raise ValueError(f"unsupported lookup field '{field}'")
        if field == "id":
            return self.find_by_id(value)
        if value is None:
            return None
        return self.db.execute(
            sa.select(User).where(getattr(User, field) == value)
        ).scalar_one_or_none()

    def find_by_id(self, user_id) -> User | None:
        uid = _try_uuid(user_id)
        if uid is None:
            return None
        return self.db.get(User, uid)

    def find_by_reset_token(self, token: str, now: datetime) -> User | None:
        # Token and deadline are matched in one query so a stale token is
        # indistinguishable from an unknown one.
        return self.db.execute(
            sa.select(User).where(
                User.reset_password_token == token,
                User.reset_password_expires > now,
            )
        ).scalar_one_or_none()

    def list(self, offset: int = 0, limit: int = 50) -> list[User]:
        return list(
            self.db.execute(
                sa.select(User).order_by(User.created_at.desc(), User.id).offset(offset).limit(limit)
            ).scalars()
        )

    def count(self) -> int:
        return int(self.db.execute(sa.select(sa.func.count()).select_from(User)).scalar_one())

    def create(self, **fields) -> User:
        user = User(**fields)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("User with this email or phone already exists")
        self.db.refresh(user)
        return user

    def update(self, user_id, fields: dict, *, expected: dict | None = None) -> User:
        uid = _try_uuid(user_id)
        if uid is None:
            raise _not_found(user_id)

        stmt = sa.update(User).where(User.id == uid)
        for name, value in (expected or {}).items():
            column = getattr(User, name)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        stmt = stmt.values(**fields).execution_options(synchronize_session=False)

        try:
            result = self.db.execute(stmt)
        except IntegrityError:
            self.db.rollback()
            raise Conflict("User with this email or phone already exists")

        if result.rowcount == 0:
            self.db.rollback()
            if self.db.get(User, uid) is None:
                raise _not_found(user_id)
            raise StaleWrite("User record changed concurrently")

        self.db.commit()
        user = self.db.get(User, uid)
        self.db.refresh(user)
        return user

    def delete(self, user_id) -> None:
        user = self.find_by_id(user_id)
        if user is None:
            raise _not_found(user_id)
        self.db.delete(user)
        self.db.commit()
