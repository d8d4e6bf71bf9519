from __future__ import annotations

import logging

from app.core.errors import NotFound
from app.models.user import User
from app.schemas.users import UserAdminOut, UserListOut, UserUpdateIn
from app.services.audit import audit
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


class UserAdminService:
    def __init__(self, store: UserStore):
        self.store = store

    def find_all(self, offset: int = 0, limit: int = 50) -> UserListOut:
        rows = self.store.list(offset=offset, limit=limit)
        return UserListOut(
            rows=[UserAdminOut.model_validate(r) for r in rows],
            total=self.store.count(),
            offset=offset,
            limit=limit,
        )

    def find_one(self, user_id: str) -> UserAdminOut:
        return UserAdminOut.model_validate(self._get(user_id))

    def update(self, actor: User, user_id: str, payload: UserUpdateIn) -> UserAdminOut:
        fields = payload.model_dump(exclude_unset=True)
        if "role" in fields and fields["role"] is not None:
            fields["role"] = fields["role"].value
        fields = {k: v for k, v in fields.items() if v is not None}
        if not fields:
            return self.find_one(user_id)
        audit(self.store.db, actor.id, "user", str(user_id), "user_updated", {"fields": sorted(fields)})
        user = self.store.update(user_id, fields)
        logger.info("User %s updated by %s: %s", user.id, actor.id, sorted(fields))
        return UserAdminOut.model_validate(user)

    def remove(self, actor: User, user_id: str) -> None:
        user = self._get(user_id)
        audit(self.store.db, actor.id, "user", str(user.id), "user_deleted", {})
        self.store.delete(user.id)
        logger.info("User %s deleted by %s", user_id, actor.id)

    def _get(self, user_id: str) -> User:
        user = self.store.find_by_id(user_id)
        if user is None:
            raise NotFound(f"User with ID {user_id} not found")
        return user
