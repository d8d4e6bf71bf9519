from __future__ import annotations

from app.core.security import hash_password, verify_password
from app.models.user import User
from app.services.user_store import UserStore

# A password change invalidates every outstanding reset credential.
_RESET_STATE_CLEARED = {
    "reset_password_otp": None,
    "reset_password_otp_expires": None,
    "reset_password_token": None,
    "reset_password_expires": None,
}


class CredentialManager:
    def __init__(self, store: UserStore, rounds: int = 10):
        self.store = store
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        return hash_password(plaintext, rounds=self.rounds)

    def verify(self, plaintext: str, password_hash: str) -> bool:
        return verify_password(plaintext, password_hash)

    def password_change_fields(self, new_plaintext: str) -> dict:
        return {"password_hash": self.hash(new_plaintext), **_RESET_STATE_CLEARED}

    def update_password(self, user: User, new_plaintext: str, *, expected: dict | None = None) -> User:
        return self.store.update(user.id, self.password_change_fields(new_plaintext), expected=expected)
