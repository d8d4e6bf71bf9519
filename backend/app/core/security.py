import secrets
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.errors import TokenExpired, TokenInvalid

ALGO = "HS256"

def now_utc() -> datetime:
    return datetime.now(timezone.utc)

def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

@lru_cache(maxsize=None)
def resolve_timezone(name: str) -> tzinfo:
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise ValueError(f"unknown timezone '{name}'") from exc

def random_otp_code() -> str:
    # 6 digits, never a leading zero
    return str(100_000 + secrets.randbelow(900_000))

def random_reset_token() -> str:
    return secrets.token_hex(32)

def hash_password(password: str, rounds: int = 10) -> str:
    raw = password.encode("utf-8")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=rounds)).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


class SessionIssuer:
    """Mints and checks signed access tokens.

    Tokens carry no server-side state: callers must still load the user and
    check ``is_active`` on every request.
    """

    token_type = "access"

    def __init__(self, secret: str, ttl_minutes: int = 30, clock: Callable[[], datetime] = now_utc):
        if not secret:
            raise ValueError("session signing secret is required")
        self.secret = secret
        self.ttl_minutes = ttl_minutes
        self.clock = clock

    def issue(self, user) -> str:
        issued_at = self.clock()
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "phone": user.phone,
            "role": user.role,
            "type": self.token_type,
            "iat": int(issued_at.timestamp()),
            "exp": issued_at + timedelta(minutes=self.ttl_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=ALGO)

    def validate(self, token: str) -> dict:
        try:
            claims = jwt.decode(token, self.secret, algorithms=[ALGO])
        except ExpiredSignatureError:
            raise TokenExpired("Token has expired")
        except JWTError:
            raise TokenInvalid("Invalid token")
        if claims.get("type") != self.token_type or not claims.get("sub"):
            raise TokenInvalid("Invalid token")
        return claims
