from datetime import datetime
from typing import Callable

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import Forbidden, Unauthorized
from app.core.security import SessionIssuer, now_utc
from app.db.session import get_db
from app.models.user import User, UserRole
from app.services.auth import AuthService
from app.services.credentials import CredentialManager
from app.services.mail import MailSender, get_mail_sender as build_mail_sender
from app.services.otp import OtpEngine, OtpPolicy
from app.services.sms import SmsSender, get_sms_sender as build_sms_sender
from app.services.user_store import UserStore

bearer = HTTPBearer(auto_error=False)


def get_clock() -> Callable[[], datetime]:
    return now_utc


def get_sms_sender() -> SmsSender:
    return build_sms_sender(settings)


def get_mail_sender() -> MailSender:
    return build_mail_sender(settings)


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    return UserStore(db)


def get_auth_service(
    store: UserStore = Depends(get_user_store),
    sms: SmsSender = Depends(get_sms_sender),
    mail: MailSender = Depends(get_mail_sender),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> AuthService:
    otp = OtpEngine(store, OtpPolicy.from_settings(settings), sms=sms, mail=mail, clock=clock)
    return AuthService(
        store,
        otp,
        CredentialManager(store, rounds=settings.BCRYPT_ROUNDS),
        SessionIssuer(settings.JWT_SECRET, settings.JWT_ACCESS_MINUTES, clock=clock),
        sms=sms,
        mail=mail,
        clock=clock,
        reset_token_ttl_minutes=settings.RESET_TOKEN_TTL_MINUTES,
        expose_codes=settings.ENV == "dev",
    )


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    auth: AuthService = Depends(get_auth_service),
) -> User:
    if creds is None or not creds.credentials:
        raise Unauthorized("Login first to access this endpoint.")
    return auth.authenticate(creds.credentials)


def require_role(*roles: UserRole):
    allowed = {r.value for r in roles}

    def dependency(current: User = Depends(get_current_user)) -> User:
        if current.role not in allowed:
            raise Forbidden("You do not have permission to access this resource")
        return current

    return dependency
