"""
User-facing authentication flows.

The email reset link never reveals whether an address is registered: unknown
addresses and failed sends both end in silent success. Phone-keyed flows
answer "User not found". Login failures share one message whether the phone
or the password was wrong.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable
from uuid import uuid4

from app.core.errors import (
    AlreadyVerified,
    AuthError,
    BadRequest,
    Forbidden,
    StaleWrite,
    Unauthorized,
    ValidationFailure,
)
from app.core.security import SessionIssuer, now_utc, random_reset_token
from app.models.user import User, UserRole
from app.schemas.auth import (
    OTPRequestOut,
    SignupIn,
    SignupOut,
    TokenOut,
    UserOut,
    normalize_email,
)
from app.services.audit import audit
from app.services.credentials import CredentialManager
from app.services.otp import IssuedOtp, OtpEngine, OtpSlot
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
USER_NOT_FOUND = "User not found"
INVALID_RESET_TOKEN = "Invalid or expired reset token"


class AuthService:
    def __init__(
        self,
        store: UserStore,
        otp: OtpEngine,
        credentials: CredentialManager,
        sessions: SessionIssuer,
        *,
        sms,
        mail,
        clock: Callable[[], datetime] = now_utc,
        reset_token_ttl_minutes: int = 60,
        expose_codes: bool = False,
    ):
        self.store = store
        self.otp = otp
        self.credentials = credentials
        self.sessions = sessions
        self.sms = sms
        self.mail = mail
        self.clock = clock
        self.reset_token_ttl_minutes = reset_token_ttl_minutes
        self.expose_codes = expose_codes

    # signup / login

    def signup(self, payload: SignupIn) -> SignupOut:
        validation = self.sms.validate_phone_number(payload.phone)
        if not validation.is_valid:
            raise ValidationFailure(validation.error or "Invalid phone number")
        phone = validation.formatted_number
        email = normalize_email(payload.email)

        if self.store.find_by_field("phone", phone):
            raise BadRequest("User with this phone number already exists")
        if self.store.find_by_field("email", email):
            raise BadRequest("User with this email already exists")

        user_id = uuid4()
        audit(self.store.db, None, "user", str(user_id), "signup", {})
        user = self.store.create(
            id=user_id,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            phone=phone,
            password_hash=self.credentials.hash(payload.password),
            role=UserRole.USER.value,
            is_phone_verified=False,
            # Email OTP is not part of signup in this deployment.
            is_email_verified=True,
        )
        logger.info("Created user %s", user.id)

        # Best effort: the account exists whether or not the code goes out.
        try:
            issued = self.otp.issue(user, OtpSlot.PHONE_VERIFICATION)
        except AuthError as exc:
            logger.warning("Verification OTP not sent at signup for user %s: %s", user.id, exc.detail)
            return SignupOut(
                **UserOut.model_validate(self._reload(user)).model_dump(),
                message="User created successfully, but OTP sending failed. Please try to resend OTP.",
                otp_sent=False,
            )
        return SignupOut(
            **UserOut.model_validate(self._reload(user)).model_dump(),
            message="User created successfully. Please verify your phone number with the OTP sent to your phone.",
            otp_sent=True,
            dev_code=self._dev_code(issued),
        )

    def login(self, login: str, password: str) -> TokenOut:
        user = self._find_by_phone(login)
        if user is None or not self.credentials.verify(password, user.password_hash):
            raise Unauthorized(INVALID_CREDENTIALS)
        if not user.is_active:
            raise Forbidden("Your account has been deactivated")
        if not user.is_phone_verified:
            raise Forbidden("Please verify your phone number before logging in")

        audit(self.store.db, user.id, "auth", str(user.id), "login", {})
        user = self.store.update(user.id, {"last_login_at": self.clock()})
        return TokenOut(access_token=self.sessions.issue(user), user=UserOut.model_validate(user))

    def authenticate(self, token: str) -> User:
        claims = self.sessions.validate(token)
        user = self.store.find_by_id(claims["sub"])
        if user is None:
            raise Unauthorized("Login first to access this endpoint.")
        if not user.is_active:
            raise Unauthorized("User account is inactive")
        return user

    # phone verification

    def verify_phone(self, phone: str, otp: str) -> None:
        user = self._find_by_phone(phone)
        if user is None:
            raise BadRequest(USER_NOT_FOUND)
        if user.is_phone_verified:
            raise AlreadyVerified("Phone number is already verified")
        self.otp.consume(user, OtpSlot.PHONE_VERIFICATION, otp, audit_action="phone_verified")

    def resend_verification(self, phone: str) -> OTPRequestOut:
        user = self._find_by_phone(phone)
        if user is None:
            raise BadRequest(USER_NOT_FOUND)
        if user.is_phone_verified:
            raise AlreadyVerified("Phone number is already verified")
        issued = self.otp.issue(user, OtpSlot.PHONE_VERIFICATION)
        return self._otp_out("Verification OTP sent to your phone", issued)

    # email verification

    def request_email_verification(self, email: str) -> OTPRequestOut:
        user = self.store.find_by_field("email", normalize_email(email))
        if user is None:
            raise BadRequest(USER_NOT_FOUND)
        issued = self.otp.issue(user, OtpSlot.EMAIL_VERIFICATION)
        return self._otp_out("Verification OTP sent to your email", issued)

    def verify_email(self, email: str, otp: str) -> None:
        user = self.store.find_by_field("email", normalize_email(email))
        if user is None:
            raise BadRequest(USER_NOT_FOUND)
        if user.is_email_verified:
            raise AlreadyVerified("Email is already verified")
        self.otp.consume(user, OtpSlot.EMAIL_VERIFICATION, otp, audit_action="email_verified")

    # password reset

    def request_password_reset_otp(self, phone: str) -> OTPRequestOut:
        user = self._find_by_phone(phone)
        if user is None:
            raise BadRequest(USER_NOT_FOUND)
        issued = self.otp.issue(user, OtpSlot.PASSWORD_RESET)
        return self._otp_out("Password reset OTP sent to your phone", issued)

    def reset_password_with_otp(self, phone: str, otp: str, new_password: str) -> None:
        user = self._find_by_phone(phone)
        if user is None:
            raise BadRequest(USER_NOT_FOUND)
        self.otp.consume(
            user,
            OtpSlot.PASSWORD_RESET,
            otp,
            extra_fields=lambda: self.credentials.password_change_fields(new_password),
            audit_action="password_reset_otp",
        )

    def request_password_reset_token(self, email: str) -> None:
        user = self.store.find_by_field("email", normalize_email(email))
        if user is None:
            return

        token = random_reset_token()
        expires_at = self.clock() + timedelta(minutes=self.reset_token_ttl_minutes)
        audit(self.store.db, user.id, "user", str(user.id), "password_reset_token_issued", {})
        user = self.store.update(user.id, {"reset_password_token": token, "reset_password_expires": expires_at})
        # Send failures are only logged; the caller sees the same answer as
        # for an unknown address.
        try:
            self.mail.send_reset_token(user.email, token, user.first_name)
        except Exception as exc:
            logger.warning("Failed to mail reset link to user %s: %s", user.id, exc)

    def reset_password_with_token(self, token: str, new_password: str) -> None:
        user = self.store.find_by_reset_token(token, self.clock())
        if user is None:
            raise BadRequest(INVALID_RESET_TOKEN)
        audit(self.store.db, user.id, "user", str(user.id), "password_reset_token", {})
        try:
            self.credentials.update_password(user, new_password, expected={"reset_password_token": token})
        except StaleWrite:
            raise BadRequest(INVALID_RESET_TOKEN)

    # helpers

    def _find_by_phone(self, raw: str) -> User | None:
        validation = self.sms.validate_phone_number(raw)
        if not validation.is_valid:
            return None
        return self.store.find_by_field("phone", validation.formatted_number)

    def _reload(self, user: User) -> User:
        return self.store.find_by_id(user.id) or user

    def _dev_code(self, issued: IssuedOtp | None) -> str | None:
        if self.expose_codes and issued is not None:
            return issued.code
        return None

    def _otp_out(self, message: str, issued: IssuedOtp) -> OTPRequestOut:
        return OTPRequestOut(message=message, expires_at=issued.expires_at, dev_code=self._dev_code(issued))
