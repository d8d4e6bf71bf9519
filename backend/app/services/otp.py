"""
One-time codes for phone verification, email verification and password reset.

Each purpose has its own (code, expiry) slot on the user row. The request
throttle is shared: ``last_otp_request_time`` and ``otp_request_count`` live
on the user, so a reset code spends the same daily budget as a verification
code.

Issue checks, first failure wins:

1. already-verified guard (verification slots only)
2. minimum interval since the previous request
3. daily counter reset when the calendar date changed (persisted even if the
   next check fails)
4. daily cap

Writes to the throttle columns are compare-and-set against the values read,
so two racing requests cannot both spend the same budget slot; the loser is
told to retry.
"""
from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from app.core.errors import (
    AlreadyVerified,
    DeliveryFailure,
    OtpExpired,
    OtpMismatch,
    OtpNotFound,
    RateLimited,
    StaleWrite,
)
from app.core.security import as_utc, now_utc, random_otp_code, resolve_timezone
from app.models.user import User
from app.services.audit import audit
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


class OtpSlot(str, enum.Enum):
    PHONE_VERIFICATION = "phone_verification"
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


_SLOT_FIELDS = {
    OtpSlot.PHONE_VERIFICATION: ("phone_verification_otp", "phone_verification_otp_expires"),
    OtpSlot.EMAIL_VERIFICATION: ("email_verification_otp", "email_verification_otp_expires"),
    OtpSlot.PASSWORD_RESET: ("reset_password_otp", "reset_password_otp_expires"),
}

_VERIFIED_FLAGS = {
    OtpSlot.PHONE_VERIFICATION: ("is_phone_verified", "Phone number is already verified"),
    OtpSlot.EMAIL_VERIFICATION: ("is_email_verified", "Email is already verified"),
}

NO_OTP_MESSAGE = "No OTP found. Please request a new one"


@dataclass(frozen=True)
class OtpPolicy:
    ttl_minutes: int = 10
    daily_limit: int = 3
    min_interval_minutes: int = 5
    day_timezone: str = "UTC"

    @classmethod
    def from_settings(cls, settings) -> "OtpPolicy":
        return cls(
            ttl_minutes=settings.OTP_TTL_MINUTES,
            daily_limit=settings.OTP_DAILY_LIMIT,
            min_interval_minutes=settings.OTP_MIN_INTERVAL_MINUTES,
            day_timezone=settings.OTP_DAY_TIMEZONE,
        )

    def __post_init__(self):
        resolve_timezone(self.day_timezone)

    def calendar_date(self, moment: datetime) -> date:
        return as_utc(moment).astimezone(resolve_timezone(self.day_timezone)).date()


@dataclass(frozen=True)
class IssuedOtp:
    slot: OtpSlot
    code: str
    expires_at: datetime


class OtpEngine:
    def __init__(
        self,
        store: UserStore,
        policy: OtpPolicy,
        *,
        sms,
        mail,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.policy = policy
        self.sms = sms
        self.mail = mail
        self.clock = clock

    def issue(self, user: User, slot: OtpSlot) -> IssuedOtp:
        """Store a fresh code in ``slot`` and send it.

        The stored code survives a failed send: ``DeliveryFailure`` is raised
        only after the write has been committed.
        """
        now = self.clock()
        user, count = self._check_rate_limit(user, slot, now)

        code = random_otp_code()
        expires_at = now + timedelta(minutes=self.policy.ttl_minutes)
        code_field, expires_field = _SLOT_FIELDS[slot]

        audit(self.store.db, user.id, "auth", str(user.id), "otp_issued", {"slot": slot.value})
        try:
            user = self.store.update(
                user.id,
                {
                    code_field: code,
                    expires_field: expires_at,
                    "last_otp_request_time": now,
                    "otp_request_count": count + 1,
                },
                expected=_throttle_state(user),
            )
        except StaleWrite:
            raise RateLimited("Another OTP request was just processed. Please try again shortly")
        logger.info("Issued %s OTP for user %s (%d today)", slot.value, user.id, count + 1)

        self._dispatch(user, slot, code)
        return IssuedOtp(slot=slot, code=code, expires_at=expires_at)

    def consume(
        self,
        user: User,
        slot: OtpSlot,
        submitted_code: str,
        *,
        extra_fields: Callable[[], dict] | None = None,
        audit_action: str | None = None,
    ) -> User:
        """Match ``submitted_code`` against ``slot`` and clear it.

        On a match the slot is emptied together with the slot's side effect
        (verified flag) and whatever ``extra_fields()`` returns, in one write.
        ``extra_fields`` is only called once the code has matched.
        """
        code_field, expires_field = _SLOT_FIELDS[slot]
        code = getattr(user, code_field)
        expires_at = getattr(user, expires_field)

        if not code or expires_at is None:
            raise OtpNotFound(NO_OTP_MESSAGE)
        if self.clock() >= as_utc(expires_at):
            raise OtpExpired("OTP has expired. Please request a new one")
        if code != submitted_code:
            raise OtpMismatch("Invalid OTP")

        fields = {code_field: None, expires_field: None}
        flag = _VERIFIED_FLAGS.get(slot)
        if flag:
            fields[flag[0]] = True
        if extra_fields is not None:
            fields.update(extra_fields())

        if audit_action:
            audit(self.store.db, user.id, "user", str(user.id), audit_action, {"slot": slot.value})
        try:
            return self.store.update(user.id, fields, expected={code_field: code})
        except StaleWrite:
            # Someone else consumed (or replaced) the code first.
            raise OtpNotFound(NO_OTP_MESSAGE)

    def _check_rate_limit(self, user: User, slot: OtpSlot, now: datetime) -> tuple[User, int]:
        flag = _VERIFIED_FLAGS.get(slot)
        if flag and getattr(user, flag[0]):
            raise AlreadyVerified(flag[1])

        count = user.otp_request_count or 0
        last = user.last_otp_request_time
        if last is not None:
            elapsed_minutes = (now - as_utc(last)).total_seconds() / 60
            if elapsed_minutes < self.policy.min_interval_minutes:
                wait = math.ceil(self.policy.min_interval_minutes - elapsed_minutes)
                logger.info("OTP request for user %s throttled, %d minute(s) left", user.id, wait)
                raise RateLimited(f"Please wait {wait} minute(s) before requesting another OTP", wait_minutes=wait)

            if self.policy.calendar_date(last) != self.policy.calendar_date(now):
                if count != 0:
                    try:
                        user = self.store.update(user.id, {"otp_request_count": 0}, expected=_throttle_state(user))
                    except StaleWrite:
                        raise RateLimited("Another OTP request was just processed. Please try again shortly")
                count = 0

        if count >= self.policy.daily_limit:
            logger.info("OTP daily limit reached for user %s", user.id)
            raise RateLimited(
                f"You have exceeded the maximum number of OTP requests ({self.policy.daily_limit}) for today"
            )
        return user, count

    def _dispatch(self, user: User, slot: OtpSlot, code: str) -> None:
        try:
            if slot is OtpSlot.PHONE_VERIFICATION:
                self.sms.send_phone_verification_otp(user.phone, code, user.first_name)
            elif slot is OtpSlot.PASSWORD_RESET:
                self.sms.send_password_reset_otp(user.phone, code, user.first_name)
            else:
                self.mail.send_email_verification_otp(user.email, code, user.first_name)
        except Exception as exc:
            logger.warning("Failed to deliver %s OTP to user %s: %s", slot.value, user.id, exc)
            raise DeliveryFailure("Failed to send OTP. Please try again later.") from exc


def _throttle_state(user: User) -> dict:
    return {
        "last_otp_request_time": user.last_otp_request_time,
        "otp_request_count": user.otp_request_count,
    }
