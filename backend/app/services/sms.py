from __future__ import annotations

import json
import logging
from typing import Protocol
from urllib import error as urlerror
from urllib import request as urlrequest

from app.services.phone import PhoneNormalizer, PhoneValidation

logger = logging.getLogger(__name__)


class SmsDeliveryError(RuntimeError):
    pass


class SmsSender(Protocol):
    provider_code: str

    def send_phone_verification_otp(self, phone: str, code: str, first_name: str) -> None:
        ...

    def send_password_reset_otp(self, phone: str, code: str, first_name: str) -> None:
        ...

    def validate_phone_number(self, raw: str) -> PhoneValidation:
        ...


def _verification_text(code: str, first_name: str, ttl_minutes: int) -> str:
    return (
        f"Hi {first_name}, your verification code is {code}. "
        f"It expires in {ttl_minutes} minutes."
    )


def _reset_text(code: str, first_name: str, ttl_minutes: int) -> str:
    return (
        f"Hi {first_name}, your password reset code is {code}. "
        f"It expires in {ttl_minutes} minutes. Ignore this message if you did not ask for it."
    )


class _BaseSmsSender:
    provider_code = "base"

    def __init__(self, normalizer: PhoneNormalizer, otp_ttl_minutes: int = 10):
        self.normalizer = normalizer
        self.otp_ttl_minutes = otp_ttl_minutes

    def validate_phone_number(self, raw: str) -> PhoneValidation:
        return self.normalizer.validate(raw)

    def send_phone_verification_otp(self, phone: str, code: str, first_name: str) -> None:
        self.send(phone, _verification_text(code, first_name, self.otp_ttl_minutes))

    def send_password_reset_otp(self, phone: str, code: str, first_name: str) -> None:
        self.send(phone, _reset_text(code, first_name, self.otp_ttl_minutes))

    def send(self, phone: str, body: str) -> None:
        raise NotImplementedError


class ConsoleSmsSender(_BaseSmsSender):
    """Writes messages to the log instead of a gateway. Local development only."""

    provider_code = "console"

    def send(self, phone: str, body: str) -> None:
        logger.info("SMS to %s: %s", phone, body)


class HttpSmsSender(_BaseSmsSender):
    provider_code = "http"

    def __init__(
        self,
        normalizer: PhoneNormalizer,
        *,
        api_url: str,
        api_key: str,
        sender_id: str,
        otp_ttl_minutes: int = 10,
        timeout: int = 20,
    ):
        super().__init__(normalizer, otp_ttl_minutes)
        self.api_url = api_url
        self.api_key = api_key
        self.sender_id = sender_id
        self.timeout = timeout

    def send(self, phone: str, body: str) -> None:
        payload = {
            "api_key": self.api_key,
            "to": phone.lstrip("+"),
            "from": self.sender_id,
            "sms": body,
            "type": "plain",
            "channel": "generic",
        }
        req = urlrequest.Request(
            url=self.api_url,
            method="POST",
            data=json.dumps(payload).encode("utf-8"),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        try:
            with urlrequest.urlopen(req, timeout=self.timeout) as resp:
                raw = resp.read().decode("utf-8")
        except urlerror.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="replace")
            raise SmsDeliveryError(f"SMS gateway returned status {exc.code}: {detail}") from exc
        except (urlerror.URLError, OSError) as exc:
            raise SmsDeliveryError(f"SMS gateway unreachable: {exc}") from exc

        try:
            data = json.loads(raw) if raw else {}
        except json.JSONDecodeError as exc:
            raise SmsDeliveryError("SMS gateway returned a non-JSON response") from exc
        if isinstance(data, dict) and str(data.get("code", "ok")).lower() not in {"ok", "200", "success"}:
            raise SmsDeliveryError(f"SMS gateway rejected message: {data.get('message', data)}")
        logger.info("SMS sent to %s via %s", phone, self.provider_code)


def get_sms_sender(settings) -> SmsSender:
    normalizer = PhoneNormalizer(settings.PHONE_DEFAULT_COUNTRY_CODE)
    code = (settings.SMS_PROVIDER or "console").strip().lower()
    if code == "http":
        if not settings.SMS_API_URL or not settings.SMS_API_KEY:
            raise RuntimeError("SMS_API_URL and SMS_API_KEY are required when SMS_PROVIDER=http")
        return HttpSmsSender(
            normalizer,
            api_url=settings.SMS_API_URL,
            api_key=settings.SMS_API_KEY,
            sender_id=settings.SMS_SENDER_ID,
            otp_ttl_minutes=settings.OTP_TTL_MINUTES,
            timeout=settings.SMS_TIMEOUT_SECONDS,
        )
    return ConsoleSmsSender(normalizer, settings.OTP_TTL_MINUTES)
