"""Outbound mail. The console transport only logs, for local development."""
from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol
from urllib.parse import urlencode

logger = logging.getLogger(__name__)


class MailDeliveryError(RuntimeError):
    pass


class MailSender(Protocol):
    def send_reset_token(self, email: str, token: str, first_name: str) -> None:
        ...

    def send_email_verification_otp(self, email: str, code: str, first_name: str) -> None:
        ...


class _BaseMailSender:
    def __init__(self, reset_url: str, reset_ttl_minutes: int = 60, otp_ttl_minutes: int = 10):
        self.reset_url = reset_url
        self.reset_ttl_minutes = reset_ttl_minutes
        self.otp_ttl_minutes = otp_ttl_minutes

    def reset_link(self, token: str) -> str:
        sep = "&" if "?" in self.reset_url else "?"
        return f"{self.reset_url}{sep}{urlencode({'token': token})}"

    def send_reset_token(self, email: str, token: str, first_name: str) -> None:
        body = (
            f"Hi {first_name},\n\n"
            "We received a request to reset your password. Use the link below to choose a new one:\n\n"
            f"{self.reset_link(token)}\n\n"
            f"The link expires in {self.reset_ttl_minutes} minutes. "
            "If you didn't ask for a reset, you can ignore this email."
        )
        self.send(email, "Reset your password", body)

    def send_email_verification_otp(self, email: str, code: str, first_name: str) -> None:
        body = (
            f"Hi {first_name},\n\n"
            f"Your email verification code is {code}. It expires in {self.otp_ttl_minutes} minutes."
        )
        self.send(email, "Verify your email", body)

    def send(self, to_email: str, subject: str, body: str) -> None:
        raise NotImplementedError


class ConsoleMailSender(_BaseMailSender):
    def send(self, to_email: str, subject: str, body: str) -> None:
        logger.info("Mail to %s [%s]:\n%s", to_email, subject, body)


class SmtpMailSender(_BaseMailSender):
    def __init__(
        self,
        *,
        host: str,
        port: int,
        user: str | None,
        password: str | None,
        from_addr: str,
        reset_url: str,
        reset_ttl_minutes: int = 60,
        otp_ttl_minutes: int = 10,
    ):
        super().__init__(reset_url, reset_ttl_minutes, otp_ttl_minutes)
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_addr = from_addr

    def send(self, to_email: str, subject: str, body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to_email
        msg.attach(MIMEText(body, "plain"))
        try:
            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                if self.user and self.password:
                    server.login(self.user, self.password)
                server.sendmail(self.from_addr, [to_email], msg.as_string())
        except (smtplib.SMTPException, OSError) as exc:
            raise MailDeliveryError(f"Failed to send mail to {to_email}: {exc}") from exc
        logger.info("Mail '%s' sent to %s", subject, to_email)


def get_mail_sender(settings) -> MailSender:
    transport = (settings.MAIL_TRANSPORT or "console").strip().lower()
    if transport == "smtp":
        if not settings.SMTP_HOST:
            raise RuntimeError("SMTP_HOST is required when MAIL_TRANSPORT=smtp")
        return SmtpMailSender(
            host=settings.SMTP_HOST,
            port=settings.SMTP_PORT,
            user=settings.SMTP_USER,
            password=settings.SMTP_PASSWORD,
            from_addr=settings.MAIL_FROM,
            reset_url=settings.PASSWORD_RESET_URL,
            reset_ttl_minutes=settings.RESET_TOKEN_TTL_MINUTES,
            otp_ttl_minutes=settings.OTP_TTL_MINUTES,
        )
    return ConsoleMailSender(settings.PASSWORD_RESET_URL, settings.RESET_TOKEN_TTL_MINUTES, settings.OTP_TTL_MINUTES)
