from __future__ import annotations

from datetime import timedelta

import pytest
import sqlalchemy as sa
from jose import jwt

from app.core.errors import (
    AlreadyVerified,
    BadRequest,
    Forbidden,
    OtpMismatch,
    RateLimited,
    Unauthorized,
    ValidationFailure,
)
from app.core.security import as_utc
from app.models.audit_log import AuditLog
from app.schemas.auth import SignupIn
from app.services.auth import INVALID_CREDENTIALS, INVALID_RESET_TOKEN
from tests.testkit import build_auth_service, make_user

PASSWORD = "StrongPass123!"


def _signup(auth, phone="08012345678", email="ada@example.com", password=PASSWORD):
    return auth.signup(
        SignupIn(first_name="Ada", last_name="Obi", email=email, phone=phone, password=password)
    )


def _verified_user(auth, sms, **kwargs):
    created = _signup(auth, **kwargs)
    auth.verify_phone(created.phone, sms.last("phone_verification").secret)
    return created


def test_signup_creates_unverified_user_and_sends_code(auth, store, sms, clock):
    created = _signup(auth, email="Ada@Example.com")

    assert created.otp_sent is True
    assert created.phone == "+2348012345678"
    assert created.email == "ada@example.com"
    assert created.is_phone_verified is False
    assert created.is_email_verified is True
    assert created.role == "USER"

    row = store.find_by_field("phone", "+2348012345678")
    assert row.password_hash != PASSWORD
    assert row.phone_verification_otp == sms.last("phone_verification").secret
    assert created.dev_code == row.phone_verification_otp
    assert as_utc(row.phone_verification_otp_expires) == clock() + timedelta(minutes=10)
    assert row.otp_request_count == 1


def test_signup_hides_code_outside_dev(store, sms, mail, clock):
    prod = build_auth_service(store, sms, mail, clock, expose_codes=False)
    assert _signup(prod).dev_code is None


def test_signup_rejects_duplicate_phone_in_any_format(auth):
    _signup(auth, phone="08012345678")
    with pytest.raises(BadRequest) as exc:
        _signup(auth, phone="+234 801 234 5678", email="other@example.com")
    assert exc.value.detail == "User with this phone number already exists"


def test_signup_rejects_duplicate_email(auth):
    _signup(auth)
    with pytest.raises(BadRequest) as exc:
        _signup(auth, phone="08099999999", email="ADA@example.com")
    assert exc.value.detail == "User with this email already exists"


def test_signup_rejects_unreadable_phone(auth, store):
    with pytest.raises(ValidationFailure):
        _signup(auth, phone="12ab")
    assert store.count() == 0


def test_signup_survives_sms_failure(auth, store, sms):
    sms.fail = True

    created = _signup(auth)

    assert created.otp_sent is False
    assert "resend" in created.message.lower()
    assert created.dev_code is None
    assert store.find_by_field("phone", "+2348012345678") is not None


def test_signup_is_audited(auth, db):
    created = _signup(auth)
    actions = db.execute(
        sa.select(AuditLog.action).where(AuditLog.entity_id == created.id).order_by(AuditLog.action)
    ).scalars().all()
    assert "signup" in actions
    assert "otp_issued" in actions


def test_login_requires_phone_verification(auth):
    _signup(auth)
    with pytest.raises(Forbidden) as exc:
        auth.login("08012345678", PASSWORD)
    assert "verify your phone" in exc.value.detail


def test_login_failures_share_one_message(auth, sms):
    _verified_user(auth, sms)

    with pytest.raises(Unauthorized) as wrong_password:
        auth.login("08012345678", "WrongPass123!")
    with pytest.raises(Unauthorized) as unknown_phone:
        auth.login("08099999999", PASSWORD)
    with pytest.raises(Unauthorized) as unreadable:
        auth.login("nope", PASSWORD)

    assert wrong_password.value.detail == unknown_phone.value.detail == unreadable.value.detail == INVALID_CREDENTIALS


def test_login_rejects_deactivated_account(auth, store):
    user = make_user(store, is_phone_verified=True, is_active=False)
    with pytest.raises(Forbidden) as exc:
        auth.login(user.phone, PASSWORD)
    assert "deactivated" in exc.value.detail


def test_full_signup_verify_login(auth, store, sms, clock):
    created = _verified_user(auth, sms)

    tokens = auth.login("0801 234 5678", PASSWORD)

    assert tokens.token_type == "bearer"
    assert tokens.user.is_phone_verified is True
    claims = jwt.get_unverified_claims(tokens.access_token)
    assert claims["sub"] == created.id
    assert claims["role"] == "USER"
    assert claims["phone"] == "+2348012345678"
    assert claims["exp"] - claims["iat"] == 30 * 60

    row = store.find_by_id(created.id)
    assert as_utc(row.last_login_at) == clock()
    assert auth.authenticate(tokens.access_token).id == row.id


def test_authenticate_rejects_deactivated_user(auth, store, sms):
    created = _verified_user(auth, sms)
    token = auth.login(created.phone, PASSWORD).access_token
    store.update(created.id, {"is_active": False})

    with pytest.raises(Unauthorized) as exc:
        auth.authenticate(token)
    assert exc.value.detail == "User account is inactive"


def test_authenticate_rejects_deleted_user(auth, store, sms):
    created = _verified_user(auth, sms)
    token = auth.login(created.phone, PASSWORD).access_token
    store.delete(created.id)

    with pytest.raises(Unauthorized):
        auth.authenticate(token)


def test_verify_phone_errors(auth, sms):
    with pytest.raises(BadRequest) as exc:
        auth.verify_phone("08099999999", "123456")
    assert exc.value.detail == "User not found"

    _signup(auth)
    code = sms.last("phone_verification").secret
    with pytest.raises(OtpMismatch):
        auth.verify_phone("08012345678", "000000")

    auth.verify_phone("08012345678", code)
    with pytest.raises(AlreadyVerified):
        auth.verify_phone("08012345678", code)


def test_failed_verification_is_not_audited(auth, db, sms):
    _signup(auth)
    with pytest.raises(OtpMismatch):
        auth.verify_phone("08012345678", "000000")
    assert db.execute(sa.select(AuditLog).where(AuditLog.action == "phone_verified")).first() is None


def test_resend_verification(auth, sms, clock):
    with pytest.raises(BadRequest):
        auth.resend_verification("08099999999")

    _signup(auth)
    with pytest.raises(RateLimited):
        auth.resend_verification("08012345678")

    clock.advance(minutes=5)
    out = auth.resend_verification("08012345678")
    assert out.dev_code == sms.last("phone_verification").secret
    assert len(sms.sent) == 2

    auth.verify_phone("08012345678", out.dev_code)
    with pytest.raises(AlreadyVerified):
        auth.resend_verification("08012345678")


def test_password_reset_with_otp(auth, store, sms, clock):
    created = _verified_user(auth, sms)
    clock.advance(minutes=5)

    out = auth.request_password_reset_otp("+2348012345678")
    assert sms.last("password_reset").secret == out.dev_code

    auth.reset_password_with_otp("08012345678", out.dev_code, "BrandNewPass456!")

    row = store.find_by_id(created.id)
    assert row.reset_password_otp is None
    assert row.reset_password_otp_expires is None
    assert auth.login("08012345678", "BrandNewPass456!").access_token
    with pytest.raises(Unauthorized):
        auth.login("08012345678", PASSWORD)


def test_password_reset_otp_unknown_phone(auth):
    with pytest.raises(BadRequest):
        auth.request_password_reset_otp("08099999999")
    with pytest.raises(BadRequest):
        auth.reset_password_with_otp("08099999999", "123456", "BrandNewPass456!")


def test_password_reset_otp_wrong_code_keeps_password(auth, sms, clock):
    _verified_user(auth, sms)
    clock.advance(minutes=5)
    auth.request_password_reset_otp("08012345678")

    with pytest.raises(OtpMismatch):
        auth.reset_password_with_otp("08012345678", "000000", "BrandNewPass456!")
    assert auth.login("08012345678", PASSWORD).access_token


def test_reset_link_for_unknown_email_is_silent(auth, mail):
    assert auth.request_password_reset_token("ghost@example.com") is None
    assert mail.sent == []


def test_password_reset_with_token(auth, store, sms, mail):
    created = _verified_user(auth, sms)

    auth.request_password_reset_token("ADA@example.com")
    token = mail.last("reset_token").secret
    assert len(token) == 64

    auth.reset_password_with_token(token, "BrandNewPass456!")

    row = store.find_by_id(created.id)
    assert row.reset_password_token is None
    assert row.reset_password_expires is None
    assert auth.login("08012345678", "BrandNewPass456!").access_token

    with pytest.raises(BadRequest) as exc:
        auth.reset_password_with_token(token, "AnotherPass789!")
    assert exc.value.detail == INVALID_RESET_TOKEN


def test_expired_and_unknown_tokens_look_the_same(auth, sms, mail, clock):
    _verified_user(auth, sms)
    auth.request_password_reset_token("ada@example.com")
    token = mail.last("reset_token").secret

    with pytest.raises(BadRequest) as unknown:
        auth.reset_password_with_token("f" * 64, "BrandNewPass456!")

    clock.advance(minutes=60)
    with pytest.raises(BadRequest) as expired:
        auth.reset_password_with_token(token, "BrandNewPass456!")

    assert unknown.value.detail == expired.value.detail == INVALID_RESET_TOKEN


def test_reset_link_mail_failure_is_silent(auth, store, sms, mail):
    created = _verified_user(auth, sms)
    mail.fail = True

    assert auth.request_password_reset_token("ada@example.com") is None
    assert store.find_by_id(created.id).reset_password_token is not None


def test_new_reset_link_replaces_previous(auth, sms, mail):
    _verified_user(auth, sms)
    auth.request_password_reset_token("ada@example.com")
    first = mail.last("reset_token").secret
    auth.request_password_reset_token("ada@example.com")
    second = mail.last("reset_token").secret

    with pytest.raises(BadRequest):
        auth.reset_password_with_token(first, "BrandNewPass456!")
    auth.reset_password_with_token(second, "BrandNewPass456!")


def test_otp_reset_also_voids_reset_link(auth, sms, mail, clock):
    _verified_user(auth, sms)
    auth.request_password_reset_token("ada@example.com")
    token = mail.last("reset_token").secret

    clock.advance(minutes=5)
    out = auth.request_password_reset_otp("08012345678")
    auth.reset_password_with_otp("08012345678", out.dev_code, "BrandNewPass456!")

    with pytest.raises(BadRequest):
        auth.reset_password_with_token(token, "AnotherPass789!")


def test_email_verification(auth, store, mail):
    user = make_user(store, is_email_verified=False)

    with pytest.raises(BadRequest):
        auth.request_email_verification("ghost@example.com")

    out = auth.request_email_verification("Ada@Example.com")
    assert mail.last("email_verification").secret == out.dev_code

    with pytest.raises(OtpMismatch):
        auth.verify_email("ada@example.com", "000000")
    auth.verify_email("ada@example.com", out.dev_code)

    assert store.find_by_id(user.id).is_email_verified is True
    with pytest.raises(AlreadyVerified):
        auth.verify_email("ada@example.com", out.dev_code)
    with pytest.raises(AlreadyVerified):
        auth.request_email_verification("ada@example.com")
