from __future__ import annotations

import os

# Settings are read at import time; pin them before the app is loaded.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["JWT_SECRET"] = "test-secret-not-for-production"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ALLOWED_HOSTS"] = "testserver,localhost"
os.environ["ENV"] = "dev"

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_clock, get_mail_sender, get_sms_sender
from app.core.security import now_utc
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models.user import UserRole
from app.services.user_store import UserStore
from tests.testkit import (
    ApiClient,
    FakeClock,
    IdentityFactory,
    RecordingMailSender,
    RecordingSmsSender,
    build_auth_service,
    make_user,
)

FIXED_START = datetime(2026, 3, 10, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    Base.metadata.drop_all(eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def store(db) -> UserStore:
    return UserStore(db)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(FIXED_START)


@pytest.fixture()
def sms() -> RecordingSmsSender:
    return RecordingSmsSender()


@pytest.fixture()
def mail() -> RecordingMailSender:
    return RecordingMailSender()


@pytest.fixture()
def auth(store, sms, mail, clock):
    return build_auth_service(store, sms, mail, clock)


@pytest.fixture()
def live_clock() -> FakeClock:
    # Access tokens are checked against wall-clock time, so the API runs near "now".
    return FakeClock(now_utc().replace(microsecond=0))


@pytest.fixture()
def client(session_factory, sms, mail, live_clock):
    def override_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_sms_sender] = lambda: sms
    app.dependency_overrides[get_mail_sender] = lambda: mail
    app.dependency_overrides[get_clock] = lambda: live_clock
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def api(client) -> ApiClient:
    return ApiClient(client)


@pytest.fixture(scope="session")
def identity_factory() -> IdentityFactory:
    return IdentityFactory(seed=uuid4().hex[:8])


@pytest.fixture()
def admin(api, session_factory, identity_factory):
    """Bearer token for a verified ADMIN account."""
    phone = identity_factory.next_phone()
    session = session_factory()
    try:
        make_user(
            UserStore(session),
            phone=f"+234{phone[1:]}",
            email=identity_factory.next_email("admin"),
            role=UserRole.ADMIN.value,
            is_phone_verified=True,
        )
    finally:
        session.close()
    tokens = api.call("POST", "/auth/login", body={"login": phone, "password": "StrongPass123!"})
    return tokens["access_token"]
