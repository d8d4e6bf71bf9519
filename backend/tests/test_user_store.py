from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from app.core.errors import Conflict, NotFound, StaleWrite
from tests.testkit import make_user


def test_create_and_lookup_by_unique_fields(store):
    user = make_user(store)

    assert store.find_by_field("phone", "+2348012345678").id == user.id
    assert store.find_by_field("email", "ada@example.com").id == user.id
    assert store.find_by_field("id", str(user.id)).id == user.id
    assert store.find_by_field("phone", "+2348000000000") is None
    assert user.otp_request_count == 0
    assert user.is_active is True
    assert user.role == "USER"


def test_lookup_rejects_unknown_field(store):
    with pytest.raises(ValueError):
        store.find_by_field("password_hash", "x")


def test_find_by_id_tolerates_garbage(store):
    assert store.find_by_id("not-a-uuid") is None
    assert store.find_by_id(uuid4()) is None


def test_duplicate_email_is_a_conflict(store):
    make_user(store)
    with pytest.raises(Conflict):
        make_user(store, phone="+2348099999999")


def test_update_returns_fresh_record(store):
    user = make_user(store)
    updated = store.update(user.id, {"first_name": "Adaeze"})
    assert updated.first_name == "Adaeze"
    assert store.find_by_id(user.id).first_name == "Adaeze"


def test_update_unknown_user_is_not_found(store):
    missing = uuid4()
    with pytest.raises(NotFound) as exc:
        store.update(missing, {"first_name": "X"})
    assert str(missing) in exc.value.detail


def test_update_with_expected_values_is_compare_and_set(store):
    user = make_user(store)

    store.update(user.id, {"otp_request_count": 1}, expected={"otp_request_count": 0})
    with pytest.raises(StaleWrite):
        store.update(user.id, {"otp_request_count": 1}, expected={"otp_request_count": 0})

    assert store.find_by_id(user.id).otp_request_count == 1


def test_expected_none_matches_null_column(store):
    user = make_user(store)
    updated = store.update(user.id, {"reset_password_token": "abc"}, expected={"reset_password_token": None})
    assert updated.reset_password_token == "abc"


def test_reset_token_lookup_honours_deadline(store, clock):
    user = make_user(store)
    deadline = clock() + timedelta(minutes=60)
    store.update(user.id, {"reset_password_token": "tok", "reset_password_expires": deadline})

    assert store.find_by_reset_token("tok", clock()).id == user.id
    assert store.find_by_reset_token("tok", deadline - timedelta(seconds=1)) is not None
    assert store.find_by_reset_token("tok", deadline) is None
    assert store.find_by_reset_token("other", clock()) is None


def test_list_count_and_delete(store):
    first = make_user(store)
    make_user(store, phone="+2348011111111", email="obi@example.com")

    assert store.count() == 2
    assert len(store.list(offset=0, limit=1)) == 1

    store.delete(first.id)
    assert store.count() == 1
    with pytest.raises(NotFound):
        store.delete(first.id)
