from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from crmone.errors import StoreUnavailable
from crmone.models.refresh_token import RefreshToken
from crmone.models.user import User
from crmone.records import utcnow
from crmone.sessions import SessionStore


def test_create_and_find_active(session, user) -> None:
    store = SessionStore(session)
    expires = utcnow() + timedelta(days=7)
    created = store.create(user.id, "tok-1", expires)

    found = store.find_active("tok-1", user.id)
    assert found is not None
    assert found.id == created.id
    assert found.user_id == user.id
    assert found.is_revoked is False
    assert not found.is_expired()
    assert abs((found.expires_at - expires).total_seconds()) < 1


def test_find_active_requires_matching_user(session, user, make_user) -> None:
    other = make_user(email="other@b.com")
    store = SessionStore(session)
    store.create(user.id, "tok-1", utcnow() + timedelta(days=7))

    assert store.find_active("tok-1", other.id) is None
    assert store.find_active("tok-unknown", user.id) is None


def test_same_user_can_hold_many_sessions(session, user) -> None:
    store = SessionStore(session)
    store.create(user.id, "tab-1", utcnow() + timedelta(days=7))
    store.create(user.id, "tab-2", utcnow() + timedelta(days=7))

    assert store.find_active("tab-1", user.id) is not None
    assert store.find_active("tab-2", user.id) is not None


def test_find_active_returns_expired_rows_for_the_caller_to_judge(session, user) -> None:
    store = SessionStore(session)
    store.create(user.id, "old", utcnow() - timedelta(minutes=1))

    found = store.find_active("old", user.id)
    assert found is not None
    assert found.is_expired()


def test_delete_is_idempotent(session, user) -> None:
    store = SessionStore(session)
    store.create(user.id, "tok-1", utcnow() + timedelta(days=7))

    assert store.delete("tok-1") is True
    assert store.delete("tok-1") is False
    assert store.delete("never-existed") is False
    assert store.find_active("tok-1", user.id) is None


def test_delete_only_touches_its_own_row(session, user) -> None:
    store = SessionStore(session)
    store.create(user.id, "tab-1", utcnow() + timedelta(days=7))
    store.create(user.id, "tab-2", utcnow() + timedelta(days=7))

    store.delete("tab-1")
    assert store.find_active("tab-2", user.id) is not None


def test_purge_expired(session, user) -> None:
    store = SessionStore(session)
    store.create(user.id, "old-1", utcnow() - timedelta(days=1))
    store.create(user.id, "old-2", utcnow() - timedelta(seconds=5))
    store.create(user.id, "live", utcnow() + timedelta(days=1))

    assert store.purge_expired() == 2
    assert store.find_active("live", user.id) is not None
    assert store.find_active("old-1", user.id) is None


def test_driver_errors_become_store_unavailable(session, monkeypatch) -> None:
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr(session, "execute", broken)
    store = SessionStore(session)
    with pytest.raises(StoreUnavailable):
        store.find_active("tok", "u-1")
    with pytest.raises(StoreUnavailable):
        store.delete("tok")


def test_created_at_is_naive_utc_from_the_application(session, user) -> None:
    # server_default=now() seria o horário local do MySQL
    for column in (RefreshToken.__table__.c.created_at, User.__table__.c.created_at, User.__table__.c.updated_at):
        assert column.server_default is None
        assert column.default is not None and column.default.is_callable

    before = utcnow()
    record = SessionStore(session).create(user.id, "tok-ts", utcnow() + timedelta(days=7))
    assert record.created_at.tzinfo is None
    assert abs((record.created_at - before).total_seconds()) < 5
