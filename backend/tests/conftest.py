from __future__ import annotations

import os

import pytest
from fastapi.testclient import TestClient

# crmone.main monta o app no import e precisa do segredo
os.environ.setdefault("APP_SECRET", "test-access-secret-0123456789abcdef0123456789")

from crmone.config import get_settings  # noqa: E402
from crmone.db import Database  # noqa: E402
from crmone.main import create_app  # noqa: E402
from crmone.records import Role  # noqa: E402
from crmone.security import hash_password  # noqa: E402
from crmone.users import UserStore  # noqa: E402

ACCESS_SECRET = "test-access-secret-0123456789abcdef0123456789"
REFRESH_SECRET = "test-refresh-secret-0123456789abcdef012345678"


@pytest.fixture(autouse=True)
def _test_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'crmone.db'}")
    monkeypatch.setenv("DB_CREATE_ALL", "1")
    monkeypatch.setenv("APP_SECRET", ACCESS_SECRET)
    monkeypatch.setenv("REFRESH_SECRET", REFRESH_SECRET)
    monkeypatch.setenv("COOKIE_SECURE", "0")
    monkeypatch.setenv("COOKIE_DOMAIN", "")
    monkeypatch.setenv("FRONTEND_URL", "http://localhost:3000")
    monkeypatch.delenv("LOGIN_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def database():
    db = Database(get_settings().database_url)
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    with database.acquire() as s:
        yield s


@pytest.fixture
def client():
    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def make_user(database):
    def _make(email="a@b.com", password="secret", name="Ana", role=Role.USER, password_hash=None):
        with database.acquire() as s:
            return UserStore(s).create(
                name=name,
                email=email,
                password_hash=password_hash or hash_password(password),
                role=role,
            )

    return _make


@pytest.fixture
def user(make_user):
    return make_user()
