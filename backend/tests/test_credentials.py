from __future__ import annotations

import bcrypt
import pytest

from crmone.credentials import verify_credentials
from crmone.errors import InvalidCredentials, StoreUnavailable
from crmone.security import check_needs_rehash, hash_password, is_legacy_hash, verify_password
from crmone.users import UserStore


def test_argon2_hash_roundtrip() -> None:
    h = hash_password("secret")
    assert h.startswith("$argon2")
    assert verify_password("secret", h)
    assert not verify_password("Secret", h)
    assert not check_needs_rehash(h)


def test_legacy_bcrypt_hash_is_accepted_and_flagged_for_rehash() -> None:
    legacy = bcrypt.hashpw(b"secret", bcrypt.gensalt(rounds=4)).decode()
    assert is_legacy_hash(legacy)
    assert verify_password("secret", legacy)
    assert not verify_password("wrong", legacy)
    assert check_needs_rehash(legacy)


@pytest.mark.parametrize("stored", ["", "plaintext", "$argon2id$garbage"])
def test_unusable_hashes_never_match(stored: str) -> None:
    assert not verify_password("secret", stored)


def test_verify_credentials_returns_user(session, user) -> None:
    found = verify_credentials(session, "a@b.com", "secret")
    assert found.id == user.id
    assert found.email == "a@b.com"


def test_email_lookup_is_case_insensitive(session, user) -> None:
    assert verify_credentials(session, "  A@B.com ", "secret").id == user.id


def test_unknown_email_and_wrong_password_are_the_same_error(session, user) -> None:
    with pytest.raises(InvalidCredentials) as unknown:
        verify_credentials(session, "nobody@b.com", "secret")
    with pytest.raises(InvalidCredentials) as wrong:
        verify_credentials(session, "a@b.com", "nope")
    assert type(unknown.value) is type(wrong.value)
    assert unknown.value.public_message == wrong.value.public_message
    assert unknown.value.status_code == wrong.value.status_code == 401


def test_legacy_hash_is_upgraded_after_login(session, make_user) -> None:
    legacy = bcrypt.hashpw(b"secret", bcrypt.gensalt(rounds=4)).decode()
    u = make_user(email="old@b.com", password_hash=legacy)

    verify_credentials(session, "old@b.com", "secret")

    stored = UserStore(session).get_by_id(u.id).password_hash
    assert stored.startswith("$argon2")
    assert verify_password("secret", stored)


def test_failed_rehash_does_not_fail_login(session, make_user, monkeypatch) -> None:
    legacy = bcrypt.hashpw(b"secret", bcrypt.gensalt(rounds=4)).decode()
    u = make_user(email="old@b.com", password_hash=legacy)

    def boom(self, user_id, password_hash):
        raise StoreUnavailable("users.update_password_hash: down")

    monkeypatch.setattr(UserStore, "update_password_hash", boom)
    assert verify_credentials(session, "old@b.com", "secret").id == u.id
