from datetime import datetime, timedelta, timezone

import pytest

from visitdesk.auth import CredentialStore
from visitdesk.auth.errors import (
    InvalidCredentialsError,
    PasswordMismatchError,
    ProtectedUserError,
    UnknownUserError,
    UserExistsError,
)
from visitdesk.util import time as time_util

from conftest import CountingHasher


def test_create_and_lookup(store: CredentialStore):
    user = store.create_user("alice", "pw1")
    assert user.username == "alice"
    assert user.created_at.endswith("Z")

    assert store.get_user("alice") == user
    stored = store.get_password_hash("alice")
    assert stored is not None and stored != "pw1"
    assert store.hasher.verify(stored, "pw1")


def test_missing_user(store: CredentialStore):
    assert store.get_user("ghost") is None
    assert store.get_password_hash("ghost") is None


def test_list_users_in_creation_order(store: CredentialStore):
    for name in ("carol", "alice", "bob"):
        store.create_user(name, "pw")
    assert [u.username for u in store.list_users()] == ["carol", "alice", "bob"]
    assert store.count_users() == 3


def test_duplicate_username(store: CredentialStore):
    store.create_user("alice", "pw")
    with pytest.raises(UserExistsError):
        store.create_user("alice", "other")


@pytest.mark.parametrize("username,password", [("", "pw"), ("   ", "pw"), ("alice", "")])
def test_blank_fields_rejected(store: CredentialStore, username: str, password: str):
    with pytest.raises(ValueError):
        store.create_user(username, password)
    assert store.count_users() == 0


def test_authenticate_distinguishes_failures_internally(store: CredentialStore):
    store.create_user("alice", "pw1")
    assert store.authenticate("alice", "pw1").username == "alice"

    with pytest.raises(PasswordMismatchError):
        store.authenticate("alice", "wrong")
    with pytest.raises(UnknownUserError):
        store.authenticate("nobody", "pw1")
    # Both are the same kind of failure to callers that don't care.
    with pytest.raises(InvalidCredentialsError):
        store.authenticate("nobody", "pw1")


def test_delete_user(store: CredentialStore):
    store.create_user("alice", "pw")
    assert store.delete_user("alice") is True
    assert store.get_user("alice") is None
    assert store.delete_user("alice") is False


@pytest.mark.parametrize("name", ["admin", " admin "])
def test_admin_cannot_be_deleted(store: CredentialStore, name: str):
    store.create_user("admin", "pw")
    with pytest.raises(ProtectedUserError):
        store.delete_user(name)
    assert store.get_user("admin") is not None


def test_bootstrap_admin_only_on_empty_table(store: CredentialStore):
    created = store.bootstrap_admin_if_needed("admin", "secret")
    assert created is not None and created.username == "admin"
    assert store.authenticate("admin", "secret").username == "admin"

    assert store.bootstrap_admin_if_needed("admin", "other") is None
    assert store.count_users() == 1


def test_bootstrap_skipped_without_password(store: CredentialStore):
    assert store.bootstrap_admin_if_needed("admin", "") is None
    assert store.count_users() == 0


def test_listing_order_holds_across_whole_second_timestamps(store: CredentialStore, monkeypatch):
    # A whole-second timestamp must still sort before one half a second later.
    base = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    stamps = iter([base, base + timedelta(microseconds=500000)])
    monkeypatch.setattr(time_util, "utcnow", lambda: next(stamps))

    first = store.create_user("zed", "pw")
    second = store.create_user("amy", "pw")
    assert first.created_at == "2026-01-01T12:00:00.000000Z"
    assert second.created_at == "2026-01-01T12:00:00.500000Z"
    assert [u.username for u in store.list_users()] == ["zed", "amy"]


def test_unknown_user_still_spends_a_hash_check(db_dsn: str):
    hasher = CountingHasher(rounds=1000)
    store = CredentialStore(db_dsn, hasher=hasher)
    with pytest.raises(UnknownUserError):
        store.authenticate("ghost", "pw")
    assert hasher.dummy_calls == 1
