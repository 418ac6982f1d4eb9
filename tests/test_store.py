"""Unit tests for auth/store.py -- AuthStore and the request-scoped AuthSession.

Covers:
- find_user_id() returns the id only for a matching username + password
- username lookup is exact and case-sensitive
- token_exists() / insert_token() round through the tokens table
- a duplicate insert is reported as a collision (None), not an error
- SQLAlchemy failures are translated into the stage-specific StorageError
- session() releases its connection on success and on error
"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from auth.errors import CredentialQueryError, StorageConnectError, TokenCheckError, TokenInsertError
from auth.passwords import hash_password
from auth.store import AuthSession

ALICE_PASSWORD = "Secret12"


def _db_error() -> OperationalError:
    return OperationalError("SELECT", {}, Exception("disk I/O error"))


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def test_create_user_assigns_uuid_and_stores_hash(alice_store):
    store, uid = alice_store
    user = store.get_by_username("alice")
    assert user is not None
    assert user.id == uid
    assert len(uid) == 36
    assert user.hashed_password.startswith("$2b$")
    assert user.created_at


def test_duplicate_username_raises_integrity_error(alice_store):
    store, _ = alice_store
    with pytest.raises(IntegrityError):
        store.create_user("alice", hash_password("Another1"))


def test_find_user_id_matches(alice_store):
    store, uid = alice_store
    with store.session() as session:
        assert session.find_user_id("alice", ALICE_PASSWORD) == uid


def test_find_user_id_wrong_password(alice_store):
    store, _ = alice_store
    with store.session() as session:
        assert session.find_user_id("alice", "wrongpass") is None


def test_find_user_id_unknown_user(alice_store):
    store, _ = alice_store
    with store.session() as session:
        assert session.find_user_id("bob", ALICE_PASSWORD) is None


def test_find_user_id_is_case_sensitive(alice_store):
    store, _ = alice_store
    with store.session() as session:
        assert session.find_user_id("Alice", ALICE_PASSWORD) is None


def test_find_user_id_query_failure_is_not_a_mismatch():
    conn = MagicMock()
    conn.execute.side_effect = _db_error()
    with pytest.raises(CredentialQueryError) as excinfo:
        AuthSession(conn).find_user_id("alice", ALICE_PASSWORD)
    assert isinstance(excinfo.value.__cause__, OperationalError)


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------


def test_insert_then_exists(alice_store):
    store, uid = alice_store
    with store.session() as session:
        assert not session.token_exists("t" * 128)
        issued = session.insert_token("t" * 128, uid)
        assert issued is not None
        assert issued.user_id == uid
        assert session.token_exists("t" * 128)
    stored = store.get_token("t" * 128)
    assert stored is not None and stored.user_id == uid


def test_duplicate_insert_reports_collision(alice_store):
    store, uid = alice_store
    with store.session() as session:
        assert session.insert_token("d" * 128, uid) is not None
        assert session.insert_token("d" * 128, uid) is None
    assert store.count_tokens() == 1


def test_user_may_hold_several_tokens(alice_store):
    store, uid = alice_store
    with store.session() as session:
        session.insert_token("a" * 128, uid)
        session.insert_token("b" * 128, uid)
    assert sorted(t.token for t in store.list_tokens(uid)) == ["a" * 128, "b" * 128]


def test_token_check_failure():
    conn = MagicMock()
    conn.execute.side_effect = _db_error()
    with pytest.raises(TokenCheckError):
        AuthSession(conn).token_exists("x" * 128)


def test_token_insert_failure_is_not_a_collision():
    conn = MagicMock()
    conn.execute.side_effect = _db_error()
    with pytest.raises(TokenInsertError):
        AuthSession(conn).insert_token("x" * 128, "user-id")
    conn.commit.assert_not_called()


def test_token_check_against_missing_table(alice_store):
    """A real schema fault surfaces as TokenCheckError."""
    store, _ = alice_store
    with store.engine.connect() as conn:
        conn.execute(text("DROP TABLE tokens"))
        conn.commit()
    with store.session() as session:
        with pytest.raises(TokenCheckError):
            session.token_exists("x" * 128)


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------


def test_session_connect_failure(store):
    store.engine = MagicMock()
    store.engine.connect.side_effect = _db_error()
    with pytest.raises(StorageConnectError):
        with store.session():
            pass


def test_session_releases_connection_on_error(store):
    conn = MagicMock()
    real_engine = store.engine
    store.engine = MagicMock()
    store.engine.connect.return_value = conn
    try:
        with pytest.raises(RuntimeError):
            with store.session():
                raise RuntimeError("boom")
    finally:
        store.engine = real_engine
    conn.close.assert_called_once()


def test_session_releases_connection_on_success(store):
    conn = MagicMock()
    real_engine = store.engine
    store.engine = MagicMock()
    store.engine.connect.return_value = conn
    try:
        with store.session() as session:
            assert isinstance(session, AuthSession)
    finally:
        store.engine = real_engine
    conn.close.assert_called_once()


def test_ping(store):
    assert store.ping() is True
