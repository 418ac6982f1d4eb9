"""
auth/store.py -- SQLAlchemy Core persistence layer for users and tokens.

Pattern: Repository + Data Mapper.
AuthStore is the repository; _row_to_user / _row_to_token are the mappers.
Route and sign-in code never touches SQL directly.

Two access paths:
  AuthStore methods   -- admin/out-of-band operations (create_user, lookups,
                         health ping). Each opens and closes its own connection.
  AuthStore.session() -- the request path. A context manager that acquires ONE
                         connection for the lifetime of a sign-in and releases
                         it on every exit path. The yielded AuthSession holds
                         the credential check and the token check/insert.

Security:
  All queries use bound parameters. No f-strings in SQL.

  tokens.token is the primary key. The storage-level uniqueness constraint is
  the real guarantee that a token value exists at most once; the existence
  check in auth/tokens.py only avoids a failed insert in the common case.

  tokens.user_id is deliberately NOT unique -- a user may hold several live
  tokens.

Error translation:
  SQLAlchemyError on connect  -> StorageConnectError
  SQLAlchemyError on the user lookup -> CredentialQueryError
  SQLAlchemyError on the token check -> TokenCheckError
  IntegrityError on the token insert -> reported as a collision (None)
  any other SQLAlchemyError on insert -> TokenInsertError

DB path: auth/signin.db unless DATABASE_URL is set.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone

from sqlalchemy import Column, Index, MetaData, String, Table, Text, create_engine, event, func, select, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.errors import CredentialQueryError, StorageConnectError, TokenCheckError, TokenInsertError
from auth.models import Token, User
from auth.passwords import verify_dummy, verify_password
from core.config import get_settings
from core.models import TOKEN_LENGTH, USERNAME_MAX_LENGTH

logger = logging.getLogger("signin.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4, str form
    Column("username", String(USERNAME_MAX_LENGTH), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),  # bcrypt, self-describing
    Column("created_at", String(32), nullable=False),
)

_tokens = Table(
    "tokens",
    _metadata,
    Column("token", String(TOKEN_LENGTH), primary_key=True),
    Column("user_id", String(36), nullable=False),
    Column("created_at", String(32), nullable=False),
    Index("ix_tokens_user_id", "user_id"),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Request-scoped session
# ---------------------------------------------------------------------------


class AuthSession:
    """Credential and token operations bound to one open connection.

    Obtain via AuthStore.session(); never construct directly in route code.
    """

    def __init__(self, conn: Connection) -> None:
        self._conn = conn

    def find_user_id(self, username: str, password: str) -> str | None:
        """Return the user id if username exists and password verifies, else None.

        One round-trip fetches the stored hash by exact (case-sensitive)
        username; the password is then checked with bcrypt against that hash.
        An unknown username still pays for a dummy bcrypt verification so the
        two failure cases take the same time.

        Raises CredentialQueryError if the lookup fails. A query failure is
        never reported as a mismatch.
        """
        try:
            row = self._conn.execute(
                select(_users.c.id, _users.c.hashed_password).where(_users.c.username == username)
            ).fetchone()
        except SQLAlchemyError as exc:
            raise CredentialQueryError("credential lookup failed") from exc

        if row is None:
            verify_dummy(password)
            return None
        if not verify_password(password, row.hashed_password):
            return None
        return row.id

    def token_exists(self, token: str) -> bool:
        """Return True if token is already stored. Raises TokenCheckError on failure."""
        try:
            row = self._conn.execute(select(_tokens.c.token).where(_tokens.c.token == token)).fetchone()
        except SQLAlchemyError as exc:
            raise TokenCheckError("token uniqueness check failed") from exc
        return row is not None

    def insert_token(self, token: str, user_id: str) -> Token | None:
        """Persist (token, user_id) and commit.

        Returns the stored Token, or None if the value already exists (primary
        key violation -- a concurrent request inserted the same value between
        our check and insert). The caller treats None as a collision.

        Raises TokenInsertError on any other storage failure; nothing is
        committed in that case.
        """
        created_at = _now_iso()
        try:
            self._conn.execute(_tokens.insert().values(token=token, user_id=user_id, created_at=created_at))
            self._conn.commit()
        except IntegrityError:
            self._conn.rollback()
            return None
        except SQLAlchemyError as exc:
            raise TokenInsertError("token insert failed") from exc
        return Token(token=token, user_id=user_id, created_at=created_at)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AuthStore:
    """Repository for User and Token entities.

    Usage:
        store = AuthStore()
        store.create_user("alice", hash_password("Secret12"))
        with store.session() as session:
            user_id = session.find_user_id("alice", "Secret12")
        store.close()
    """

    def __init__(self, db_url: str | None = None, timeout: float | None = None) -> None:
        settings = get_settings()
        db_url = db_url or settings.database_url
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            connect_args["timeout"] = timeout if timeout is not None else settings.db_timeout_seconds
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[AuthSession]:
        """Acquire one connection for a request and release it on every exit path.

        Raises StorageConnectError if no connection can be established.
        Uncommitted work is rolled back when the connection is released.
        """
        try:
            conn = self.engine.connect()
        except SQLAlchemyError as exc:
            raise StorageConnectError("could not connect to the auth database") from exc
        try:
            yield AuthSession(conn)
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, username: str, hashed_password: str) -> str:
        """Insert a new user and return its assigned id.

        Raises sqlalchemy.exc.IntegrityError if the username already exists.
        Callers validate the username and hash the password beforehand.
        """
        user_id = str(uuid.uuid4())
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=user_id,
                    username=username,
                    hashed_password=hashed_password,
                    created_at=_now_iso(),
                )
            )
            conn.commit()
        logger.info("Created user %s", username)
        return user_id

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == username)).fetchone()
        return _row_to_user(row) if row is not None else None

    # ------------------------------------------------------------------
    # Token queries
    # ------------------------------------------------------------------

    def get_token(self, token: str) -> Token | None:
        with self.engine.connect() as conn:
            row = conn.execute(_tokens.select().where(_tokens.c.token == token)).fetchone()
        return _row_to_token(row) if row is not None else None

    def list_tokens(self, user_id: str) -> list[Token]:
        """Return all tokens issued to user_id, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tokens.select().where(_tokens.c.user_id == user_id).order_by(_tokens.c.created_at)
            ).fetchall()
        return [_row_to_token(r) for r in rows]

    def count_tokens(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_tokens)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if a trivial query succeeds. Used by GET /api/v1/health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Auth database health check failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _row_to_token(row) -> Token:
    return Token(
        token=row.token,
        user_id=row.user_id,
        created_at=row.created_at,
    )
