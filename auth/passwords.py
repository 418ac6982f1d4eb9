"""
auth/passwords.py -- bcrypt password hashing and verification.

Security design decisions:
  bcrypt directly, no passlib wrapper. passlib's wrap-bug detection builds a
  password longer than 72 bytes, which current bcrypt releases reject.

  Cost factor defaults to 12 (Settings.bcrypt_rounds). The hash string is
  self-describing ($2b$12$<salt><digest>) so old hashes keep verifying after
  the setting changes.

  Verification always goes through bcrypt.checkpw, which re-derives the digest
  with the stored salt and compares in constant time. Never hash the submitted
  password and compare strings -- a fresh salt can never match.

  bcrypt only reads the first 72 bytes of its input and current releases
  raise on anything longer. Passwords may be up to 255 characters, so both
  paths cut the UTF-8 encoding to 72 bytes before calling bcrypt.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging

import bcrypt

from core.config import get_settings

logger = logging.getLogger("signin.auth")

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a bcrypt hash of the given plaintext password.

    rounds defaults to Settings.bcrypt_rounds.
    """
    cost = rounds if rounds is not None else get_settings().bcrypt_rounds
    return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=cost)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A stored value that is not a bcrypt hash verifies as False.
    """
    try:
        return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed; treating as mismatch")
        return False


# Timing equalization dummy hash.
# Computed lazily once so an unknown username still pays for a full bcrypt
# verification at the configured cost and response time does not reveal
# whether the username exists.
_dummy_hash: str | None = None


def verify_dummy(plain: str) -> None:
    """Run a bcrypt verification whose result is discarded."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = hash_password("signin_timing_dummy")
    verify_password(plain, _dummy_hash)
