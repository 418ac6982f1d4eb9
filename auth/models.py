"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the sign-in
flow do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A stored identity that may sign in.

    Users are created out-of-band (the management CLI in main.py); the sign-in
    flow only reads them. id is an opaque UUID string assigned by the store.
    """

    username: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None


@dataclass
class Token:
    """An issued session token.

    token is the bearer value itself (128 chars, [0-9a-zA-Z]). It is unique
    across the tokens table; user_id is not, so a user may hold several tokens
    at once. Tokens are never mutated after insert.
    """

    token: str
    user_id: str
    created_at: str | None = None
