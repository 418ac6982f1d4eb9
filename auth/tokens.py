"""
auth/tokens.py -- Session token generation and issuance.

Security design decisions:
  Tokens are bearer credentials, so every character comes from the secrets
  module (OS CSPRNG). 128 characters over a 62-symbol alphabet is ~762 bits of
  entropy; a collision is astronomically unlikely but still handled.

  Issuance is generate -> check -> insert. The primary key on tokens.token is
  the actual uniqueness guarantee: if a concurrent request inserts the same
  value between our check and our insert, the insert reports a collision and
  we generate again. The loop is bounded by Settings.token_max_attempts so a
  pathological storage state cannot spin forever.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from auth.errors import TokenCollisionError
from core.config import get_settings
from core.models import TOKEN_ALPHABET, TOKEN_LENGTH

if TYPE_CHECKING:
    from auth.models import Token
    from auth.store import AuthSession

logger = logging.getLogger("signin.auth")


def generate_token() -> str:
    """Return TOKEN_LENGTH characters drawn uniformly and independently from TOKEN_ALPHABET."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH))


def issue_token(session: AuthSession, user_id: str, max_attempts: int | None = None) -> Token:
    """Generate a token not yet in storage, persist it for user_id, and return it.

    Args:
        session:      Open AuthSession for the current request.
        user_id:      Owner of the new token (from a successful credential check).
        max_attempts: Candidates to try before giving up. Defaults to
                      Settings.token_max_attempts.

    Raises:
        TokenCheckError:     the uniqueness check failed.
        TokenInsertError:    the insert failed for a reason other than a duplicate.
        TokenCollisionError: every candidate collided.
    """
    attempts = max_attempts if max_attempts is not None else get_settings().token_max_attempts
    for attempt in range(1, attempts + 1):
        candidate = generate_token()
        if session.token_exists(candidate):
            logger.warning("Token collision on uniqueness check (attempt %d/%d)", attempt, attempts)
            continue
        issued = session.insert_token(candidate, user_id)
        if issued is None:
            logger.warning("Token collision on insert (attempt %d/%d)", attempt, attempts)
            continue
        return issued
    raise TokenCollisionError(f"no unique token after {attempts} attempts")
