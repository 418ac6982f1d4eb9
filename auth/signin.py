"""
auth/signin.py -- Sign-in orchestration.

Flow (flat, first failure wins):
  validate input -> open storage session -> check credentials -> issue token

Every step either advances or returns a failed SignInResult. Storage faults
arrive as StorageError subclasses and are mapped to their status code here,
so callers (API route, CLI) only ever see a SignInResult. Nothing is retried
across stages; a token row exists only when SUCCESS is returned.

The storage session is acquired with a context manager, so the connection is
released on every exit path.

Logging: outcomes are logged with the username only. Passwords and token
values are never logged.
"""

from __future__ import annotations

import logging
from typing import Optional

from auth.errors import CredentialQueryError, StorageConnectError, StorageError, TokenIssueError
from auth.store import AuthStore
from auth.tokens import issue_token
from core.models import SignInResult, SignInStatus
from core.validation import validate_credentials

logger = logging.getLogger("signin.auth")

_STATUS_FOR_ERROR: list[tuple[type[StorageError], SignInStatus]] = [
    (StorageConnectError, SignInStatus.COMMUNICATION_ERROR_CONNECT),
    (CredentialQueryError, SignInStatus.COMMUNICATION_ERROR_QUERY),
    (TokenIssueError, SignInStatus.COMMUNICATION_ERROR_TOKEN),
    # Base class last: a bare StorageError is reported as a query-stage fault.
    (StorageError, SignInStatus.COMMUNICATION_ERROR_QUERY),
]


def _status_for(exc: StorageError) -> SignInStatus:
    return next(status for error_type, status in _STATUS_FOR_ERROR if isinstance(exc, error_type))


def sign_in(
    store: AuthStore,
    username: Optional[str],
    password: Optional[str],
    max_attempts: int | None = None,
) -> SignInResult:
    """Authenticate username/password and issue a new session token.

    Returns SignInResult(SUCCESS, token) on success; otherwise a failed
    result carrying one of the seven failure statuses and no token.
    """
    invalid = validate_credentials(username, password)
    if invalid is not None:
        logger.info("Sign-in rejected: %s", invalid.name)
        return SignInResult.failed(invalid)

    try:
        with store.session() as session:
            user_id = session.find_user_id(username, password)
            if user_id is None:
                logger.info("Sign-in failed for %r: invalid credentials", username)
                return SignInResult.failed(SignInStatus.INVALID_CREDENTIALS)

            token = issue_token(session, user_id, max_attempts=max_attempts)
    except StorageError as exc:
        status = _status_for(exc)
        logger.error(
            "Sign-in for %r aborted at stage %s: %s (%s)",
            username,
            exc.stage,
            status.name,
            exc.__cause__ or exc,
        )
        return SignInResult.failed(status)

    logger.info("Sign-in succeeded for %r", username)
    return SignInResult.succeeded(token.token)
