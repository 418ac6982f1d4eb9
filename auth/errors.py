"""
auth/errors.py -- Storage fault taxonomy for the sign-in flow.

Client mistakes (bad input, wrong password) are ordinary results and never
raise. Only infrastructure faults are exceptions, one class per stage, so the
sign-in flow can map each to its own status code and operators can tell
where a request died.

    StorageError
     +-- StorageConnectError     stage="connect"
     +-- CredentialQueryError    stage="query"
     +-- TokenIssueError         stage="token"
          +-- TokenCheckError      stage="token_check"
          +-- TokenInsertError     stage="token_insert"
          +-- TokenCollisionError  stage="token_collision"

Store methods raise these with the original SQLAlchemy exception chained
(raise ... from exc).
"""

from __future__ import annotations


class StorageError(Exception):
    stage = "storage"


class StorageConnectError(StorageError):
    stage = "connect"


class CredentialQueryError(StorageError):
    stage = "query"


class TokenIssueError(StorageError):
    stage = "token"


class TokenCheckError(TokenIssueError):
    stage = "token_check"


class TokenInsertError(TokenIssueError):
    stage = "token_insert"


class TokenCollisionError(TokenIssueError):
    """No unique token value was found within the configured attempt budget."""

    stage = "token_collision"
