"""
core/models.py -- Domain constants and the sign-in outcome types.

Pattern: Data class (pure data container). SignInResult carries the one
invariant of the outcome: a token is present if and only if the status is
Success. Every layer (auth/, api/, the CLI) imports these from here.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

# ---------------------------------------------------------------------------
# Domain constants
# ---------------------------------------------------------------------------

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 21
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 255

# Letters only. The length rule runs first, so the empty match is unreachable.
USERNAME_PATTERN = r"^[A-Za-z]*$"

TOKEN_LENGTH = 128
TOKEN_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


class SignInStatus(IntEnum):
    """Closed set of sign-in outcomes. The integer values are the wire format."""

    SUCCESS = 0
    INVALID_INPUT = 1
    INVALID_LENGTH = 2
    INVALID_USERNAME_REGEX = 3
    COMMUNICATION_ERROR_CONNECT = 4
    COMMUNICATION_ERROR_QUERY = 5
    COMMUNICATION_ERROR_TOKEN = 6
    INVALID_CREDENTIALS = 7


@dataclass(frozen=True)
class SignInResult:
    status: SignInStatus
    token: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.status is SignInStatus.SUCCESS) != (self.token is not None):
            raise ValueError(f"token must be present if and only if status is SUCCESS (status={self.status.name})")

    @property
    def ok(self) -> bool:
        return self.status is SignInStatus.SUCCESS

    @classmethod
    def failed(cls, status: SignInStatus) -> "SignInResult":
        return cls(status=status)

    @classmethod
    def succeeded(cls, token: str) -> "SignInResult":
        return cls(status=SignInStatus.SUCCESS, token=token)
