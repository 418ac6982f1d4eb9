"""
core/validation.py -- Sign-in input rules.

The rules are an ordered list checked flat, first failure wins. Inputs are
validated exactly as submitted: no trimming, no case folding. Lengths are
measured in UTF-8 bytes.

No side effects. Designed to be called by the sign-in flow, the API layer and
the management CLI alike.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Optional

from core.models import (
    PASSWORD_MAX_LENGTH,
    PASSWORD_MIN_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    USERNAME_PATTERN,
    SignInStatus,
)

_USERNAME_RE = re.compile(USERNAME_PATTERN)


def _present(username: Optional[str], password: Optional[str]) -> bool:
    return username is not None and password is not None


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


def _lengths_in_bounds(username: str, password: str) -> bool:
    # Bounds count UTF-8 bytes, not characters: "é" * 5 is 10 bytes long.
    return (
        USERNAME_MIN_LENGTH <= _byte_length(username) <= USERNAME_MAX_LENGTH
        and PASSWORD_MIN_LENGTH <= _byte_length(password) <= PASSWORD_MAX_LENGTH
    )


def _username_is_letters(username: str, password: str) -> bool:
    # fullmatch so a trailing newline cannot slip past the $ anchor.
    return _USERNAME_RE.fullmatch(username) is not None


_RULES: list[tuple[Callable[[str, str], bool], SignInStatus]] = [
    (_lengths_in_bounds, SignInStatus.INVALID_LENGTH),
    (_username_is_letters, SignInStatus.INVALID_USERNAME_REGEX),
]


def validate_credentials(username: Optional[str], password: Optional[str]) -> Optional[SignInStatus]:
    """Return the failing status for the first broken rule, or None if the input is acceptable.

    Rule order:
      1. both fields present                   -> INVALID_INPUT
      2. username 3-21, password 8-255 bytes   -> INVALID_LENGTH
      3. username letters only                 -> INVALID_USERNAME_REGEX
    """
    if not _present(username, password):
        return SignInStatus.INVALID_INPUT
    for rule, status in _RULES:
        if not rule(username, password):
            return status
    return None
