"""
API response models for the sign-in service.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclasses in core/models.py, which own the
internal domain representation. Route handlers map between the two.
"""

import html
from typing import Optional

from pydantic import BaseModel, ConfigDict

from core.models import SignInResult

# ---------------------------------------------------------------------------
# Sign-in
# ---------------------------------------------------------------------------


class SignInResponse(BaseModel):
    """Body of POST /api/v1/auth/sign-in.

    token is omitted from the serialized body unless status is 0.
    """

    model_config = ConfigDict(frozen=True)

    status: int
    token: Optional[str] = None

    @classmethod
    def from_result(cls, result: SignInResult) -> "SignInResponse":
        """Build the wire body from a domain SignInResult.

        The token is HTML-entity escaped before embedding. The token alphabet
        contains nothing that needs escaping, so this never changes the value.
        """
        token = html.escape(result.token) if result.token is not None else None
        return cls(status=int(result.status), token=token)

    def to_body(self) -> dict:
        return self.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str]
