"""
api/routes/v1/auth.py -- Sign-in REST endpoint.

Routes:
  POST /api/v1/auth/sign-in  -- form fields username, password; returns
                                {"status": n} or {"status": 0, "token": "..."}

Contract:
  The outcome is always carried in the body's status code (see
  core.models.SignInStatus); the HTTP status is 200 for every sign-in outcome.
  Missing form fields are NOT rejected by FastAPI validation -- they become
  status 1 so clients get the same envelope for every outcome. The form is
  read directly from the request so an empty field reaches the length rule
  instead of being treated as absent.

Security:
  Cache-Control: no-store on every sign-in response -- the body may carry a
  bearer token.
  Wrong username and wrong password share status 7 to avoid leaking which
  usernames exist.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.models import SignInResponse
from auth.signin import sign_in
from auth.store import AuthStore

# Auth policy:
# - POST /api/v1/auth/sign-in: public -- this is the endpoint that issues credentials
router = APIRouter()

JSON_UTF8 = "application/json; charset=utf-8"


def _form_text(value) -> Optional[str]:
    # File uploads under a credential field name count as missing.
    return value if isinstance(value, str) else None


@router.post("/auth/sign-in", response_model=SignInResponse)
async def sign_in_route(request: Request) -> JSONResponse:
    """Verify username and password and issue a new session token.

    bcrypt is deliberately slow, so the flow runs in the thread pool to keep
    the event loop free.
    """
    form = await request.form()
    username = _form_text(form.get("username"))
    password = _form_text(form.get("password"))

    auth_store: AuthStore = request.app.state.auth_store
    result = await run_in_threadpool(sign_in, auth_store, username, password)

    resp = JSONResponse(
        status_code=200,
        content=SignInResponse.from_result(result).to_body(),
        media_type=JSON_UTF8,
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp
