"""
api/routes/auth.py -- Signup, login, and identity endpoints.

Routes:
  POST /api/auth/signup   -- create account; returns {token, user}, sets authToken cookie
  POST /api/auth/login    -- password login; returns {token, user}, sets authToken cookie
  GET  /api/auth/me       -- current user summary (requires Bearer token)

Security:
  Signup does not look the email up before inserting. The store's UNIQUE
      constraint decides, and ConflictError becomes a 409 envelope.
  Login answers unknown-email and wrong-password identically (401, "Invalid
      email or password"), and authenticate_user() runs bcrypt in both cases.
  Cache-Control: no-store on every response that carries a token.
  Repeated failed logins are not throttled here; lockout/backoff belongs to
      a separate rate-limiting layer in front of this service.

bcrypt and the stores are blocking, so they run via run_in_threadpool to keep
the event loop free while a hash is computed.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from api.envelope import Envelope
from api.models import AuthPayload, UserSummaryModel
from api.payload import read_json
from auth.accounts import authenticate_user, register_user
from auth.dependencies import get_current_user
from auth.models import User
from auth.tokens import TokenService, set_auth_cookie
from auth.validators import Invalid, LoginRequest, SignupRequest, validate
from core.errors import ConflictError

INVALID_CREDENTIALS = "Invalid email or password"

router = APIRouter()


def _auth_response(request: Request, user: User, message: str, status: int) -> JSONResponse:
    envelope: Envelope = request.app.state.envelope
    tokens: TokenService = request.app.state.tokens
    token = tokens.issue(user.id, user.email)
    payload = AuthPayload(token=token, user=UserSummaryModel.from_summary(user.summary()))
    resp = envelope.success(payload.model_dump(), message, status=status)
    set_auth_cookie(resp, token, request.app.state.settings)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/auth/signup")
async def signup(request: Request) -> JSONResponse:
    """Create an account and log it in."""
    envelope: Envelope = request.app.state.envelope
    body = await read_json(request)
    result = body if isinstance(body, Invalid) else validate(SignupRequest, body)
    if isinstance(result, Invalid):
        return envelope.validation(result.errors)

    try:
        user = await run_in_threadpool(
            register_user, request.app.state.user_store, request.app.state.hasher, result.data
        )
    except ConflictError:
        return envelope.conflict(
            f'User with email "{result.data.email}" already exists. '
            "Please try logging in or use a different email."
        )
    return _auth_response(request, user, "User created successfully", 201)


@router.post("/auth/login")
async def login(request: Request) -> JSONResponse:
    """Authenticate with email and password."""
    envelope: Envelope = request.app.state.envelope
    body = await read_json(request)
    result = body if isinstance(body, Invalid) else validate(LoginRequest, body)
    if isinstance(result, Invalid):
        return envelope.validation(result.errors)

    user = await run_in_threadpool(
        authenticate_user, request.app.state.user_store, request.app.state.hasher, result.data
    )
    if user is None:
        resp = envelope.unauthorized(INVALID_CREDENTIALS)
        resp.headers["Cache-Control"] = "no-store"
        return resp
    return _auth_response(request, user, "Login successful", 200)


@router.get("/auth/me")
async def me(request: Request, current_user: User = Depends(get_current_user)) -> JSONResponse:
    """Return the summary of the user the bearer token belongs to."""
    envelope: Envelope = request.app.state.envelope
    return envelope.success(UserSummaryModel.from_summary(current_user.summary()).model_dump())
