"""
auth/dependencies.py -- FastAPI Depends() helpers for bearer authentication.

API calls authenticate with `Authorization: Bearer <token>` only. The
authToken cookie is for the route gate's navigation check and is deliberately
NOT accepted here: every state-changing API call gets the full signature and
expiry check against the header token.

try_get_current_user() is the soft variant (returns an AuthFailure).
get_current_user() raises AuthenticationError, which api/main.py renders as
a 401 envelope with a reason-specific message.

Layer rule: no imports from web/, posts/, or client/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.store import UserStore
from auth.tokens import AuthFailure, TokenFailure, TokenService
from core.errors import AuthenticationError

_FAILURE_MESSAGES = {
    TokenFailure.MISSING: "Unauthorized: Please provide a valid authentication token",
    TokenFailure.EXPIRED: "Token has expired",
    TokenFailure.MALFORMED: "Invalid token",
    TokenFailure.BAD_SIGNATURE: "Invalid token",
}


def failure_message(reason: TokenFailure) -> str:
    return _FAILURE_MESSAGES[reason]


def try_get_current_user(request: Request) -> User | AuthFailure:
    """Authenticate the request's bearer token and load its user.

    A token whose subject no longer exists is reported as bad_signature: the
    token is no longer proof of any identity we know.
    """
    tokens: TokenService = request.app.state.tokens
    user_store: UserStore = request.app.state.user_store

    result = tokens.authenticate(request.headers)
    if isinstance(result, AuthFailure):
        return result
    user = user_store.find_by_id(result.subject.subject_id)
    if user is None:
        return AuthFailure(TokenFailure.BAD_SIGNATURE)
    return user


def get_current_user(request: Request) -> User:
    """Require authentication. Raises AuthenticationError (401) otherwise.

    Use as a FastAPI dependency:
        @router.post("/posts")
        def route(user: User = Depends(get_current_user)): ...
    """
    outcome = try_get_current_user(request)
    if isinstance(outcome, AuthFailure):
        raise AuthenticationError(outcome.reason.value, failure_message(outcome.reason))
    return outcome
