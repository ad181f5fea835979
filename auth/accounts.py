"""
auth/accounts.py -- Signup and password-login flows.

Both functions take already-validated input (auth.validators models) plus the
collaborators they need, so they run identically under a route handler, the
CLI, or a test thread.

register_user() never looks the email up first. It hashes, inserts, and lets
UserStore.create_user() raise ConflictError when the UNIQUE constraint fires.
A lookup-then-insert would let two concurrent signups both pass the lookup.

authenticate_user() always runs bcrypt, whether or not the email exists, and
returns None for both unknown-email and wrong-password. Callers must answer
both with the same 401 so neither timing nor wording reveals which emails are
registered.

Layer rule: no imports from api/, web/, posts/, or client/.
"""

from __future__ import annotations

import logging

from auth.models import User
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.validators import LoginRequest, SignupRequest

logger = logging.getLogger("helpboard.auth")


def register_user(store: UserStore, hasher: PasswordHasher, body: SignupRequest) -> User:
    """Create a credential record. Raises ConflictError on a duplicate email."""
    user = User(email=body.email, name=body.name, hashed_password=hasher.hash(body.password))
    user.id = store.create_user(user)
    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(store: UserStore, hasher: PasswordHasher, body: LoginRequest) -> User | None:
    """Return the User for a correct email/password pair, None otherwise."""
    user = store.find_by_email(body.email)
    if user is None:
        # Equalize timing -- do NOT return before running bcrypt.
        hasher.dummy_verify(body.password)
        return None
    if not hasher.verify(body.password, user.hashed_password):
        return None
    return user
