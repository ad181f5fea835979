"""
auth/tokens.py -- JWT issuance, verification, and bearer extraction.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id), email, iat, exp and
       nothing else. The issuer keeps no server-side state -- a token is valid
       until it expires, and logout is the client discarding it.

  Verification never raises for a bad token. It returns TokenInvalid with a
       reason the route layer turns into a 401:
         malformed      -- not a JWT, or required claims missing
         bad_signature  -- structurally fine, but not signed with our secret
         expired        -- signature valid, exp in the past
       Structure is checked before signature, signature before expiry, so a
       forged expired token reports bad_signature, never expired.

  Secret: TokenService receives Settings by reference. A missing secret is a
       ConfigurationError from ensure_configured() (called at startup) and from
       issue()/verify() -- the service never signs with an empty key.

  Bearer extraction is exact: "Bearer " with that casing and one space.
       "bearer x", "Bearer" and "Token x" all yield None.

Layer rule: no imports from api/, web/, posts/, or client/. Import from core/
is allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from jose import ExpiredSignatureError, JWTError, jwt

from core.config import Settings
from core.errors import ConfigurationError

logger = logging.getLogger("helpboard.auth")

_ALGORITHM = "HS256"
BEARER_PREFIX = "Bearer "
_REQUIRED_CLAIMS = ("sub", "email", "iat", "exp")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenFailure(str, Enum):
    MISSING = "missing_token"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenPayload:
    subject_id: str
    email: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class TokenValid:
    payload: TokenPayload
    valid: bool = field(default=True, init=False)


@dataclass(frozen=True)
class TokenInvalid:
    reason: TokenFailure
    valid: bool = field(default=False, init=False)


@dataclass(frozen=True)
class AuthSuccess:
    subject: TokenPayload
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class AuthFailure:
    reason: TokenFailure
    success: bool = field(default=False, init=False)


class TokenService:
    """Signs and verifies bearer tokens.

    Usage:
        tokens = TokenService(settings)
        token = tokens.issue(user.id, user.email)
        result = tokens.verify(token)
        if result.valid:
            user_id = result.payload.subject_id

    clock is injectable so tests can issue tokens "in the past" without
    sleeping past the expiry window.
    """

    def __init__(self, settings: Settings, clock: Callable[[], datetime] = utc_now) -> None:
        self._settings = settings
        self._clock = clock

    @property
    def default_ttl(self) -> timedelta:
        return timedelta(days=self._settings.token_ttl_days)

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if no signing secret is configured."""
        self._secret()

    def _secret(self) -> str:
        secret = self._settings.jwt_secret
        if not secret:
            raise ConfigurationError(
                "JWT_SECRET environment variable is not set. This is required for authentication."
            )
        return secret

    # ------------------------------------------------------------------
    # Issue / verify
    # ------------------------------------------------------------------

    def issue(self, subject_id: str, email: str, ttl: timedelta | None = None) -> str:
        """Encode a signed JWT for the given identity.

        Args:
            subject_id: Opaque user id, stored as the `sub` claim.
            email:      Normalized email, stored as the `email` claim.
            ttl:        Lifetime. Defaults to Settings.token_ttl_days (7 days).
        """
        secret = self._secret()
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= timedelta(0):
            raise ValueError("Token ttl must be positive.")
        issued_at = self._clock()
        payload = {
            "sub": subject_id,
            "email": email,
            "iat": issued_at,
            "exp": issued_at + ttl,
        }
        return jwt.encode(payload, secret, algorithm=_ALGORITHM)

    def verify(self, token: str) -> TokenValid | TokenInvalid:
        """Verify signature and expiry. Returns a result object, never raises for bad input."""
        secret = self._secret()
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return TokenInvalid(TokenFailure.MALFORMED)
        if not _has_required_claims(claims):
            return TokenInvalid(TokenFailure.MALFORMED)

        try:
            claims = jwt.decode(token, secret, algorithms=[_ALGORITHM])
        except ExpiredSignatureError:
            return TokenInvalid(TokenFailure.EXPIRED)
        except JWTError:
            return TokenInvalid(TokenFailure.BAD_SIGNATURE)

        return TokenValid(
            TokenPayload(
                subject_id=claims["sub"],
                email=claims["email"],
                issued_at=datetime.fromtimestamp(claims["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
            )
        )

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    @staticmethod
    def extract(headers: Mapping[str, str]) -> str | None:
        """Return the bearer token from an Authorization header, or None.

        Accepts Starlette Headers (case-insensitive) or a plain dict.
        """
        auth_header = headers.get("authorization") or headers.get("Authorization") or ""
        if not auth_header.startswith(BEARER_PREFIX):
            return None
        return auth_header[len(BEARER_PREFIX) :] or None

    def authenticate(self, headers: Mapping[str, str]) -> AuthSuccess | AuthFailure:
        """extract() + verify() in one step."""
        token = self.extract(headers)
        if token is None:
            return AuthFailure(TokenFailure.MISSING)
        result = self.verify(token)
        if isinstance(result, TokenInvalid):
            logger.info("Bearer token rejected (%s)", result.reason.value)
            return AuthFailure(result.reason)
        return AuthSuccess(result.payload)


def _has_required_claims(claims) -> bool:
    if not isinstance(claims, dict):
        return False
    if any(name not in claims for name in _REQUIRED_CLAIMS):
        return False
    if not isinstance(claims["sub"], str) or not isinstance(claims["email"], str):
        return False
    return isinstance(claims["iat"], (int, float)) and isinstance(claims["exp"], (int, float))


# ---------------------------------------------------------------------------
# Cookie helper
# ---------------------------------------------------------------------------


def set_auth_cookie(response, token: str, settings: Settings, now: datetime | None = None) -> None:
    """Write the session token as the route-gate cookie on a response.

    path="/":          visible to every navigation the gate inspects.
    samesite="strict": never sent on cross-site requests.
    httponly=True:     page scripts cannot read it (XSS mitigation); the gate
                       only needs to see it server-side.
    expires:           issuance + token_ttl_days, matching the JWT exp.
    """
    now = now or utc_now()
    response.set_cookie(
        settings.auth_cookie_name,
        value=token,
        path="/",
        samesite="strict",
        httponly=True,
        secure=settings.secure_cookies,
        expires=now + timedelta(days=settings.token_ttl_days),
    )
