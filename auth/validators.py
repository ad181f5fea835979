"""
auth/validators.py -- Request payload schemas and the validate() funnel.

Every API boundary validates its JSON body here before touching the hasher,
the token service, or a store. validate() never raises: it returns Valid(model)
or Invalid(field_errors), and the route turns Invalid into a 400
VALIDATION_ERROR envelope.

Schemas are Pydantic v2 models. Field validators raise PydanticCustomError so
the message that reaches the client is exactly the sentence written here,
without Pydantic's "Value error, " prefix.

Password policy failures are aggregated: every rule the password breaks is
listed in the one `password` message, joined with "; ".

Layer rule: no imports from api/, web/, posts/, or client/.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic_core import PydanticCustomError

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NAME_RE = re.compile(r"^[a-zA-Z\s\-']+$")
SPECIAL_CHARACTERS = "@$!%*?&"

_PASSWORD_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"\d"), "Password must contain at least one number"),
    (
        re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]"),
        f"Password must contain at least one special character ({SPECIAL_CHARACTERS})",
    ),
)


def _fail(message: str) -> PydanticCustomError:
    return PydanticCustomError("invalid_field", message)


def _check_length(value: str, label: str, minimum: int, maximum: int) -> str:
    if len(value) < minimum:
        raise _fail(f"{label} must be at least {minimum} characters long")
    if len(value) > maximum:
        raise _fail(f"{label} must be at most {maximum} characters long")
    return value


def normalize_email(value: str) -> str:
    """Trim and lowercase, then require an address shape (local@domain.tld)."""
    value = value.strip().lower()
    if not _EMAIL_RE.match(value):
        raise _fail("Invalid email format")
    return value


def password_policy_violations(password: str) -> list[str]:
    """Return every password rule the value breaks, in a stable order."""
    problems: list[str] = []
    if len(password) < 8:
        problems.append("Password must be at least 8 characters long")
    problems.extend(message for pattern, message in _PASSWORD_RULES if not pattern.search(password))
    return problems


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class PostType(str, Enum):
    offer = "offer"
    request = "request"


class Category(str, Enum):
    physical = "physical"
    monetary = "monetary"
    goods = "goods"
    mentoring = "mentoring"
    other = "other"


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Body of POST /api/auth/signup."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str
    password: str

    @field_validator("name")
    @classmethod
    def check_name(cls, value: str) -> str:
        _check_length(value, "Name", 2, 100)
        if not _NAME_RE.match(value):
            raise _fail("Name can only contain letters, spaces, hyphens, and apostrophes")
        return value

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        problems = password_policy_violations(value)
        if problems:
            raise _fail("; ".join(problems))
        return value


class LoginRequest(BaseModel):
    """Body of POST /api/auth/login. Only presence is checked for the password."""

    model_config = ConfigDict(frozen=True)

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if not value:
            raise _fail("Password is required")
        return value


class PostCreate(BaseModel):
    """Body of POST /api/posts."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    type: PostType
    category: Category

    @field_validator("title")
    @classmethod
    def check_title(cls, value: str) -> str:
        return _check_length(value, "Title", 5, 200)

    @field_validator("description")
    @classmethod
    def check_description(cls, value: str) -> str:
        return _check_length(value, "Description", 10, 5000)


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[M]):
    data: M
    success: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Invalid:
    errors: dict[str, str]
    success: bool = field(default=False, init=False)


def validate(schema: type[M], payload: Any) -> Valid[M] | Invalid:
    """Validate payload against schema. Never raises.

    Error keys are the dotted field location; a payload that is not an object
    at all reports under "body". When a field has several Pydantic errors the
    first one wins.
    """
    try:
        return Valid(schema.model_validate(payload))
    except ValidationError as exc:
        errors: dict[str, str] = {}
        for issue in exc.errors():
            key = ".".join(str(part) for part in issue["loc"]) or "body"
            errors.setdefault(key, issue["msg"])
        return Invalid(errors)
