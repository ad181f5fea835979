"""
API response models for HelpBoard REST endpoints.

These Pydantic v2 models define the HTTP wire contract: the success/error
envelope every endpoint returns, and the payloads carried inside `data`.
Request bodies are validated by the schemas in auth/validators.py.

Separation of concerns: auth/ and posts/ dataclasses = domain truth;
api/ models = API contract. Route handlers map between the two.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from auth.models import UserSummary

# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class SuccessEnvelope(BaseModel):
    """`{success: true, data, message?, timestamp}`."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    data: Any = None
    message: Optional[str] = None
    timestamp: str


class PaginatedEnvelope(SuccessEnvelope):
    """Success envelope for list endpoints -- adds `pagination`."""

    pagination: dict


class ErrorEnvelope(BaseModel):
    """`{success: false, error, code, status, details?, timestamp}`.

    details is omitted from the wire entirely (not sent as null) when absent;
    api/envelope.py dumps with exclude_none=True.
    """

    model_config = ConfigDict(frozen=True)

    success: bool = False
    error: str
    code: str
    status: int
    details: Optional[dict] = None
    timestamp: str


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class UserSummaryModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str

    @classmethod
    def from_summary(cls, summary: UserSummary) -> "UserSummaryModel":
        return cls(id=summary.id, email=summary.email, name=summary.name)


class AuthPayload(BaseModel):
    """`data` of a successful signup or login."""

    model_config = ConfigDict(frozen=True)

    token: str
    user: UserSummaryModel


class HealthResponse(BaseModel):
    """Response for GET /api/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
