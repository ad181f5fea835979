"""
api/envelope.py -- The uniform success/error response wrapper.

Every API response body is one of two shapes:

  success: {success: true,  data, message?, timestamp}
  error:   {success: false, error, code, status, details?, timestamp}

Envelope holds the Settings reference so it knows whether it may attach
`details`. Outside production, details carries debugging context (field
errors for 400s, the original exception text for 500s). In production no
details are attached at all -- the code and status are the contract.

Envelope.handle() is the single funnel for unexpected exceptions. It logs the
exception with context and timestamp, and always answers with the generic
internal-error body regardless of what the exception said.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.models import ErrorEnvelope, PaginatedEnvelope, SuccessEnvelope
from core.config import Settings
from core.pagination import PaginationMeta

logger = logging.getLogger("helpboard.api")

DEFAULT_SUCCESS_MESSAGE = "Operation completed successfully"
INTERNAL_ERROR_MESSAGE = "An error occurred while processing your request"
INVALID_INPUT_MESSAGE = "Invalid input data"
UNAUTHORIZED_MESSAGE = "Unauthorized: Please provide a valid authentication token"
CONFLICT_MESSAGE = "User with this email already exists"
NOT_FOUND_MESSAGE = "Resource not found"
BAD_REQUEST_MESSAGE = "Missing required fields"


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Envelope:
    """Builds envelope JSONResponses.

    Usage (inside a route):
        envelope: Envelope = request.app.state.envelope
        return envelope.success({"id": post_id}, "Post created successfully", status=201)
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    # ------------------------------------------------------------------
    # Success
    # ------------------------------------------------------------------

    def success(self, data: Any, message: Optional[str] = None, status: int = 200) -> JSONResponse:
        body = SuccessEnvelope(
            data=jsonable_encoder(data),
            message=message or DEFAULT_SUCCESS_MESSAGE,
            timestamp=_timestamp(),
        )
        return JSONResponse(status_code=status, content=body.model_dump())

    def paginated(self, items: list, meta: PaginationMeta, message: Optional[str] = None) -> JSONResponse:
        body = PaginatedEnvelope(
            data=jsonable_encoder(items),
            pagination=meta.to_wire(),
            message=message or DEFAULT_SUCCESS_MESSAGE,
            timestamp=_timestamp(),
        )
        return JSONResponse(status_code=200, content=body.model_dump())

    # ------------------------------------------------------------------
    # Errors
    # ------------------------------------------------------------------

    def error(
        self,
        message: str = INTERNAL_ERROR_MESSAGE,
        code: str = "INTERNAL_ERROR",
        status: int = 500,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Build an error envelope. details is dropped in production."""
        if self._settings.is_production:
            details = None
        return self._error_response(message, code, status, details)

    def validation(self, errors: dict[str, str]) -> JSONResponse:
        """400 VALIDATION_ERROR with {validationErrors: {...}} details (non-production only)."""
        return self.error(INVALID_INPUT_MESSAGE, "VALIDATION_ERROR", 400, {"validationErrors": errors})

    def bad_request(self, message: str = BAD_REQUEST_MESSAGE, details: Optional[dict] = None) -> JSONResponse:
        return self.error(message, "BAD_REQUEST", 400, details)

    def unauthorized(self, message: str = UNAUTHORIZED_MESSAGE) -> JSONResponse:
        return self.error(message, "UNAUTHORIZED", 401)

    def conflict(self, message: str = CONFLICT_MESSAGE) -> JSONResponse:
        return self.error(message, "CONFLICT", 409)

    def not_found(self, message: str = NOT_FOUND_MESSAGE) -> JSONResponse:
        return self.error(message, "NOT_FOUND", 404)

    def handle(self, exc: BaseException, context: Optional[str] = None) -> JSONResponse:
        """Log an unexpected exception and return the generic 500 envelope.

        Security note: the exception text is written to the server log only.
        Outside production it is echoed as details.originalError to speed up
        local debugging; in production the client sees only the generic message.
        """
        logger.error(
            "[%s] %sUnhandled error: %s",
            _timestamp(),
            f"[{context}] " if context else "",
            exc,
            exc_info=exc,
        )
        return self.error(
            INTERNAL_ERROR_MESSAGE,
            "INTERNAL_ERROR",
            500,
            {"originalError": str(exc) or type(exc).__name__},
        )

    @staticmethod
    def _error_response(message: str, code: str, status: int, details: Optional[dict]) -> JSONResponse:
        body = ErrorEnvelope(error=message, code=code, status=status, details=details, timestamp=_timestamp())
        return JSONResponse(status_code=status, content=body.model_dump(exclude_none=True))
