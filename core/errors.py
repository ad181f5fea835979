"""
core/errors.py -- Exception taxonomy shared by every HelpBoard layer.

Each AppError carries the stable wire `code` and HTTP `status` it maps to, so
api/main.py can turn any of them into a response envelope with one handler.

Validation and authentication outcomes normally travel as typed results
(auth.validators.Invalid, auth.tokens.AuthFailure). The exception forms exist
for boundaries where a result object cannot be returned -- the record stores
and startup configuration.

Layer rule: core/ is the kernel. No imports from api/, web/, auth/, posts/, or client/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors with a stable client-facing code and status."""

    code = "INTERNAL_ERROR"
    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(AppError):
    """Field-level validation failure. `errors` maps field name -> message."""

    code = "VALIDATION_ERROR"
    status = 400

    def __init__(self, errors: dict[str, str], message: str = "Invalid input data") -> None:
        super().__init__(message)
        self.errors = errors


class AuthenticationError(AppError):
    """Missing, malformed, expired, or badly-signed credentials."""

    code = "UNAUTHORIZED"
    status = 401

    def __init__(self, reason: str, message: str = "Unauthorized") -> None:
        super().__init__(message)
        self.reason = reason


class ConflictError(AppError):
    """Duplicate identity -- raised by stores on unique-constraint violations."""

    code = "CONFLICT"
    status = 409


class NotFoundError(AppError):
    code = "NOT_FOUND"
    status = 404


class ConfigurationError(AppError):
    """Fatal misconfiguration (e.g. missing JWT secret). Never recoverable per request."""

    code = "CONFIGURATION_ERROR"
    status = 500


class InternalError(AppError):
    code = "INTERNAL_ERROR"
    status = 500
