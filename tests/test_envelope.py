"""Unit tests for api/envelope.py.

Covers:
- Success envelope shape and default message
- Paginated envelope carries camelCase pagination metadata
- Error envelope omits details when none are given
- Validation, conflict, unauthorized and not-found helpers
- Production mode never attaches details
- handle() logs and always answers with the generic internal error
"""

import json
import logging

import pytest

from api.envelope import DEFAULT_SUCCESS_MESSAGE, INTERNAL_ERROR_MESSAGE, Envelope
from conftest import make_settings
from core.pagination import calculate_pagination


def _body(resp) -> dict:
    return json.loads(resp.body)


@pytest.fixture
def envelope() -> Envelope:
    return Envelope(make_settings())


@pytest.fixture
def prod_envelope() -> Envelope:
    return Envelope(make_settings(environment="production"))


class TestSuccess:
    def test_success_shape(self, envelope: Envelope) -> None:
        resp = envelope.success({"id": "p1"})
        body = _body(resp)
        assert resp.status_code == 200
        assert body["success"] is True
        assert body["data"] == {"id": "p1"}
        assert body["message"] == DEFAULT_SUCCESS_MESSAGE
        assert body["timestamp"].endswith("Z")

    def test_custom_message_and_status(self, envelope: Envelope) -> None:
        resp = envelope.success(None, "Created", status=201)
        body = _body(resp)
        assert resp.status_code == 201
        assert body["message"] == "Created"
        assert body["data"] is None

    def test_paginated(self, envelope: Envelope) -> None:
        resp = envelope.paginated([{"id": 1}], calculate_pagination(total=21, page=2, limit=10))
        body = _body(resp)
        assert body["data"] == [{"id": 1}]
        assert body["pagination"] == {"page": 2, "limit": 10, "total": 21, "pages": 3, "hasMore": True}


class TestErrors:
    def test_error_without_details_omits_key(self, envelope: Envelope) -> None:
        body = _body(envelope.error("Nope", "BAD_REQUEST", 400))
        assert body["success"] is False
        assert body["error"] == "Nope"
        assert body["code"] == "BAD_REQUEST"
        assert body["status"] == 400
        assert "details" not in body

    def test_validation(self, envelope: Envelope) -> None:
        resp = envelope.validation({"email": "Invalid email format"})
        body = _body(resp)
        assert resp.status_code == 400
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"] == "Invalid input data"
        assert body["details"] == {"validationErrors": {"email": "Invalid email format"}}

    @pytest.mark.parametrize(
        "method, status, code",
        [
            ("unauthorized", 401, "UNAUTHORIZED"),
            ("conflict", 409, "CONFLICT"),
            ("not_found", 404, "NOT_FOUND"),
            ("bad_request", 400, "BAD_REQUEST"),
        ],
    )
    def test_helpers(self, envelope: Envelope, method: str, status: int, code: str) -> None:
        resp = getattr(envelope, method)()
        body = _body(resp)
        assert resp.status_code == status
        assert body["code"] == code
        assert body["status"] == status
        assert body["error"]


class TestProduction:
    def test_validation_details_dropped(self, prod_envelope: Envelope) -> None:
        body = _body(prod_envelope.validation({"email": "Invalid email format"}))
        assert body["code"] == "VALIDATION_ERROR"
        assert "details" not in body

    def test_explicit_details_dropped(self, prod_envelope: Envelope) -> None:
        body = _body(prod_envelope.error("Nope", "BAD_REQUEST", 400, {"secret": "x"}))
        assert "details" not in body

    def test_handle_hides_original_error(self, prod_envelope: Envelope) -> None:
        body = _body(prod_envelope.handle(RuntimeError("db password is hunter2")))
        assert body["error"] == INTERNAL_ERROR_MESSAGE
        assert "hunter2" not in json.dumps(body)


class TestHandle:
    def test_handle_returns_generic_500(self, envelope: Envelope) -> None:
        resp = envelope.handle(RuntimeError("boom"), "GET /x")
        body = _body(resp)
        assert resp.status_code == 500
        assert body["code"] == "INTERNAL_ERROR"
        assert body["error"] == INTERNAL_ERROR_MESSAGE
        assert body["details"] == {"originalError": "boom"}

    def test_handle_logs_with_context(self, envelope: Envelope, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="helpboard.api"):
            envelope.handle(ValueError("bad value"), "POST /api/posts")
        record = caplog.records[-1]
        assert "POST /api/posts" in record.getMessage()
        assert "bad value" in record.getMessage()
        assert record.exc_info is not None

    def test_handle_empty_message_uses_type_name(self, envelope: Envelope) -> None:
        body = _body(envelope.handle(KeyError()))
        assert body["details"] == {"originalError": "KeyError"}
