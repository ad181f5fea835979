"""
client/api.py -- Python client for the HelpBoard HTTP API.

HelpBoardClient plays the part a browser plays for the web UI: it keeps the
session in a SessionStore (cookie jar + client storage), sends the bearer
token on API calls, and lets the cookie ride along on page navigations so the
server's route gate can see it.

Every API response is an envelope. Success envelopes are unwrapped to their
`data`; error envelopes raise ApiError carrying the envelope's code, status,
and message.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from auth.models import UserSummary
from client.session import RequestsCookieChannel, SessionStore
from client.storage import KeyValueStorage, MemoryStorage
from core.errors import AppError

logger = logging.getLogger("helpboard.client")


class ApiError(AppError):
    """An error envelope returned by the server (or a non-envelope failure)."""

    def __init__(self, message: str, code: str, status: int, details: Optional[dict] = None) -> None:
        super().__init__(message)
        self.code = code
        self.status = status
        self.details = details

    def __str__(self) -> str:
        return f"{self.status} {self.code}: {self.message}"


class HelpBoardClient:
    """Usage:
    client = HelpBoardClient("http://localhost:8000", FileStorage(path))
    client.login("jo@test.com", "Secret1!")
    client.create_post("Need a ride", "Airport run on Friday morning", "request", "physical")
    """

    def __init__(
        self,
        base_url: str,
        storage: Optional[KeyValueStorage] = None,
        http: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.timeout = timeout
        self.session = SessionStore(RequestsCookieChannel(self.http.cookies), storage or MemoryStorage())

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def signup(self, name: str, email: str, password: str) -> UserSummary:
        data = self._call("POST", "/api/auth/signup", json={"name": name, "email": email, "password": password})
        return self._start_session(data)

    def login(self, email: str, password: str) -> UserSummary:
        data = self._call("POST", "/api/auth/login", json={"email": email, "password": password})
        return self._start_session(data)

    def logout(self) -> None:
        """Discard the session locally. Tokens are stateless; there is no server call."""
        self.session.logout()

    def me(self) -> UserSummary:
        data = self._call("GET", "/api/auth/me", auth=True)
        return UserSummary(id=data["id"], email=data["email"], name=data["name"])

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    def create_post(self, title: str, description: str, type: str, category: str) -> dict:
        body = {"title": title, "description": description, "type": type, "category": category}
        return self._call("POST", "/api/posts", json=body, auth=True)

    def list_posts(self, page: int = 1, limit: int = 10) -> dict:
        """Return {"data": [...], "pagination": {...}}."""
        envelope = self._request("GET", "/api/posts", params={"page": page, "limit": limit})
        return {"data": envelope["data"], "pagination": envelope["pagination"]}

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def open_page(self, path: str) -> requests.Response:
        """GET a page path without following redirects; the route gate's answer is visible."""
        return self.http.get(f"{self.base_url}{path}", allow_redirects=False, timeout=self.timeout)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _start_session(self, data: dict) -> UserSummary:
        user = UserSummary(id=data["user"]["id"], email=data["user"]["email"], name=data["user"]["name"])
        outcome = self.session.login(data["token"], user)
        if not (outcome.cookie and outcome.storage):
            logger.warning("Session persisted partially (cookie=%s, storage=%s)", outcome.cookie, outcome.storage)
        return user

    def _call(self, method: str, path: str, auth: bool = False, **kwargs: Any) -> Any:
        return self._request(method, path, auth=auth, **kwargs)["data"]

    def _request(self, method: str, path: str, auth: bool = False, **kwargs: Any) -> dict:
        headers = kwargs.pop("headers", {})
        if auth:
            token = self.session.token
            if token:
                headers["Authorization"] = f"Bearer {token}"
        resp = self.http.request(method, f"{self.base_url}{path}", headers=headers, timeout=self.timeout, **kwargs)
        try:
            envelope = resp.json()
        except ValueError as exc:
            raise ApiError(f"Non-JSON response from {path}", "BAD_RESPONSE", resp.status_code) from exc
        if not isinstance(envelope, dict) or "success" not in envelope:
            raise ApiError(f"Unexpected response shape from {path}", "BAD_RESPONSE", resp.status_code)
        if not envelope["success"]:
            raise ApiError(
                envelope.get("error", "Request failed"),
                envelope.get("code", "UNKNOWN"),
                envelope.get("status", resp.status_code),
                envelope.get("details"),
            )
        return envelope
