"""
web/gate.py -- Edge route gate for page navigations.

Every navigation whose path starts with one of Settings.protected_paths must
carry a non-empty authToken cookie. Missing -> 302 to Settings.login_path.
Present -> pass through.

This is an EXISTENCE check only. The gate does not decode or verify the
cookie: a stale or garbage value passes. Full signature and expiry checks
happen at the API boundary (auth.dependencies.get_current_user) before any
state-changing action. Keeping the gate shallow means a bad cookie can never
trap a browser in a redirect loop, and the edge never pays for a JWT decode.

Known gaps, left as-is on purpose:
  - The redirect does not carry a return-to target.
  - Prefix matching is plain startswith, so "/created" is gated by "/create".

Only the cookie channel is consulted. Authorization headers, query strings,
and anything the client keeps in its own storage are ignored, so client-side
state can never open a page the server could not itself see a token for.

Paths under /api are not navigations and are never gated; API routes do
their own bearer check.

Layer rule: no imports from api/. asgi.py installs the gate on the app.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import RedirectResponse

from core.config import Settings

logger = logging.getLogger("helpboard.web")

_UNGATED_PREFIXES = ("/api/", "/static/")


def is_protected(path: str, protected_paths: Iterable[str]) -> bool:
    if path == "/api" or path.startswith(_UNGATED_PREFIXES):
        return False
    return any(path.startswith(prefix) for prefix in protected_paths)


def gate_navigation(path: str, cookies: Mapping[str, str], settings: Settings) -> Optional[RedirectResponse]:
    """Return a redirect to the login page if the navigation must be blocked, else None."""
    if not is_protected(path, settings.protected_paths):
        return None
    if cookies.get(settings.auth_cookie_name):
        return None
    logger.info("Route gate: no %s cookie for %s, redirecting", settings.auth_cookie_name, path)
    return RedirectResponse(settings.login_path, status_code=302)


async def route_gate(request: Request, call_next):
    """HTTP middleware wrapper around gate_navigation()."""
    settings: Settings = request.app.state.settings
    if redirect := gate_navigation(request.url.path, request.cookies, settings):
        return redirect
    return await call_next(request)


def install_route_gate(app: FastAPI) -> None:
    """Register route_gate as an HTTP middleware on app. Call before startup."""
    app.middleware("http")(route_gate)
