"""
api/main.py -- FastAPI application entry point for HelpBoard.

Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. CORSMiddleware        -- adds CORS headers for allowed browser origins
  2. log_requests          -- method, path, status, latency per request
  (asgi.py adds the route gate for page navigations on top of these.)

Lifespan builds every process-wide component exactly once, from one Settings
instance, and publishes them on app.state:

  settings    -- core.config.Settings (read-only after startup)
  hasher      -- auth.passwords.PasswordHasher (bcrypt cost from settings)
  tokens      -- auth.tokens.TokenService (signing secret from settings)
  envelope    -- api.envelope.Envelope (production flag from settings)
  user_store  -- auth.store.UserStore
  post_store  -- posts.store.PostStore

Route handlers read these from request.app.state; nothing below the entry
points calls get_settings().

A missing JWT secret raises ConfigurationError during startup, so the server
never comes up unable to sign tokens.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.envelope import Envelope
from api.models import HealthResponse
from api.routes.auth import router as auth_router
from api.routes.posts import router as posts_router
from auth.passwords import PasswordHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings, get_settings
from core.errors import AppError, AuthenticationError, ConfigurationError, InputValidationError
from posts.store import PostStore

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("helpboard.api")


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def init_state(app: FastAPI, settings: Settings) -> None:
    """Build every shared component from settings and attach it to app.state.

    Split out of lifespan so tests can wire the same components against
    isolated databases.
    """
    tokens = TokenService(settings)
    tokens.ensure_configured()
    app.state.settings = settings
    app.state.tokens = tokens
    app.state.hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    app.state.envelope = Envelope(settings)
    app.state.user_store = UserStore(settings.database_url)
    app.state.post_store = PostStore(settings.database_url)


def close_state(app: FastAPI) -> None:
    app.state.post_store.close()
    app.state.user_store.close()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    settings = get_settings()
    logger.info("HelpBoard API starting up (environment=%s)", settings.environment)
    init_state(app, settings)
    logger.info("Stores initialized")

    yield

    close_state(app)
    logger.info("HelpBoard API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="HelpBoard API",
    description="Community offers and requests for help.",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost", "http://localhost:3000", "http://127.0.0.1"],
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    allow_credentials=True,
    max_age=3600,
)


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(posts_router, prefix="/api", tags=["Posts"])
# The route gate is installed by asgi.py, not here.
# api/ and web/ are independent layers -- only the top-level asgi.py imports both.


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every handler answers with the same envelope so clients can branch on
# `code` without inspecting the status first. Unexpected exceptions are
# caught exactly once, here, and funneled through Envelope.handle().
# ---------------------------------------------------------------------------


def _context(request: Request) -> str:
    return f"{request.method} {request.url.path}"


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    envelope: Envelope = request.app.state.envelope
    if isinstance(exc, InputValidationError):
        return envelope.validation(exc.errors)
    if isinstance(exc, AuthenticationError):
        return envelope.unauthorized(exc.message)
    if isinstance(exc, ConfigurationError):
        logger.critical("Configuration error on %s: %s", _context(request), exc.message)
        return envelope.handle(exc, _context(request))
    if exc.status >= 500:
        return envelope.handle(exc, _context(request))
    return envelope.error(exc.message, exc.code, exc.status)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Path and query parameter failures use the same VALIDATION_ERROR shape as bodies."""
    envelope: Envelope = request.app.state.envelope
    errors: dict[str, str] = {}
    for issue in exc.errors():
        key = ".".join(str(part) for part in issue["loc"] if part not in ("body", "query", "path")) or "body"
        errors.setdefault(key, issue["msg"])
    return envelope.validation(errors)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    envelope: Envelope = request.app.state.envelope
    if exc.status_code == 404:
        return envelope.not_found()
    if exc.status_code == 401:
        return envelope.unauthorized()
    return envelope.error(str(exc.detail), f"HTTP_{exc.status_code}", exc.status_code)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors. See Envelope.handle()."""
    envelope: Envelope = request.app.state.envelope
    return envelope.handle(exc, _context(request))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable
# regardless of router registration state.
# ---------------------------------------------------------------------------


@app.get("/api/health", include_in_schema=True, tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, current version, and database reachability."""
    try:
        database = "ok" if request.app.state.user_store.ping() else "error"
    except Exception:
        logger.exception("Health check database ping failed")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
