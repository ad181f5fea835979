"""
client/session.py -- Dual-channel session persistence on the client side.

A session is the pair {token, user summary}. login() mirrors it into two
independent channels:

  cookie channel  -- the authToken cookie in the HTTP cookie jar. The client
                     sends it on every request, so the server's route gate can
                     see it. This is the only channel gating trusts.
  client storage  -- authToken + user (JSON) in a KeyValueStorage. UI-only:
                     it answers "do I look logged in?" and feeds the bearer
                     header for API calls.

The two writes are attempted independently. If one fails it is logged and the
other still runs; nothing is rolled back, and the channels may disagree
afterwards. That is acceptable because the cookie alone decides gating, and
every API call is verified server-side anyway.

is_authenticated requires BOTH a token and a readable user summary in client
storage. A half-written session reads as logged out. A user entry that is not
valid JSON (or not the expected shape) is treated as absent and removed;
reading it never raises.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from http.cookiejar import CookieJar, FileCookieJar
from typing import Optional, Protocol

from requests.cookies import create_cookie, remove_cookie_by_name

from auth.models import UserSummary
from client.storage import KeyValueStorage

logger = logging.getLogger("helpboard.client")

TOKEN_KEY = "authToken"
USER_KEY = "user"
DEFAULT_COOKIE_NAME = "authToken"
SESSION_TTL = timedelta(days=7)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Cookie channel
# ---------------------------------------------------------------------------


class CookieChannel(Protocol):
    def get(self, name: str) -> Optional[str]: ...

    def set(self, name: str, value: str, expires: datetime) -> None: ...

    def delete(self, name: str) -> None: ...


class RequestsCookieChannel:
    """Cookie channel over the jar a requests.Session sends from.

    Cookies are written host-less (domain "") so they go to whichever API
    host the session talks to, with path=/ and SameSite=Strict. set() first
    removes any same-named cookie from every domain, including one the server
    set on a login response, so there is exactly one authToken in the jar.

    When the jar is a FileCookieJar (e.g. LWPCookieJar) every change is saved
    immediately, so the cookie survives between CLI invocations.
    """

    def __init__(self, jar: CookieJar) -> None:
        self.jar = jar

    def get(self, name: str) -> Optional[str]:
        for cookie in self.jar:
            if cookie.name == name:
                return cookie.value
        return None

    def set(self, name: str, value: str, expires: datetime) -> None:
        remove_cookie_by_name(self.jar, name)
        self.jar.set_cookie(
            create_cookie(
                name,
                value,
                path="/",
                expires=int(expires.timestamp()),
                rest={"SameSite": "Strict"},
            )
        )
        self._persist()

    def delete(self, name: str) -> None:
        remove_cookie_by_name(self.jar, name)
        self._persist()

    def _persist(self) -> None:
        if isinstance(self.jar, FileCookieJar) and self.jar.filename:
            self.jar.save(ignore_discard=True)


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WriteOutcome:
    """Which channels a login()/logout() actually reached."""

    cookie: bool
    storage: bool


class SessionStore:
    """Client-held session, mirrored into a cookie and client storage.

    Usage:
        store = SessionStore(RequestsCookieChannel(http.cookies), FileStorage(path))
        store.login(token, UserSummary(id="u1", email="jo@test.com", name="Jo"))
        store.is_authenticated   # True
        store.logout()
    """

    def __init__(
        self,
        cookies: CookieChannel,
        storage: KeyValueStorage,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        ttl: timedelta = SESSION_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.cookies = cookies
        self.storage = storage
        self.cookie_name = cookie_name
        self.ttl = ttl
        self._clock = clock

    def login(self, token: str, user: UserSummary) -> WriteOutcome:
        """Best-effort dual write. Never rolls back a channel that succeeded."""
        cookie_ok = self._attempt(
            "cookie write", lambda: self.cookies.set(self.cookie_name, token, self._clock() + self.ttl)
        )
        storage_ok = self._attempt("storage write", lambda: self._write_storage(token, user))
        return WriteOutcome(cookie=cookie_ok, storage=storage_ok)

    def logout(self) -> WriteOutcome:
        """Clear both channels, each independently of the other."""
        cookie_ok = self._attempt("cookie clear", lambda: self.cookies.delete(self.cookie_name))
        storage_ok = self._attempt("storage clear", self._clear_storage)
        return WriteOutcome(cookie=cookie_ok, storage=storage_ok)

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY) or None

    @property
    def user(self) -> Optional[UserSummary]:
        raw = self.storage.get_item(USER_KEY)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            return UserSummary(id=str(data["id"]), email=str(data["email"]), name=str(data["name"]))
        except (ValueError, TypeError, KeyError) as exc:
            logger.warning("Discarding malformed stored user summary: %s", exc)
            self._attempt("storage reset", lambda: self.storage.remove_item(USER_KEY))
            return None

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None and self.user is not None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _write_storage(self, token: str, user: UserSummary) -> None:
        self.storage.set_item(TOKEN_KEY, token)
        self.storage.set_item(USER_KEY, json.dumps(asdict(user)))

    def _clear_storage(self) -> None:
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)

    @staticmethod
    def _attempt(label: str, action: Callable[[], None]) -> bool:
        try:
            action()
        except Exception:
            logger.warning("Session %s failed; other channel unaffected", label, exc_info=True)
            return False
        return True
