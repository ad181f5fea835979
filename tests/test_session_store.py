"""Unit tests for client/session.py and client/storage.py.

Covers:
- login() writes both channels; logout() clears both
- A failing channel does not stop the other (no rollback)
- is_authenticated needs both token and a readable user summary
- A malformed stored user is discarded without raising
- RequestsCookieChannel cookie attributes and single-cookie invariant
- FileStorage persistence and recovery from a corrupt file
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
from requests.cookies import RequestsCookieJar

from auth.models import UserSummary
from client.session import USER_KEY, RequestsCookieChannel, SessionStore
from client.storage import FileStorage, MemoryStorage

_USER = UserSummary(id="u1", email="jo@test.com", name="Jo")
_NOW = datetime(2030, 1, 1, tzinfo=timezone.utc)


class FailingChannel:
    def get(self, name: str) -> Optional[str]:
        return None

    def set(self, name: str, value: str, expires: datetime) -> None:
        raise OSError("cookie jar is read-only")

    def delete(self, name: str) -> None:
        raise OSError("cookie jar is read-only")


class FailingStorage(MemoryStorage):
    def set_item(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")

    def remove_item(self, key: str) -> None:
        raise OSError("quota exceeded")


@pytest.fixture
def jar() -> RequestsCookieJar:
    return RequestsCookieJar()


@pytest.fixture
def store(jar: RequestsCookieJar) -> SessionStore:
    return SessionStore(RequestsCookieChannel(jar), MemoryStorage(), clock=lambda: _NOW)


class TestLoginLogout:
    def test_login_writes_both_channels(self, store: SessionStore, jar: RequestsCookieJar) -> None:
        outcome = store.login("tok", _USER)
        assert outcome.cookie and outcome.storage
        assert jar.get("authToken") == "tok"
        assert store.token == "tok"
        assert store.user == _USER
        assert store.is_authenticated is True

    def test_logout_clears_both(self, store: SessionStore, jar: RequestsCookieJar) -> None:
        store.login("tok", _USER)
        outcome = store.logout()
        assert outcome.cookie and outcome.storage
        assert jar.get("authToken") is None
        assert store.token is None
        assert store.user is None
        assert store.is_authenticated is False

    def test_cookie_failure_still_writes_storage(self) -> None:
        store = SessionStore(FailingChannel(), MemoryStorage())
        outcome = store.login("tok", _USER)
        assert outcome.cookie is False
        assert outcome.storage is True
        assert store.is_authenticated is True

    def test_storage_failure_still_writes_cookie(self, jar: RequestsCookieJar) -> None:
        store = SessionStore(RequestsCookieChannel(jar), FailingStorage())
        outcome = store.login("tok", _USER)
        assert outcome.cookie is True
        assert outcome.storage is False
        assert jar.get("authToken") == "tok"
        assert store.is_authenticated is False

    def test_logout_failure_is_partial(self, jar: RequestsCookieJar) -> None:
        storage = MemoryStorage({"authToken": "tok", USER_KEY: json.dumps({"id": "u1", "email": "e", "name": "n"})})
        store = SessionStore(FailingChannel(), storage)
        outcome = store.logout()
        assert outcome.cookie is False
        assert outcome.storage is True
        assert store.token is None


class TestStoredUser:
    def test_token_without_user_is_not_authenticated(self) -> None:
        store = SessionStore(FailingChannel(), MemoryStorage({"authToken": "tok"}))
        assert store.is_authenticated is False

    @pytest.mark.parametrize("raw", ["{not json", "[]", '{"id": "u1"}', "null", '"just a string"'])
    def test_malformed_user_is_discarded(self, raw: str) -> None:
        storage = MemoryStorage({"authToken": "tok", USER_KEY: raw})
        store = SessionStore(FailingChannel(), storage)
        assert store.user is None
        assert storage.get_item(USER_KEY) is None
        assert store.is_authenticated is False
        assert storage.get_item("authToken") == "tok"


class TestRequestsCookieChannel:
    def test_cookie_attributes(self, store: SessionStore, jar: RequestsCookieJar) -> None:
        store.login("tok", _USER)
        (cookie,) = list(jar)
        assert cookie.path == "/"
        assert cookie.expires == int((_NOW + timedelta(days=7)).timestamp())
        assert cookie.get_nonstandard_attr("SameSite") == "Strict"

    def test_set_replaces_server_cookie(self, jar: RequestsCookieJar) -> None:
        jar.set("authToken", "from-server", domain="testserver", path="/")
        channel = RequestsCookieChannel(jar)
        channel.set("authToken", "from-client", _NOW + timedelta(days=7))
        assert [c.value for c in jar if c.name == "authToken"] == ["from-client"]


class TestFileStorage:
    def test_round_trip_across_instances(self, tmp_path: Path) -> None:
        path = tmp_path / "session.json"
        FileStorage(path).set_item("authToken", "tok")
        assert FileStorage(path).get_item("authToken") == "tok"
        FileStorage(path).remove_item("authToken")
        assert FileStorage(path).get_item("authToken") is None

    def test_corrupt_file_reads_as_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "session.json"
        path.write_text("{truncated", encoding="utf-8")
        storage = FileStorage(path)
        assert storage.get_item("authToken") is None
        storage.set_item("authToken", "tok")
        assert json.loads(path.read_text(encoding="utf-8")) == {"authToken": "tok"}

    def test_non_utf8_file_reads_as_logged_out(self, tmp_path: Path, jar: RequestsCookieJar) -> None:
        path = tmp_path / "session.json"
        path.write_bytes(b'{"authToken": "tok", "user": "\xff\xfe"}')
        store = SessionStore(RequestsCookieChannel(jar), FileStorage(path))
        assert store.token is None
        assert store.user is None
        assert store.is_authenticated is False
        store.login("tok", _USER)
        assert store.is_authenticated is True

    def test_session_store_over_file(self, tmp_path: Path, jar: RequestsCookieJar) -> None:
        path = tmp_path / "state" / "session.json"
        SessionStore(RequestsCookieChannel(jar), FileStorage(path)).login("tok", _USER)
        reloaded = SessionStore(RequestsCookieChannel(jar), FileStorage(path))
        assert reloaded.user == _USER
        assert reloaded.is_authenticated is True
