"""Integration tests for api/routes/auth.py -- signup, login, me.

Covers:
- Signup returns 201 {token, user}, normalizes email, sets the authToken cookie
- Duplicate signup (any casing) returns 409 CONFLICT
- Login: wrong password and unknown email give the identical 401
- Validation failures are 400 VALIDATION_ERROR with per-field details
- Responses carrying a token are Cache-Control: no-store
- /me requires an exact "Bearer " header and reports reason-specific 401s
- The authToken cookie alone never authenticates an API call
"""

from datetime import datetime, timedelta, timezone

from fastapi.testclient import TestClient

from auth.tokens import TokenService
from conftest import TEST_PASSWORD, signup, unique_email


def _bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestSignup:
    def test_signup_created(self, api_client: TestClient) -> None:
        email = unique_email("signup")
        resp = signup(api_client, email)
        assert resp.status_code == 201
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "User created successfully"
        assert body["data"]["user"]["email"] == email
        assert body["data"]["user"]["name"] == "Jo Tester"
        assert body["data"]["token"]
        assert "password" not in str(body["data"]["user"]).lower()
        assert body["timestamp"].endswith("Z")

    def test_signup_normalizes_email(self, api_client: TestClient) -> None:
        local = unique_email("MiXeD").split("@")[0]
        resp = signup(api_client, f"  {local.upper()}@Test.COM ")
        assert resp.status_code == 201
        assert resp.json()["data"]["user"]["email"] == f"{local.lower()}@test.com"

    def test_signup_sets_cookie_and_no_store(self, api_client: TestClient) -> None:
        resp = signup(api_client, unique_email("cookie"))
        cookie = resp.headers["set-cookie"]
        assert cookie.startswith(f"authToken={resp.json()['data']['token']}")
        assert "Path=/" in cookie
        assert "SameSite=strict" in cookie
        assert "HttpOnly" in cookie
        assert resp.headers["cache-control"] == "no-store"

    def test_duplicate_email_conflicts(self, api_client: TestClient) -> None:
        email = unique_email("dup")
        assert signup(api_client, email).status_code == 201
        resp = signup(api_client, email.upper(), name="Someone Else")
        assert resp.status_code == 409
        body = resp.json()
        assert body["success"] is False
        assert body["code"] == "CONFLICT"
        assert body["status"] == 409
        assert email in body["error"]

    def test_weak_password_is_validation_error(self, api_client: TestClient) -> None:
        resp = signup(api_client, unique_email("weak"), password="password")
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "VALIDATION_ERROR"
        assert body["error"] == "Invalid input data"
        assert "password" in body["details"]["validationErrors"]

    def test_invalid_json_body(self, api_client: TestClient) -> None:
        resp = api_client.post(
            "/api/auth/signup", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert resp.status_code == 400
        assert resp.json()["details"]["validationErrors"] == {"body": "Request body must be valid JSON"}

    def test_array_body(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/signup", json=["jo@test.com"])
        assert resp.status_code == 400
        assert "body" in resp.json()["details"]["validationErrors"]


class TestLogin:
    def test_login_success(self, api_client: TestClient) -> None:
        email = unique_email("login")
        signup(api_client, email)
        resp = api_client.post("/api/auth/login", json={"email": email.upper(), "password": TEST_PASSWORD})
        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Login successful"
        assert body["data"]["user"]["email"] == email
        assert resp.headers["cache-control"] == "no-store"
        assert "authToken=" in resp.headers["set-cookie"]

    def test_wrong_password_and_unknown_email_identical(self, api_client: TestClient) -> None:
        email = unique_email("enum")
        signup(api_client, email)
        wrong = api_client.post("/api/auth/login", json={"email": email, "password": "Wrong1!pass"})
        unknown = api_client.post(
            "/api/auth/login", json={"email": unique_email("ghost"), "password": "Wrong1!pass"}
        )
        assert wrong.status_code == unknown.status_code == 401
        for resp in (wrong, unknown):
            body = resp.json()
            assert body["error"] == "Invalid email or password"
            assert body["code"] == "UNAUTHORIZED"
            assert "details" not in body
            assert "set-cookie" not in resp.headers
            assert resp.headers["cache-control"] == "no-store"

    def test_long_password_signup_and_login(self, api_client: TestClient) -> None:
        email = unique_email("long")
        password = "Aa1!" + "x" * 80
        assert signup(api_client, email, password=password).status_code == 201
        resp = api_client.post("/api/auth/login", json={"email": email, "password": password})
        assert resp.status_code == 200
        assert resp.json()["data"]["user"]["email"] == email

    def test_missing_password_is_validation_error(self, api_client: TestClient) -> None:
        resp = api_client.post("/api/auth/login", json={"email": "jo@test.com", "password": ""})
        assert resp.status_code == 400
        assert resp.json()["details"]["validationErrors"] == {"password": "Password is required"}


class TestMe:
    def test_me_with_bearer(self, api_client: TestClient) -> None:
        email = unique_email("me")
        token = signup(api_client, email).json()["data"]["token"]
        resp = api_client.get("/api/auth/me", headers=_bearer(token))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["email"] == email
        assert set(data) == {"id", "email", "name"}

    def test_lowercase_bearer_is_missing_token(self, api_client: TestClient) -> None:
        token = signup(api_client, unique_email("lower")).json()["data"]["token"]
        resp = api_client.get("/api/auth/me", headers={"Authorization": f"bearer {token}"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Unauthorized: Please provide a valid authentication token"

    def test_cookie_alone_does_not_authenticate(self, api_client: TestClient) -> None:
        token = signup(api_client, unique_email("cookieonly")).json()["data"]["token"]
        api_client.cookies.set("authToken", token)
        try:
            resp = api_client.get("/api/auth/me")
        finally:
            api_client.cookies.clear()
        assert resp.status_code == 401

    def test_garbage_token_is_invalid(self, api_client: TestClient) -> None:
        resp = api_client.get("/api/auth/me", headers=_bearer("garbage"))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid token"

    def test_expired_token(self, api_client: TestClient) -> None:
        email = unique_email("expired")
        user_id = signup(api_client, email).json()["data"]["user"]["id"]
        past = TokenService(
            api_client.app.state.settings,
            clock=lambda: datetime.now(timezone.utc) - timedelta(days=8),
        )
        resp = api_client.get("/api/auth/me", headers=_bearer(past.issue(user_id, email)))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Token has expired"

    def test_token_for_unknown_user_is_invalid(self, api_client: TestClient) -> None:
        token = api_client.app.state.tokens.issue("no-such-user", "ghost@test.com")
        resp = api_client.get("/api/auth/me", headers=_bearer(token))
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid token"
