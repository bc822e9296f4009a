"""
tests/test_api_auth.py -- Integration tests for /register, /login and /me.

These tests exercise the full stack: FastAPI routing -> request models ->
AccountService / IdentityGate -> exception handlers -> error envelope.

Coverage:
  - Register: 201 without password material, 400 per validation rule, 409 duplicate
  - Login: 200 with token + Cache-Control no-store; identical 401 for bad
    password and unknown email
  - /me: 200 with token; 401 reasons missing / invalid / expired with
    WWW-Authenticate: Bearer
  - Error envelope shape, including the DEBUG-only stack field

Fixtures used (from conftest.py):
  - api_client: TestClient against an isolated in-memory database
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from auth.models import Identity
from auth.tokens import TokenService

from .conftest import auth_header, register_and_login


def _email() -> str:
    return f"user-{uuid.uuid4().hex[:8]}@example.com"


def _assert_error(resp, status: int, code: str) -> dict:
    assert resp.status_code == status, f"Expected {status}, got {resp.status_code}: {resp.text}"
    data = resp.json()
    assert data["status"] == "error"
    assert data["statusCode"] == status
    assert data["code"] == code
    assert isinstance(data["message"], str) and data["message"]
    return data


class TestRegister:
    def test_register_returns_user_without_password(self, api_client: TestClient) -> None:
        email = _email()
        resp = api_client.post("/register", json={"email": email, "password": "password123"})
        assert resp.status_code == 201, resp.text
        user = resp.json()["user"]
        assert user["email"] == email
        assert set(user) == {"id", "email", "created_at", "updated_at"}
        assert "password123" not in resp.text

    def test_register_duplicate_email_conflicts(self, api_client: TestClient) -> None:
        email = _email()
        first = api_client.post("/register", json={"email": email, "password": "password123"}).json()["user"]
        resp = api_client.post("/register", json={"email": email, "password": "different123"})
        data = _assert_error(resp, 409, "conflict")
        assert data["message"] == "Email already in use"

        # The first registration still owns the address with its own password.
        login = api_client.post("/login", json={"email": email, "password": "password123"})
        assert login.status_code == 200
        assert login.json()["user"]["id"] == first["id"]
        rejected = api_client.post("/login", json={"email": email, "password": "different123"})
        assert _assert_error(rejected, 401, "unauthenticated")["reason"] == "bad_credentials"

    def test_register_trailing_newline_email_rejected(self, api_client: TestClient) -> None:
        """A look-alike address with a trailing newline is malformed, not a second account."""
        email = _email()
        api_client.post("/register", json={"email": email, "password": "password123"})
        resp = api_client.post("/register", json={"email": email + "\n", "password": "password123"})
        assert _assert_error(resp, 400, "validation_error")["message"] == "Invalid email format"

    def test_register_short_password(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json={"email": _email(), "password": "short"})
        data = _assert_error(resp, 400, "validation_error")
        assert data["message"] == "Password must be at least 8 characters long"

    def test_register_bad_email(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json={"email": "nope", "password": "password123"})
        assert _assert_error(resp, 400, "validation_error")["message"] == "Invalid email format"

    def test_register_missing_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", json={})
        assert _assert_error(resp, 400, "validation_error")["message"] == "Email and password are required"

    def test_register_non_json_body(self, api_client: TestClient) -> None:
        resp = api_client.post("/register", content=b"not json", headers={"Content-Type": "application/json"})
        _assert_error(resp, 400, "validation_error")


class TestLogin:
    def test_login_returns_token_and_no_store(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/register", json={"email": email, "password": "password123"})
        resp = api_client.post("/login", json={"email": email, "password": "password123"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["token"].count(".") == 2
        assert data["user"]["email"] == email
        assert resp.headers["cache-control"] == "no-store"

    def test_bad_password_and_unknown_email_identical(self, api_client: TestClient) -> None:
        email = _email()
        api_client.post("/register", json={"email": email, "password": "password123"})

        wrong = api_client.post("/login", json={"email": email, "password": "wrongpass123"})
        unknown = api_client.post("/login", json={"email": _email(), "password": "password123"})

        for resp in (wrong, unknown):
            data = _assert_error(resp, 401, "unauthenticated")
            assert data["reason"] == "bad_credentials"
        body_wrong = {k: v for k, v in wrong.json().items() if k != "stack"}
        body_unknown = {k: v for k, v in unknown.json().items() if k != "stack"}
        assert body_wrong == body_unknown

    def test_login_missing_fields(self, api_client: TestClient) -> None:
        resp = api_client.post("/login", json={"email": _email()})
        _assert_error(resp, 400, "validation_error")


class TestMe:
    def test_me_with_token(self, api_client: TestClient) -> None:
        token, uid = register_and_login(api_client)
        resp = api_client.get("/me", headers=auth_header(token))
        assert resp.status_code == 200, resp.text
        assert resp.json()["user"]["id"] == uid

    def test_me_without_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/me")
        data = _assert_error(resp, 401, "unauthenticated")
        assert data["reason"] == "missing"
        assert resp.headers["www-authenticate"] == "Bearer"

    def test_me_wrong_scheme(self, api_client: TestClient) -> None:
        token, _uid = register_and_login(api_client)
        resp = api_client.get("/me", headers={"Authorization": f"Token {token}"})
        assert _assert_error(resp, 401, "unauthenticated")["reason"] == "missing"

    def test_me_malformed_token(self, api_client: TestClient) -> None:
        resp = api_client.get("/me", headers=auth_header("garbage.token.value"))
        data = _assert_error(resp, 401, "unauthenticated")
        assert data["reason"] == "invalid"
        assert data["message"] == "Invalid token"

    def test_me_expired_token(self, api_client: TestClient) -> None:
        _token, uid = register_and_login(api_client)
        expired = TokenService(secret_key=os.environ["SECRET_KEY"], ttl_seconds=0).issue(
            Identity(id=uid, email="whoever@example.com"), datetime.now(timezone.utc)
        )
        resp = api_client.get("/me", headers=auth_header(expired))
        data = _assert_error(resp, 401, "unauthenticated")
        assert data["reason"] == "expired"
        assert data["message"] == "Token expired"

    def test_me_for_vanished_account(self, api_client: TestClient) -> None:
        """A validly signed token for an id with no stored account gets 404."""
        token = TokenService(secret_key=os.environ["SECRET_KEY"], ttl_seconds=60).issue(
            Identity(id=str(uuid.uuid4()), email="ghost@example.com"), datetime.now(timezone.utc)
        )
        resp = api_client.get("/me", headers=auth_header(token))
        assert _assert_error(resp, 404, "not_found")["message"] == "User not found"


class TestErrorEnvelope:
    def test_debug_mode_includes_stack(self, api_client: TestClient) -> None:
        """The suite runs with DEBUG=true, so errors carry a stack."""
        data = _assert_error(api_client.get("/me"), 401, "unauthenticated")
        assert "AuthenticationError" in data["stack"]

    def test_unknown_route_uses_envelope(self, api_client: TestClient) -> None:
        _assert_error(api_client.get("/does-not-exist"), 404, "http_404")
