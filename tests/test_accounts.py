"""Unit tests for auth/accounts.py -- registration, login and profile.

AccountService methods are coroutines; each test drives them with
asyncio.run(). The store runs on a named shared-memory database because
store calls hop to worker threads via asyncio.to_thread().

Covers:
- validate_registration() messages, checked in order
- register(): success, duplicate email -> 409, hash never equals plaintext
- login(): success issues a verifiable token; unknown email and wrong
  password give the identical 401 with reason bad_credentials
- unknown-email login still runs one bcrypt verification
- profile(): 404 for an unknown id
"""

import asyncio
from datetime import datetime, timezone

import pytest

from auth.accounts import AccountService, validate_registration
from auth.passwords import CredentialHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError
from core.result import Err, Ok

NOW = datetime(2026, 2, 1, 8, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def accounts(store, hasher, tokens, pool) -> AccountService:
    return AccountService(store, hasher, tokens, pool, clock=lambda: NOW)


# ---------------------------------------------------------------------------
# validate_registration
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "email,password,message",
    [
        (None, "password123", "Email and password are required"),
        ("a@example.com", "", "Email and password are required"),
        ("not-an-email", "password123", "Invalid email format"),
        ("a@example", "password123", "Invalid email format"),
        ("a @example.com", "password123", "Invalid email format"),
        ("a@example.com\n", "password123", "Invalid email format"),
        ("\na@example.com", "password123", "Invalid email format"),
        ("a@example.com", "short", "Password must be at least 8 characters long"),
        ("a@example.com", "x" * 73, "Password must be at most 72 bytes long"),
        ("a@example.com", "é" * 40, "Password must be at most 72 bytes long"),
    ],
)
def test_validate_registration_rejects(email, password, message) -> None:
    problem = validate_registration(email, password)
    assert isinstance(problem, ValidationError)
    assert problem.message == message


def test_validate_registration_accepts() -> None:
    assert validate_registration("a@example.com", "password123") is None
    assert validate_registration("a@example.com", "x" * 72) is None


# ---------------------------------------------------------------------------
# register
# ---------------------------------------------------------------------------


class TestRegister:
    def test_register_stores_hash_not_plaintext(self, accounts, store, hasher) -> None:
        outcome = asyncio.run(accounts.register("new@example.com", "password123"))
        assert isinstance(outcome, Ok)
        record = outcome.value
        assert record.email == "new@example.com"
        assert record.password_hash != "password123"
        assert hasher.verify("password123", store.get_by_id(record.id).password_hash)

    def test_register_duplicate_is_conflict(self, accounts, store) -> None:
        first = asyncio.run(accounts.register("dup@example.com", "password123")).value
        outcome = asyncio.run(accounts.register("dup@example.com", "otherpass123"))
        assert isinstance(outcome, Err)
        assert isinstance(outcome.error, ConflictError)
        assert outcome.error.status_code == 409

        # The original account is untouched: same id, same hash, same password.
        stored = store.get_by_email("dup@example.com")
        assert (stored.id, stored.password_hash) == (first.id, first.password_hash)
        assert asyncio.run(accounts.login("dup@example.com", "password123")).value.identity.id == first.id
        assert isinstance(asyncio.run(accounts.login("dup@example.com", "otherpass123")).error, AuthenticationError)

    def test_register_invalid_is_validation_error(self, accounts, store) -> None:
        outcome = asyncio.run(accounts.register("bad", "password123"))
        assert isinstance(outcome.error, ValidationError)
        assert store.get_by_email("bad") is None


# ---------------------------------------------------------------------------
# login / profile
# ---------------------------------------------------------------------------


class TestLogin:
    def test_login_issues_verifiable_token(self, accounts, tokens: TokenService) -> None:
        registered = asyncio.run(accounts.register("login@example.com", "password123")).value
        outcome = asyncio.run(accounts.login("login@example.com", "password123"))
        assert isinstance(outcome, Ok)
        assert outcome.value.identity == registered.to_identity()

        claim = tokens.verify(outcome.value.token, NOW)
        assert isinstance(claim, Ok)
        assert claim.value.subject_id == registered.id

    def test_wrong_password_and_unknown_email_look_the_same(self, accounts) -> None:
        asyncio.run(accounts.register("known@example.com", "password123"))
        wrong = asyncio.run(accounts.login("known@example.com", "password999")).error
        unknown = asyncio.run(accounts.login("ghost@example.com", "password123")).error

        assert isinstance(wrong, AuthenticationError)
        assert isinstance(unknown, AuthenticationError)
        assert (wrong.message, wrong.reason) == (unknown.message, unknown.reason)
        assert wrong.reason == "bad_credentials"

    def test_unknown_email_still_runs_bcrypt(self, accounts, hasher: CredentialHasher, monkeypatch) -> None:
        calls = []
        real = hasher.verify_dummy

        def spy(password):
            calls.append(password)
            return real(password)

        monkeypatch.setattr(hasher, "verify_dummy", spy)
        asyncio.run(accounts.login("ghost@example.com", "password123"))
        assert calls == ["password123"]

    def test_login_missing_fields(self, accounts) -> None:
        outcome = asyncio.run(accounts.login("", "password123"))
        assert isinstance(outcome.error, ValidationError)


def test_profile_unknown_is_not_found(accounts) -> None:
    outcome = asyncio.run(accounts.profile("no-such-user"))
    assert isinstance(outcome.error, NotFoundError)
    assert outcome.error.message == "User not found"
