"""
auth/accounts.py -- Registration, login and profile lookup.

AccountService composes UserStore, CredentialHasher and TokenService. Every
public method returns Ok(...) or Err(AppError); nothing here raises for an
expected failure. Blocking work is moved off the event loop: bcrypt and JWT
signing go to the bounded CpuPool, store calls go through asyncio.to_thread.

Security:
  [C1] login() always runs exactly one bcrypt verification, against the real
       hash or the hasher's dummy hash, so response time does not reveal
       whether an email is registered.
  Unknown email and wrong password produce the same AuthenticationError
  message, so the response body does not reveal it either.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy.exc import IntegrityError

from auth.models import LoginResult, UserRecord
from auth.passwords import MAX_PASSWORD_BYTES, CredentialHasher
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import AppError, AuthenticationError, ConflictError, NotFoundError, ValidationError
from core.result import Err, Ok, Result
from core.workers import CpuPool

logger = logging.getLogger("tasktrack.auth.accounts")

# fullmatch only: "$" alone would also accept a trailing newline.
EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
MIN_PASSWORD_LENGTH = 8

_BAD_CREDENTIALS = "Invalid email or password"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_registration(email: str | None, password: str | None) -> ValidationError | None:
    """Return the first problem with a registration payload, or None."""
    if not email or not password:
        return ValidationError("Email and password are required")
    if not EMAIL_PATTERN.fullmatch(email):
        return ValidationError("Invalid email format")
    if len(password) < MIN_PASSWORD_LENGTH:
        return ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes long")
    return None


class AccountService:
    def __init__(
        self,
        store: UserStore,
        hasher: CredentialHasher,
        tokens: TokenService,
        pool: CpuPool,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._pool = pool
        self._clock = clock

    async def register(self, email: str | None, password: str | None) -> Result[UserRecord, AppError]:
        problem = validate_registration(email, password)
        if problem is not None:
            return Err(problem)

        # Cheap pre-check so a duplicate does not cost a bcrypt round.
        if await asyncio.to_thread(self._store.get_by_email, email) is not None:
            return Err(ConflictError("Email already in use"))

        password_hash = await self._pool.run(self._hasher.hash, password)
        try:
            record = await asyncio.to_thread(self._store.create_user, email, password_hash)
        except IntegrityError:
            # Lost a race with a concurrent registration of the same email.
            return Err(ConflictError("Email already in use"))

        logger.info("Registered user %s", record.id)
        return Ok(record)

    async def login(self, email: str | None, password: str | None) -> Result[LoginResult, AppError]:
        if not email or not password:
            return Err(ValidationError("Email and password are required"))

        record = await asyncio.to_thread(self._store.get_by_email, email)
        if record is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            await self._pool.run(self._hasher.verify_dummy, password)
            logger.info("Login rejected")
            return Err(AuthenticationError(_BAD_CREDENTIALS, reason="bad_credentials"))

        if not await self._pool.run(self._hasher.verify, password, record.password_hash):
            logger.info("Login rejected")
            return Err(AuthenticationError(_BAD_CREDENTIALS, reason="bad_credentials"))

        identity = record.to_identity()
        token = await self._pool.run(self._tokens.issue, identity, self._clock())
        logger.info("Login: %s", record.id)
        return Ok(LoginResult(token=token, identity=identity))

    async def profile(self, user_id: str) -> Result[UserRecord, AppError]:
        record = await asyncio.to_thread(self._store.get_by_id, user_id)
        if record is None:
            return Err(NotFoundError("User not found"))
        return Ok(record)
