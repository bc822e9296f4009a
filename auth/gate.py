"""
auth/gate.py -- Turn an Authorization header into a verified Identity.

IdentityGate is framework-free: it takes the raw header value and returns
Ok(Identity) or Err(AuthenticationError). auth/dependencies.py adapts it to
FastAPI. The gate never touches persistence; a token for a since-deleted
account still authenticates here, and GET /me reports the 404.

Reason mapping:
  header absent / not "Bearer <token>" / empty token  -> missing
  TokenFailure.EXPIRED                                -> expired
  TokenFailure.INVALID                                -> invalid
  anything unexpected while verifying                 -> failed

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from auth.models import Identity
from auth.tokens import TokenFailure, TokenService
from core.errors import AuthenticationError
from core.result import Err, Ok, Result
from core.workers import CpuPool

logger = logging.getLogger("tasktrack.auth.gate")

_SCHEME = "Bearer"

_FAILURE_ERRORS = {
    TokenFailure.EXPIRED: ("Token expired", "expired"),
    TokenFailure.INVALID: ("Invalid token", "invalid"),
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_bearer_token(authorization: str | None) -> str | None:
    """Return the token segment of a "Bearer <token>" header, or None.

    The scheme match is exact (case-sensitive, single space). An empty or
    whitespace-only token segment counts as no token.
    """
    if not authorization:
        return None
    scheme, sep, token = authorization.partition(" ")
    if scheme != _SCHEME or not sep:
        return None
    token = token.strip()
    return token or None


class IdentityGate:
    def __init__(
        self,
        tokens: TokenService,
        pool: CpuPool,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._tokens = tokens
        self._pool = pool
        self._clock = clock

    async def authenticate(self, authorization: str | None) -> Result[Identity, AuthenticationError]:
        token = extract_bearer_token(authorization)
        if token is None:
            return Err(
                AuthenticationError(
                    "Authentication required. Please provide a valid token.",
                    reason="missing",
                )
            )

        try:
            outcome = await self._pool.run(self._tokens.verify, token, self._clock())
        except Exception:
            # Internal detail goes to the log only; the caller gets a generic reason.
            logger.exception("Unexpected error while verifying bearer token")
            return Err(AuthenticationError("Authentication failed", reason="failed"))

        if isinstance(outcome, Err):
            message, reason = _FAILURE_ERRORS[outcome.error]
            return Err(AuthenticationError(message, reason=reason))
        return Ok(outcome.value.to_identity())
