"""
auth/tokens.py -- Bearer token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id), email, iat and exp.
       Only HS256 is accepted on decode, which rules out "alg: none" and
       algorithm-confusion tricks.

  Time: both issue() and verify() take "now" from the caller instead of
       reading the clock. python-jose's own exp check is switched off and
       replaced by a comparison against that injected time, so expiry is
       deterministic and testable.

  Failures: verify() returns Err(TokenFailure) instead of raising. Exactly two
       kinds exist. EXPIRED means the signature checked out but the token is
       past exp; INVALID covers everything else (bad signature, garbage,
       missing claims). The signature is checked before any claim is looked at,
       so a forged token can never be reported as merely expired.

  SECRET_KEY: passed in by the caller (api/services.py reads it from
       core.config). The Settings class refuses to start in production
       without one and rejects keys shorter than 32 chars [M6][M7].

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from jose import JWTError, jwt

from auth.models import Identity, TokenClaim
from core.result import Err, Ok, Result

_ALGORITHM = "HS256"
_DEFAULT_TTL_SECONDS = 24 * 60 * 60


class TokenFailure(str, Enum):
    INVALID = "invalid"
    EXPIRED = "expired"


class TokenService:
    """Issues and verifies signed, time-bounded bearer tokens.

    The secret and TTL are fixed at construction; there is no way to change
    them on a live instance.

    Usage:
        tokens = TokenService(secret_key=settings.secret_key, ttl_seconds=86400)
        token = tokens.issue(Identity(id="...", email="a@x.com"), now)
        outcome = tokens.verify(token, now)
    """

    def __init__(self, secret_key: str, ttl_seconds: int = _DEFAULT_TTL_SECONDS) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        if ttl_seconds < 0:
            raise ValueError("ttl_seconds must be >= 0")
        self._secret_key = secret_key
        self._ttl_seconds = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, identity: Identity, now: datetime) -> str:
        """Encode a signed JWT for identity, valid from now for ttl_seconds."""
        issued_at = int(now.timestamp())
        payload = {
            "sub": identity.id,
            "email": identity.email,
            "iat": issued_at,
            "exp": issued_at + self._ttl_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str, now: datetime) -> Result[TokenClaim, TokenFailure]:
        """Verify signature, then structure, then expiry (in that order)."""
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[_ALGORITHM],
                options={"verify_exp": False},
            )
        except (JWTError, AttributeError, TypeError, ValueError):
            return Err(TokenFailure.INVALID)

        subject_id = payload.get("sub")
        email = payload.get("email")
        issued_at = payload.get("iat")
        expires_at = payload.get("exp")
        if not isinstance(subject_id, str) or not subject_id or not isinstance(email, str):
            return Err(TokenFailure.INVALID)
        if not _is_timestamp(issued_at) or not _is_timestamp(expires_at):
            return Err(TokenFailure.INVALID)

        if now.timestamp() >= expires_at:
            return Err(TokenFailure.EXPIRED)

        return Ok(
            TokenClaim(
                subject_id=subject_id,
                email=email,
                issued_at=datetime.fromtimestamp(issued_at, tz=timezone.utc),
                expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
            )
        )


def _is_timestamp(value) -> bool:
    # bool is an int subclass; a claim of "exp": true is not a timestamp.
    return isinstance(value, int) and not isinstance(value, bool)
