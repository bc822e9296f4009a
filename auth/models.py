"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores, the token
service and routes do the work; these only own the shape.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Identity:
    """The authenticated representation of an account: who the caller is.

    Deliberately carries no credential material. This is what the gate hands
    to route handlers and what the token service signs.
    """

    id: str
    email: str


@dataclass
class UserRecord:
    """A stored identity record.

    password_hash is the bcrypt string produced by CredentialHasher. It never
    leaves the store/hasher boundary: API response models are built from the
    other fields only.
    """

    id: str
    email: str
    password_hash: str
    created_at: str  # ISO 8601, set by store on insert
    updated_at: str

    def to_identity(self) -> Identity:
        return Identity(id=self.id, email=self.email)


@dataclass(frozen=True)
class TokenClaim:
    """Decoded contents of a verified bearer token. Immutable once issued."""

    subject_id: str
    email: str
    issued_at: datetime
    expires_at: datetime

    def to_identity(self) -> Identity:
        return Identity(id=self.subject_id, email=self.email)


@dataclass(frozen=True)
class RequestContext:
    """Per-request value built once by the auth dependency.

    Route handlers receive it explicitly through Depends(); nothing is stashed
    on the Request object, and nothing outlives the request.
    """

    identity: Identity


@dataclass(frozen=True)
class LoginResult:
    token: str
    identity: Identity
