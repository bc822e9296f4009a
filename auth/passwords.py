"""
auth/passwords.py -- bcrypt credential hashing.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which current
bcrypt releases reject with an explicit error.

The cost factor is fixed per hasher instance (default 12). Each hash() call
draws a fresh salt; salt and cost are embedded in the output string, so
verify() needs nothing but the stored hash.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import bcrypt

# bcrypt only looks at the first 72 bytes; newer releases refuse longer input.
MAX_PASSWORD_BYTES = 72


class CredentialHasher:
    """Salted, adaptive one-way hashing of passwords.

    Usage:
        hasher = CredentialHasher(rounds=12)
        stored = hasher.hash("password123")
        hasher.verify("password123", stored)   # True
    """

    def __init__(self, rounds: int = 12) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31")
        self.rounds = rounds
        # Timing equalization dummy hash [C1]. Computed once so the first
        # unknown-email login is not measurably faster than later ones.
        self._dummy_hash = self.hash("tasktrack_timing_dummy")

    def hash(self, password: str) -> str:
        """Return a bcrypt hash of the given plaintext password.

        Raises ValueError for passwords longer than 72 bytes; AccountService
        rejects those with a 400 before they get here.
        """
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        """Constant-time comparison against a bcrypt hash.

        Fails closed: a malformed hash, a non-string argument, or input bcrypt
        refuses all count as a mismatch rather than an error.
        """
        try:
            return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
        except (AttributeError, TypeError, ValueError):
            return False

    def verify_dummy(self, password: str) -> bool:
        """Burn one verification's worth of CPU and return False.

        Called when the login email is unknown, so the response takes as long
        as a wrong-password response and does not reveal whether the account
        exists [C1].
        """
        self.verify(password, self._dummy_hash)
        return False
