"""
core/errors.py -- Domain error taxonomy.

Every error a caller can see is one of these. Each carries an HTTP status,
a machine-readable code, and a message that is safe to show to end users.
api/main.py renders all of them through one exception handler, so route code
never builds error JSON by hand.

NotFoundError is used both for rows that do not exist and for rows owned by
someone else. Keeping the two indistinguishable stops callers from probing
which task ids exist under other accounts.

Layer rule: no imports from api/, auth/, or tasks/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    default_message = "Request validation failed."


class AuthenticationError(AppError):
    """Missing, malformed, invalid, or expired credentials.

    reason is one of: missing, invalid, expired, failed, bad_credentials.
    Clients may use it to decide whether to prompt for a fresh login
    (expired) or to treat the credential as unusable (everything else).
    """

    status_code = 401
    code = "unauthenticated"
    default_message = "Authentication required."

    def __init__(self, message: str | None = None, reason: str = "missing") -> None:
        super().__init__(message)
        self.reason = reason


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Resource not found."


class InternalError(AppError):
    status_code = 500
    code = "internal_error"
    default_message = "An unexpected error occurred."
