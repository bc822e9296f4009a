"""
core/result.py -- Tagged success/failure values.

Core components (TokenService, IdentityGate, AccountService) return Ok or Err
instead of raising for expected failures. The outcome travels through
awaits and executor hops as a plain value; only the HTTP layer turns an Err
carrying an AppError back into an exception, via unwrap().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from core.errors import AppError

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E


Result = Union[Ok[T], Err[E]]


def unwrap(result: Result[T, AppError]) -> T:
    """Return the Ok value or raise the AppError carried by Err."""
    if isinstance(result, Err):
        raise result.error
    return result.value
