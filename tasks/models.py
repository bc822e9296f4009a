"""
tasks/models.py -- Domain dataclasses for user-owned tasks.

Pure data containers. All ownership enforcement lives in tasks/store.py.

TaskDraft has no owner field on purpose: the only way to give a task an owner
is the owner_id argument of TaskStore.create(), which routes fill from the
authenticated identity.

TaskChanges is the partial-update descriptor. Every field defaults to UNSET;
only fields that were actually supplied end up in the UPDATE statement.
None is a real value (e.g. clearing a description), distinct from UNSET.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Optional


class _Unset:
    _instance: Optional["_Unset"] = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass
class Task:
    """A task owned by exactly one identity. owner_id never changes."""

    id: str
    owner_id: str
    title: str
    description: Optional[str] = None
    is_completed: bool = False
    due_date: Optional[str] = None  # ISO 8601
    created_at: str = ""  # ISO 8601, set by store on insert
    updated_at: str = ""


@dataclass(frozen=True)
class TaskDraft:
    title: str
    description: Optional[str] = None
    is_completed: bool = False
    due_date: Optional[str] = None


@dataclass(frozen=True)
class TaskChanges:
    title: Any = UNSET
    description: Any = UNSET
    is_completed: Any = UNSET
    due_date: Any = UNSET

    def as_values(self) -> dict[str, Any]:
        """Return {column: value} for the supplied fields only."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not UNSET}
