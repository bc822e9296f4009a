"""
tasks/store.py -- SQLAlchemy-backed persistence for user-owned tasks.

Uses SQLAlchemy Core (not ORM) so the dataclasses in tasks/models.py remain
the authoritative domain representation.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Ownership contract (IDOR guard):
  Every read, update and delete takes both task_id and owner_id, and both
  appear in the WHERE clause of the one statement that touches the row. There
  is no "fetch by id, then compare owner" step that a caller could skip.
  A task owned by someone else yields exactly what a missing task yields
  (None / False), so callers cannot tell the two apart.

Atomicity: each write runs inside a single engine.begin() transaction. An
update is the UPDATE plus the re-read, committed together.

Security: all queries use bound parameters. No f-strings in SQL.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import Boolean, Column, Index, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from tasks.models import Task, TaskChanges, TaskDraft

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", String(36), primary_key=True),  # UUID4
    Column("user_id", String(36), nullable=False),  # owning users.id
    Column("title", String(255), nullable=False),
    Column("description", Text),
    Column("is_completed", Boolean, nullable=False, server_default="0"),
    Column("due_date", String(32)),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Index("ix_tasks_user_id", "user_id"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _owned(task_id: str, owner_id: str):
    return (_tasks.c.id == task_id) & (_tasks.c.user_id == owner_id)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TaskStore:
    """Ownership-scoped repository for Task entities.

    Usage:
        store = TaskStore(engine)
        task = store.create(identity.id, TaskDraft(title="Write docs"))
        store.get(task.id, identity.id)                    # Task
        store.get(task.id, "someone-else")                 # None
        store.update(task.id, identity.id, TaskChanges(is_completed=True))
        store.delete(task.id, identity.id)                 # True
    """

    def __init__(self, engine: Engine, clock: Callable[[], datetime] = _utcnow) -> None:
        self.engine = engine
        self._clock = clock
        metadata.create_all(self.engine)

    def create(self, owner_id: str, draft: TaskDraft) -> Task:
        """Insert a task owned by owner_id and return it."""
        now = self._clock().isoformat()
        task = Task(
            id=str(uuid.uuid4()),
            owner_id=owner_id,
            title=draft.title,
            description=draft.description,
            is_completed=draft.is_completed,
            due_date=draft.due_date,
            created_at=now,
            updated_at=now,
        )
        with self.engine.begin() as conn:
            conn.execute(
                _tasks.insert().values(
                    id=task.id,
                    user_id=task.owner_id,
                    title=task.title,
                    description=task.description,
                    is_completed=task.is_completed,
                    due_date=task.due_date,
                    created_at=task.created_at,
                    updated_at=task.updated_at,
                )
            )
        return task

    def list_for_owner(self, owner_id: str) -> list[Task]:
        """Return all tasks owned by owner_id, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tasks.select().where(_tasks.c.user_id == owner_id).order_by(_tasks.c.created_at.desc())
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    def get(self, task_id: str, owner_id: str) -> Optional[Task]:
        """Fetch a task by id if owner_id owns it. Returns None otherwise."""
        with self.engine.connect() as conn:
            row = conn.execute(_tasks.select().where(_owned(task_id, owner_id))).fetchone()
        return _row_to_task(row) if row is not None else None

    def update(self, task_id: str, owner_id: str, changes: TaskChanges) -> Optional[Task]:
        """Apply the supplied fields of changes and refresh updated_at.

        Returns the updated Task, or None if the task does not exist or
        belongs to someone else (in which case nothing is written).
        """
        values = changes.as_values()
        values["updated_at"] = self._clock().isoformat()
        with self.engine.begin() as conn:
            result = conn.execute(_tasks.update().where(_owned(task_id, owner_id)).values(**values))
            if result.rowcount == 0:
                return None
            row = conn.execute(_tasks.select().where(_owned(task_id, owner_id))).fetchone()
        return _row_to_task(row)

    def delete(self, task_id: str, owner_id: str) -> bool:
        """Delete a task owner_id owns. Returns False if not found or not owned."""
        with self.engine.begin() as conn:
            result = conn.execute(_tasks.delete().where(_owned(task_id, owner_id)))
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        owner_id=row.user_id,
        title=row.title,
        description=row.description,
        is_completed=bool(row.is_completed),
        due_date=row.due_date,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
