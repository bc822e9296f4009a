"""
API request and response models for tasktrack REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Request models ignore unknown fields (extra="ignore"), so a client-supplied
user_id/owner_id/id on a task body is silently dropped and can never reach
the store.

Credential fields on RegisterRequest/LoginRequest are optional at this layer:
AccountService decides what is missing or malformed so every 400 carries the
same human-readable message regardless of which check tripped.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import Identity, UserRecord
from tasks.models import Task, TaskChanges, TaskDraft

# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Uniform error envelope returned on every 4xx/5xx response.

    reason is only present on 401s; stack only when DEBUG=true.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: str = "error"
    status_code: int = Field(serialization_alias="statusCode")
    code: str
    message: str
    reason: Optional[str] = None
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    # No whitespace stripping: spaces in a password are part of the secret.
    model_config = ConfigDict(extra="ignore")

    email: Optional[str] = Field(default=None, max_length=255)
    password: Optional[str] = Field(default=None, json_schema_extra={"format": "password"})


class LoginRequest(RegisterRequest):
    """Request body for POST /login."""


class UserOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    created_at: str
    updated_at: str

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserOut":
        return cls(id=record.id, email=record.email, created_at=record.created_at, updated_at=record.updated_at)


class IdentityOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str

    @classmethod
    def from_identity(cls, identity: Identity) -> "IdentityOut":
        return cls(id=identity.id, email=identity.email)


class UserResponse(BaseModel):
    """Response for POST /register and GET /me."""

    model_config = ConfigDict(frozen=True)

    user: UserOut


class LoginResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: IdentityOut


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    """Request body for POST /tasks."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    is_completed: bool = False
    due_date: Optional[datetime] = None

    def to_draft(self) -> TaskDraft:
        return TaskDraft(
            title=self.title,
            description=self.description,
            is_completed=self.is_completed,
            due_date=self.due_date.isoformat() if self.due_date else None,
        )


class TaskUpdate(BaseModel):
    """Request body for PUT/PATCH /tasks/{task_id}. Every field is optional.

    Only fields present in the JSON body are applied (model_fields_set).
    description and due_date may be set to null to clear them; title and
    is_completed may not.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    is_completed: Optional[bool] = None
    due_date: Optional[datetime] = None

    @field_validator("title", "is_completed")
    @classmethod
    def reject_null(cls, value):
        # Validators do not run on defaults, so this only fires for an explicit null.
        if value is None:
            raise ValueError("may not be null")
        return value

    def to_changes(self) -> TaskChanges:
        supplied = self.model_dump(include=self.model_fields_set)
        if supplied.get("due_date") is not None:
            supplied["due_date"] = supplied["due_date"].isoformat()
        return TaskChanges(**supplied)


class TaskOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    title: str
    description: Optional[str]
    is_completed: bool
    due_date: Optional[str]
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskOut":
        """Factory Method -- the domain-to-wire mapping lives beside the wire model."""
        return cls(
            id=task.id,
            user_id=task.owner_id,
            title=task.title,
            description=task.description,
            is_completed=task.is_completed,
            due_date=task.due_date,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    task: TaskOut


class TaskListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: int
    tasks: list[TaskOut]
