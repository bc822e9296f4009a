"""
api/routes/tasks.py -- Ownership-scoped task CRUD.

Routes:
  POST        /tasks            -- create a task owned by the caller; 201
  GET         /tasks            -- list the caller's tasks; 200
  GET         /tasks/{task_id}  -- one task; 200
  PUT | PATCH /tasks/{task_id}  -- partial update; 200
  DELETE      /tasks/{task_id}  -- delete; 204, no body

Every route requires a bearer token and passes ctx.identity.id to TaskStore,
which filters on (id, owner). Missing and foreign tasks both get the same
404 body [IDOR guard].

Handlers are plain def: FastAPI runs them on its threadpool, so the blocking
SQLAlchemy calls never sit on the event loop. The async auth dependency still
runs on the loop and offloads token verification to the CpuPool.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import TASK_RATE_LIMIT, limiter
from api.models import TaskCreate, TaskListResponse, TaskOut, TaskResponse, TaskUpdate
from api.services import get_services
from auth.dependencies import get_request_context
from auth.models import RequestContext
from core.errors import NotFoundError

router = APIRouter()

_TASK_NOT_FOUND = "Task not found"


@limiter.limit(TASK_RATE_LIMIT)
@router.post("/tasks", response_model=TaskResponse, status_code=201)
def create_task(
    request: Request,
    body: TaskCreate,
    ctx: RequestContext = Depends(get_request_context),
) -> TaskResponse:
    """Create a task. The owner is always the caller, whatever the body says."""
    task = get_services(request).tasks.create(ctx.identity.id, body.to_draft())
    return TaskResponse(task=TaskOut.from_task(task))


@router.get("/tasks", response_model=TaskListResponse)
def list_tasks(request: Request, ctx: RequestContext = Depends(get_request_context)) -> TaskListResponse:
    tasks = get_services(request).tasks.list_for_owner(ctx.identity.id)
    return TaskListResponse(results=len(tasks), tasks=[TaskOut.from_task(t) for t in tasks])


@router.get("/tasks/{task_id}", response_model=TaskResponse)
def get_task(request: Request, task_id: str, ctx: RequestContext = Depends(get_request_context)) -> TaskResponse:
    task = get_services(request).tasks.get(task_id, ctx.identity.id)
    if task is None:
        raise NotFoundError(_TASK_NOT_FOUND)
    return TaskResponse(task=TaskOut.from_task(task))


@router.api_route("/tasks/{task_id}", methods=["PUT", "PATCH"], response_model=TaskResponse)
def update_task(
    request: Request,
    task_id: str,
    body: TaskUpdate,
    ctx: RequestContext = Depends(get_request_context),
) -> TaskResponse:
    """Apply only the fields present in the body; updated_at is always refreshed."""
    task = get_services(request).tasks.update(task_id, ctx.identity.id, body.to_changes())
    if task is None:
        raise NotFoundError(_TASK_NOT_FOUND)
    return TaskResponse(task=TaskOut.from_task(task))


@router.delete("/tasks/{task_id}", status_code=204)
def delete_task(request: Request, task_id: str, ctx: RequestContext = Depends(get_request_context)) -> Response:
    if not get_services(request).tasks.delete(task_id, ctx.identity.id):
        raise NotFoundError(_TASK_NOT_FOUND)
    return Response(status_code=204)
