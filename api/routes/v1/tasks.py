"""
api/routes/v1/tasks.py -- Task CRUD routes for the TaskGate REST API.

Routes (mounted under /api/tasks):
  GET    /            -- list tasks, newest first
  POST   /            -- create task
  GET    /{task_id}   -- task detail
  PUT    /{task_id}   -- replace editable fields
  DELETE /{task_id}   -- delete task

Every route sits behind the session gate (router-level dependency).
PUT checks existence before validating the body, so an unknown id is a 404
even when the body is also invalid.
Bodies are validated in the handlers, not by FastAPI, so a 400 lists every
failing field rather than only the first.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Request, Response

from api.models import TaskResponse
from api.validation import validate_task_body
from auth.dependencies import require_session
from core.errors import InternalError, NotFound
from tasks.models import Task
from tasks.store import TaskStore

# Router-level dependency applies to every route registered on this router,
# so individual handlers don't each need to repeat Depends(require_session).
router = APIRouter(dependencies=[Depends(require_session)])

TaskId = Annotated[int, Path(gt=0, description="Positive task id")]


def _get_or_404(store: TaskStore, task_id: int) -> Task:
    task = store.get_task(task_id)
    if task is None:
        raise NotFound("Task not found.")
    return task


@router.get("", response_model=list[TaskResponse])
def list_tasks(request: Request) -> list[TaskResponse]:
    store: TaskStore = request.app.state.task_store
    return [TaskResponse.from_task(t) for t in store.list_tasks()]


@router.post("", response_model=TaskResponse, status_code=201)
def create_task(request: Request, payload: Any = Body(default=None)) -> TaskResponse:
    body = validate_task_body(payload)
    store: TaskStore = request.app.state.task_store
    task_id = store.create_task(body.to_task())
    return TaskResponse.from_task(_get_or_404(store, task_id))


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(request: Request, task_id: TaskId) -> TaskResponse:
    store: TaskStore = request.app.state.task_store
    return TaskResponse.from_task(_get_or_404(store, task_id))


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(request: Request, task_id: TaskId, payload: Any = Body(default=None)) -> TaskResponse:
    """Replace a task's editable fields.

    The body is taken raw and validated only after the 404 check.
    """
    store: TaskStore = request.app.state.task_store
    _get_or_404(store, task_id)

    body = validate_task_body(payload)

    if not store.update_task(task_id, body.to_task()):
        raise InternalError("Task could not be updated.")
    return TaskResponse.from_task(_get_or_404(store, task_id))


@router.delete("/{task_id}", status_code=204)
def delete_task(request: Request, task_id: TaskId) -> Response:
    store: TaskStore = request.app.state.task_store
    _get_or_404(store, task_id)
    store.delete_task(task_id)
    return Response(status_code=204)
