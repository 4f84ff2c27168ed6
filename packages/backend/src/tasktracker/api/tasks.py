"""Task API routes.

Learn: Routes just translate HTTP to service calls. Each handler receives
the AuthenticatedUser and builds a TaskService bound to it, so there is no
code path that touches a task without an owner filter. NotFound raised by
the service becomes a 404 in the app's error handlers.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.dependencies import AuthenticatedUser, get_current_user
from tasktracker.db.engine import get_db
from tasktracker.schemas.task import TaskCreate, TaskDeleted, TaskRead, TaskUpdate
from tasktracker.services.task_service import TaskPatch, TaskService

router = APIRouter(prefix="/tasks")


def _task_svc(
    db: AsyncSession = Depends(get_db),
    user: AuthenticatedUser = Depends(get_current_user),
) -> TaskService:
    return TaskService(db, owner=user)


@router.post("", response_model=TaskRead)
async def create_task(body: TaskCreate, svc: TaskService = Depends(_task_svc)):
    """Create a task owned by the caller."""
    return await svc.create_task(body)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    svc: TaskService = Depends(_task_svc),
):
    """List the caller's tasks, oldest first."""
    return await svc.list_tasks(skip=skip, limit=limit)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(task_id: int, svc: TaskService = Depends(_task_svc)):
    """Get a single task by ID."""
    return await svc.get_task(task_id)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int,
    body: TaskUpdate,
    svc: TaskService = Depends(_task_svc),
):
    """Partially update a task — omitted fields keep their current values."""
    return await svc.update_task(task_id, TaskPatch.from_update(body))


@router.delete("/{task_id}", response_model=TaskDeleted)
async def delete_task(task_id: int, svc: TaskService = Depends(_task_svc)):
    """Delete a task."""
    await svc.delete_task(task_id)
    return TaskDeleted()
