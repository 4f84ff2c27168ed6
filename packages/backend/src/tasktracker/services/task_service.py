"""Task service — owner-scoped task CRUD.

Learn: Ownership is not a separate check bolted onto handlers; it is part
of every query this service runs. A TaskService is constructed for one
authenticated user, and:

- create  forces owner_id to that user (clients can't choose it)
- list    filters on owner_id
- get / update / delete  look up by (id AND owner_id)

So another user's task and a task that doesn't exist produce the same
NotFound. The API never answers "forbidden", which would confirm to a
non-owner that the id exists.

Partial updates go through TaskPatch, a value type that records which
fields were actually supplied. The merge is pure (no database), so it can
be tested on its own.
"""

from dataclasses import dataclass
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.dependencies import AuthenticatedUser
from tasktracker.db.models import Task
from tasktracker.errors import NotFound
from tasktracker.schemas.task import TaskCreate, TaskUpdate

logger = structlog.get_logger()


class _Unset:
    """Marker for "field not supplied" — distinct from an explicit None."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


@dataclass(frozen=True)
class TaskPatch:
    """A partial update: each field is either UNSET or a new value."""

    title: Any = UNSET
    description: Any = UNSET
    completed: Any = UNSET

    @classmethod
    def from_update(cls, body: TaskUpdate) -> "TaskPatch":
        return cls(**body.model_dump(exclude_unset=True))

    def changes(self) -> dict[str, Any]:
        """Supplied fields only, as ``{name: value}``."""
        return {
            name: value
            for name, value in (
                ("title", self.title),
                ("description", self.description),
                ("completed", self.completed),
            )
            if value is not UNSET
        }

    def is_empty(self) -> bool:
        return not self.changes()

    def apply(self, task: Task) -> dict[str, Any]:
        """Write supplied fields onto ``task``; return the fields that differ."""
        changed = {}
        for name, value in self.changes().items():
            if getattr(task, name) != value:
                changed[name] = value
            setattr(task, name, value)
        return changed


class TaskService:
    """Business logic for tasks, bound to one owner."""

    def __init__(self, db: AsyncSession, owner: AuthenticatedUser):
        self.db = db
        self.owner = owner

    # ─── Create ──────────────────────────────────────────

    async def create_task(self, body: TaskCreate) -> Task:
        task = Task(
            title=body.title,
            description=body.description,
            completed=body.completed,
            owner_id=self.owner.id,
        )
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        logger.info("task.created", task_id=task.id, owner_id=self.owner.id)
        return task

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(self, skip: int = 0, limit: int = 100) -> list[Task]:
        query = (
            select(Task)
            .where(Task.owner_id == self.owner.id)
            .order_by(Task.id)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_task(self, task_id: int) -> Task:
        """Fetch one of the owner's tasks. Raises NotFound otherwise."""
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.owner_id == self.owner.id)
        )
        task = result.scalars().first()
        if task is None:
            raise NotFound("Task not found")
        return task

    # ─── Update ──────────────────────────────────────────

    async def update_task(self, task_id: int, patch: TaskPatch) -> Task:
        """Apply a partial update. An empty patch returns the task unchanged."""
        task = await self.get_task(task_id)
        if patch.is_empty():
            return task

        changed = patch.apply(task)
        await self.db.commit()
        await self.db.refresh(task)
        if changed:
            logger.info("task.updated", task_id=task_id, fields=sorted(changed))
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task_id: int) -> None:
        result = await self.db.execute(
            delete(Task).where(Task.id == task_id, Task.owner_id == self.owner.id)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFound("Task not found")
        await self.db.commit()
        logger.info("task.deleted", task_id=task_id)
