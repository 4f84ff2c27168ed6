"""Pydantic schemas for tasks.

Learn: Separate schemas for create/update/read keeps the API clean.
- TaskCreate: what you POST to create a task (no owner_id — the server sets it)
- TaskUpdate: what you PUT to modify a task (every field optional)
- TaskRead: what the API returns

TaskUpdate distinguishes "field omitted" from "field sent": only sent
fields end up in the TaskPatch built from it (see services.task_service).
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    completed: bool


class TaskUpdate(BaseModel):
    """Partial update — only fields present in the request body are applied."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    completed: Optional[bool] = None

    @field_validator("title", "completed")
    @classmethod
    def not_null_when_sent(cls, v):
        # Runs only for values actually sent; omitted fields keep the default.
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class TaskRead(BaseModel):
    id: int
    title: str
    description: Optional[str]
    completed: bool
    created_at: datetime
    owner_id: int

    model_config = {"from_attributes": True}


class TaskDeleted(BaseModel):
    ok: bool = True
