"""Tasks API endpoints."""

from datetime import date, datetime

import structlog
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import Storage
from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.models.task import Task, TaskFile
from taskboard.services.task_mutation import TaskMutationService
from taskboard.services.task_repository import TaskRepository

router = APIRouter()
logger = structlog.get_logger()


# Request/Response Models
class TaskFields(BaseModel):
    """Columns a client may write on a task."""

    item: str = Field(..., min_length=1, max_length=500)
    developer: str | None = Field(None, max_length=255)
    support: str | None = Field(None, max_length=255)
    requested_by: str | None = Field(None, max_length=255)
    status_label: str | None = Field(None, max_length=100)
    status_color: str | None = Field(None, max_length=50)
    priority_label: str | None = Field(None, max_length=100)
    priority_color: str | None = Field(None, max_length=50)
    section: str | None = Field(None, max_length=255)
    due_date: date | None = None

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, v):
        """Accept "", full ISO timestamps and plain dates."""
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v


class TaskCreate(TaskFields):
    """Create a new task."""

    workplace_id: int | None = None
    position: int | None = Field(None, ge=0)


class TaskReplace(TaskFields):
    """Replace a task's editable fields; anything omitted is cleared."""


class TaskResponse(BaseModel):
    """Task response model."""

    id: int
    item: str
    developer: str | None
    support: str | None
    requested_by: str | None
    status_label: str | None
    status_color: str | None
    priority_label: str | None
    priority_color: str | None
    section: str | None
    workplace_id: int | None
    due_date: date | None
    position: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReorderRequest(BaseModel):
    ordered_ids: list[int] = Field(..., alias="orderedIds")

    class Config:
        populate_by_name = True


@router.get("", response_model=list[TaskResponse])
async def list_tasks(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
    section: str | None = Query(None),
    workplace_id: int | None = Query(None),
) -> list[Task]:
    """List tasks ordered by position, optionally filtered by section and workplace."""
    tasks = await TaskRepository(db).list(section=section, workplace_id=workplace_id)
    return list(tasks)


@router.post("/reorder")
async def reorder_tasks(
    data: ReorderRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    """Rewrite positions to match the given order, all or nothing."""
    await TaskRepository(db).reorder(data.ordered_ids)
    return {"success": True}


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    return await TaskRepository(db).get(task_id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Create a task; the caller is recorded as the actor of its creation entry."""
    actor_id = current_user.id
    return await TaskMutationService(db).create_task(data.model_dump(), actor_id=actor_id)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    data: TaskReplace,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Replace a task and log a change entry for each tracked field that differs."""
    actor_id = current_user.id
    task, _ = await TaskMutationService(db).update_task(task_id, data.model_dump(), actor_id=actor_id)
    return task


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    current_user: CurrentUser,
    storage: Storage,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    """Delete a task with its updates and attachments; its history is kept."""
    result = await db.execute(select(TaskFile.file_path).where(TaskFile.task_id == task_id))
    file_paths = result.scalars().all()

    await TaskRepository(db).delete(task_id)

    for path in file_paths:
        storage.remove(path)

    return {"success": True}
