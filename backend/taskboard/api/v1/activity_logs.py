"""Activity log endpoints: per-task history, workspace feed, manual entries."""

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.exceptions import NotFoundError
from taskboard.services.activity_log import ActivityLogService
from taskboard.services.task_repository import TaskRepository

router = APIRouter()
logger = structlog.get_logger()


class ActivityLogCreate(BaseModel):
    """Manually recorded activity entry."""

    task_id: int
    action_type: str = Field(..., min_length=1, max_length=50)
    field_name: str = Field(..., min_length=1, max_length=100)
    old_value: str | None = None
    new_value: str | None = None


class ActivityLogResponse(BaseModel):
    """Activity entry with the acting user's name and email."""

    id: int
    task_id: int
    action_type: str
    field_name: str
    old_value: str | None
    new_value: str | None
    user_id: int | None
    created_at: datetime
    username: str | None = None
    email: str | None = None


class WorkspaceActivityResponse(ActivityLogResponse):
    task_name: str | None = None


@router.post("", response_model=ActivityLogResponse, status_code=status.HTTP_201_CREATED)
async def create_activity_log(
    data: ActivityLogCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, Any]:
    """Append an entry attributed to the caller."""
    if not await TaskRepository(db).exists(data.task_id):
        raise NotFoundError("Task")

    entry = await ActivityLogService(db).append(
        task_id=data.task_id,
        action_type=data.action_type,
        field_name=data.field_name,
        old_value=data.old_value,
        new_value=data.new_value,
        user_id=current_user.id,
    )
    await db.commit()
    await db.refresh(entry)

    logger.info(
        "activity_logged",
        task_id=data.task_id,
        action_type=data.action_type,
        user_id=current_user.id,
    )
    return {**entry.to_dict(), "username": current_user.username, "email": current_user.email}


@router.get("", response_model=list[WorkspaceActivityResponse])
async def list_workspace_activity(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
    workspace_id: int | None = Query(None),
) -> list[dict[str, Any]]:
    """Activity across one workspace, or across all of them when none is given."""
    return await ActivityLogService(db).list_for_workspace(workspace_id)


@router.get("/{task_id}", response_model=list[ActivityLogResponse])
async def list_task_activity(
    task_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[dict[str, Any]]:
    """History of one task, newest first. Still available after the task is deleted."""
    return await ActivityLogService(db).list_for_task(task_id)
