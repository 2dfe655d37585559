"""Cross-board listings used by the search page."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import AppSettings
from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.models.task import Task, TaskFile, TaskUpdate
from taskboard.models.user import User
from taskboard.models.workspace import Workplace

router = APIRouter()


class UpdateSearchItem(BaseModel):
    id: int
    task_id: int
    text: str
    created_at: datetime
    task_name: str | None
    username: str | None


class FileSearchItem(BaseModel):
    id: int
    task_id: int
    original_name: str
    file_path: str
    file_size: int
    created_at: datetime
    task_name: str | None


class BoardSummary(BaseModel):
    id: int
    board_name: str
    task_count: int
    completed_tasks: int
    active_tasks: int


@router.get("/all_updates", response_model=list[UpdateSearchItem])
async def list_all_updates(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[dict[str, Any]]:
    """Every task update with its task name and author, newest first."""
    result = await db.execute(
        select(TaskUpdate, Task.item, User.username)
        .outerjoin(Task, Task.id == TaskUpdate.task_id)
        .outerjoin(User, User.id == TaskUpdate.user_id)
        .order_by(TaskUpdate.created_at.desc(), TaskUpdate.id.desc())
    )
    return [
        {**update.to_dict(), "task_name": task_name, "username": username}
        for update, task_name, username in result.all()
    ]


@router.get("/all_files", response_model=list[FileSearchItem])
async def list_all_files(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[dict[str, Any]]:
    result = await db.execute(
        select(TaskFile, Task.item)
        .outerjoin(Task, Task.id == TaskFile.task_id)
        .order_by(TaskFile.created_at.desc(), TaskFile.id.desc())
    )
    return [{**task_file.to_dict(), "task_name": task_name} for task_file, task_name in result.all()]


@router.get("/all_boards", response_model=list[BoardSummary])
async def list_all_boards(
    current_user: CurrentUser,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> list[BoardSummary]:
    """Workplaces with task totals, split into completed and active."""
    completed = func.coalesce(
        func.sum(case((Task.status_label == settings.completed_status_label, 1), else_=0)),
        0,
    )
    result = await db.execute(
        select(Workplace.id, Workplace.name, func.count(Task.id), completed)
        .outerjoin(Task, Task.workplace_id == Workplace.id)
        .group_by(Workplace.id, Workplace.name)
        .order_by(Workplace.name)
    )
    return [
        BoardSummary(
            id=board_id,
            board_name=name,
            task_count=task_count,
            completed_tasks=int(completed_count),
            active_tasks=task_count - int(completed_count),
        )
        for board_id, name, task_count, completed_count in result.all()
    ]
