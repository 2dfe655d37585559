"""Task updates (notes posted on a task) and their comments."""

from datetime import datetime
from typing import Any

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.exceptions import NotFoundError
from taskboard.models.task import TaskUpdate, UpdateComment
from taskboard.models.user import User
from taskboard.services.task_repository import TaskRepository

router = APIRouter()
comments_router = APIRouter()
logger = structlog.get_logger()


class TaskUpdateCreate(BaseModel):
    task_id: int
    text: str = Field(..., min_length=1)


class TaskUpdateResponse(BaseModel):
    id: int
    task_id: int
    text: str
    user_id: int | None
    created_at: datetime
    username: str | None = None


class CommentCreate(BaseModel):
    update_id: int
    text: str = Field(..., min_length=1)


class CommentEdit(BaseModel):
    text: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: int
    update_id: int
    text: str
    user_id: int | None
    created_at: datetime
    username: str | None = None


async def get_update_or_404(db: AsyncSession, update_id: int) -> TaskUpdate:
    update = await db.get(TaskUpdate, update_id)
    if update is None:
        raise NotFoundError("Update")
    return update


async def get_comment_or_404(db: AsyncSession, comment_id: int) -> UpdateComment:
    comment = await db.get(UpdateComment, comment_id)
    if comment is None:
        raise NotFoundError("Comment")
    return comment


# Task updates


@router.post("", response_model=TaskUpdateResponse, status_code=status.HTTP_201_CREATED)
async def create_task_update(
    data: TaskUpdateCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, Any]:
    """Post a note on a task."""
    if not await TaskRepository(db).exists(data.task_id):
        raise NotFoundError("Task")

    update = TaskUpdate(task_id=data.task_id, text=data.text, user_id=current_user.id)
    db.add(update)
    await db.commit()
    await db.refresh(update)

    logger.info("task_update_posted", task_id=data.task_id, update_id=update.id)
    return {**update.to_dict(), "username": current_user.username}


@router.get("/{task_id}", response_model=list[TaskUpdateResponse])
async def list_task_updates(
    task_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[dict[str, Any]]:
    """Notes on a task, newest first."""
    result = await db.execute(
        select(TaskUpdate, User.username)
        .outerjoin(User, User.id == TaskUpdate.user_id)
        .where(TaskUpdate.task_id == task_id)
        .order_by(TaskUpdate.created_at.desc(), TaskUpdate.id.desc())
    )
    return [{**update.to_dict(), "username": username} for update, username in result.all()]


# Comments


@comments_router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    data: CommentCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, Any]:
    await get_update_or_404(db, data.update_id)

    comment = UpdateComment(update_id=data.update_id, text=data.text, user_id=current_user.id)
    db.add(comment)
    await db.commit()
    await db.refresh(comment)

    logger.info("update_comment_posted", update_id=data.update_id, comment_id=comment.id)
    return {**comment.to_dict(), "username": current_user.username}


@comments_router.get("/{update_id}", response_model=list[CommentResponse])
async def list_comments(
    update_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[dict[str, Any]]:
    """Comments on an update, oldest first."""
    result = await db.execute(
        select(UpdateComment, User.username)
        .outerjoin(User, User.id == UpdateComment.user_id)
        .where(UpdateComment.update_id == update_id)
        .order_by(UpdateComment.created_at.asc(), UpdateComment.id.asc())
    )
    return [{**comment.to_dict(), "username": username} for comment, username in result.all()]


@comments_router.put("/{comment_id}", response_model=CommentResponse)
async def edit_comment(
    comment_id: int,
    data: CommentEdit,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, Any]:
    comment = await get_comment_or_404(db, comment_id)
    comment.text = data.text
    await db.commit()
    await db.refresh(comment)

    author = await db.get(User, comment.user_id) if comment.user_id else None
    return {**comment.to_dict(), "username": author.username if author else None}


@comments_router.delete("/{comment_id}")
async def delete_comment(
    comment_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    comment = await get_comment_or_404(db, comment_id)
    await db.delete(comment)
    await db.commit()

    logger.info("update_comment_deleted", comment_id=comment_id, user_id=current_user.id)
    return {"success": True}
