"""Task attachments: upload, list, bulk download, delete."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import Storage
from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.exceptions import NotFoundError
from taskboard.models.task import TaskFile
from taskboard.services.task_repository import TaskRepository

router = APIRouter()
logger = structlog.get_logger()


class TaskFileResponse(BaseModel):
    id: int
    task_id: int
    filename: str
    original_name: str
    file_path: str
    description: str
    file_size: int
    created_at: datetime

    class Config:
        from_attributes = True


@router.post("", response_model=TaskFileResponse, status_code=status.HTTP_201_CREATED)
async def upload_task_file(
    current_user: CurrentUser,
    storage: Storage,
    file: UploadFile = File(...),
    task_id: int = Form(...),
    description: str = Form(""),
    db: AsyncSession = Depends(get_db_session),
) -> TaskFile:
    """Attach a file to a task. Size and extension limits come from settings."""
    if not await TaskRepository(db).exists(task_id):
        raise NotFoundError("Task")

    stored = await storage.save(file, "file")

    task_file = TaskFile(
        task_id=task_id,
        filename=stored.filename,
        original_name=stored.original_name,
        file_path=stored.path,
        description=description,
        file_size=stored.size,
    )
    db.add(task_file)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        storage.remove(stored.path)
        raise
    await db.refresh(task_file)

    logger.info("task_file_uploaded", task_id=task_id, file_id=task_file.id, size=stored.size)
    return task_file


@router.get("/{task_id}", response_model=list[TaskFileResponse])
async def list_task_files(
    task_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[TaskFile]:
    """Files on a task, newest first."""
    result = await db.execute(
        select(TaskFile)
        .where(TaskFile.task_id == task_id)
        .order_by(TaskFile.created_at.desc(), TaskFile.id.desc())
    )
    return list(result.scalars().all())


@router.get("/{task_id}/download-all")
async def download_all_task_files(
    task_id: int,
    current_user: CurrentUser,
    storage: Storage,
    db: AsyncSession = Depends(get_db_session),
) -> StreamingResponse:
    """Every file on the task as one ZIP archive."""
    result = await db.execute(
        select(TaskFile.file_path, TaskFile.original_name)
        .where(TaskFile.task_id == task_id)
        .order_by(TaskFile.created_at.asc(), TaskFile.id.asc())
    )
    entries = [(path, name) for path, name in result.all()]
    if not entries:
        raise NotFoundError("Task file", message="No files found for this task")

    output = storage.build_zip(entries)
    filename = f"task-{task_id}-files"
    return StreamingResponse(
        output,
        media_type="application/zip",
        headers={"Content-Disposition": f"attachment; filename={filename}.zip"},
    )


@router.delete("/{file_id}")
async def delete_task_file(
    file_id: int,
    current_user: CurrentUser,
    storage: Storage,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    task_file = await db.get(TaskFile, file_id)
    if task_file is None:
        raise NotFoundError("File")

    path = task_file.file_path
    await db.delete(task_file)
    await db.commit()
    storage.remove(path)

    logger.info("task_file_deleted", file_id=file_id, user_id=current_user.id)
    return {"success": True}
