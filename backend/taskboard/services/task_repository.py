"""Task repository: CRUD over the tasks table and position ordering."""

from collections.abc import Mapping, Sequence
from typing import Any

import structlog
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import NotFoundError
from taskboard.models.task import (
    Task,
    TaskFile,
    TaskUpdate,
    UpdateComment,
    UpdateLike,
    UpdateReaction,
)

logger = structlog.get_logger()

# Columns written by every full-row update. workplace_id and position are
# set at creation and changed only through reorder.
MUTABLE_FIELDS: tuple[str, ...] = (
    "item",
    "developer",
    "support",
    "requested_by",
    "status_label",
    "status_color",
    "priority_label",
    "priority_color",
    "section",
    "due_date",
)


class TaskRepository:
    """Data access for tasks.

    ``create`` and ``update`` only flush; the caller owns the transaction so
    the audit entries can land in the same commit. ``delete`` and ``reorder``
    are complete units of work and commit themselves.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self,
        section: str | None = None,
        workplace_id: int | None = None,
    ) -> Sequence[Task]:
        """List tasks ordered by position, ties broken by id."""
        query = select(Task)
        if section:
            query = query.where(Task.section == section)
        if workplace_id is not None:
            query = query.where(Task.workplace_id == workplace_id)
        query = query.order_by(Task.position.asc(), Task.id.asc())

        result = await self.db.execute(query)
        return result.scalars().all()

    async def get(self, task_id: int, for_update: bool = False) -> Task:
        """Get a task by id, optionally locking the row until commit."""
        query = select(Task).where(Task.id == task_id)
        if for_update:
            query = query.with_for_update().execution_options(populate_existing=True)

        result = await self.db.execute(query)
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task")
        return task

    async def exists(self, task_id: int) -> bool:
        result = await self.db.execute(select(Task.id).where(Task.id == task_id))
        return result.scalar_one_or_none() is not None

    async def next_position(self, workplace_id: int | None, section: str | None) -> int:
        """Position that appends a task to the end of its workplace/section group."""
        query = select(func.max(Task.position))
        if workplace_id is None:
            query = query.where(Task.workplace_id.is_(None))
        else:
            query = query.where(Task.workplace_id == workplace_id)
        if section is None:
            query = query.where(Task.section.is_(None))
        else:
            query = query.where(Task.section == section)

        max_position = (await self.db.execute(query)).scalar()
        return 0 if max_position is None else max_position + 1

    async def create(self, fields: Mapping[str, Any]) -> Task:
        """Insert a task and flush so it has an id."""
        position = fields.get("position")
        if position is None:
            position = await self.next_position(fields.get("workplace_id"), fields.get("section"))

        task = Task(
            **{name: fields.get(name) for name in MUTABLE_FIELDS},
            workplace_id=fields.get("workplace_id"),
            position=position,
        )
        self.db.add(task)
        await self.db.flush()
        return task

    async def update(self, task: Task, fields: Mapping[str, Any]) -> Task:
        """Replace every mutable column; fields missing from ``fields`` become null."""
        for name in MUTABLE_FIELDS:
            setattr(task, name, fields.get(name))
        await self.db.flush()
        return task

    async def delete(self, task_id: int) -> None:
        """Delete a task together with its updates and files.

        Activity log rows are kept so the audit trail outlives the task.
        """
        await self.get(task_id)

        update_ids = select(TaskUpdate.id).where(TaskUpdate.task_id == task_id)
        try:
            for child in (UpdateComment, UpdateReaction, UpdateLike):
                await self.db.execute(
                    delete(child)
                    .where(child.update_id.in_(update_ids))
                    .execution_options(synchronize_session=False)
                )
            await self.db.execute(delete(TaskUpdate).where(TaskUpdate.task_id == task_id))
            await self.db.execute(delete(TaskFile).where(TaskFile.task_id == task_id))
            await self.db.execute(delete(Task).where(Task.id == task_id))
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("task_deleted", task_id=task_id)

    async def reorder(self, ordered_ids: Sequence[int]) -> None:
        """Set position = index for each id, all or nothing.

        Writes are issued in the given order inside one transaction. The first
        id that matches no row rolls everything back and is named in the
        NotFoundError.
        """
        try:
            for index, task_id in enumerate(ordered_ids):
                result = await self.db.execute(
                    update(Task).where(Task.id == task_id).values(position=index)
                )
                if result.rowcount == 0:
                    logger.warning("task_reorder_missing_id", task_id=task_id)
                    raise NotFoundError("Task", task_id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        logger.info("tasks_reordered", count=len(ordered_ids))
