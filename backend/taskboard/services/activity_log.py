"""Activity audit log: append-only writes and joined reads."""

from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.models.activity import ActivityLog
from taskboard.models.task import Task
from taskboard.models.user import User

logger = structlog.get_logger()


class ActivityLogService:
    """Service for writing and reading task activity entries."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        task_id: int,
        action_type: str,
        field_name: str,
        old_value: str | None,
        new_value: str | None,
        user_id: int | None,
    ) -> ActivityLog:
        """
        Insert one entry and flush it.

        The timestamp is assigned by the database. The caller commits, which
        lets the task mutation pipeline keep the row write and its audit
        entries in one transaction.
        """
        entry = ActivityLog(
            task_id=task_id,
            action_type=action_type,
            field_name=field_name,
            old_value=old_value,
            new_value=new_value,
            user_id=user_id,
        )
        self.db.add(entry)
        await self.db.flush()

        logger.debug(
            "activity_appended",
            task_id=task_id,
            action_type=action_type,
            field_name=field_name,
            user_id=user_id,
        )
        return entry

    async def list_for_task(self, task_id: int) -> list[dict[str, Any]]:
        """Entries for one task, newest first, with the actor's username and email."""
        result = await self.db.execute(
            select(ActivityLog, User.username, User.email)
            .outerjoin(User, User.id == ActivityLog.user_id)
            .where(ActivityLog.task_id == task_id)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
        )
        return [
            {**entry.to_dict(), "username": username, "email": email}
            for entry, username, email in result.all()
        ]

    async def list_for_workspace(self, workspace_id: int | None = None) -> list[dict[str, Any]]:
        """Entries across a workspace (or all of them), with actor and task name.

        Entries whose task has been deleted still appear when no workspace is
        given, with a null task name.
        """
        query = (
            select(ActivityLog, User.username, User.email, Task.item.label("task_name"))
            .outerjoin(User, User.id == ActivityLog.user_id)
            .outerjoin(Task, Task.id == ActivityLog.task_id)
        )
        if workspace_id is not None:
            query = query.where(Task.workplace_id == workspace_id)
        query = query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())

        result = await self.db.execute(query)
        return [
            {**entry.to_dict(), "username": username, "email": email, "task_name": task_name}
            for entry, username, email, task_name in result.all()
        ]
