"""Activity log model: the audit trail of task changes."""

from typing import Any

from sqlalchemy import Index, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.db.base import Base, CreatedAtMixin, IntegerIDMixin

# Action types written by the task mutation pipeline
TASK_CREATED = "task_created"
STATUS_CHANGE = "status_change"
PRIORITY_CHANGE = "priority_change"
TASK_UPDATED = "task_updated"
DUE_DATE_CHANGE = "due_date_change"


class ActivityLog(Base, IntegerIDMixin, CreatedAtMixin):
    """
    Immutable record of one field-level change to a task.

    ``task_id`` is not a foreign key, so entries stay readable after the task
    itself is deleted. ``user_id`` is a plain reference too; readers left-join
    it against users.
    """

    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_task_created", "task_id", "created_at"),
    )

    task_id: Mapped[int] = mapped_column(Integer, nullable=False)
    action_type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
        comment="task_created, status_change, priority_change, task_updated, due_date_change",
    )
    field_name: Mapped[str] = mapped_column(String(100), nullable=False)
    old_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    new_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<ActivityLog {self.action_type} task={self.task_id} field={self.field_name}>"


class ImmutableActivityLogError(RuntimeError):
    """Raised when code tries to modify or remove a flushed activity entry."""


@event.listens_for(ActivityLog, "before_update")
def _reject_update(mapper: Any, connection: Any, target: ActivityLog) -> None:
    raise ImmutableActivityLogError(f"activity log {target.id} is append-only")


@event.listens_for(ActivityLog, "before_delete")
def _reject_delete(mapper: Any, connection: Any, target: ActivityLog) -> None:
    raise ImmutableActivityLogError(f"activity log {target.id} is append-only")
