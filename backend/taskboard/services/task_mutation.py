"""Task mutation pipeline.

Every create and update of a task goes through here so that each semantic
change is paired with an activity log entry in the same transaction:

* create writes the row plus exactly one ``task_created`` entry;
* update locks and snapshots the current row, writes the submitted values,
  then appends one entry per tracked field whose value changed.

Tracked fields are compared after normalization, so ``"2024-05-01"``,
``date(2024, 5, 1)`` and ``"2024-05-01T00:00:00Z"`` are the same due date
and an empty string is the same as no value.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import ValidationError
from taskboard.models.activity import (
    DUE_DATE_CHANGE,
    PRIORITY_CHANGE,
    STATUS_CHANGE,
    TASK_CREATED,
    TASK_UPDATED,
    ActivityLog,
)
from taskboard.models.task import Task
from taskboard.services.activity_log import ActivityLogService
from taskboard.services.task_repository import TaskRepository

logger = structlog.get_logger()


def normalize_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text != "" else None


def parse_date(value: Any) -> date | None:
    """Turn a submitted due date into a calendar day, or None when empty."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise ValidationError(f"Invalid due date: {value}") from e


def normalize_date(value: Any) -> str | None:
    """Render a due date as ``YYYY-MM-DD`` regardless of how it was given."""
    parsed = parse_date(value)
    return parsed.isoformat() if parsed is not None else None


def coerce_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Submitted fields with the due date parsed, so what is compared is what is stored."""
    data = dict(fields)
    if "due_date" in data:
        data["due_date"] = parse_date(data["due_date"])
    return data


@dataclass(frozen=True)
class TrackedField:
    """A task attribute whose changes are written to the activity log."""

    attribute: str
    field_name: str
    action_type: str
    normalize: Callable[[Any], str | None]


TRACKED_FIELDS: tuple[TrackedField, ...] = (
    TrackedField("status_label", "status", STATUS_CHANGE, normalize_text),
    TrackedField("priority_label", "priority", PRIORITY_CHANGE, normalize_text),
    TrackedField("item", "item", TASK_UPDATED, normalize_text),
    TrackedField("due_date", "due_date", DUE_DATE_CHANGE, normalize_date),
)


@dataclass(frozen=True)
class FieldChange:
    field: TrackedField
    old_value: str | None
    new_value: str | None


def snapshot_tracked_fields(task: Task) -> dict[str, str | None]:
    """Normalized values of the tracked fields as currently stored."""
    return {f.attribute: f.normalize(getattr(task, f.attribute)) for f in TRACKED_FIELDS}


def diff_tracked_fields(
    before: Mapping[str, str | None],
    submitted: Mapping[str, Any],
) -> list[FieldChange]:
    """Compare a snapshot against submitted values, in TRACKED_FIELDS order.

    A field absent from ``submitted`` counts as null, matching the full-row
    replacement semantics of task updates.
    """
    changes = []
    for field in TRACKED_FIELDS:
        old_value = before.get(field.attribute)
        new_value = field.normalize(submitted.get(field.attribute))
        if old_value != new_value:
            changes.append(FieldChange(field=field, old_value=old_value, new_value=new_value))
    return changes


class TaskMutationService:
    """Creates and updates tasks together with their audit entries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.tasks = TaskRepository(db)
        self.activity = ActivityLogService(db)

    async def create_task(self, fields: Mapping[str, Any], actor_id: int | None) -> Task:
        """Insert a task and its ``task_created`` entry in one commit."""
        fields = coerce_fields(fields)
        try:
            task = await self.tasks.create(fields)
            await self.activity.append(
                task_id=task.id,
                action_type=TASK_CREATED,
                field_name="item",
                old_value=None,
                new_value=normalize_text(task.item),
                user_id=actor_id,
            )
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(task)
        logger.info(
            "task_created",
            task_id=task.id,
            workplace_id=task.workplace_id,
            actor_id=actor_id,
        )
        return task

    async def update_task(
        self,
        task_id: int,
        fields: Mapping[str, Any],
        actor_id: int | None,
    ) -> tuple[Task, list[ActivityLog]]:
        """Replace a task's fields and log each tracked change.

        The diff is taken between the stored row and the submitted values,
        before the write, so it never depends on how the database echoes the
        new values back.
        """
        fields = coerce_fields(fields)
        try:
            task = await self.tasks.get(task_id, for_update=True)
            before = snapshot_tracked_fields(task)
            changes = diff_tracked_fields(before, fields)

            await self.tasks.update(task, fields)

            entries = []
            for change in changes:
                entry = await self.activity.append(
                    task_id=task.id,
                    action_type=change.field.action_type,
                    field_name=change.field.field_name,
                    old_value=change.old_value,
                    new_value=change.new_value,
                    user_id=actor_id,
                )
                entries.append(entry)

            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise

        await self.db.refresh(task)
        logger.info(
            "task_updated",
            task_id=task_id,
            changed_fields=[c.field.field_name for c in changes],
            actor_id=actor_id,
        )
        return task, entries
