"""Task mutation pipeline: field comparison and audit entries."""

from datetime import date, datetime

import pytest
from sqlalchemy import select

from taskboard.exceptions import NotFoundError, ValidationError
from taskboard.models.activity import ActivityLog, ImmutableActivityLogError
from taskboard.services.task_mutation import (
    TaskMutationService,
    diff_tracked_fields,
    normalize_date,
    normalize_text,
)


def test_normalize_text_treats_empty_as_missing():
    assert normalize_text("") is None
    assert normalize_text(None) is None
    assert normalize_text("Open") == "Open"


@pytest.mark.parametrize(
    "value",
    ["2024-05-01", "2024-05-01T00:00:00Z", date(2024, 5, 1), datetime(2024, 5, 1, 13, 30)],
)
def test_normalize_date_renders_calendar_day(value):
    assert normalize_date(value) == "2024-05-01"


def test_normalize_date_empty():
    assert normalize_date("") is None
    assert normalize_date(None) is None


def test_diff_reports_fields_in_fixed_order():
    before = {"status_label": "Open", "priority_label": "Low", "item": "A", "due_date": None}
    submitted = {"item": "B", "status_label": "Done", "priority_label": "Low", "due_date": "2024-01-02"}

    changes = diff_tracked_fields(before, submitted)

    assert [(c.field.field_name, c.old_value, c.new_value) for c in changes] == [
        ("status", "Open", "Done"),
        ("item", "A", "B"),
        ("due_date", None, "2024-01-02"),
    ]


def test_diff_treats_omitted_field_as_cleared():
    before = {"status_label": "Open", "priority_label": None, "item": "A", "due_date": None}

    changes = diff_tracked_fields(before, {"item": "A"})

    assert [(c.field.action_type, c.old_value, c.new_value) for c in changes] == [
        ("status_change", "Open", None),
    ]


async def _entries(db_session, task_id):
    result = await db_session.execute(
        select(ActivityLog).where(ActivityLog.task_id == task_id).order_by(ActivityLog.id)
    )
    return result.scalars().all()


@pytest.mark.asyncio
async def test_create_writes_single_created_entry(db_session):
    service = TaskMutationService(db_session)

    task = await service.create_task({"item": "Fix bug", "status_label": "Open"}, actor_id=None)

    entries = await _entries(db_session, task.id)
    assert [(e.action_type, e.field_name, e.old_value, e.new_value) for e in entries] == [
        ("task_created", "item", None, "Fix bug"),
    ]
    assert task.status_label == "Open"


@pytest.mark.asyncio
async def test_status_only_change_writes_one_entry(db_session):
    service = TaskMutationService(db_session)
    task = await service.create_task({"item": "Fix bug", "status_label": "Open"}, actor_id=None)

    updated, entries = await service.update_task(
        task.id, {"item": "Fix bug", "status_label": "Done"}, actor_id=None
    )

    assert updated.status_label == "Done"
    assert [(e.action_type, e.field_name, e.old_value, e.new_value) for e in entries] == [
        ("status_change", "status", "Open", "Done"),
    ]
    assert len(await _entries(db_session, task.id)) == 2


@pytest.mark.asyncio
async def test_untracked_change_writes_nothing(db_session):
    service = TaskMutationService(db_session)
    task = await service.create_task({"item": "Fix bug", "developer": "sam"}, actor_id=None)

    updated, entries = await service.update_task(
        task.id, {"item": "Fix bug", "developer": "kim"}, actor_id=None
    )

    assert updated.developer == "kim"
    assert entries == []


@pytest.mark.asyncio
async def test_equivalent_due_dates_are_not_a_change(db_session):
    service = TaskMutationService(db_session)
    task = await service.create_task(
        {"item": "Ship", "due_date": date(2024, 5, 1)}, actor_id=None
    )

    _, entries = await service.update_task(
        task.id, {"item": "Ship", "due_date": "2024-05-01T00:00:00Z"}, actor_id=None
    )

    assert entries == []


@pytest.mark.asyncio
async def test_string_due_dates_are_stored_as_dates(db_session):
    service = TaskMutationService(db_session)
    task = await service.create_task({"item": "Ship", "due_date": "2024-05-01"}, actor_id=None)
    assert task.due_date == date(2024, 5, 1)

    updated, entries = await service.update_task(
        task.id, {"item": "Ship", "due_date": "2024-06-02T09:15:00Z"}, actor_id=None
    )

    assert updated.due_date == date(2024, 6, 2)
    assert [(e.old_value, e.new_value) for e in entries] == [("2024-05-01", "2024-06-02")]


@pytest.mark.asyncio
async def test_unparseable_due_date_is_rejected(db_session):
    service = TaskMutationService(db_session)

    with pytest.raises(ValidationError):
        await service.create_task({"item": "Ship", "due_date": "next tuesday"}, actor_id=None)

@pytest.mark.asyncio
async def test_every_tracked_field_logged_once(db_session):
    service = TaskMutationService(db_session)
    task = await service.create_task(
        {"item": "A", "status_label": "Open", "priority_label": "Low"}, actor_id=None
    )

    _, entries = await service.update_task(
        task.id,
        {
            "item": "B",
            "status_label": "Done",
            "priority_label": "High",
            "due_date": date(2024, 6, 1),
        },
        actor_id=None,
    )

    assert [e.action_type for e in entries] == [
        "status_change",
        "priority_change",
        "task_updated",
        "due_date_change",
    ]
    assert entries[-1].new_value == "2024-06-01"


@pytest.mark.asyncio
async def test_update_missing_task_writes_nothing(db_session):
    service = TaskMutationService(db_session)

    with pytest.raises(NotFoundError):
        await service.update_task(777, {"item": "x"}, actor_id=None)

    assert await _entries(db_session, 777) == []


@pytest.mark.asyncio
async def test_activity_entries_are_append_only(db_session):
    service = TaskMutationService(db_session)
    task = await service.create_task({"item": "Fix bug"}, actor_id=None)
    (entry,) = await _entries(db_session, task.id)

    entry.new_value = "rewritten"
    with pytest.raises(ImmutableActivityLogError):
        await db_session.flush()
    await db_session.rollback()

    await db_session.delete(entry)
    with pytest.raises(ImmutableActivityLogError):
        await db_session.flush()
