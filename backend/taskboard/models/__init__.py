"""SQLAlchemy models package."""

from taskboard.models.user import SessionHistory, User, UserPreferences, WorkingStatus
from taskboard.models.workspace import Favorite, SectionOrder, Workplace
from taskboard.models.task import (
    Task,
    TaskFile,
    TaskUpdate,
    UpdateComment,
    UpdateLike,
    UpdateReaction,
)
from taskboard.models.activity import ActivityLog

__all__ = [
    # User
    "User",
    "UserPreferences",
    "WorkingStatus",
    "SessionHistory",
    # Workspace
    "Workplace",
    "Favorite",
    "SectionOrder",
    # Task
    "Task",
    "TaskUpdate",
    "UpdateComment",
    "UpdateReaction",
    "UpdateLike",
    "TaskFile",
    # Activity
    "ActivityLog",
]
