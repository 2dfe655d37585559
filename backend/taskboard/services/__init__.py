"""Business logic services."""

from taskboard.services.activity_log import ActivityLogService
from taskboard.services.file_storage import FileStorage
from taskboard.services.sessions import SessionHistoryService
from taskboard.services.task_mutation import TaskMutationService
from taskboard.services.task_repository import TaskRepository

__all__ = [
    "ActivityLogService",
    "FileStorage",
    "SessionHistoryService",
    "TaskMutationService",
    "TaskRepository",
]
