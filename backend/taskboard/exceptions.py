"""Domain exceptions.

Services raise these instead of HTTP errors; the application registers a
handler that turns each one into a JSON response with the matching status.
"""

from fastapi import status


class TaskboardError(Exception):
    """Base exception for domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, code: str = "TASKBOARD_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TaskboardError):
    """A required field is missing or a value is unacceptable."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message=message, code="VALIDATION_ERROR")


class AuthenticationError(TaskboardError):
    """Credentials are missing, wrong, or expired."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message=message, code="NOT_AUTHENTICATED")


class PermissionDeniedError(TaskboardError):
    """The caller is authenticated but the token cannot be used."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message=message, code="PERMISSION_DENIED")


class NotFoundError(TaskboardError):
    """A referenced entity does not exist.

    Raised by repositories when a lookup by id comes back empty, and by the
    reorder transaction naming the first id that matched no row.
    """

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id: object | None = None, message: str | None = None):
        self.entity = entity
        self.entity_id = entity_id
        if message is None:
            if entity_id is None:
                message = f"{entity} not found"
            else:
                message = f"{entity} ID {entity_id} not found"
        super().__init__(message=message, code="NOT_FOUND")


class ConflictError(TaskboardError):
    """A uniqueness rule would be violated (username, email, favorite)."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str):
        super().__init__(message=message, code="CONFLICT")
