"""Database package."""

from taskboard.db.base import Base, BaseModel
from taskboard.db.session import Database, get_db_session

__all__ = ["Base", "BaseModel", "Database", "get_db_session"]
