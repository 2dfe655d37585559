"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Request

from taskboard.config import Settings
from taskboard.services.file_storage import FileStorage


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


def get_file_storage(request: Request) -> FileStorage:
    return request.app.state.file_storage


AppSettings = Annotated[Settings, Depends(get_app_settings)]
Storage = Annotated[FileStorage, Depends(get_file_storage)]
