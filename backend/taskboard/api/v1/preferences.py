"""Display preferences of the signed-in user."""

from typing import Literal

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.models.user import UserPreferences

router = APIRouter()
logger = structlog.get_logger()

DEFAULT_PREFERENCES = {
    "language": "en",
    "timezone": "(GMT+05:00) Islamabad",
    "time_format": "12h",
    "date_format": "MMM DD, YYYY",
    "first_day_of_week": "monday",
}


class UserPreferencesPayload(BaseModel):
    """User preferences; every field is required when saving."""

    language: str = Field(..., min_length=1, max_length=10)
    timezone: str = Field(..., min_length=1, max_length=100)
    time_format: Literal["12h", "24h"]
    date_format: str = Field(..., min_length=1, max_length=50)
    first_day_of_week: str = Field(..., min_length=1, max_length=20)

    class Config:
        from_attributes = True


@router.get("", response_model=UserPreferencesPayload)
async def get_preferences(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> UserPreferencesPayload:
    """Saved preferences, or the defaults if the user has never saved any."""
    result = await db.execute(
        select(UserPreferences).where(UserPreferences.user_id == current_user.id)
    )
    prefs = result.scalar_one_or_none()
    if prefs is None:
        return UserPreferencesPayload(**DEFAULT_PREFERENCES)
    return UserPreferencesPayload.model_validate(prefs)


@router.put("")
async def update_preferences(
    data: UserPreferencesPayload,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, str]:
    result = await db.execute(
        select(UserPreferences).where(UserPreferences.user_id == current_user.id)
    )
    prefs = result.scalar_one_or_none()
    if prefs is None:
        prefs = UserPreferences(user_id=current_user.id)
        db.add(prefs)

    for field, value in data.model_dump().items():
        setattr(prefs, field, value)
    await db.commit()

    logger.info("preferences_updated", user_id=current_user.id)
    return {"message": "Preferences updated successfully"}
