"""Account settings for the signed-in user: profile, email, password, working status."""

from datetime import date

import structlog
from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field, field_validator
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import AppSettings, Storage
from taskboard.api.v1.auth import CurrentUser, UserProfileResponse
from taskboard.db.session import get_db_session
from taskboard.exceptions import AuthenticationError, ConflictError, ValidationError
from taskboard.models.user import User, WorkingStatus
from taskboard.services.auth import create_reset_token, hash_password, verify_password

router = APIRouter()
logger = structlog.get_logger()

DEFAULT_WORKING_STATUS = "in-office"


class ProfileUpdate(BaseModel):
    """Partial profile update; only the fields sent are written."""

    username: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    mobile_phone: str | None = Field(None, max_length=50)
    location: str | None = Field(None, max_length=255)

    @field_validator("username")
    @classmethod
    def username_not_null(cls, v: str | None) -> str:
        if v is None:
            raise ValueError("Username cannot be empty")
        return v


class EmailChangeRequest(BaseModel):
    current_email: str = Field(..., alias="currentEmail")
    new_email: str = Field(..., alias="newEmail")
    current_password: str = Field(..., alias="currentPassword")

    class Config:
        populate_by_name = True


class PasswordChangeRequest(BaseModel):
    current_password: str = Field(..., alias="currentPassword")
    new_password: str = Field(..., min_length=1, alias="newPassword")

    class Config:
        populate_by_name = True


class WorkingStatusPayload(BaseModel):
    """Working status as read and written by the client."""

    status: str = Field(..., min_length=1, max_length=50)
    start_date: date
    end_date: date
    disable_notifications: bool = False
    disable_online_indication: bool = False

    class Config:
        from_attributes = True


@router.put("/profile", response_model=UserProfileResponse)
async def update_profile(
    data: ProfileUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Update any of username, phone, mobile phone and location."""
    update_data = data.model_dump(exclude_unset=True)
    if not update_data:
        raise ValidationError("No fields to update")

    if "username" in update_data and update_data["username"] != current_user.username:
        result = await db.execute(
            select(User.id).where(
                User.username == update_data["username"],
                User.id != current_user.id,
            )
        )
        if result.first() is not None:
            raise ConflictError("Username already taken")

    for field, value in update_data.items():
        setattr(current_user, field, value)

    await db.commit()
    await db.refresh(current_user)

    logger.info("profile_updated", user_id=current_user.id, fields=list(update_data))
    return current_user


@router.put("/email", response_model=UserProfileResponse)
async def change_email(
    data: EmailChangeRequest,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Change the account email after re-checking the password."""
    if data.current_email != current_user.email:
        raise ValidationError("Current email does not match")
    if not verify_password(data.current_password, current_user.password_hash):
        raise ValidationError("Invalid password")

    result = await db.execute(
        select(User.id).where(User.email == data.new_email, User.id != current_user.id)
    )
    if result.first() is not None:
        raise ConflictError("Email already in use")

    current_user.email = data.new_email
    await db.commit()
    await db.refresh(current_user)

    logger.info("email_changed", user_id=current_user.id)
    return current_user


@router.post("/profile-picture", response_model=UserProfileResponse)
async def upload_profile_picture(
    current_user: CurrentUser,
    settings: AppSettings,
    storage: Storage,
    picture: UploadFile = File(...),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """Replace the profile picture; the previous image is removed from disk."""
    stored = await storage.save(picture, "picture", settings.allowed_image_extensions)

    previous = current_user.picture
    current_user.picture = stored.path
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        storage.remove(stored.path)
        raise

    storage.remove(previous)
    await db.refresh(current_user)

    logger.info("profile_picture_updated", user_id=current_user.id, filename=stored.filename)
    return current_user


@router.put("/change-password")
async def change_password(
    data: PasswordChangeRequest,
    current_user: CurrentUser,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, str]:
    if not verify_password(data.current_password, current_user.password_hash):
        raise AuthenticationError("Invalid current password")

    current_user.password_hash = hash_password(data.new_password, settings.bcrypt_rounds)
    await db.commit()

    logger.info("password_changed", user_id=current_user.id)
    return {"message": "Password updated successfully"}


@router.post("/reset-password")
async def request_password_reset(
    current_user: CurrentUser,
    settings: AppSettings,
) -> dict[str, str]:
    """Issue a reset token for the signed-in user.

    No mail is sent; the request is only recorded in the log.
    """
    create_reset_token(current_user, settings)
    logger.info("password_reset_requested", user_id=current_user.id, email=current_user.email)
    return {"message": "Password reset email sent"}


@router.get("/working-status", response_model=WorkingStatusPayload)
async def get_working_status(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> WorkingStatusPayload:
    """Get the working status, or in-office for today if none is saved."""
    result = await db.execute(
        select(WorkingStatus).where(WorkingStatus.user_id == current_user.id)
    )
    working_status = result.scalar_one_or_none()
    if working_status is None:
        today = date.today()
        return WorkingStatusPayload(
            status=DEFAULT_WORKING_STATUS,
            start_date=today,
            end_date=today,
        )
    return WorkingStatusPayload.model_validate(working_status)


@router.put("/working-status", response_model=WorkingStatusPayload)
async def update_working_status(
    data: WorkingStatusPayload,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> WorkingStatusPayload:
    if data.end_date < data.start_date:
        raise ValidationError("End date must not be before start date")

    result = await db.execute(
        select(WorkingStatus).where(WorkingStatus.user_id == current_user.id)
    )
    working_status = result.scalar_one_or_none()
    if working_status is None:
        working_status = WorkingStatus(user_id=current_user.id)
        db.add(working_status)

    for field, value in data.model_dump().items():
        setattr(working_status, field, value)

    await db.commit()

    logger.info("working_status_updated", user_id=current_user.id, status=data.status)
    return data
