"""User directory endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.models.user import User

router = APIRouter()


class UserListItem(BaseModel):
    """User list item for people pickers; never carries the password hash."""

    id: int
    username: str
    email: str
    picture: str | None = None

    class Config:
        from_attributes = True


@router.get("", response_model=list[UserListItem])
async def list_users(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[User]:
    """List all users by username."""
    result = await db.execute(select(User).order_by(User.username))
    return list(result.scalars().all())
