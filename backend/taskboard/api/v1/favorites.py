"""Favorite (pinned) workplaces of the signed-in user."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.exceptions import ConflictError, NotFoundError
from taskboard.models.workspace import Favorite, Workplace

router = APIRouter()
logger = structlog.get_logger()


class FavoriteCreate(BaseModel):
    workspace_id: int


class FavoriteResponse(BaseModel):
    workspace_id: int
    name: str
    created_at: datetime


@router.get("", response_model=list[FavoriteResponse])
async def list_favorites(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[FavoriteResponse]:
    """Favorited workplaces, most recently pinned first."""
    result = await db.execute(
        select(Favorite.workspace_id, Workplace.name, Favorite.created_at)
        .join(Workplace, Workplace.id == Favorite.workspace_id)
        .where(Favorite.user_id == current_user.id)
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
    )
    return [
        FavoriteResponse(workspace_id=workspace_id, name=name, created_at=created_at)
        for workspace_id, name, created_at in result.all()
    ]


@router.post("", response_model=FavoriteResponse, status_code=status.HTTP_201_CREATED)
async def add_favorite(
    data: FavoriteCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> FavoriteResponse:
    workplace = await db.get(Workplace, data.workspace_id)
    if workplace is None:
        raise NotFoundError("Workspace")

    user_id = current_user.id
    favorite = Favorite(user_id=user_id, workspace_id=workplace.id)
    db.add(favorite)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Workspace is already a favorite")
    await db.refresh(favorite)

    logger.info("favorite_added", user_id=user_id, workspace_id=data.workspace_id)
    return FavoriteResponse(
        workspace_id=favorite.workspace_id,
        name=workplace.name,
        created_at=favorite.created_at,
    )


@router.delete("/{workspace_id}")
async def remove_favorite(
    workspace_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    result = await db.execute(
        select(Favorite).where(
            Favorite.user_id == current_user.id,
            Favorite.workspace_id == workspace_id,
        )
    )
    favorite = result.scalar_one_or_none()
    if favorite is None:
        raise NotFoundError("Favorite")

    await db.delete(favorite)
    await db.commit()
    return {"success": True}
