"""Reactions and likes on task updates.

Each user holds at most one reaction and one like per update; posting the
same reaction again, or liking twice, takes it back.
"""

import structlog
from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.api.v1.task_updates import get_update_or_404
from taskboard.db.session import get_db_session
from taskboard.models.task import UpdateLike, UpdateReaction

router = APIRouter()
likes_router = APIRouter()
logger = structlog.get_logger()


class ReactionToggle(BaseModel):
    update_id: int
    reaction_type: str = Field("like", min_length=1, max_length=50)


class ReactionState(BaseModel):
    reacted: bool
    reaction_type: str | None


class ReactionCount(BaseModel):
    reaction_type: str
    count: int


class UserReaction(BaseModel):
    reaction_type: str | None


class LikeCount(BaseModel):
    count: int


class LikeToggleResponse(BaseModel):
    success: bool
    count: int
    liked: bool


async def _count_likes(db: AsyncSession, update_id: int) -> int:
    result = await db.execute(
        select(func.count()).select_from(UpdateLike).where(UpdateLike.update_id == update_id)
    )
    return result.scalar_one()


@router.post("", response_model=ReactionState)
async def toggle_reaction(
    data: ReactionToggle,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> ReactionState:
    """Add, change or remove the caller's reaction on an update."""
    await get_update_or_404(db, data.update_id)
    user_id = current_user.id

    result = await db.execute(
        select(UpdateReaction).where(
            UpdateReaction.update_id == data.update_id,
            UpdateReaction.user_id == user_id,
        )
    )
    existing = result.scalar_one_or_none()

    if existing is not None and existing.reaction_type == data.reaction_type:
        await db.delete(existing)
        state = ReactionState(reacted=False, reaction_type=None)
    elif existing is not None:
        existing.reaction_type = data.reaction_type
        state = ReactionState(reacted=True, reaction_type=data.reaction_type)
    else:
        db.add(
            UpdateReaction(
                update_id=data.update_id,
                user_id=user_id,
                reaction_type=data.reaction_type,
            )
        )
        state = ReactionState(reacted=True, reaction_type=data.reaction_type)

    await db.commit()
    logger.info(
        "update_reaction_toggled",
        update_id=data.update_id,
        user_id=user_id,
        reaction_type=state.reaction_type,
    )
    return state


@router.get("/{update_id}", response_model=list[ReactionCount])
async def count_reactions(
    update_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[ReactionCount]:
    """Reaction counts on an update grouped by type."""
    result = await db.execute(
        select(UpdateReaction.reaction_type, func.count(UpdateReaction.id))
        .where(UpdateReaction.update_id == update_id)
        .group_by(UpdateReaction.reaction_type)
        .order_by(UpdateReaction.reaction_type)
    )
    return [ReactionCount(reaction_type=rt, count=count) for rt, count in result.all()]


@router.get("/{update_id}/user", response_model=UserReaction)
async def get_my_reaction(
    update_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> UserReaction:
    result = await db.execute(
        select(UpdateReaction.reaction_type).where(
            UpdateReaction.update_id == update_id,
            UpdateReaction.user_id == current_user.id,
        )
    )
    return UserReaction(reaction_type=result.scalar_one_or_none())


@router.delete("/{update_id}/{user_id}")
async def remove_reaction(
    update_id: int,
    user_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    await db.execute(
        delete(UpdateReaction).where(
            UpdateReaction.update_id == update_id,
            UpdateReaction.user_id == user_id,
        )
    )
    await db.commit()
    return {"success": True}


# Likes


@likes_router.get("/{update_id}", response_model=LikeCount)
async def count_likes(
    update_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> LikeCount:
    return LikeCount(count=await _count_likes(db, update_id))


@likes_router.post("/{update_id}", response_model=LikeToggleResponse)
async def toggle_like(
    update_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> LikeToggleResponse:
    """Like the update, or unlike it if the caller already does."""
    await get_update_or_404(db, update_id)
    user_id = current_user.id

    result = await db.execute(
        select(UpdateLike).where(
            UpdateLike.update_id == update_id,
            UpdateLike.user_id == user_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        await db.delete(existing)
    else:
        db.add(UpdateLike(update_id=update_id, user_id=user_id))
    await db.commit()

    liked = existing is None
    logger.info("update_like_toggled", update_id=update_id, user_id=user_id, liked=liked)
    return LikeToggleResponse(success=True, count=await _count_likes(db, update_id), liked=liked)
