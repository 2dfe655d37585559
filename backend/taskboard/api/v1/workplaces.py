"""Workplace (board) endpoints."""

from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.exceptions import NotFoundError
from taskboard.models.workspace import Favorite, SectionOrder, Workplace

router = APIRouter()
logger = structlog.get_logger()


class WorkplaceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)


class WorkplaceResponse(BaseModel):
    id: int
    name: str
    created_at: datetime

    class Config:
        from_attributes = True


async def get_workplace_or_404(db: AsyncSession, workplace_id: int) -> Workplace:
    workplace = await db.get(Workplace, workplace_id)
    if workplace is None:
        raise NotFoundError("Workplace")
    return workplace


@router.get("", response_model=list[WorkplaceResponse])
async def list_workplaces(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> list[Workplace]:
    result = await db.execute(select(Workplace).order_by(Workplace.id))
    return list(result.scalars().all())


@router.post("", response_model=WorkplaceResponse, status_code=status.HTTP_201_CREATED)
async def create_workplace(
    data: WorkplaceCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> Workplace:
    workplace = Workplace(name=data.name)
    db.add(workplace)
    await db.commit()
    await db.refresh(workplace)

    logger.info("workplace_created", workplace_id=workplace.id, user_id=current_user.id)
    return workplace


@router.put("/{workplace_id}", response_model=WorkplaceResponse)
async def rename_workplace(
    workplace_id: int,
    data: WorkplaceCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> Workplace:
    workplace = await get_workplace_or_404(db, workplace_id)
    workplace.name = data.name
    await db.commit()
    await db.refresh(workplace)
    return workplace


@router.delete("/{workplace_id}")
async def delete_workplace(
    workplace_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    """Delete a workplace with its favorites and saved section order.

    Tasks that reference the workplace are left untouched.
    """
    workplace = await get_workplace_or_404(db, workplace_id)

    await db.execute(delete(Favorite).where(Favorite.workspace_id == workplace_id))
    await db.execute(delete(SectionOrder).where(SectionOrder.workspace_id == workplace_id))
    await db.delete(workplace)
    await db.commit()

    logger.info("workplace_deleted", workplace_id=workplace_id, user_id=current_user.id)
    return {"success": True}
