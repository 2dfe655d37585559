"""Saved section (column) order per workplace."""

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.deps import AppSettings
from taskboard.api.v1.auth import CurrentUser
from taskboard.db.session import get_db_session
from taskboard.models.workspace import SectionOrder

router = APIRouter()
logger = structlog.get_logger()

# Workspace id used for the board that is not tied to any workplace
GLOBAL_WORKSPACE_ID = 0


class SectionOrderPayload(BaseModel):
    workspace_id: int = GLOBAL_WORKSPACE_ID
    order: list[str] = Field(..., min_length=1)


class SectionOrderResponse(BaseModel):
    workspace_id: int
    order: list[str]


async def _get_saved(db: AsyncSession, workspace_id: int) -> SectionOrder | None:
    result = await db.execute(
        select(SectionOrder)
        .where(SectionOrder.workspace_id == workspace_id)
        .order_by(SectionOrder.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


@router.get("", response_model=SectionOrderResponse)
async def get_section_order(
    current_user: CurrentUser,
    settings: AppSettings,
    db: AsyncSession = Depends(get_db_session),
    workspace_id: int = Query(GLOBAL_WORKSPACE_ID),
) -> SectionOrderResponse:
    """Saved order for a workplace, or the default order if none was saved."""
    saved = await _get_saved(db, workspace_id)
    order = saved.order if saved is not None else list(settings.default_section_order)
    return SectionOrderResponse(workspace_id=workspace_id, order=order)


@router.post("", response_model=SectionOrderResponse)
async def save_section_order(
    data: SectionOrderPayload,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> SectionOrderResponse:
    saved = await _get_saved(db, data.workspace_id)
    if saved is None:
        db.add(SectionOrder(workspace_id=data.workspace_id, order=data.order))
    else:
        saved.order = data.order
    await db.commit()

    logger.info("section_order_saved", workspace_id=data.workspace_id, sections=len(data.order))
    return SectionOrderResponse(workspace_id=data.workspace_id, order=data.order)
