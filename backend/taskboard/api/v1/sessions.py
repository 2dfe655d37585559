"""Signed-in devices of the current user."""

from datetime import datetime

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.api.v1.auth import BearerToken, CurrentUser
from taskboard.db.session import get_db_session
from taskboard.models.user import SessionHistory
from taskboard.services.sessions import UNKNOWN_LOCATION, SessionHistoryService, detect_client

router = APIRouter()


class SessionCreate(BaseModel):
    """Client-reported session details; missing values are detected from the request."""

    session_token: str | None = None
    device: str | None = Field(None, max_length=255)
    browser: str | None = Field(None, max_length=100)
    location: str | None = Field(None, max_length=255)


class SessionResponse(BaseModel):
    id: int
    device: str | None
    browser: str | None
    location: str | None
    ip_address: str | None
    is_active: bool
    last_activity: datetime
    created_at: datetime
    is_current: bool = False

    class Config:
        from_attributes = True


def _to_response(session: SessionHistory, current_token: str) -> SessionResponse:
    response = SessionResponse.model_validate(session)
    response.is_current = session.session_token == current_token
    return response


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    current_user: CurrentUser,
    token: BearerToken,
    db: AsyncSession = Depends(get_db_session),
) -> list[SessionResponse]:
    """Sessions of the signed-in user, most recently active first."""
    sessions = await SessionHistoryService(db).list_for_user(current_user.id)
    return [_to_response(s, token) for s in sessions]


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def record_session(
    data: SessionCreate,
    request: Request,
    current_user: CurrentUser,
    token: BearerToken,
    db: AsyncSession = Depends(get_db_session),
) -> SessionResponse:
    user_agent = request.headers.get("user-agent")
    client = detect_client(user_agent)
    session = await SessionHistoryService(db).record(
        user_id=current_user.id,
        session_token=data.session_token or token,
        device=data.device or client.device,
        browser=data.browser or client.browser,
        location=data.location or UNKNOWN_LOCATION,
        ip_address=request.client.host if request.client else None,
        user_agent=user_agent,
    )
    return _to_response(session, token)


@router.delete("/logout-all")
async def logout_other_sessions(
    current_user: CurrentUser,
    token: BearerToken,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool | int]:
    """Revoke every session except the one making this request."""
    revoked = await SessionHistoryService(db).revoke_others(current_user.id, token)
    return {"success": True, "revoked": revoked}


@router.delete("/{session_id}")
async def logout_session(
    session_id: int,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, bool]:
    await SessionHistoryService(db).revoke(current_user.id, session_id)
    return {"success": True}
