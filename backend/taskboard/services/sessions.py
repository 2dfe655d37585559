"""Session history: one row per signed-in device."""

from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import NotFoundError
from taskboard.models.user import SessionHistory

logger = structlog.get_logger()

UNKNOWN_DEVICE = "Unknown Device"
UNKNOWN_BROWSER = "Unknown Browser"
UNKNOWN_LOCATION = "Unknown Location"


@dataclass(frozen=True)
class ClientInfo:
    device: str
    browser: str
    location: str = UNKNOWN_LOCATION


# Checked in order; Edge and Chrome both advertise "Chrome", Chrome also
# advertises "Safari".
_BROWSER_SIGNATURES: tuple[tuple[str, str, str], ...] = (
    ("Edg", "Edge", "Generic Windows edge"),
    ("Chrome", "Chrome", "Generic Linux chrome"),
    ("Firefox", "Firefox", "Generic Linux firefox"),
    ("Safari", "Safari", "Generic Mac safari"),
)


def detect_client(user_agent: str | None) -> ClientInfo:
    """Rough browser/device guess from a User-Agent header."""
    if user_agent:
        for marker, browser, device in _BROWSER_SIGNATURES:
            if marker in user_agent:
                return ClientInfo(device=device, browser=browser)
    return ClientInfo(device=UNKNOWN_DEVICE, browser=UNKNOWN_BROWSER)


class SessionHistoryService:
    """Service for recording and revoking user sessions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record(
        self,
        user_id: int,
        session_token: str,
        device: str | None,
        browser: str | None,
        location: str | None,
        ip_address: str | None,
        user_agent: str | None,
    ) -> SessionHistory:
        """Store a session row and commit."""
        session = SessionHistory(
            user_id=user_id,
            session_token=session_token,
            device=device,
            browser=browser,
            location=location,
            ip_address=ip_address,
            user_agent=user_agent,
            is_active=True,
        )
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info("session_recorded", user_id=user_id, session_id=session.id, browser=browser)
        return session

    async def record_login(
        self,
        user_id: int,
        session_token: str,
        user_agent: str | None,
        ip_address: str | None,
    ) -> SessionHistory:
        client = detect_client(user_agent)
        return await self.record(
            user_id=user_id,
            session_token=session_token,
            device=client.device,
            browser=client.browser,
            location=client.location,
            ip_address=ip_address or "Unknown IP",
            user_agent=user_agent or UNKNOWN_BROWSER,
        )

    async def list_for_user(self, user_id: int) -> Sequence[SessionHistory]:
        result = await self.db.execute(
            select(SessionHistory)
            .where(SessionHistory.user_id == user_id)
            .order_by(SessionHistory.last_activity.desc(), SessionHistory.id.desc())
        )
        return result.scalars().all()

    async def is_revoked(self, session_token: str) -> bool:
        """True when the token belongs to a session that was logged out.

        Tokens with no session row (e.g. issued at registration) are not
        tracked and therefore never revoked.
        """
        result = await self.db.execute(
            select(SessionHistory.is_active).where(SessionHistory.session_token == session_token)
        )
        states = result.scalars().all()
        return bool(states) and not any(states)

    async def revoke(self, user_id: int, session_id: int) -> None:
        """Mark one of the user's sessions inactive."""
        result = await self.db.execute(
            select(SessionHistory).where(
                SessionHistory.id == session_id,
                SessionHistory.user_id == user_id,
            )
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError("Session")

        session.is_active = False
        await self.db.commit()
        logger.info("session_revoked", user_id=user_id, session_id=session_id)

    async def revoke_others(self, user_id: int, current_token: str) -> int:
        """Mark every session except the current one inactive."""
        result = await self.db.execute(
            update(SessionHistory)
            .where(
                SessionHistory.user_id == user_id,
                SessionHistory.session_token != current_token,
                SessionHistory.is_active.is_(True),
            )
            .values(is_active=False)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        logger.info("sessions_revoked", user_id=user_id, count=result.rowcount)
        return result.rowcount
