"""User, preferences and session models."""

from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.db.base import Base, BaseModel, CreatedAtMixin, IntegerIDMixin


class User(BaseModel):
    """Account that can sign in with username or email."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    # Profile info
    picture: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mobile_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.username}>"


class UserPreferences(BaseModel):
    """Display preferences for a user."""

    __tablename__ = "user_preferences"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    language: Mapped[str] = mapped_column(String(10), nullable=False, default="en")
    timezone: Mapped[str] = mapped_column(String(100), nullable=False)
    time_format: Mapped[str] = mapped_column(String(10), nullable=False, default="12h")
    date_format: Mapped[str] = mapped_column(String(50), nullable=False)
    first_day_of_week: Mapped[str] = mapped_column(String(20), nullable=False, default="monday")

    def __repr__(self) -> str:
        return f"<UserPreferences user_id={self.user_id}>"


class WorkingStatus(BaseModel):
    """Where a user is working from, and for which date range."""

    __tablename__ = "working_status"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(50), nullable=False)  # in-office, remote, ...
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    disable_notifications: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    disable_online_indication: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )


class SessionHistory(Base, IntegerIDMixin, CreatedAtMixin):
    """One signed-in device. Marking it inactive revokes its token."""

    __tablename__ = "session_history"

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    session_token: Mapped[str] = mapped_column(Text, nullable=False)
    device: Mapped[str | None] = mapped_column(String(255), nullable=True)
    browser: Mapped[str | None] = mapped_column(String(100), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    last_activity: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SessionHistory {self.id} user={self.user_id} active={self.is_active}>"
