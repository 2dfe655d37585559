"""Task, update and attachment models."""

from datetime import date

from sqlalchemy import (
    BigInteger,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.db.base import Base, BaseModel, CreatedAtMixin, IntegerIDMixin


class Task(BaseModel):
    """One row on a board."""

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_workplace_section_position", "workplace_id", "section", "position"),
    )

    # Title
    item: Mapped[str] = mapped_column(String(500), nullable=False)

    # Free-text people columns
    developer: Mapped[str | None] = mapped_column(String(255), nullable=True)
    support: Mapped[str | None] = mapped_column(String(255), nullable=True)
    requested_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Status and priority pills
    status_label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    status_color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    priority_label: Mapped[str | None] = mapped_column(String(100), nullable=True)
    priority_color: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Grouping
    section: Mapped[str | None] = mapped_column(String(255), nullable=True)
    workplace_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # Timeline
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Ordering within a section/workplace view
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return f"<Task {self.id} {self.item!r}>"


class TaskUpdate(Base, IntegerIDMixin, CreatedAtMixin):
    """Free-text note posted on a task."""

    __tablename__ = "task_updates"

    task_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<TaskUpdate {self.id} on task={self.task_id}>"


class UpdateComment(Base, IntegerIDMixin, CreatedAtMixin):
    """Comment on a task update."""

    __tablename__ = "update_comments"

    update_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("task_updates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    text: Mapped[str] = mapped_column(Text, nullable=False)
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


class UpdateReaction(BaseModel):
    """A user's single reaction on an update; the type can be changed."""

    __tablename__ = "update_reactions"
    __table_args__ = (
        UniqueConstraint("update_id", "user_id", name="uq_update_reaction_user"),
    )

    update_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("task_updates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    reaction_type: Mapped[str] = mapped_column(String(50), nullable=False, default="like")


class UpdateLike(Base, IntegerIDMixin, CreatedAtMixin):
    """Like on an update, toggled per user."""

    __tablename__ = "update_likes"
    __table_args__ = (
        UniqueConstraint("update_id", "user_id", name="uq_update_like_user"),
    )

    update_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("task_updates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


class TaskFile(Base, IntegerIDMixin, CreatedAtMixin):
    """File attached to a task; bytes live under the upload directory."""

    __tablename__ = "task_files"

    task_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tasks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1000), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"<TaskFile {self.original_name} on task={self.task_id}>"
