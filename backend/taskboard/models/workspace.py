"""Workspace (workplace), favorites and section order models."""

from sqlalchemy import JSON, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.db.base import Base, BaseModel, CreatedAtMixin, IntegerIDMixin


class Workplace(BaseModel):
    """A named board that groups tasks.

    Tasks point at their workplace by id only; deleting a workplace leaves
    its tasks in place.
    """

    __tablename__ = "workplaces"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Workplace {self.name}>"


class Favorite(Base, IntegerIDMixin, CreatedAtMixin):
    """A workplace pinned by a user."""

    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "workspace_id", name="uq_favorite_user_workspace"),
    )

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    workspace_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("workplaces.id", ondelete="CASCADE"),
        nullable=False,
    )


class SectionOrder(BaseModel):
    """Saved column order for a workplace (0 is the global default board)."""

    __tablename__ = "section_order"

    workspace_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True, default=0)
    order: Mapped[list[str]] = mapped_column("order_json", JSON, nullable=False)
