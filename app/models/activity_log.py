"""
ActivityLog ORM model.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, SerialPKMixin


class ActivityLog(Base, SerialPKMixin, CreatedAtMixin):
    """Append-only audit/feed record."""

    __tablename__ = "activity_log"

    __table_args__ = (
        Index("ix_activity_log_wiki_id", "wiki_id"),
        Index("ix_activity_log_user_id", "user_id"),
    )

    wiki_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("wikis.id", ondelete="CASCADE"),
        nullable=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    action_type: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Not a foreign key: entries outlive deleted pages
    page_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSONB, nullable=True
    )

    def __repr__(self) -> str:
        return f"<ActivityLog id={self.id} action_type={self.action_type!r}>"
