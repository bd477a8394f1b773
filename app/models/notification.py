"""
Notification ORM model.
"""

from __future__ import annotations

from sqlalchemy import Boolean, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, SerialPKMixin


class Notification(Base, SerialPKMixin, CreatedAtMixin):
    """
    In-app notification for a user.

    `actor_id` is the user who triggered it; `target_id` points at the
    comment or page the notification is about, depending on `type`.
    """

    __tablename__ = "notifications"

    __table_args__ = (
        Index("ix_notifications_user_id", "user_id"),
    )

    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    actor_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    type: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    page_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=True
    )
    is_read: Mapped[bool | None] = mapped_column(
        Boolean, server_default=text("false"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user_id={self.user_id} type={self.type!r}>"
