"""
ORM model for wikis (tenants).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, SerialPKMixin

if TYPE_CHECKING:
    from app.models.page import Page
    from app.models.topic import Topic


class Wiki(Base, SerialPKMixin, CreatedAtMixin):
    """An isolated namespace of topics and pages. Users are shared."""

    __tablename__ = "wikis"

    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    slug: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    topics: Mapped[list[Topic]] = relationship("Topic", back_populates="wiki")
    pages: Mapped[list[Page]] = relationship("Page", back_populates="wiki")

    def __repr__(self) -> str:
        return f"<Wiki id={self.id} slug={self.slug!r}>"
