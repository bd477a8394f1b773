"""
ORM models for pages, their revision history and page favorites.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, SerialPKMixin

if TYPE_CHECKING:
    from app.models.topic import Topic
    from app.models.wiki import Wiki


class PageStatus(str, enum.Enum):
    draft = "draft"
    published = "published"


PAGE_STATUS_CHECK = "status IN ({})".format(
    ", ".join(f"'{status.value}'" for status in PageStatus)
)


class Page(Base, SerialPKMixin, CreatedAtMixin):
    """A Markdown page. Slugs are unique per wiki."""

    __tablename__ = "pages"

    __table_args__ = (
        UniqueConstraint("wiki_id", "slug", name="uq_pages_wiki_slug"),
        CheckConstraint(PAGE_STATUS_CHECK, name="ck_pages_status"),
        Index("ix_pages_wiki_id", "wiki_id"),
        Index("ix_pages_topic_id", "topic_id"),
        Index("ix_pages_author_id", "author_id"),
    )

    wiki_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("wikis.id", ondelete="CASCADE"),
        nullable=True,
    )
    slug: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(Text, nullable=True)
    topic_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("topics.id"), nullable=True
    )
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    status: Mapped[str | None] = mapped_column(
        Text, server_default=text("'draft'"), nullable=True
    )
    is_verified: Mapped[bool | None] = mapped_column(
        Boolean, server_default=text("false"), nullable=True
    )
    allow_comments: Mapped[bool | None] = mapped_column(
        Boolean, server_default=text("true"), nullable=True
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(), server_default=text("CURRENT_TIMESTAMP"), nullable=True
    )

    # Relationships
    wiki: Mapped[Wiki | None] = relationship("Wiki", back_populates="pages")
    topic: Mapped[Topic | None] = relationship("Topic", back_populates="pages")
    revisions: Mapped[list[PageRevision]] = relationship(
        "PageRevision", back_populates="page", passive_deletes=True
    )

    def __repr__(self) -> str:
        return f"<Page id={self.id} slug={self.slug!r} wiki_id={self.wiki_id}>"


class PageRevision(Base, SerialPKMixin, CreatedAtMixin):
    """Append-only content snapshot of a page."""

    __tablename__ = "page_revisions"

    __table_args__ = (
        Index("ix_page_revisions_page_id", "page_id"),
    )

    page_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    author_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    change_summary: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Relationships
    page: Mapped[Page | None] = relationship("Page", back_populates="revisions")


class UserFavorite(Base, SerialPKMixin, CreatedAtMixin):
    """Pages a user bookmarked."""

    __tablename__ = "user_favorites"

    __table_args__ = (
        UniqueConstraint("user_id", "page_id"),
    )

    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    page_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("pages.id"), nullable=True
    )
