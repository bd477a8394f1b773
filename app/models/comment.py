"""
Comment and CommentReaction ORM models.
"""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, SerialPKMixin


class Comment(Base, SerialPKMixin, CreatedAtMixin):
    """A comment on a page, optionally carrying one attachment."""

    __tablename__ = "comments"

    __table_args__ = (
        Index("ix_comments_wiki_id", "wiki_id"),
        Index("ix_comments_page_id", "page_id"),
    )

    wiki_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("wikis.id", ondelete="CASCADE"),
        nullable=True,
    )
    page_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=True
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachment_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    attachment_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Comment id={self.id} page_id={self.page_id} user_id={self.user_id}>"


class CommentReaction(Base, SerialPKMixin, CreatedAtMixin):
    """One reaction per (comment, user)."""

    __tablename__ = "comment_reactions"

    __table_args__ = (
        UniqueConstraint("comment_id", "user_id"),
    )

    comment_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True
    )
    reaction_type: Mapped[str | None] = mapped_column(Text, nullable=True)
