"""
ORM models for topics and per-user topic follows/favorites.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base, CreatedAtMixin, SerialPKMixin

if TYPE_CHECKING:
    from app.models.page import Page
    from app.models.wiki import Wiki


class Topic(Base, SerialPKMixin, CreatedAtMixin):
    """A category of pages inside one wiki. Topics may nest."""

    __tablename__ = "topics"

    __table_args__ = (
        UniqueConstraint("wiki_id", "name", name="uq_topics_wiki_name"),
        Index("ix_topics_wiki_id", "wiki_id"),
        Index("ix_topics_parent_id", "parent_id"),
    )

    wiki_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("wikis.id", ondelete="CASCADE"),
        nullable=True,
    )
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(
        Text, server_default=text("'ph-hash'"), nullable=True
    )
    color: Mapped[str | None] = mapped_column(
        Text, server_default=text("'#6366f1'"), nullable=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("topics.id"), nullable=True
    )

    # Relationships
    wiki: Mapped[Wiki | None] = relationship("Wiki", back_populates="topics")
    parent: Mapped[Topic | None] = relationship(
        "Topic", remote_side="Topic.id", back_populates="children"
    )
    children: Mapped[list[Topic]] = relationship("Topic", back_populates="parent")
    pages: Mapped[list[Page]] = relationship("Page", back_populates="topic")

    def __repr__(self) -> str:
        return f"<Topic id={self.id} name={self.name!r} wiki_id={self.wiki_id}>"


class UserFollowedTopic(Base):
    """Topics a user follows (feed subscription)."""

    __tablename__ = "user_topics"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )
    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id"), primary_key=True
    )


class UserFavoriteTopic(Base):
    """Topics a user pinned as favorites."""

    __tablename__ = "user_favorite_topics"

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), primary_key=True
    )
    topic_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("topics.id"), primary_key=True
    )
