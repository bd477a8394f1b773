"""
SQLAlchemy ORM models.

All models imported here to ensure they are registered with Base.metadata,
which the schema bootstrapper treats as the expected final shape.
"""

from app.models.base import Base, CreatedAtMixin, SerialPKMixin
from app.models.wiki import Wiki
from app.models.user import User
from app.models.topic import Topic, UserFavoriteTopic, UserFollowedTopic
from app.models.page import Page, PageRevision, PageStatus, UserFavorite
from app.models.activity_log import ActivityLog
from app.models.comment import Comment, CommentReaction
from app.models.notification import Notification
from app.models.session import SessionRecord

__all__ = [
    "Base",
    "CreatedAtMixin",
    "SerialPKMixin",
    "Wiki",
    "User",
    "Topic",
    "UserFollowedTopic",
    "UserFavoriteTopic",
    "Page",
    "PageStatus",
    "PageRevision",
    "UserFavorite",
    "ActivityLog",
    "Comment",
    "CommentReaction",
    "Notification",
    "SessionRecord",
]
