"""
User ORM model.
"""

from __future__ import annotations

from sqlalchemy import Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, CreatedAtMixin, SerialPKMixin


class User(Base, SerialPKMixin, CreatedAtMixin):
    """A wiki account. Shared by every tenant."""

    __tablename__ = "users"

    username: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    email: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    # bcrypt hash; the column name predates the hashing scheme
    password: Mapped[str | None] = mapped_column(Text, nullable=True)
    role: Mapped[str | None] = mapped_column(
        Text, server_default=text("'user'"), nullable=True
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r}>"
