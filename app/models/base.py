"""
Base model classes and mixins.

Provides Base declarative class, SerialPKMixin and CreatedAtMixin.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class SerialPKMixin:
    """
    Mixin that adds an integer SERIAL primary key.

    Existing deployments store integer ids, so every table keeps them.
    """

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Unique identifier for the record",
    )


class CreatedAtMixin:
    """Mixin that adds created_at, filled by the database on insert."""

    created_at: Mapped[datetime | None] = mapped_column(
        DateTime(),
        server_default=text("CURRENT_TIMESTAMP"),
        nullable=True,
        doc="Timestamp when the record was created",
    )
