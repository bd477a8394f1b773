"""
Web session store table.

Layout follows the connect-pg-simple convention so an external session
store can share it: sid / sess / expire plus an index on expire.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class SessionRecord(Base):
    __tablename__ = "session"

    __table_args__ = (
        Index("IDX_session_expire", "expire"),
    )

    sid: Mapped[str] = mapped_column(String, primary_key=True)
    sess: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    expire: Mapped[datetime] = mapped_column(
        TIMESTAMP(precision=6), nullable=False
    )
