"""
Pydantic schemas for wikis (tenants).
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class WikiResponse(BaseModel):
    """Wiki detail response."""
    id: int
    name: str
    slug: str
    description: str | None
    created_at: datetime | None
    topic_count: int = 0
    page_count: int = 0

    model_config = {"from_attributes": True}


class WikiListResponse(BaseModel):
    """Response for GET /wikis."""
    wikis: list[WikiResponse]
    total: int
