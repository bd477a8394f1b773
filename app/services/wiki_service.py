"""
Wiki business logic.

Read access to tenants. Page and topic counts are scoped by wiki_id and
fetched in the same query as the wikis.
"""

from __future__ import annotations

from fastapi import HTTPException, status
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.page import Page
from app.models.topic import Topic
from app.models.wiki import Wiki
from app.schemas.wiki import WikiListResponse, WikiResponse


def _count_by_wiki(model: type[Page] | type[Topic]):
    return (
        select(model.wiki_id.label("wiki_id"), func.count().label("total"))
        .group_by(model.wiki_id)
        .subquery()
    )


class WikiService:
    """Handles wiki (tenant) lookups."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_wikis(self) -> WikiListResponse:
        result = await self.db.execute(self._with_counts().order_by(Wiki.name.asc()))
        items = [self._to_response(*row) for row in result.all()]
        return WikiListResponse(wikis=items, total=len(items))

    async def get_wiki(self, slug: str) -> WikiResponse:
        result = await self.db.execute(self._with_counts().where(Wiki.slug == slug))
        row = result.one_or_none()
        if row is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail={"code": "WIKI_NOT_FOUND", "message": "Wiki not found"},
            )
        return self._to_response(*row)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    @staticmethod
    def _with_counts() -> Select:
        topics = _count_by_wiki(Topic)
        pages = _count_by_wiki(Page)
        return (
            select(
                Wiki,
                func.coalesce(topics.c.total, 0),
                func.coalesce(pages.c.total, 0),
            )
            .outerjoin(topics, topics.c.wiki_id == Wiki.id)
            .outerjoin(pages, pages.c.wiki_id == Wiki.id)
        )

    @staticmethod
    def _to_response(wiki: Wiki, topic_count: int, page_count: int) -> WikiResponse:
        return WikiResponse(
            id=wiki.id,
            name=wiki.name,
            slug=wiki.slug,
            description=wiki.description,
            created_at=wiki.created_at,
            topic_count=topic_count,
            page_count=page_count,
        )
