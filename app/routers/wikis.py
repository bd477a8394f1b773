"""
Wiki (tenant) endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.schemas.wiki import WikiListResponse, WikiResponse
from app.services.wiki_service import WikiService

router = APIRouter()


def get_wiki_service(db: AsyncSession = Depends(get_db)) -> WikiService:
    return WikiService(db=db)


@router.get(
    "/wikis",
    response_model=WikiListResponse,
    summary="List wikis",
)
async def list_wikis(
    service: WikiService = Depends(get_wiki_service),
) -> WikiListResponse:
    return await service.list_wikis()


@router.get(
    "/wikis/{slug}",
    response_model=WikiResponse,
    summary="Get a wiki by slug",
)
async def get_wiki(
    slug: str,
    service: WikiService = Depends(get_wiki_service),
) -> WikiResponse:
    return await service.get_wiki(slug)
