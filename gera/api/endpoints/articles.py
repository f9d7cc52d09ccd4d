"""
Public read-only article endpoints: listing, detail, search, featured.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from gera.api.deps import get_article_manager, get_storage
from gera.api.uploads import with_image_url
from gera.core.exceptions import NotFound
from gera.schemas.content import ArticleRead, ArticleSummary
from gera.services.records import ArticleManager
from gera.storage import AbstractStorage

router = APIRouter(tags=["articles"])


@router.get("/articles", response_model=list[ArticleSummary])
async def list_articles(
    category: str | None = None,
    articles: ArticleManager = Depends(get_article_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> list[ArticleSummary]:
    """Newest first, optionally restricted to one category."""
    return [
        with_image_url(ArticleSummary, a, storage)
        for a in await articles.list_public(category)
    ]


@router.get("/article", response_model=ArticleRead)
async def get_article(
    id: int = Query(...),
    articles: ArticleManager = Depends(get_article_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> ArticleRead:
    return with_image_url(ArticleRead, await articles.get(id), storage)


@router.get("/featured", response_model=ArticleSummary)
async def featured_article(
    articles: ArticleManager = Depends(get_article_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> ArticleSummary:
    """The most recent article, shown as the portal headline."""
    article = await articles.latest()
    if article is None:
        raise NotFound("No articles published yet")
    return with_image_url(ArticleSummary, article, storage)


@router.get("/search", response_model=list[ArticleSummary])
async def search_articles(
    q: str = "",
    articles: ArticleManager = Depends(get_article_manager),
    storage: AbstractStorage = Depends(get_storage),
) -> list[ArticleSummary]:
    term = q.strip()
    if not term:
        return []
    return [with_image_url(ArticleSummary, a, storage) for a in await articles.search(term)]
