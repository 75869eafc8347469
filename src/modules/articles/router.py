from fastapi import APIRouter, Depends, HTTPException, Query

from src.modules.categorizer.service import Category
from src.modules.deduplicator.service import deduplicate_by_image
from src.modules.persistence.schemas import ArticleRecord
from src.modules.persistence.service import PersistenceService, get_persistence_service

router = APIRouter()


@router.get("", response_model=list[ArticleRecord])
async def list_articles(
    category: Category | None = None,
    q: str | None = Query(default=None, max_length=200),
    limit: int = Query(default=50, ge=1, le=200),
    store: PersistenceService = Depends(get_persistence_service),
):
    articles = await store.list_articles(
        category=category.value if category else None,
        search=q.strip() if q else None,
        limit=limit,
    )
    return deduplicate_by_image(articles)


@router.get("/{article_id}", response_model=ArticleRecord)
async def get_article(
    article_id: int, store: PersistenceService = Depends(get_persistence_service)
):
    article = await store.get_article(article_id)
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")
    return article
