import logging
from collections.abc import Iterable
from typing import TypeVar

from src.modules.persistence.contracts import ArticleContract

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DeduplicatorService:
    """Checks candidate URLs against the stored articles.

    Matching is exact and case-sensitive; URLs are not normalized. When the
    store lookup fails, ``fail_open`` decides the outcome: True lets the item
    through, False skips it.
    """

    def __init__(self, store: ArticleContract, fail_open: bool = True) -> None:
        self._store = store
        self._fail_open = fail_open

    async def is_duplicate(self, url: str) -> bool:
        try:
            return await self._store.find_article_id_by_url(url) is not None
        except Exception:
            logger.warning(
                "Duplicate check failed for %s, treating as %s",
                url,
                "new" if self._fail_open else "duplicate",
                exc_info=True,
            )
            return not self._fail_open


def deduplicate_by_image(articles: Iterable[T]) -> list[T]:
    """Keep the first article per image URL; articles without an image are kept."""
    seen_images: set[str] = set()
    unique: list[T] = []
    for article in articles:
        image_url = getattr(article, "image_url", None)
        if image_url:
            if image_url in seen_images:
                continue
            seen_images.add(image_url)
        unique.append(article)
    return unique
