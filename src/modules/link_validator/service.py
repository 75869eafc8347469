import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.modules.persistence.contracts import ArticleContract
from src.modules.persistence.service import persistence_service

logger = logging.getLogger(__name__)

CHECK_LIMIT = 100
REQUEST_TIMEOUT = 5.0
MAX_CONCURRENCY = 5
MAX_REPORTED_INVALID = 10


class LinkValidationReport(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    timestamp: datetime
    total_checked: int
    valid_count: int
    invalid_count: int
    invalid_urls: list[str]


class LinkValidatorService:
    """HEAD-checks the most recently published article URLs."""

    def __init__(
        self,
        store: ArticleContract,
        limit: int = CHECK_LIMIT,
        timeout: float = REQUEST_TIMEOUT,
        client_factory: Callable[[], httpx.AsyncClient] = httpx.AsyncClient,
    ) -> None:
        self._store = store
        self._limit = limit
        self._timeout = timeout
        self._client_factory = client_factory

    async def _is_reachable(self, client: httpx.AsyncClient, url: str) -> bool:
        try:
            response = await client.head(url, timeout=self._timeout, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            logger.info("Failed to check URL %s: %s", url, exc)
            return False
        if response.is_success:
            return True
        logger.info("Invalid URL (%d): %s", response.status_code, url)
        return False

    async def validate(self) -> LinkValidationReport:
        urls = await self._store.list_recent_urls(self._limit)
        semaphore = asyncio.Semaphore(MAX_CONCURRENCY)

        async with self._client_factory() as client:

            async def check(url: str) -> bool:
                async with semaphore:
                    return await self._is_reachable(client, url)

            results = await asyncio.gather(*(check(url) for url in urls))

        invalid = [url for url, ok in zip(urls, results) if not ok]
        logger.info("Link validation: %d checked, %d invalid", len(urls), len(invalid))
        return LinkValidationReport(
            timestamp=datetime.now(timezone.utc),
            total_checked=len(urls),
            valid_count=len(urls) - len(invalid),
            invalid_count=len(invalid),
            invalid_urls=invalid[:MAX_REPORTED_INVALID],
        )


def get_link_validator_service() -> LinkValidatorService:
    return LinkValidatorService(persistence_service)
