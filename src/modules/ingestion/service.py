import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import httpx

from src.modules.categorizer.service import Category, categorize
from src.modules.deduplicator.service import DeduplicatorService
from src.modules.fetcher.schemas import RawItem
from src.modules.fetcher.service import FetcherService
from src.modules.ingestion.schemas import (
    IngestionReport,
    ItemOutcome,
    SourceFailure,
    SourceReport,
)
from src.modules.persistence.contracts import (
    ActivityLogContract,
    ArticleContract,
    SourceRegistryContract,
)
from src.modules.persistence.schemas import NewActivityLog, NewArticle, SourceRecord
from src.modules.summarizer.schemas import SummaryResult
from src.modules.summarizer.service import SummarizationError, SummarizerService

logger = logging.getLogger(__name__)


class NoActiveSourcesError(Exception):
    pass


class IngestionInProgressError(Exception):
    pass


class IngestionService:
    """Runs one ingestion pass over every active source.

    Sources and their items are processed one at a time. A failing source is
    reported and the run moves on; a failing item is counted and the source
    moves on. Runs in the same process are serialized.
    """

    def __init__(
        self,
        registry: SourceRegistryContract,
        articles: ArticleContract,
        activity_log: ActivityLogContract,
        fetcher: FetcherService,
        deduplicator: DeduplicatorService,
        summarizer: SummarizerService,
        llm_provider: str,
        categorizer: Callable[[RawItem], Category] = categorize,
        client_factory: Callable[[], httpx.AsyncClient] = httpx.AsyncClient,
    ) -> None:
        self._registry = registry
        self._articles = articles
        self._activity_log = activity_log
        self._fetcher = fetcher
        self._deduplicator = deduplicator
        self._summarizer = summarizer
        self._llm_provider = llm_provider
        self._categorize = categorizer
        self._client_factory = client_factory
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self._lock.locked()

    async def run(self) -> IngestionReport:
        if self._lock.locked():
            raise IngestionInProgressError("An ingestion run is already in progress")
        async with self._lock:
            return await self._run()

    async def _run(self) -> IngestionReport:
        sources = await self._registry.list_active_sources()
        if not sources:
            raise NoActiveSourcesError("No active sources found")

        logger.info("Ingestion started (%d active sources)", len(sources))
        results: list[SourceReport | SourceFailure] = []

        async with self._client_factory() as client:
            for source in sources:
                try:
                    results.append(await self._process_source(source, client))
                except Exception as exc:
                    logger.exception("Error processing source %s", source.name)
                    results.append(
                        SourceFailure(source=source.name, error=str(exc) or type(exc).__name__)
                    )

        reports = [r for r in results if isinstance(r, SourceReport)]
        report = IngestionReport(
            timestamp=datetime.now(timezone.utc),
            total_ingested=sum(r.ingested for r in reports),
            total_skipped=sum(r.skipped for r in reports),
            total_failed=sum(r.failed for r in reports),
            sources=results,
        )
        logger.info(
            "Ingestion finished: %d ingested, %d skipped, %d failed, %d source errors",
            report.total_ingested,
            report.total_skipped,
            report.total_failed,
            len(results) - len(reports),
        )
        return report

    async def _process_source(
        self, source: SourceRecord, client: httpx.AsyncClient
    ) -> SourceReport:
        logger.info("Processing source: %s", source.name)
        items = await self._fetcher.fetch_items(source, client)

        report = SourceReport(source=source.name, total=len(items))
        for item in items:
            report.record(await self._process_item(source, item))

        logger.info(
            "Source %s: %d ingested, %d skipped, %d failed of %d",
            source.name, report.ingested, report.skipped, report.failed, report.total,
        )
        return report

    async def _process_item(self, source: SourceRecord, item: RawItem) -> ItemOutcome:
        try:
            if await self._deduplicator.is_duplicate(item.url):
                logger.debug("Duplicate skipped: %s", item.url)
                return ItemOutcome.SKIPPED

            summary = await self._summarizer.summarize(item.content)
            category = self._categorize(item)
            article_id = await self._articles.insert_article(
                NewArticle(
                    title=item.title,
                    summary=summary.text,
                    category=category.value,
                    source=source.name,
                    url=item.url,
                    image_url=item.image_url,
                    published_at=item.published_at,
                )
            )
        except SummarizationError as exc:
            logger.error("Skipping %s from %s: %s", item.url, source.name, exc)
            return ItemOutcome.FAILED
        except Exception:
            logger.exception("Error processing article %s from %s", item.url, source.name)
            return ItemOutcome.FAILED

        if article_id is None:
            return ItemOutcome.SKIPPED

        await self._log_activity(article_id, summary)
        return ItemOutcome.INGESTED

    async def _log_activity(self, article_id: int, summary: SummaryResult) -> None:
        # The article stays stored even if this write fails
        try:
            await self._activity_log.insert_activity_log(
                NewActivityLog(
                    article_id=article_id,
                    llm_provider=self._llm_provider,
                    tokens_used=summary.tokens_used,
                    cost_estimate=summary.cost_estimate,
                )
            )
        except Exception:
            logger.exception("Failed to write activity log for article %d", article_id)
