from functools import lru_cache

from src.config.settings import settings
from src.modules.deduplicator.service import DeduplicatorService
from src.modules.fetcher.service import FetcherService
from src.modules.ingestion.service import IngestionService
from src.modules.persistence.service import persistence_service
from src.modules.summarizer.retry import exponential_backoff
from src.modules.summarizer.schemas import ModelPricing
from src.modules.summarizer.service import SummarizerService, build_chat_model


@lru_cache
def get_summarizer_service() -> SummarizerService:
    return SummarizerService(
        chat_model=build_chat_model(settings),
        pricing=ModelPricing(
            input_per_1k=settings.llm_cost_per_1k_input,
            output_per_1k=settings.llm_cost_per_1k_output,
        ),
        max_input_chars=settings.summary_max_input_chars,
        max_attempts=settings.summary_max_attempts,
        backoff=exponential_backoff(settings.summary_backoff_base_seconds),
    )


@lru_cache
def get_ingestion_service() -> IngestionService:
    return IngestionService(
        registry=persistence_service,
        articles=persistence_service,
        activity_log=persistence_service,
        fetcher=FetcherService(
            max_rss_entries=settings.rss_max_entries,
            timeout=settings.fetch_timeout_seconds,
        ),
        deduplicator=DeduplicatorService(
            persistence_service, fail_open=settings.dedup_fail_open
        ),
        summarizer=get_summarizer_service(),
        llm_provider=settings.llm_provider_label,
    )
