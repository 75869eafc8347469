import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from src.modules.ingestion.service import (
    IngestionInProgressError,
    IngestionService,
    NoActiveSourcesError,
)

logger = logging.getLogger(__name__)

JOB_ID = "ingestion_run"


class IngestionScheduler:
    def __init__(self, service: IngestionService, cron: str) -> None:
        self._service = service
        self._cron = cron
        self._scheduler = AsyncIOScheduler()

    async def _scheduled_run(self) -> None:
        try:
            report = await self._service.run()
        except (NoActiveSourcesError, IngestionInProgressError) as exc:
            logger.warning("Scheduled ingestion not run: %s", exc)
            return
        except Exception:
            logger.exception("Scheduled ingestion failed")
            return
        logger.info(
            "Scheduled ingestion complete: %d ingested, %d skipped",
            report.total_ingested, report.total_skipped,
        )

    def start(self) -> None:
        self._scheduler.add_job(
            self._scheduled_run,
            CronTrigger.from_crontab(self._cron),
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info("Scheduler started, ingestion cron '%s'", self._cron)

    def stop(self) -> None:
        self._scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
