import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from src.config.database import Base, engine
from src.config.settings import settings
from src.modules.articles.router import router as articles_router
from src.modules.ingestion.dependencies import get_ingestion_service
from src.modules.ingestion.router import router as ingestion_router
from src.modules.ingestion.scheduler import IngestionScheduler
from src.modules.link_validator.router import router as link_validator_router
from src.modules.sources.router import router as sources_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    import src.modules.persistence.models  # noqa: F401 (register ORM models)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables synced")

    scheduler: IngestionScheduler | None = None
    if settings.scheduler_enabled:
        scheduler = IngestionScheduler(get_ingestion_service(), settings.ingestion_cron)
        scheduler.start()

    yield

    if scheduler:
        scheduler.stop()
    await engine.dispose()


app = FastAPI(title="AI News Ingestion", lifespan=lifespan)

# API routes
app.include_router(ingestion_router, prefix="/api/ingestion", tags=["ingestion"])
app.include_router(articles_router, prefix="/api/articles", tags=["articles"])
app.include_router(sources_router, prefix="/api/sources", tags=["sources"])
app.include_router(link_validator_router, prefix="/api/links", tags=["links"])


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    uvicorn.run("src.main:app", host=settings.app_host, port=settings.app_port)
