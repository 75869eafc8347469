import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.config.database import async_session
from src.modules.persistence.contracts import (
    ActivityLogContract,
    ArticleContract,
    SourceRegistryContract,
)
from src.modules.persistence.models import ActivityLog, Article, Source
from src.modules.persistence.schemas import (
    ArticleRecord,
    NewActivityLog,
    NewArticle,
    SourceRecord,
)

logger = logging.getLogger(__name__)


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class PersistenceService(SourceRegistryContract, ArticleContract, ActivityLogContract):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session) -> None:
        self._session_factory = session_factory

    # ── Sources ──────────────────────────────────────────────────

    async def list_active_sources(self) -> list[SourceRecord]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Source).where(Source.is_active.is_(True)).order_by(Source.id)
            )
            return [SourceRecord.model_validate(row) for row in result.scalars().all()]

    async def list_sources(self) -> list[SourceRecord]:
        async with self._session_factory() as session:
            result = await session.execute(select(Source).order_by(Source.id))
            return [SourceRecord.model_validate(row) for row in result.scalars().all()]

    # ── Articles ─────────────────────────────────────────────────

    async def find_article_id_by_url(self, url: str) -> int | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Article.id).where(Article.url == url).limit(1)
            )
            return result.scalar_one_or_none()

    async def insert_article(self, article: NewArticle) -> int | None:
        async with self._session_factory() as session:
            row = Article(**article.model_dump())
            session.add(row)
            try:
                await session.commit()
            except IntegrityError:
                # Unique constraint on url: another writer stored it first
                await session.rollback()
                logger.info("Article already stored, insert skipped: %s", article.url)
                return None
            return row.id

    async def get_article(self, article_id: int) -> ArticleRecord | None:
        async with self._session_factory() as session:
            row = await session.get(Article, article_id)
            return ArticleRecord.model_validate(row) if row else None

    async def list_articles(
        self,
        category: str | None = None,
        search: str | None = None,
        limit: int = 50,
    ) -> list[ArticleRecord]:
        stmt = select(Article)
        if category:
            stmt = stmt.where(Article.category == category)
        if search:
            pattern = f"%{_escape_like(search)}%"
            stmt = stmt.where(
                or_(
                    Article.title.ilike(pattern, escape="\\"),
                    Article.summary.ilike(pattern, escape="\\"),
                )
            )
        stmt = stmt.order_by(Article.published_at.desc(), Article.id.desc()).limit(limit)

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            return [ArticleRecord.model_validate(row) for row in result.scalars().all()]

    async def list_recent_urls(self, limit: int = 100) -> list[str]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(Article.url).order_by(Article.published_at.desc()).limit(limit)
            )
            return list(result.scalars().all())

    # ── Activity log ─────────────────────────────────────────────

    async def insert_activity_log(self, entry: NewActivityLog) -> None:
        async with self._session_factory() as session:
            session.add(ActivityLog(**entry.model_dump()))
            await session.commit()


persistence_service = PersistenceService()


def get_persistence_service() -> PersistenceService:
    return persistence_service
