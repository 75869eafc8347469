from abc import ABC, abstractmethod

from src.modules.persistence.schemas import (
    ArticleRecord,
    NewActivityLog,
    NewArticle,
    SourceRecord,
)


class SourceRegistryContract(ABC):
    @abstractmethod
    async def list_active_sources(self) -> list[SourceRecord]: ...

    @abstractmethod
    async def list_sources(self) -> list[SourceRecord]: ...


class ArticleContract(ABC):
    @abstractmethod
    async def find_article_id_by_url(self, url: str) -> int | None: ...

    @abstractmethod
    async def insert_article(self, article: NewArticle) -> int | None:
        """Return the new id, or None when the URL is already stored."""

    @abstractmethod
    async def get_article(self, article_id: int) -> ArticleRecord | None: ...

    @abstractmethod
    async def list_articles(
        self,
        category: str | None = None,
        search: str | None = None,
        limit: int = 50,
    ) -> list[ArticleRecord]: ...

    @abstractmethod
    async def list_recent_urls(self, limit: int = 100) -> list[str]: ...


class ActivityLogContract(ABC):
    @abstractmethod
    async def insert_activity_log(self, entry: NewActivityLog) -> None: ...
