from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class SourceType(str, Enum):
    RSS = "rss"
    API = "api"
    CUSTOM = "custom"


class SourceRecord(BaseModel):
    """A configured content source as read from the registry."""

    id: int
    name: str
    type: SourceType
    api_url: str | None = None
    is_active: bool = True

    model_config = {"from_attributes": True}


class NewArticle(BaseModel):
    title: str
    summary: str
    category: str
    source: str
    url: str
    image_url: str | None = None
    published_at: datetime


class ArticleRecord(NewArticle):
    id: int
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class NewActivityLog(BaseModel):
    article_id: int | None
    llm_provider: str
    tokens_used: int | None = None
    cost_estimate: float | None = None
