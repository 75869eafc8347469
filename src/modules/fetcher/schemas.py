from datetime import datetime

from pydantic import BaseModel, Field


class RawItem(BaseModel):
    """Normalized candidate article pulled from a source, not yet stored."""

    title: str = Field(..., min_length=1)
    content: str = ""
    url: str = Field(..., min_length=1)
    published_at: datetime
    image_url: str | None = None
