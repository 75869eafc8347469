from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ItemOutcome(str, Enum):
    INGESTED = "ingested"
    SKIPPED = "skipped"
    FAILED = "failed"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class SourceReport(_CamelModel):
    """Counts for one source. ``failed`` items are neither ingested nor skipped."""

    source: str
    ingested: int = 0
    skipped: int = 0
    failed: int = 0
    total: int = 0

    def record(self, outcome: ItemOutcome) -> None:
        if outcome is ItemOutcome.INGESTED:
            self.ingested += 1
        elif outcome is ItemOutcome.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


class SourceFailure(_CamelModel):
    source: str
    error: str


class IngestionReport(_CamelModel):
    success: bool = True
    timestamp: datetime
    total_ingested: int
    total_skipped: int
    total_failed: int
    sources: list[SourceReport | SourceFailure]
