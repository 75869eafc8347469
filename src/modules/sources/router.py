from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.config.settings import settings
from src.modules.persistence.schemas import SourceRecord
from src.modules.persistence.service import PersistenceService, get_persistence_service

router = APIRouter()


class SourceStatusResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    total_sources: int
    active_sources: int
    sources: list[SourceRecord]
    has_llm_token: bool


@router.get("/status", response_model=SourceStatusResponse)
async def source_status(store: PersistenceService = Depends(get_persistence_service)):
    sources = await store.list_sources()
    return SourceStatusResponse(
        total_sources=len(sources),
        active_sources=sum(1 for s in sources if s.is_active),
        sources=sources,
        has_llm_token=bool(settings.hf_api_token),
    )
