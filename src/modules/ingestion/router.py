import logging

from fastapi import APIRouter, Depends, HTTPException

from src.modules.auth.dependencies import require_trigger_token
from src.modules.ingestion.dependencies import get_ingestion_service
from src.modules.ingestion.schemas import IngestionReport
from src.modules.ingestion.service import (
    IngestionInProgressError,
    IngestionService,
    NoActiveSourcesError,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.api_route(
    "/run",
    methods=["GET", "POST"],
    response_model=IngestionReport,
    dependencies=[Depends(require_trigger_token)],
)
async def run_ingestion(
    service: IngestionService = Depends(get_ingestion_service),
) -> IngestionReport:
    try:
        return await service.run()
    except NoActiveSourcesError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except IngestionInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except Exception as exc:
        logger.exception("Ingestion failed")
        raise HTTPException(
            status_code=500,
            detail={"error": "Ingestion failed", "message": str(exc)},
        )
