from fastapi import APIRouter, Depends

from src.modules.auth.dependencies import require_trigger_token
from src.modules.link_validator.service import (
    LinkValidationReport,
    LinkValidatorService,
    get_link_validator_service,
)

router = APIRouter()


@router.get(
    "/validate",
    response_model=LinkValidationReport,
    dependencies=[Depends(require_trigger_token)],
)
async def validate_links(
    service: LinkValidatorService = Depends(get_link_validator_service),
):
    return await service.validate()
