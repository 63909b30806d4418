"""AI provider configuration endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from phoenix.core.exceptions import ValidationError
from phoenix.dependencies import get_provider_switch_service
from phoenix.schemas.config import (
    ProviderStatusResponse,
    ProviderSwitchRequest,
    ProviderSwitchResponse,
)
from phoenix.services.config.provider_switch_service import ProviderSwitchService
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/ai-provider",
    response_model=ProviderStatusResponse,
    summary="Get active AI provider",
    description="Return the provider, temperature and vector collection currently in use",
    operation_id="get_ai_provider",
)
async def get_ai_provider(
    service: Annotated[ProviderSwitchService, Depends(get_provider_switch_service)],
) -> ProviderStatusResponse:
    return service.status()


@router.post(
    "/ai-provider",
    response_model=ProviderSwitchResponse,
    summary="Switch AI provider",
    description=(
        "Switch the provider used for new claims. Selecting the active provider is a no-op; "
        "claims already in flight keep the provider they started with."
    ),
    operation_id="set_ai_provider",
)
async def set_ai_provider(
    request: ProviderSwitchRequest,
    service: Annotated[ProviderSwitchService, Depends(get_provider_switch_service)],
) -> ProviderSwitchResponse:
    """Switch the active AI provider.

    Out-of-range temperatures are rejected with 422 by request validation;
    unknown providers are rejected with 400 and leave the active provider as is.
    """
    try:
        return await service.execute(request.provider, request.temperature)
    except ValidationError as e:
        LOGGER.warning(f"AI provider switch rejected: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
