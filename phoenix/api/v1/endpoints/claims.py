"""Claim intake and listing endpoints."""

from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from phoenix.core.exceptions import DatabaseError, ValidationError
from phoenix.dependencies import get_claim_service
from phoenix.schemas.claims import ClaimCreateRequest, ClaimResponse
from phoenix.services.claim_service import ClaimService
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=List[ClaimResponse],
    summary="List claims",
    description="List claims newest first, including any enrichment already written back",
    operation_id="list_claims",
)
async def list_claims(
    service: Annotated[ClaimService, Depends(get_claim_service)],
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=200, ge=1, le=1000),
) -> List[ClaimResponse]:
    try:
        return await service.list_claims(skip=skip, limit=limit)
    except DatabaseError as e:
        LOGGER.error(f"Listing claims failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@router.post(
    "",
    response_model=ClaimResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create claim",
    description="Insert an OPEN claim; enrichment starts when the change reaches the CDC topic",
    operation_id="create_claim",
)
async def create_claim(
    request: ClaimCreateRequest,
    service: Annotated[ClaimService, Depends(get_claim_service)],
) -> ClaimResponse:
    try:
        return await service.execute(request)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except DatabaseError as e:
        LOGGER.error(f"Creating claim failed: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
