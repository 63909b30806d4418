"""Claim intake and listing for the HTTP surface.

Creating a claim only inserts the row; enrichment happens when the insert
reaches the CDC topic.
"""

from typing import List

from sqlalchemy.exc import SQLAlchemyError

from phoenix.core.exceptions import DatabaseError, ValidationError
from phoenix.core.providers import AIProvider
from phoenix.repositories.claim_repository import ClaimRepository
from phoenix.schemas.claims import ClaimCreateRequest, ClaimResponse
from phoenix.services.base_service import BaseService


class ClaimService(BaseService):
    def __init__(self, repository: ClaimRepository):
        super().__init__(repository)

    def validate(self, request: ClaimCreateRequest):
        if request.ai_provider and AIProvider.parse(request.ai_provider) is None:
            raise ValidationError(f"Unknown AI provider: {request.ai_provider}")

    async def run(self, request: ClaimCreateRequest) -> ClaimResponse:
        provider = AIProvider.parse(request.ai_provider)
        try:
            claim = await self.repository.create_claim(
                description=request.description,
                ai_provider=provider.value if provider else None,
                ai_temperature=request.ai_temperature,
            )
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to create claim: {e}", original_error=e)

        self.logger.info(f"Claim {claim.id} created", extra={"ai_provider": claim.ai_provider})
        return ClaimResponse.model_validate(claim)

    async def list_claims(self, skip: int = 0, limit: int = 200) -> List[ClaimResponse]:
        try:
            claims = await self.repository.list_claims(skip=skip, limit=limit)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Failed to list claims: {e}", original_error=e)
        return [ClaimResponse.model_validate(claim) for claim in claims]
