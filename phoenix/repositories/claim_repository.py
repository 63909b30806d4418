from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phoenix.database.models import Claim
from phoenix.repositories.base_repository import BaseRepository


class ClaimRepository(BaseRepository[Claim]):
    """Repository for the legacy ``claims`` table."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Claim)

    async def list_claims(self, skip: int = 0, limit: int = 200) -> List[Claim]:
        """Claims newest first."""
        return await self.list_page(Claim.id.desc(), skip=skip, limit=limit)

    async def create_claim(
        self,
        description: str,
        ai_provider: Optional[str] = None,
        ai_temperature: Optional[float] = None,
    ) -> Claim:
        """Insert an OPEN claim; CDC picks it up from the write-ahead log."""
        return await self.create(
            description=description,
            status="OPEN",
            ai_provider=ai_provider,
            ai_temperature=ai_temperature,
        )

    async def update_summary(self, claim_id: int, summary: str) -> int:
        """Set ``summary`` on one claim.

        Returns:
            Number of rows updated (0 when the claim no longer exists)
        """
        return await self._update_columns(claim_id, summary=summary)

    async def update_fraud(
        self,
        claim_id: int,
        score: int,
        analysis: str,
        rationale: str,
    ) -> int:
        """Set the three fraud columns on one claim."""
        return await self._update_columns(
            claim_id,
            fraud_score=score,
            fraud_analysis=analysis,
            fraud_rationale=rationale,
        )

    async def _update_columns(self, claim_id: int, **values) -> int:
        try:
            stmt = update(Claim).where(Claim.id == claim_id).values(**values)
            result = await self.session.execute(stmt)
            await self.session.commit()
            if result.rowcount == 0:
                self.logger.warning(
                    f"No claim row updated for id {claim_id}",
                    extra={"claim_id": claim_id, "columns": list(values)},
                )
            return result.rowcount
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error updating claim {claim_id}: {str(e)}",
                exc_info=True
            )
            raise
