"""Store interfaces consumed by the enrichment orchestrator, and the SQL adapter."""

from typing import List, Protocol, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phoenix.repositories.claim_repository import ClaimRepository
from phoenix.schemas.claims import FraudResult
from phoenix.services.vector.claim_vector_index import IndexedDocument
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class RelationalStore(Protocol):
    async def update_summary(self, claim_id: int, summary: str) -> None:
        ...

    async def update_fraud_result(self, claim_id: int, result: FraudResult) -> None:
        ...


class VectorIndex(Protocol):
    async def search(self, query: str, top_k: int = 3) -> List[IndexedDocument]:
        ...

    async def upsert(self, documents: Sequence[IndexedDocument]) -> None:
        ...


class ClaimStore:
    """RelationalStore over the ``claims`` table, one session per write.

    Writes are independent; a failure after the summary update leaves the
    summary in place.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    async def update_summary(self, claim_id: int, summary: str) -> None:
        async with self._session_maker() as session:
            await ClaimRepository(session).update_summary(claim_id, summary)
        LOGGER.info(f"Legacy DB summary updated for claim ID: {claim_id}")

    async def update_fraud_result(self, claim_id: int, result: FraudResult) -> None:
        async with self._session_maker() as session:
            await ClaimRepository(session).update_fraud(
                claim_id,
                score=result.score,
                analysis=result.analysis,
                rationale=result.rationale,
            )
        LOGGER.info(
            f"Legacy DB fraud result updated for claim ID: {claim_id}",
            extra={"fraud_score": result.score},
        )
