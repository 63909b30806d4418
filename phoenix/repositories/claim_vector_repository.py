from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from phoenix.database.models import ClaimVector
from phoenix.repositories.base_repository import BaseRepository


class ClaimVectorRepository(BaseRepository[ClaimVector]):
    """Repository for per-provider claim summary embeddings."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, ClaimVector)

    async def semantic_search(
        self,
        collection: str,
        embedding: List[float],
        top_k: int = 3,
    ) -> List[Tuple[ClaimVector, float]]:
        """Nearest neighbours within one collection.

        Args:
            collection: Provider collection to search
            embedding: Query embedding from the same provider's model
            top_k: Number of results to return

        Returns:
            List of (ClaimVector, cosine_distance) ordered by distance
        """
        distance_expr = self.model.embedding.cosine_distance(embedding).label("distance")
        query = (
            select(self.model, distance_expr)
            .where(self.model.collection == collection)
            .order_by(distance_expr)
            .limit(top_k)
        )
        try:
            result = await self.session.execute(query)
            return [(row[0], float(row[1])) for row in result.all()]
        except SQLAlchemyError as e:
            self.logger.error(
                f"Error searching collection {collection}: {str(e)}",
                exc_info=True
            )
            raise

    async def upsert(
        self,
        collection: str,
        claim_id: Optional[int],
        content: str,
        embedding: List[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Insert or replace the vector for (collection, claim_id)."""
        stmt = insert(self.model).values(
            collection=collection,
            claim_id=claim_id,
            content=content,
            doc_metadata=metadata,
            embedding=embedding,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_claim_vectors_collection_claim",
            set_={
                "content": stmt.excluded.content,
                "doc_metadata": stmt.excluded.doc_metadata,
                "embedding": stmt.excluded.embedding,
            },
        )
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            self.logger.error(
                f"Error upserting vector for claim {claim_id} in {collection}: {str(e)}",
                exc_info=True
            )
            raise
