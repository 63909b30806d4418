"""Per-provider similarity index over claim summaries, backed by pgvector."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phoenix.core.exceptions import DatabaseError
from phoenix.repositories.claim_vector_repository import ClaimVectorRepository
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

Embedder = Callable[[List[str]], Awaitable[List[List[float]]]]


@dataclass(frozen=True)
class IndexedDocument:
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def claim_id(self) -> Optional[int]:
        value = self.metadata.get("claim_id")
        return int(value) if value is not None else None


class ClaimVectorIndex:
    """One provider's collection in the ``claim_vectors`` table.

    Embeddings come from the owning provider's embedding model, so a
    collection is only ever queried with vectors of its own dimension.
    """

    def __init__(
        self,
        collection: str,
        embedder: Embedder,
        session_maker: async_sessionmaker[AsyncSession],
    ):
        """Initialize the index.

        Args:
            collection: Collection name (the provider value)
            embedder: Async callable turning texts into vectors
            session_maker: Factory for per-call database sessions
        """
        self.collection = collection
        self._embedder = embedder
        self._session_maker = session_maker

    async def search(self, query: str, top_k: int = 3) -> List[IndexedDocument]:
        """Return up to ``top_k`` stored summaries closest to ``query``."""
        if not query:
            return []

        vectors = await self._embedder([query])
        async with self._session_maker() as session:
            repo = ClaimVectorRepository(session)
            rows = await repo.semantic_search(self.collection, vectors[0], top_k=top_k)

        LOGGER.debug(
            f"Vector search in {self.collection} returned {len(rows)} documents",
            extra={"best_distance": rows[0][1] if rows else None},
        )
        return [
            IndexedDocument(text=row.content, metadata=dict(row.doc_metadata or {}))
            for row, _distance in rows
        ]

    async def upsert(self, documents: Sequence[IndexedDocument]) -> None:
        """Embed and store documents, replacing earlier vectors for the same claim."""
        if not documents:
            return

        vectors = await self._embedder([doc.text for doc in documents])
        if len(vectors) != len(documents):
            raise DatabaseError(
                f"Embedder returned {len(vectors)} vectors for {len(documents)} documents"
            )

        async with self._session_maker() as session:
            repo = ClaimVectorRepository(session)
            for doc, vector in zip(documents, vectors):
                await repo.upsert(
                    collection=self.collection,
                    claim_id=doc.claim_id,
                    content=doc.text,
                    embedding=vector,
                    metadata=doc.metadata,
                )
        LOGGER.info(f"Upserted {len(documents)} documents into {self.collection}")

    def __repr__(self) -> str:
        return f"ClaimVectorIndex(collection={self.collection!r})"
