"""Per-provider vector indexes over claim summaries."""

from phoenix.services.vector.claim_vector_index import ClaimVectorIndex, IndexedDocument

__all__ = [
    "ClaimVectorIndex",
    "IndexedDocument",
]
