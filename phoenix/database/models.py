"""SQLAlchemy models for the legacy claims table and the claim vector index."""

from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    JSON,
    Float,
    Integer,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from phoenix.core.database import Base


class Claim(Base):
    """Row of the legacy ``claims`` table, the source of CDC events.

    The enrichment pipeline only ever writes ``summary`` and the three
    ``fraud_*`` columns.
    """

    __tablename__ = "claims"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="OPEN")
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    ai_provider: Mapped[str | None] = mapped_column(String(32), nullable=True)
    ai_temperature: Mapped[float | None] = mapped_column(Float, nullable=True)
    fraud_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    fraud_analysis: Mapped[str | None] = mapped_column(Text, nullable=True)
    fraud_rationale: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )


class ClaimVector(Base):
    """Summary embedding of a claim in one provider's collection.

    Each provider embeds with its own model, so dimensions differ across
    collections; the column is left unsized and searches always filter on
    ``collection``.
    """

    __tablename__ = "claim_vectors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(
        String(32), nullable=False, index=True, comment="AI provider owning this vector"
    )
    claim_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    doc_metadata: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    embedding = mapped_column(Vector(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        UniqueConstraint("collection", "claim_id", name="uq_claim_vectors_collection_claim"),
    )
