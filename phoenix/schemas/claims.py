"""Claim enrichment schema definitions.

Pipeline-facing models (change events, fraud results) and the request and
response bodies of the claims API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from phoenix.core.providers import AIProvider


class ClaimChangeEvent(BaseModel):
    """A decoded CDC row for one claim, scoped to a single pipeline run."""

    model_config = ConfigDict(frozen=True)

    claim_id: int = Field(..., description="Primary key of the claim row")
    description: str = Field(..., description="Free-text claim description (may contain PII)")
    prior_summary: Optional[str] = Field(
        default=None, description="Summary already stored on the row, if any"
    )
    requested_provider: Optional[AIProvider] = Field(
        default=None, description="Per-claim provider override"
    )
    requested_temperature: Optional[float] = Field(
        default=None, description="Per-claim temperature override"
    )

    @property
    def already_summarized(self) -> bool:
        return bool(self.prior_summary)


class FraudResult(BaseModel):
    """Validated fraud assessment. Only the fraud parser constructs these."""

    model_config = ConfigDict(frozen=True)

    score: int = Field(..., ge=0, le=100, description="Fraud risk, 0 (none) to 100 (certain)")
    analysis: str = Field(default="", description="Short risk analysis")
    rationale: str = Field(default="", description="Reasoning behind the score")


class ClaimCreateRequest(BaseModel):
    """Body of ``POST /claims``."""

    description: str = Field(..., min_length=1, description="Claim description")
    ai_provider: Optional[str] = Field(
        default=None, description="Provider to use for this claim (ollama, gemini, openai)"
    )
    ai_temperature: Optional[float] = Field(
        default=None, ge=0.0, le=1.0, description="Sampling temperature for this claim"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "description": "Rear-ended at a stop light, bumper damage. Contact john@x.com",
                "ai_provider": "gemini",
                "ai_temperature": 0.2,
            }
        }


class ClaimResponse(BaseModel):
    """A claim row as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str
    status: str
    summary: Optional[str] = None
    ai_provider: Optional[str] = None
    ai_temperature: Optional[float] = None
    fraud_score: Optional[int] = None
    fraud_analysis: Optional[str] = None
    fraud_rationale: Optional[str] = None
    created_at: Optional[datetime] = None
