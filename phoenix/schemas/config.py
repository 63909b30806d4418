"""Request and response bodies of the AI provider configuration API."""

from pydantic import BaseModel, Field


class ProviderSwitchRequest(BaseModel):
    """Body of ``POST /config/ai-provider``.

    Temperature is range-checked here so an out-of-range value is rejected
    with 422 before the registry is consulted.
    """

    provider: str = Field(..., description="Target provider (ollama, gemini, openai)")
    temperature: float = Field(default=0.3, ge=0.0, le=1.0, description="Sampling temperature")

    class Config:
        json_schema_extra = {"example": {"provider": "gemini", "temperature": 0.3}}


class ProviderSwitchResponse(BaseModel):
    status: str = Field(..., description="Outcome of the switch request")
    provider: str = Field(..., description="Provider active after the request")


class ProviderStatusResponse(BaseModel):
    provider: str = Field(..., description="Active provider")
    temperature: float = Field(..., description="Active sampling temperature")
    collection: str = Field(..., description="Vector collection backing the active provider")
