"""Health check API endpoints."""

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from phoenix.core.config import settings
from phoenix.core.database import db_client
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str = Field(..., description="Health check status")
    version: str = Field(..., description="Running application version")
    service: str = Field(..., description="Service name")
    ai_provider: Optional[str] = Field(default=None, description="Active AI provider")
    cdc_running: bool = Field(default=False, description="Whether the CDC loop is consuming")


@router.get(
    "",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health check endpoint",
    description="Check if the service is running and healthy",
    operation_id="get_service_health_status",
)
async def health_check(request: Request) -> HealthCheckResponse:
    """Health check endpoint."""
    db_health = await db_client.health_check()

    pipeline = getattr(request.app.state, "pipeline", None)
    ingestion = getattr(request.app.state, "ingestion_loop", None)

    return HealthCheckResponse(
        status="healthy" if db_health["status"] == "healthy" else "degraded",
        version=settings.app_version,
        service=settings.app_name,
        ai_provider=pipeline.registry.current().provider.value if pipeline else None,
        cdc_running=bool(ingestion and ingestion.running),
    )
