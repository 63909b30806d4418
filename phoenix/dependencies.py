"""Centralized dependency injection for the FastAPI application."""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from phoenix.core.database import get_async_session
from phoenix.core.exceptions import ConfigurationError
from phoenix.repositories.claim_repository import ClaimRepository
from phoenix.services.claim_service import ClaimService
from phoenix.services.config.provider_switch_service import ProviderSwitchService
from phoenix.services.enrichment.provider_registry import ProviderRegistry


async def get_claim_repository(
    db_session: Annotated[AsyncSession, Depends(get_async_session)]
) -> ClaimRepository:
    """Get claim repository instance.

    Args:
        db_session: Database session from dependency injection

    Returns:
        ClaimRepository: Repository for the claims table
    """
    return ClaimRepository(db_session)


async def get_claim_service(
    repository: Annotated[ClaimRepository, Depends(get_claim_repository)]
) -> ClaimService:
    return ClaimService(repository)


def get_provider_registry(request: Request) -> ProviderRegistry:
    """Registry built during application startup.

    Raises:
        ConfigurationError: If the lifespan has not assembled the pipeline
    """
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise ConfigurationError("Enrichment pipeline is not initialized")
    return pipeline.registry


def get_provider_switch_service(
    registry: Annotated[ProviderRegistry, Depends(get_provider_registry)]
) -> ProviderSwitchService:
    return ProviderSwitchService(registry)
