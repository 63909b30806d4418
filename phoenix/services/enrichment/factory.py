"""Assembly of the enrichment pipeline from settings."""

from dataclasses import dataclass
from typing import Dict, List, Optional

from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from phoenix.cdc.consumer import ClaimIngestionLoop, MessageSource
from phoenix.cdc.kafka_source import KafkaClaimSource
from phoenix.core.config import Settings
from phoenix.core.exceptions import ConfigurationError
from phoenix.core.providers import AIProvider
from phoenix.core.unified_llm import LLMClientTable
from phoenix.services.enrichment.orchestrator import ClaimEnrichmentOrchestrator
from phoenix.services.enrichment.provider_registry import ProviderRegistry
from phoenix.services.enrichment.stores import ClaimStore
from phoenix.services.vector.claim_vector_index import ClaimVectorIndex
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass
class EnrichmentPipeline:
    llm_clients: LLMClientTable
    indexes: Dict[AIProvider, ClaimVectorIndex]
    registry: ProviderRegistry
    orchestrator: ClaimEnrichmentOrchestrator


def _embedder_for(llm_clients: LLMClientTable, provider: AIProvider):
    # Resolve the client per call so an unconfigured provider fails only when used
    async def embed(texts: List[str]) -> List[List[float]]:
        return await llm_clients.get(provider).embed(texts)

    return embed


def build_pipeline(
    settings: Settings,
    session_maker: async_sessionmaker[AsyncSession],
    llm_clients: Optional[LLMClientTable] = None,
    tracer: Optional[trace.Tracer] = None,
) -> EnrichmentPipeline:
    """Wire clients, per-provider indexes, the registry and the orchestrator.

    Raises:
        ConfigurationError: If AI_DEFAULT_PROVIDER is not a known provider
    """
    default_provider = AIProvider.parse(settings.llm.default_provider)
    if default_provider is None:
        raise ConfigurationError(f"Unknown AI_DEFAULT_PROVIDER: {settings.llm.default_provider}")

    llm_clients = llm_clients or LLMClientTable(settings.llm)
    indexes = {
        provider: ClaimVectorIndex(
            collection=provider.value,
            embedder=_embedder_for(llm_clients, provider),
            session_maker=session_maker,
        )
        for provider in AIProvider
    }
    registry = ProviderRegistry(
        index_table=indexes,
        default_provider=default_provider,
        default_temperature=settings.llm.default_temperature,
    )
    orchestrator = ClaimEnrichmentOrchestrator(
        claim_store=ClaimStore(session_maker),
        llm_clients=llm_clients,
        registry=registry,
        retrieval_top_k=settings.enrichment.retrieval_top_k,
        fraud_repeat_penalty=settings.enrichment.fraud_repeat_penalty,
        tracer=tracer,
    )
    LOGGER.info("Enrichment pipeline assembled", extra={"default_provider": default_provider.value})
    return EnrichmentPipeline(
        llm_clients=llm_clients,
        indexes=indexes,
        registry=registry,
        orchestrator=orchestrator,
    )


def build_ingestion_loop(
    pipeline: EnrichmentPipeline,
    settings: Settings,
    source: Optional[MessageSource] = None,
) -> ClaimIngestionLoop:
    """CDC loop over ``source``, defaulting to the Kafka claims topic."""
    if source is None:
        source = KafkaClaimSource(settings.cdc)
    return ClaimIngestionLoop(
        source=source,
        orchestrator=pipeline.orchestrator,
        max_in_flight=settings.cdc.max_in_flight,
    )
