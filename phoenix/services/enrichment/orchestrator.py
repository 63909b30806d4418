"""Per-claim enrichment: redact, summarize, retrieve, score, persist, index.

Each claim runs inside one ``claim.enrichment`` span. Relational writes and
the vector upsert are separate operations with no compensation; a failure
after the summary write leaves the summary in place.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Status, StatusCode

from phoenix.core.exceptions import APIClientError
from phoenix.core.providers import AIProvider, GenerationOptions
from phoenix.core.unified_llm import LLMClient, LLMClientTable
from phoenix.schemas.claims import ClaimChangeEvent, FraudResult
from phoenix.services.enrichment import fraud_parser
from phoenix.services.enrichment.prompts import (
    FRAUD_SYSTEM_PROMPT,
    NO_PRIOR_CLAIMS,
    build_fraud_prompt,
    build_summary_prompt,
)
from phoenix.services.enrichment.provider_registry import ProviderRegistry
from phoenix.services.enrichment.stores import RelationalStore, VectorIndex
from phoenix.services.governance.redactor import redact
from phoenix.services.vector.claim_vector_index import IndexedDocument
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)

SPAN_NAME = "claim.enrichment"
VECTOR_SOURCE = "legacy_db"
FRAUD_TEMPERATURE = 0.0


class EnrichmentStage(str, Enum):
    RECEIVED = "received"
    REDACTED = "redacted"
    SUMMARIZED = "summarized"
    CONTEXT_RETRIEVED = "context_retrieved"
    SCORED = "scored"
    PERSISTED = "persisted"
    INDEXED = "indexed"
    DONE = "done"
    ERRORED = "errored"
    SKIPPED = "skipped"


@dataclass
class EnrichmentOutcome:
    """Result of one pipeline run, kept only for logging and tests."""

    claim_id: int
    stage: EnrichmentStage = EnrichmentStage.RECEIVED
    summary: Optional[str] = None
    fraud_result: Optional[FraudResult] = None
    historical_context_used: bool = False
    error: Optional[str] = None


class ClaimEnrichmentOrchestrator:
    """Runs the enrichment stage machine for one claim change event at a time.

    Instances are stateless between calls and safe to share across tasks.
    """

    def __init__(
        self,
        claim_store: RelationalStore,
        llm_clients: LLMClientTable,
        registry: ProviderRegistry,
        retrieval_top_k: int = 3,
        fraud_repeat_penalty: Optional[float] = 1.1,
        tracer: Optional[trace.Tracer] = None,
    ):
        """Initialize the orchestrator.

        Args:
            claim_store: Relational store receiving summary and fraud columns
            llm_clients: Provider -> LLM client table
            registry: Source of the active provider selection
            retrieval_top_k: Number of similar claims fed to fraud scoring
            fraud_repeat_penalty: Repeat penalty for the scoring call
            tracer: Tracer for the per-claim span (defaults to the global provider)
        """
        self.claim_store = claim_store
        self.llm_clients = llm_clients
        self.registry = registry
        self.retrieval_top_k = retrieval_top_k
        self.fraud_repeat_penalty = fraud_repeat_penalty
        self.tracer = tracer or trace.get_tracer(__name__)

    async def enrich(
        self,
        event: ClaimChangeEvent,
        parent_context: Optional[Context] = None,
    ) -> EnrichmentOutcome:
        """Enrich one claim. Never raises; failures end in ERRORED.

        Args:
            event: Decoded claim change
            parent_context: Trace context extracted from the CDC message

        Returns:
            EnrichmentOutcome describing how far the claim got
        """
        outcome = EnrichmentOutcome(claim_id=event.claim_id)

        if event.already_summarized:
            LOGGER.info(f"Claim {event.claim_id} already summarized, skipping")
            outcome.stage = EnrichmentStage.SKIPPED
            outcome.summary = event.prior_summary
            return outcome

        snapshot = self.registry.current()
        provider = event.requested_provider or snapshot.provider
        temperature = (
            event.requested_temperature
            if event.requested_temperature is not None
            else snapshot.temperature
        )
        vector_index = (
            self.registry.resolve_index(event.requested_provider)
            if event.requested_provider is not None
            else snapshot.vector_index
        )

        with self.tracer.start_as_current_span(SPAN_NAME, context=parent_context) as span:
            span.set_attribute("claim.id", event.claim_id)
            span.set_attribute("ai.provider", provider.value)
            try:
                await self._run_stages(event, outcome, span, provider, temperature, vector_index)
            except Exception as e:
                outcome.error = str(e)
                LOGGER.error(
                    f"Critical error processing claim {event.claim_id} after stage {outcome.stage.value}: {e}",
                    exc_info=True,
                    extra={"claim_id": event.claim_id, "ai_provider": provider.value},
                )
                outcome.stage = EnrichmentStage.ERRORED
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))

        return outcome

    async def _run_stages(
        self,
        event: ClaimChangeEvent,
        outcome: EnrichmentOutcome,
        span: trace.Span,
        provider: AIProvider,
        temperature: float,
        vector_index: VectorIndex,
    ) -> None:
        llm = self.llm_clients.get(provider)

        redacted = redact(event.description) or ""
        outcome.stage = EnrichmentStage.REDACTED

        summary = await llm.invoke(
            None,
            build_summary_prompt(redacted),
            GenerationOptions(temperature=temperature),
        )
        # Only non-blank summaries are persisted
        if not summary or not summary.strip():
            raise APIClientError(f"Empty summary from {provider.value}")
        outcome.summary = summary
        await self.claim_store.update_summary(event.claim_id, summary)
        outcome.stage = EnrichmentStage.SUMMARIZED
        span.add_event("summary.persisted")

        historical_context = await self._retrieve_context(event.claim_id, redacted, vector_index)
        outcome.historical_context_used = historical_context != NO_PRIOR_CLAIMS
        outcome.stage = EnrichmentStage.CONTEXT_RETRIEVED
        span.add_event(
            "context.retrieved",
            {"context.used": outcome.historical_context_used},
        )

        fraud_result = await self._score(llm, redacted, historical_context)
        outcome.fraud_result = fraud_result
        outcome.stage = EnrichmentStage.SCORED
        span.add_event("fraud.scored", {"fraud.score": fraud_result.score})

        await self.claim_store.update_fraud_result(event.claim_id, fraud_result)
        outcome.stage = EnrichmentStage.PERSISTED

        if await self._index_summary(event.claim_id, summary, provider, vector_index):
            span.add_event("vector.store.sync")
        outcome.stage = EnrichmentStage.INDEXED

        span.add_event("pipeline.complete")
        outcome.stage = EnrichmentStage.DONE
        LOGGER.info(
            f"Claim {event.claim_id} enriched via {provider.value}",
            extra={"fraud_score": fraud_result.score},
        )

    async def _retrieve_context(
        self,
        claim_id: int,
        query: str,
        vector_index: VectorIndex,
    ) -> str:
        try:
            documents: List[IndexedDocument] = await vector_index.search(query, top_k=self.retrieval_top_k)
        except Exception as e:
            LOGGER.warning(
                f"Similar-claim retrieval failed for claim {claim_id}, continuing without context: {e}",
                extra={"claim_id": claim_id},
            )
            return NO_PRIOR_CLAIMS

        if not documents:
            return NO_PRIOR_CLAIMS
        return "\n".join(f"- {doc.text}" for doc in documents)

    async def _score(self, llm: LLMClient, claim_text: str, historical_context: str) -> FraudResult:
        options = GenerationOptions(
            temperature=FRAUD_TEMPERATURE,
            repeat_penalty=self.fraud_repeat_penalty,
        )

        async def generate(prompt: str) -> str:
            return await llm.invoke(FRAUD_SYSTEM_PROMPT, prompt, options)

        return await fraud_parser.score_with_retry(
            generate,
            build_fraud_prompt(claim_text, historical_context),
        )

    async def _index_summary(
        self,
        claim_id: int,
        summary: str,
        provider: AIProvider,
        vector_index: VectorIndex,
    ) -> bool:
        document = IndexedDocument(
            text=summary,
            metadata={"source": VECTOR_SOURCE, "claim_id": claim_id},
        )
        try:
            await vector_index.upsert([document])
        except Exception as e:
            LOGGER.error(
                f"Vector Store Error for claim {claim_id}: {e}",
                extra={"claim_id": claim_id, "ai_provider": provider.value},
            )
            return False
        LOGGER.info(f"Saved vector for claim ID: {claim_id} via {provider.value}")
        return True
