"""Unit tests for the claim enrichment orchestrator."""

import pytest
from unittest.mock import AsyncMock

from opentelemetry.trace import StatusCode

from phoenix.core.exceptions import APIClientError
from phoenix.core.providers import AIProvider
from phoenix.schemas.claims import ClaimChangeEvent, FraudResult
from phoenix.services.enrichment.fraud_parser import FALLBACK_ANALYSIS
from phoenix.services.enrichment.orchestrator import ClaimEnrichmentOrchestrator, EnrichmentStage
from phoenix.services.enrichment.prompts import FRAUD_SYSTEM_PROMPT, NO_PRIOR_CLAIMS, SUMMARY_INSTRUCTION
from phoenix.services.vector.claim_vector_index import IndexedDocument

SUMMARY = "Claimant requests contact regarding a submitted claim."
FRAUD_OUTPUT = "SCORE: 85\nANALYSIS: High risk.\nRATIONALE: Claimant filed twice."

PIPELINE_EVENTS = [
    "summary.persisted",
    "context.retrieved",
    "fraud.scored",
    "vector.store.sync",
    "pipeline.complete",
]


@pytest.fixture
def orchestrator(claim_store, llm_clients, registry, tracer):
    return ClaimEnrichmentOrchestrator(
        claim_store=claim_store,
        llm_clients=llm_clients.table,
        registry=registry,
        tracer=tracer,
    )


@pytest.fixture
def claim_42() -> ClaimChangeEvent:
    return ClaimChangeEvent(claim_id=42, description="Contact me at a@b.com, SSN 123-45-6789")


def event_names(span):
    return [event.name for event in span.events]


class TestEnrichmentPipeline:
    """End-to-end runs over mocked stores and LLM clients."""

    @pytest.mark.asyncio
    async def test_claim_42_end_to_end(
        self, orchestrator, claim_42, claim_store, llm_clients, index_table, span_exporter
    ):
        ollama = llm_clients.clients[AIProvider.OLLAMA]
        ollama.invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.DONE
        assert outcome.error is None

        summary_call, fraud_call = ollama.invoke.await_args_list
        system_prompt, summary_prompt, summary_options = summary_call.args
        assert system_prompt is None
        assert summary_prompt.startswith(SUMMARY_INSTRUCTION)
        assert "[REDACTED_EMAIL]" in summary_prompt
        assert "[REDACTED_SSN]" in summary_prompt
        assert "a@b.com" not in summary_prompt
        assert "123-45-6789" not in summary_prompt
        assert summary_options.temperature == 0.3

        fraud_system, fraud_prompt, fraud_options = fraud_call.args
        assert fraud_system == FRAUD_SYSTEM_PROMPT
        assert "a@b.com" not in fraud_prompt
        assert NO_PRIOR_CLAIMS in fraud_prompt
        assert fraud_options.temperature == 0.0
        assert fraud_options.repeat_penalty == 1.1

        expected = FraudResult(score=85, analysis="High risk.", rationale="Claimant filed twice.")
        claim_store.update_summary.assert_awaited_once_with(42, SUMMARY)
        claim_store.update_fraud_result.assert_awaited_once_with(42, expected)
        assert outcome.fraud_result == expected

        index_table[AIProvider.OLLAMA].upsert.assert_awaited_once_with(
            [IndexedDocument(text=SUMMARY, metadata={"source": "legacy_db", "claim_id": 42})]
        )

        (span,) = span_exporter.get_finished_spans()
        assert span.name == "claim.enrichment"
        assert span.attributes["claim.id"] == 42
        assert span.attributes["ai.provider"] == "ollama"
        assert span.attributes["governance.pii_detected"] is True
        assert event_names(span) == PIPELINE_EVENTS

    @pytest.mark.asyncio
    async def test_summarized_claim_is_skipped(self, orchestrator, claim_store, llm_clients, span_exporter):
        event = ClaimChangeEvent(claim_id=7, description="Hail damage", prior_summary="Hail damage to roof.")

        outcome = await orchestrator.enrich(event)

        assert outcome.stage == EnrichmentStage.SKIPPED
        for client in llm_clients.clients.values():
            client.invoke.assert_not_awaited()
        claim_store.update_summary.assert_not_awaited()
        claim_store.update_fraud_result.assert_not_awaited()
        assert span_exporter.get_finished_spans() == ()

    @pytest.mark.asyncio
    async def test_replay_after_summary_written_has_no_writes(self, orchestrator, claim_store, llm_clients):
        llm_clients.clients[AIProvider.OLLAMA].invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])
        first = ClaimChangeEvent(claim_id=9, description="Stolen bicycle")
        replay = ClaimChangeEvent(claim_id=9, description="Stolen bicycle", prior_summary=SUMMARY)

        await orchestrator.enrich(first)
        await orchestrator.enrich(replay)

        assert claim_store.update_summary.await_count == 1
        assert claim_store.update_fraud_result.await_count == 1

    @pytest.mark.asyncio
    async def test_historical_context_fed_to_scoring(self, orchestrator, claim_42, llm_clients, index_table):
        ollama = llm_clients.clients[AIProvider.OLLAMA]
        ollama.invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])
        index_table[AIProvider.OLLAMA].search = AsyncMock(
            return_value=[IndexedDocument(text="Prior claim for identical bumper damage.", metadata={"claim_id": 3})]
        )

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.historical_context_used is True
        fraud_prompt = ollama.invoke.await_args_list[1].args[1]
        assert "Prior claim for identical bumper damage." in fraud_prompt
        search_query = index_table[AIProvider.OLLAMA].search.await_args.args[0]
        assert "[REDACTED_SSN]" in search_query

    @pytest.mark.asyncio
    async def test_retrieval_failure_degrades(self, orchestrator, claim_42, llm_clients, index_table, claim_store):
        ollama = llm_clients.clients[AIProvider.OLLAMA]
        ollama.invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])
        index_table[AIProvider.OLLAMA].search = AsyncMock(side_effect=APIClientError("embedding down"))

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.DONE
        assert outcome.historical_context_used is False
        assert NO_PRIOR_CLAIMS in ollama.invoke.await_args_list[1].args[1]
        claim_store.update_fraud_result.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_index_failure_still_done(self, orchestrator, claim_42, llm_clients, index_table, span_exporter):
        llm_clients.clients[AIProvider.OLLAMA].invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])
        index_table[AIProvider.OLLAMA].upsert = AsyncMock(side_effect=RuntimeError("pgvector unavailable"))

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.DONE
        (span,) = span_exporter.get_finished_spans()
        assert "vector.store.sync" not in event_names(span)
        assert "pipeline.complete" in event_names(span)

    @pytest.mark.asyncio
    async def test_unparseable_scoring_uses_fallback(self, orchestrator, claim_42, llm_clients, claim_store):
        ollama = llm_clients.clients[AIProvider.OLLAMA]
        ollama.invoke = AsyncMock(side_effect=[SUMMARY, "no idea", "still no idea"])

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.DONE
        assert ollama.invoke.await_count == 3
        claim_store.update_fraud_result.assert_awaited_once_with(
            42, FraudResult(score=0, analysis=FALLBACK_ANALYSIS, rationale="still no idea")
        )


class TestEnrichmentFailures:
    """Failures end in ERRORED without losing earlier writes."""

    @pytest.mark.asyncio
    async def test_scoring_llm_failure_keeps_summary(
        self, orchestrator, claim_42, llm_clients, claim_store, index_table, span_exporter
    ):
        llm_clients.clients[AIProvider.OLLAMA].invoke = AsyncMock(
            side_effect=[SUMMARY, APIClientError("model unavailable")]
        )

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.ERRORED
        assert "model unavailable" in outcome.error
        assert outcome.summary == SUMMARY
        claim_store.update_summary.assert_awaited_once_with(42, SUMMARY)
        claim_store.update_fraud_result.assert_not_awaited()
        index_table[AIProvider.OLLAMA].upsert.assert_not_awaited()

        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR
        assert "exception" in event_names(span)
        assert "pipeline.complete" not in event_names(span)

    @pytest.mark.asyncio
    async def test_summary_failure(self, orchestrator, claim_42, llm_clients, claim_store):
        llm_clients.clients[AIProvider.OLLAMA].invoke = AsyncMock(side_effect=APIClientError("timeout"))

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.ERRORED
        claim_store.update_summary.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blank_summary", ["", "   \n"])
    async def test_blank_summary_is_never_persisted(
        self, orchestrator, llm_clients, claim_store, index_table, span_exporter, blank_summary
    ):
        llm_clients.clients[AIProvider.OLLAMA].invoke = AsyncMock(side_effect=[blank_summary, FRAUD_OUTPUT])

        outcome = await orchestrator.enrich(ClaimChangeEvent(claim_id=7, description="Hail damage"))

        assert outcome.stage == EnrichmentStage.ERRORED
        assert "Empty summary" in outcome.error
        claim_store.update_summary.assert_not_awaited()
        claim_store.update_fraud_result.assert_not_awaited()
        index_table[AIProvider.OLLAMA].upsert.assert_not_awaited()
        (span,) = span_exporter.get_finished_spans()
        assert span.status.status_code == StatusCode.ERROR

    @pytest.mark.asyncio
    async def test_store_failure(self, orchestrator, claim_42, llm_clients, claim_store):
        llm_clients.clients[AIProvider.OLLAMA].invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])
        claim_store.update_summary = AsyncMock(side_effect=RuntimeError("database is locked"))

        outcome = await orchestrator.enrich(claim_42)

        assert outcome.stage == EnrichmentStage.ERRORED
        assert outcome.error == "database is locked"


class TestProviderSelection:
    """Per-claim overrides and registry snapshots."""

    @pytest.mark.asyncio
    async def test_event_provider_overrides_registry(
        self, orchestrator, llm_clients, index_table, span_exporter
    ):
        gemini = llm_clients.clients[AIProvider.GEMINI]
        gemini.invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])
        event = ClaimChangeEvent(
            claim_id=5,
            description="Water leak",
            requested_provider=AIProvider.GEMINI,
            requested_temperature=0.9,
        )

        outcome = await orchestrator.enrich(event)

        assert outcome.stage == EnrichmentStage.DONE
        llm_clients.clients[AIProvider.OLLAMA].invoke.assert_not_awaited()
        assert gemini.invoke.await_args_list[0].args[2].temperature == 0.9
        index_table[AIProvider.GEMINI].upsert.assert_awaited_once()
        index_table[AIProvider.OLLAMA].upsert.assert_not_awaited()
        (span,) = span_exporter.get_finished_spans()
        assert span.attributes["ai.provider"] == "gemini"

    @pytest.mark.asyncio
    async def test_active_registry_selection_used(self, orchestrator, registry, llm_clients, index_table):
        registry.switch("openai", 0.6)
        openai = llm_clients.clients[AIProvider.OPENAI]
        openai.invoke = AsyncMock(side_effect=[SUMMARY, FRAUD_OUTPUT])

        await orchestrator.enrich(ClaimChangeEvent(claim_id=6, description="Windshield crack"))

        assert openai.invoke.await_args_list[0].args[2].temperature == 0.6
        index_table[AIProvider.OPENAI].search.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_switch_mid_claim_does_not_change_trajectory(
        self, orchestrator, registry, llm_clients, index_table
    ):
        ollama = llm_clients.clients[AIProvider.OLLAMA]
        responses = iter([SUMMARY, FRAUD_OUTPUT])

        async def invoke_and_switch(*args):
            # An operator switches providers while this claim is in flight
            registry.switch("gemini", 0.5)
            return next(responses)

        ollama.invoke = AsyncMock(side_effect=invoke_and_switch)

        outcome = await orchestrator.enrich(ClaimChangeEvent(claim_id=8, description="Fence damage"))

        assert outcome.stage == EnrichmentStage.DONE
        assert registry.current().provider == AIProvider.GEMINI
        assert ollama.invoke.await_count == 2
        llm_clients.clients[AIProvider.GEMINI].invoke.assert_not_awaited()
        index_table[AIProvider.OLLAMA].upsert.assert_awaited_once()
