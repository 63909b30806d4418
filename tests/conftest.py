"""Pytest configuration and shared fixtures."""

import os

# Settings are read at import time; keep tests off Kafka and the tracing exporter
os.environ.setdefault("CDC_ENABLED", "false")
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("AI_DEFAULT_PROVIDER", "ollama")
os.environ.setdefault("AI_DEFAULT_TEMPERATURE", "0.3")

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from phoenix.core.providers import AIProvider
from phoenix.core.unified_llm import LLMClientTable
from phoenix.main import app
from phoenix.services.enrichment.provider_registry import ProviderRegistry


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    The lifespan is not entered, so no database or Kafka connection is made.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter: InMemorySpanExporter):
    """Tracer writing to an in-memory exporter, without touching the global provider."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("phoenix.tests")


@pytest.fixture
def index_table():
    """One stand-in vector index per provider."""
    table = {}
    for provider in AIProvider:
        index = MagicMock(name=f"{provider.value}_index")
        index.collection = provider.value
        index.search = AsyncMock(return_value=[])
        index.upsert = AsyncMock(return_value=None)
        table[provider] = index
    return table


@pytest.fixture
def registry(index_table) -> ProviderRegistry:
    return ProviderRegistry(index_table=index_table)


@pytest.fixture
def llm_clients():
    """Table of mocked LLM clients, exposed for per-test scripting."""
    clients = {}
    for provider in AIProvider:
        client = MagicMock(name=f"{provider.value}_client")
        client.invoke = AsyncMock(return_value="")
        client.embed = AsyncMock(return_value=[[0.1, 0.2, 0.3]])
        clients[provider] = client
    return SimpleNamespace(table=LLMClientTable(clients=clients), clients=clients)


@pytest.fixture
def claim_store() -> MagicMock:
    store = MagicMock()
    store.update_summary = AsyncMock(return_value=None)
    store.update_fraud_result = AsyncMock(return_value=None)
    return store
