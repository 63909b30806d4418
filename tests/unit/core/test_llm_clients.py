"""Tests for the provider client table and the provider clients."""

from types import SimpleNamespace

import httpx
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from phoenix.core.exceptions import APIClientError, ConfigurationError
from phoenix.core.ollama_client import OllamaClient, _normalize_host
from phoenix.core.openai_client import OpenAIClient
from phoenix.core.providers import AIProvider, GenerationOptions
from phoenix.core.unified_llm import LLMClientTable


def llm_settings(**overrides):
    values = {
        "ollama_model": "llama3.2",
        "ollama_embedding_model": "nomic-embed-text",
        "ollama_base_url": "http://localhost:11434",
        "gemini_api_key": "",
        "gemini_model": "gemini-2.0-flash",
        "gemini_embedding_model": "text-embedding-004",
        "openai_api_key": "",
        "openai_base_url": "https://api.openai.com/v1",
        "openai_model": "gpt-4o-mini",
        "openai_embedding_model": "text-embedding-3-small",
        "timeout": 5,
        "max_retries": 1,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


class TestAIProvider:
    """Tests for provider name parsing."""

    @pytest.mark.parametrize(
        "name, expected",
        [("ollama", AIProvider.OLLAMA), ("GEMINI", AIProvider.GEMINI), (" OpenAI ", AIProvider.OPENAI)],
    )
    def test_parse_known(self, name, expected):
        assert AIProvider.parse(name) == expected

    @pytest.mark.parametrize("name", [None, "", "bogus", "open ai"])
    def test_parse_unknown(self, name):
        assert AIProvider.parse(name) is None


class TestLLMClientTable:
    """Tests for provider -> client lookup."""

    def test_prebuilt_client_returned(self):
        client = MagicMock()
        table = LLMClientTable(clients={AIProvider.GEMINI: client})

        assert table.get(AIProvider.GEMINI) is client

    def test_missing_client_without_settings(self):
        table = LLMClientTable()

        with pytest.raises(ConfigurationError):
            table.get(AIProvider.OLLAMA)

    def test_client_built_once(self):
        with patch("phoenix.core.unified_llm.OllamaClient") as mock_ollama:
            table = LLMClientTable(llm_settings())

            first = table.get(AIProvider.OLLAMA)
            second = table.get(AIProvider.OLLAMA)

        assert first is second
        mock_ollama.assert_called_once_with(
            model="llama3.2",
            embedding_model="nomic-embed-text",
            base_url="http://localhost:11434",
            timeout=5,
            max_retries=1,
        )

    @pytest.mark.parametrize("provider", [AIProvider.GEMINI, AIProvider.OPENAI])
    def test_api_key_required(self, provider):
        table = LLMClientTable(llm_settings())

        with pytest.raises(ConfigurationError):
            table.get(provider)

    def test_gemini_built_with_key(self):
        with patch("phoenix.core.unified_llm.GeminiClient") as mock_gemini:
            LLMClientTable(llm_settings(gemini_api_key="key")).get(AIProvider.GEMINI)

        assert mock_gemini.call_args.kwargs["api_key"] == "key"


class TestOllamaClient:
    """Tests for OllamaClient over a mocked ollama.AsyncClient."""

    @pytest.mark.parametrize(
        "url, host",
        [
            ("http://localhost:11434", "localhost:11434"),
            ("https://ollama.internal:443/api", "ollama.internal:443"),
            ("ollama:11434", "ollama:11434"),
        ],
    )
    def test_normalize_host(self, url, host):
        assert _normalize_host(url) == host

    @pytest.mark.asyncio
    async def test_invoke_passes_repeat_penalty(self):
        client = OllamaClient(max_retries=1)
        client.client = MagicMock()
        client.client.chat = AsyncMock(
            return_value=SimpleNamespace(message=SimpleNamespace(content="SCORE: 10"))
        )

        result = await client.invoke(
            "system", "user", GenerationOptions(temperature=0.0, repeat_penalty=1.1)
        )

        assert result == "SCORE: 10"
        kwargs = client.client.chat.await_args.kwargs
        assert kwargs["options"] == {"temperature": 0.0, "repeat_penalty": 1.1}
        assert kwargs["messages"][0] == {"role": "system", "content": "system"}

    @pytest.mark.asyncio
    async def test_invoke_without_system_prompt(self):
        client = OllamaClient(max_retries=1)
        client.client = MagicMock()
        client.client.chat = AsyncMock(return_value=SimpleNamespace(message=SimpleNamespace(content="ok")))

        await client.invoke(None, "Summarize", GenerationOptions(temperature=0.3))

        kwargs = client.client.chat.await_args.kwargs
        assert kwargs["messages"] == [{"role": "user", "content": "Summarize"}]
        assert kwargs["options"] == {"temperature": 0.3}

    @pytest.mark.asyncio
    async def test_invoke_failure_raises_api_error(self):
        client = OllamaClient(max_retries=1)
        client.client = MagicMock()
        client.client.chat = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(APIClientError):
            await client.invoke(None, "Summarize", GenerationOptions(temperature=0.3))

    @pytest.mark.asyncio
    async def test_embed(self):
        client = OllamaClient(max_retries=1)
        client.client = MagicMock()
        client.client.embed = AsyncMock(return_value=SimpleNamespace(embeddings=[[0.1, 0.2]]))

        assert await client.embed(["text"]) == [[0.1, 0.2]]
        assert client.client.embed.await_args.kwargs == {"model": "nomic-embed-text", "input": ["text"]}


class TestOpenAIClient:
    """Tests for OpenAIClient over a mocked HTTP layer."""

    @pytest.mark.asyncio
    async def test_invoke(self):
        client = OpenAIClient(api_key="key", max_retries=1)
        client.client.post_json = AsyncMock(
            return_value={"choices": [{"message": {"content": "A one-sentence summary."}}]}
        )

        result = await client.invoke(None, "Summarize", GenerationOptions(temperature=0.4, repeat_penalty=1.1))

        assert result == "A one-sentence summary."
        endpoint, payload = client.client.post_json.await_args.args
        assert endpoint == "/chat/completions"
        assert payload["temperature"] == 0.4
        assert "repeat_penalty" not in payload

    @pytest.mark.asyncio
    async def test_invoke_without_choices(self):
        client = OpenAIClient(api_key="key", max_retries=1)
        client.client.post_json = AsyncMock(return_value={"choices": []})

        with pytest.raises(APIClientError):
            await client.invoke(None, "Summarize", GenerationOptions(temperature=0.4))

    @pytest.mark.asyncio
    async def test_embed_orders_by_index(self):
        client = OpenAIClient(api_key="key", max_retries=1)
        client.client.post_json = AsyncMock(
            return_value={"data": [{"index": 1, "embedding": [2.0]}, {"index": 0, "embedding": [1.0]}]}
        )

        assert await client.embed(["a", "b"]) == [[1.0], [2.0]]
