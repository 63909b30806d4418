"""OpenAI-compatible chat and embedding client over plain HTTP."""

from typing import Any, Dict, List, Optional

from phoenix.core.base_llm_client import BaseLLMClient
from phoenix.core.exceptions import APIClientError
from phoenix.core.providers import GenerationOptions
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class OpenAIClient:
    """Client for the OpenAI chat completions and embeddings endpoints."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        embedding_model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
        timeout: int = 60,
        max_retries: int = 3,
    ):
        """Initialize OpenAI client.

        Args:
            api_key: OpenAI API key
            model: Chat model name
            embedding_model: Embedding model backing the OpenAI vector index
            base_url: API base URL (any OpenAI-compatible gateway works)
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
        """
        self.model = model
        self.embedding_model = embedding_model
        self.client = BaseLLMClient(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=max_retries,
        )
        LOGGER.info(f"Initialized OpenAI client with model {self.model}")

    async def invoke(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: GenerationOptions,
    ) -> str:
        """Run one chat completion. ``repeat_penalty`` is Ollama-specific and ignored."""
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": options.temperature,
        }

        response = await self.client.post_json("/chat/completions", payload)

        choices = response.get("choices") or []
        if not choices:
            LOGGER.error(f"Unexpected OpenAI response format: {response}")
            raise APIClientError("Invalid response format from OpenAI")

        content = choices[0].get("message", {}).get("content") or ""
        if not content:
            LOGGER.warning("Empty response from OpenAI")
        return content

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts with the OpenAI embedding model."""
        response = await self.client.post_json(
            "/embeddings",
            {"model": self.embedding_model, "input": texts},
        )
        data = sorted(response.get("data", []), key=lambda item: item.get("index", 0))
        if len(data) != len(texts):
            raise APIClientError(
                f"OpenAI returned {len(data)} embeddings for {len(texts)} inputs"
            )
        return [item["embedding"] for item in data]
