"""Ollama LLM client implementation."""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import ollama

from phoenix.core.exceptions import APIClientError, APITimeoutError
from phoenix.core.providers import GenerationOptions
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


def _normalize_host(base_url: str) -> str:
    """Strip scheme and trailing paths; the Ollama client expects host:port."""
    host = base_url
    if host.startswith("http://"):
        host = host[7:]
    elif host.startswith("https://"):
        host = host[8:]
    if "/" in host:
        host = host.split("/")[0]
    return host


class OllamaClient:
    """Wrapper for the local Ollama API.

    The only provider that honours ``repeat_penalty``, which the fraud
    scoring stage uses to keep small local models from looping.
    """

    def __init__(
        self,
        model: str = "llama3.2",
        embedding_model: str = "nomic-embed-text",
        base_url: str = "http://localhost:11434",
        timeout: int = 60,
        max_retries: int = 3,
    ):
        """Initialize Ollama client.

        Args:
            model: Chat model name (e.g., "llama3.2")
            embedding_model: Embedding model backing the Ollama vector index
            base_url: Ollama API base URL
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts
        """
        self.model = model
        self.embedding_model = embedding_model
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = 2

        host = _normalize_host(base_url)
        self.client = ollama.AsyncClient(host=host, timeout=timeout)
        LOGGER.info(f"Initialized Ollama client with model {self.model} at {host} (timeout: {timeout}s)")

    async def invoke(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: GenerationOptions,
    ) -> str:
        """Run one chat completion.

        Args:
            system_prompt: Optional system instruction
            user_prompt: User message
            options: Sampling options

        Returns:
            Generated text (may be empty)

        Raises:
            APIClientError: If every attempt fails
            APITimeoutError: If the last attempt timed out
        """
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})

        chat_options: Dict[str, Any] = {"temperature": options.temperature}
        if options.repeat_penalty is not None:
            chat_options["repeat_penalty"] = options.repeat_penalty

        for attempt in range(self.max_retries):
            try:
                LOGGER.debug(
                    f"Ollama API call attempt {attempt + 1}/{self.max_retries}",
                    extra={"model": self.model, "options": chat_options},
                )
                response = await asyncio.wait_for(
                    self.client.chat(model=self.model, messages=messages, options=chat_options),
                    timeout=self.timeout,
                )
                content = response.message.content if response.message else ""
                return content or ""

            except asyncio.TimeoutError as e:
                LOGGER.warning(f"Ollama API call timed out after {self.timeout}s (attempt {attempt + 1})")
                if attempt == self.max_retries - 1:
                    raise APITimeoutError(f"Ollama API call timed out after {self.timeout}s", original_error=e)

            except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
                LOGGER.warning(f"Ollama API error (attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt == self.max_retries - 1:
                    raise APIClientError(f"Ollama generation failed: {e}", original_error=e)

            await asyncio.sleep(self.retry_delay * (2 ** attempt))

        raise APIClientError("Ollama generation failed")

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts with the Ollama embedding model."""
        try:
            response = await asyncio.wait_for(
                self.client.embed(model=self.embedding_model, input=texts),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            raise APITimeoutError(f"Ollama embedding timed out after {self.timeout}s", original_error=e)
        except (ollama.ResponseError, httpx.HTTPError, ConnectionError) as e:
            raise APIClientError(f"Ollama embedding failed: {e}", original_error=e)
        return [list(vector) for vector in response.embeddings]
