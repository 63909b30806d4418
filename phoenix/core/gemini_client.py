"""Google Gemini LLM client implementation."""

import asyncio
from typing import List, Optional

from google import genai
from google.genai import types

from phoenix.core.exceptions import APIClientError
from phoenix.core.providers import GenerationOptions
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class GeminiClient:
    """Wrapper for Google Gemini API client."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.0-flash",
        embedding_model: str = "text-embedding-004",
        max_retries: int = 3,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Chat model name
            embedding_model: Embedding model backing the Gemini vector index
            max_retries: Maximum retry attempts
        """
        self.model = model
        self.embedding_model = embedding_model
        self.max_retries = max_retries

        try:
            self.client = genai.Client(api_key=api_key)
            LOGGER.info(f"Initialized Gemini client with model {self.model}")
        except Exception as e:
            LOGGER.error(f"Failed to initialize Gemini client: {e}")
            raise APIClientError(f"Failed to initialize Gemini client: {e}", original_error=e)

    async def invoke(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: GenerationOptions,
    ) -> str:
        """Run one generation through the async ``aio`` surface of the SDK.

        ``repeat_penalty`` has no Gemini counterpart and is ignored.
        """
        config = types.GenerateContentConfig(temperature=options.temperature)
        if system_prompt:
            config.system_instruction = system_prompt

        for attempt in range(self.max_retries):
            try:
                response = await self.client.aio.models.generate_content(
                    model=self.model,
                    contents=user_prompt,
                    config=config,
                )
                if not response.text:
                    LOGGER.warning("Empty response from Gemini")
                    return ""
                return response.text

            except Exception as e:
                LOGGER.warning(f"Gemini API error (Attempt {attempt + 1}/{self.max_retries}): {e}")
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(2 ** attempt)
                else:
                    LOGGER.error(f"Gemini generation failed after retries: {e}", exc_info=True)
                    raise APIClientError(f"Gemini generation failed: {e}", original_error=e)

        raise APIClientError("Gemini generation failed")

    async def embed(self, texts: List[str]) -> List[List[float]]:
        """Embed texts with the Gemini embedding model."""
        try:
            response = await self.client.aio.models.embed_content(
                model=self.embedding_model,
                contents=texts,
            )
        except Exception as e:
            raise APIClientError(f"Gemini embedding failed: {e}", original_error=e)
        return [list(embedding.values) for embedding in response.embeddings]
