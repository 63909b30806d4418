"""Provider to LLM client lookup.

Each ``AIProvider`` maps to one client object exposing ``invoke`` (chat) and
``embed`` (vectors for that provider's index). Adding a provider means adding
an enum member and a builder entry in ``_BUILDERS``; call sites never branch
on the provider.
"""

from typing import Callable, Dict, List, Mapping, Optional, Protocol

from phoenix.core.config import LLMSettings
from phoenix.core.exceptions import ConfigurationError
from phoenix.core.gemini_client import GeminiClient
from phoenix.core.ollama_client import OllamaClient
from phoenix.core.openai_client import OpenAIClient
from phoenix.core.providers import AIProvider, GenerationOptions
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


class LLMClient(Protocol):
    """Capability every provider client implements."""

    async def invoke(
        self,
        system_prompt: Optional[str],
        user_prompt: str,
        options: GenerationOptions,
    ) -> str:
        ...

    async def embed(self, texts: List[str]) -> List[List[float]]:
        ...


def _build_ollama(llm: LLMSettings) -> LLMClient:
    return OllamaClient(
        model=llm.ollama_model,
        embedding_model=llm.ollama_embedding_model,
        base_url=llm.ollama_base_url,
        timeout=llm.timeout,
        max_retries=llm.max_retries,
    )


def _build_gemini(llm: LLMSettings) -> LLMClient:
    if not llm.gemini_api_key:
        raise ConfigurationError("GEMINI_API_KEY is required for the gemini provider")
    return GeminiClient(
        api_key=llm.gemini_api_key,
        model=llm.gemini_model,
        embedding_model=llm.gemini_embedding_model,
        max_retries=llm.max_retries,
    )


def _build_openai(llm: LLMSettings) -> LLMClient:
    if not llm.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is required for the openai provider")
    return OpenAIClient(
        api_key=llm.openai_api_key,
        model=llm.openai_model,
        embedding_model=llm.openai_embedding_model,
        base_url=llm.openai_base_url,
        timeout=llm.timeout,
        max_retries=llm.max_retries,
    )


_BUILDERS: Dict[AIProvider, Callable[[LLMSettings], LLMClient]] = {
    AIProvider.OLLAMA: _build_ollama,
    AIProvider.GEMINI: _build_gemini,
    AIProvider.OPENAI: _build_openai,
}


class LLMClientTable:
    """Static provider -> client table with lazy construction.

    Clients are created on first use so a missing API key for an unused
    provider does not prevent startup.
    """

    def __init__(
        self,
        llm_settings: Optional[LLMSettings] = None,
        clients: Optional[Mapping[AIProvider, LLMClient]] = None,
    ):
        """Initialize the table.

        Args:
            llm_settings: Settings used to build clients on demand
            clients: Pre-built clients (take precedence over builders)
        """
        self._settings = llm_settings
        self._clients: Dict[AIProvider, LLMClient] = dict(clients or {})

    def get(self, provider: AIProvider) -> LLMClient:
        """Return the client bound to ``provider``.

        Raises:
            ConfigurationError: If the client cannot be built from settings
        """
        client = self._clients.get(provider)
        if client is not None:
            return client

        if self._settings is None:
            raise ConfigurationError(f"No client configured for provider {provider.value}")

        LOGGER.info(f"Creating LLM client for provider: {provider.value}")
        client = _BUILDERS[provider](self._settings)
        # Concurrent first use may build twice; setdefault keeps one
        return self._clients.setdefault(provider, client)
