"""Active AI provider selection shared by the pipeline and the config API."""

import threading
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from phoenix.core.exceptions import ConfigurationError, ValidationError
from phoenix.core.providers import AIProvider
from phoenix.utils.logging import get_logger

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ProviderSelection:
    """Complete snapshot of the active backend. Replaced, never mutated."""

    provider: AIProvider
    temperature: float
    vector_index: Any


class ProviderRegistry:
    """Holds exactly one ProviderSelection and swaps it by compare-and-set.

    Readers take the current reference without locking. Writers read,
    decide, and commit only if the cell still holds what they read; on
    contention the decision is recomputed against the newer value.
    """

    def __init__(
        self,
        index_table: Mapping[AIProvider, Any],
        default_provider: AIProvider = AIProvider.OLLAMA,
        default_temperature: float = 0.3,
    ):
        """Initialize the registry.

        Args:
            index_table: Static provider -> vector index mapping
            default_provider: Provider active at startup
            default_temperature: Temperature active at startup

        Raises:
            ConfigurationError: If a provider has no index
        """
        missing = [p.value for p in AIProvider if p not in index_table]
        if missing:
            raise ConfigurationError(f"No vector index configured for providers: {missing}")

        self._index_table = dict(index_table)
        self._cas_lock = threading.Lock()
        self._selection = ProviderSelection(
            provider=default_provider,
            temperature=default_temperature,
            vector_index=self._index_table[default_provider],
        )
        LOGGER.info(
            f"Provider registry initialized with {default_provider.value} "
            f"(temperature {default_temperature})"
        )

    def current(self) -> ProviderSelection:
        return self._selection

    def switch(self, provider_name: str, temperature: float) -> ProviderSelection:
        """Make ``provider_name`` the active provider.

        Selecting the provider that is already active is a no-op: its
        temperature is left as it was.

        Args:
            provider_name: Provider name, matched case-insensitively
            temperature: Temperature for the new selection

        Returns:
            The selection active after the call

        Raises:
            ValidationError: If the name is not a known provider
        """
        provider = AIProvider.parse(provider_name)
        if provider is None:
            LOGGER.warning(
                f"Rejected switch to unknown AI provider: {provider_name!r}",
                extra={"current_provider": self._selection.provider.value},
            )
            raise ValidationError(f"Unknown AI provider: {provider_name}")

        while True:
            observed = self._selection
            if observed.provider == provider:
                LOGGER.info(f"AI provider already {provider.value}, switch ignored")
                return observed

            proposed = ProviderSelection(
                provider=provider,
                temperature=temperature,
                vector_index=self._index_table[provider],
            )
            if self._compare_and_set(observed, proposed):
                LOGGER.info(
                    f"Switched AI provider: {observed.provider.value} -> {provider.value}",
                    extra={"temperature": temperature},
                )
                return proposed

    def resolve_index(self, provider_name: Optional[str] = None) -> Any:
        """Index for ``provider_name`` without touching the active selection.

        Unknown or missing names resolve to the active selection's index.
        """
        provider = AIProvider.parse(provider_name)
        if provider is None:
            return self._selection.vector_index
        return self._index_table[provider]

    def _compare_and_set(self, expected: ProviderSelection, new: ProviderSelection) -> bool:
        with self._cas_lock:
            if self._selection is not expected:
                return False
            self._selection = new
            return True
