"""Runtime switching of the active AI provider."""

from phoenix.core.exceptions import ValidationError
from phoenix.schemas.config import ProviderStatusResponse, ProviderSwitchResponse
from phoenix.services.base_service import BaseService
from phoenix.services.enrichment.provider_registry import ProviderRegistry


class ProviderSwitchService(BaseService):
    """Validates and applies provider switch requests against the registry."""

    def __init__(self, registry: ProviderRegistry):
        super().__init__()
        self.registry = registry

    def validate(self, provider: str, temperature: float):
        if not 0.0 <= temperature <= 1.0:
            raise ValidationError(f"Temperature must be between 0 and 1, got {temperature}")

    async def run(self, provider: str, temperature: float) -> ProviderSwitchResponse:
        """Switch providers.

        Raises:
            ValidationError: If ``provider`` is unknown; the registry is unchanged
        """
        self.logger.info(f"Switching AI Provider to: {provider}")
        selection = self.registry.switch(provider, temperature)
        return ProviderSwitchResponse(status="success", provider=selection.provider.value)

    def status(self) -> ProviderStatusResponse:
        selection = self.registry.current()
        return ProviderStatusResponse(
            provider=selection.provider.value,
            temperature=selection.temperature,
            collection=getattr(selection.vector_index, "collection", selection.provider.value),
        )
