"""Registry of availability providers. Add new providers in build_default_registry."""
import logging

from playscanner.services.providers.base import ProviderAdapter

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Name -> provider. Built once at startup and handed to SearchService; no module global."""

    def __init__(self) -> None:
        self._providers: dict[str, ProviderAdapter] = {}

    def register(self, provider: ProviderAdapter) -> None:
        self._providers[provider.name] = provider
        logger.info("Registered availability provider: %s", provider.name)

    def get_provider(self, name: str) -> ProviderAdapter:
        """Raises KeyError if unknown."""
        if name not in self._providers:
            raise KeyError(f"Unknown provider: {name}. Available: {list(self._providers.keys())}")
        return self._providers[name]

    def list_providers(self) -> list[str]:
        return list(self._providers.keys())

    def providers_for_sport(self, sport: str) -> list[ProviderAdapter]:
        return [p for p in self._providers.values() if sport in p.sports]

    def __contains__(self, name: object) -> bool:
        return name in self._providers


def build_default_registry() -> ProviderRegistry:
    from playscanner.services.providers.playtomic_provider import PlaytomicProvider

    registry = ProviderRegistry()
    registry.register(PlaytomicProvider())
    return registry
