"""Registry of CDN client factories, keyed by provider name."""

import logging
from typing import Any, Callable, Optional

import httpx

from edgepatch.cdn.base import BaseCdnClient
from edgepatch.cdn.http_purge import HttpPurgeCdnClient

logger = logging.getLogger(__name__)

CdnClientFactory = Callable[[dict[str, Any], Optional[httpx.Client]], BaseCdnClient]


class CdnClientRegistry:
    """Builds CDN clients by provider name (case-insensitive)."""

    def __init__(self, cdn_config: Optional[dict[str, Any]] = None, http_client: Optional[httpx.Client] = None):
        self._cdn_config = cdn_config or {}
        self._http_client = http_client
        self._factories: dict[str, CdnClientFactory] = {}
        self.register(HttpPurgeCdnClient.PROVIDER, HttpPurgeCdnClient)

    def register(self, provider: str, factory: CdnClientFactory) -> None:
        self._factories[provider.lower()] = factory

    def get_client(self, provider: Optional[str]) -> Optional[BaseCdnClient]:
        """
        Client for the provider, or None when no provider is given, the provider is
        unknown, or the client cannot be constructed from the current config.
        """
        if not provider:
            logger.warning("No CDN provider specified")
            return None

        factory = self._factories.get(provider.lower())
        if factory is None:
            logger.warning(
                "No CDN client found for provider: %s. Supported: %s",
                provider, ", ".join(self.supported_providers()),
            )
            return None

        try:
            return factory(self._cdn_config, self._http_client)
        except (ValueError, TypeError, KeyError) as e:
            logger.error("Failed to create CDN client for %s: %s", provider, e)
            return None

    def supported_providers(self) -> list[str]:
        return list(self._factories.keys())

    def is_supported(self, provider: Optional[str]) -> bool:
        return bool(provider) and provider.lower() in self._factories
