"""CDN client interface."""

from abc import ABC, abstractmethod

from edgepatch.models.results import CdnInvalidationResult


class BaseCdnClient(ABC):
    """
    Invalidates cached config documents at the CDN.
    invalidate() raises on failure; the orchestrator downgrades that to a result.
    """

    @abstractmethod
    def provider_name(self) -> str:
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """True when the client has everything it needs to call the provider."""
        pass

    @abstractmethod
    def invalidate(self, paths: list[str]) -> CdnInvalidationResult:
        pass

    @staticmethod
    def normalize_paths(paths: list[str]) -> list[str]:
        return [p if p.startswith("/") else f"/{p}" for p in paths]

    def close(self) -> None:
        """Release any connections held by the client."""

    def __enter__(self) -> "BaseCdnClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
