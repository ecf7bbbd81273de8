"""CDN client that purges paths through an HTTP purge endpoint."""

import logging
import time
from typing import Any, Optional

import httpx

from edgepatch.cdn.base import BaseCdnClient
from edgepatch.errors import CdnInvalidationError
from edgepatch.models.results import CdnInvalidationResult

logger = logging.getLogger(__name__)


class HttpPurgeCdnClient(BaseCdnClient):
    """
    POSTs `{"paths": [...]}` to a purge endpoint with a bearer token.

    Reads its settings from the `http-purge` section of the CDN config:
    `{"http-purge": {"endpoint": "https://...", "token": "..."}}`.
    """

    PROVIDER = "http-purge"

    DEFAULT_HEADERS = {
        "User-Agent": "edgepatch/0.1",
        "Content-Type": "application/json",
    }

    def __init__(self, cdn_config: dict[str, Any], client: Optional[httpx.Client] = None):
        section = (cdn_config or {}).get(self.PROVIDER)
        if not isinstance(section, dict):
            raise ValueError(f"Missing '{self.PROVIDER}' config in CDN config")
        self.endpoint: Optional[str] = section.get("endpoint")
        self.token: Optional[str] = section.get("token")
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=30.0, headers=self.DEFAULT_HEADERS)

    def provider_name(self) -> str:
        return self.PROVIDER

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def validate_config(self) -> bool:
        if not self.endpoint:
            logger.error("%s CDN config missing required field: endpoint", self.PROVIDER)
            return False
        return True

    def invalidate(self, paths: list[str]) -> CdnInvalidationResult:
        if not self.validate_config():
            raise CdnInvalidationError(f"Invalid {self.PROVIDER} CDN configuration")

        if not paths:
            logger.warning("No paths to invalidate")
            return CdnInvalidationResult(
                status="skipped", provider=self.PROVIDER, message="No paths to invalidate"
            )

        items = self.normalize_paths(paths)
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        logger.debug("Initiating %s cache invalidation for %d paths", self.PROVIDER, len(items))

        start = time.monotonic()
        try:
            resp = self._client.post(self.endpoint, json={"paths": items}, headers=headers)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CdnInvalidationError(
                f"{self.PROVIDER} invalidation failed: HTTP {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise CdnInvalidationError(f"{self.PROVIDER} invalidation failed: {e}") from e

        elapsed_ms = int((time.monotonic() - start) * 1000)
        body = _json_or_empty(resp)
        logger.info(
            "%s cache invalidation initiated for %d paths, took %dms",
            self.PROVIDER, len(items), elapsed_ms,
        )
        return CdnInvalidationResult(
            status="success",
            provider=self.PROVIDER,
            paths=len(items),
            invalidation_id=body.get("id"),
        )


def _json_or_empty(resp: httpx.Response) -> dict[str, Any]:
    try:
        body = resp.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
