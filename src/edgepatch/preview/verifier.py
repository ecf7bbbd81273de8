"""Fetch a page through the edge once its new config is live in the edge cache."""

import logging
import time
from typing import Callable, Optional
from urllib.parse import urlparse

import httpx

from edgepatch.errors import CacheFailure, CacheVerificationError, ValidationError
from edgepatch.validation import has_text

logger = logging.getLogger(__name__)

CACHE_HEADER = "x-tokowaka-cache"
PREVIEW_PARAM = "tokowakaPreview=true"


class _HeaderMissing(Exception):
    pass


class CacheVerifier:
    """
    Warmup-then-poll fetcher for edge-rendered HTML.

    One warmup GET primes the edge, then up to max_retries + 1 GETs run until a
    response carries a non-empty cache header. Non-2xx responses and transport
    errors count as failed attempts.
    """

    DEFAULT_HEADERS = {"User-Agent": "edgepatch/0.1"}

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        warmup_delay_ms: int = 2000,
        max_retries: int = 3,
        retry_delay_ms: int = 1000,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=30.0,
            follow_redirects=True,
            headers=self.DEFAULT_HEADERS,
        )
        self.warmup_delay_ms = warmup_delay_ms
        self.max_retries = max_retries
        self.retry_delay_ms = retry_delay_ms
        self._sleep = sleep

    def close(self) -> None:
        """Close the HTTP client if this verifier created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "CacheVerifier":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch_html(
        self,
        url: str,
        api_key: str,
        forwarded_host: str,
        edge_url: str,
        optimized: bool = False,
    ) -> str:
        """Return the page HTML once the edge reports it as cached."""
        if not has_text(url):
            raise ValidationError("URL is required for fetching HTML")
        if not has_text(api_key):
            raise ValidationError("Edge API key is required for fetching HTML")
        if not has_text(forwarded_host):
            raise ValidationError("Forwarded host is required for fetching HTML")
        if not has_text(edge_url):
            raise ValidationError("EDGEPATCH_EDGE_URL is not configured")

        variant = "optimized" if optimized else "original"
        parsed = urlparse(url)
        url_path = (parsed.path or "/") + (f"?{parsed.query}" if parsed.query else "")

        target = f"{edge_url.rstrip('/')}{url_path}"
        if optimized:
            target += ("&" if "?" in url_path else "?") + PREVIEW_PARAM

        headers = {
            "x-forwarded-host": forwarded_host,
            "x-tokowaka-api-key": api_key,
            "x-tokowaka-url": url_path,
        }

        try:
            logger.debug("Making warmup call for %s HTML with URL: %s", variant, target)
            warmup = self._client.get(target, headers=headers)
            logger.debug("Warmup response status: %s", warmup.status_code)
            self._sleep(self.warmup_delay_ms / 1000)

            html = self._poll(target, headers, variant)
        except (httpx.HTTPError, httpx.InvalidURL, _HeaderMissing) as e:
            failure = CacheFailure.HEADER_MISSING if isinstance(e, _HeaderMissing) else CacheFailure.TRANSPORT
            message = f"Failed to fetch {variant} HTML after {self.max_retries} retries: {e}"
            logger.error(message)
            raise CacheVerificationError(
                message, failure=failure, variant=variant, max_retries=self.max_retries
            ) from e

        logger.debug("Fetched %s HTML (%d bytes)", variant, len(html))
        return html

    def _poll(self, target: str, headers: dict[str, str], variant: str) -> str:
        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                resp = self._client.get(target, headers=headers)
                logger.debug("Response status (attempt %d): %s", attempt, resp.status_code)
                if not resp.is_success:
                    raise httpx.HTTPStatusError(
                        f"HTTP {resp.status_code}", request=resp.request, response=resp
                    )
                cache_header = resp.headers.get(CACHE_HEADER)
                if cache_header:
                    logger.debug("Cache header found (%s: %s)", CACHE_HEADER, cache_header)
                    return resp.text
                last_error = _HeaderMissing(
                    f"Cache header ({CACHE_HEADER}) not found after {self.max_retries} retries"
                )
                logger.debug("No cache header found on attempt %d", attempt)
            except httpx.HTTPError as e:
                logger.warning("Attempt %d failed for %s HTML, error: %s", attempt, variant, e)
                last_error = e

            if attempt < attempts:
                self._sleep(self.retry_delay_ms / 1000)

        if last_error is None:
            last_error = _HeaderMissing(
                f"Cache header ({CACHE_HEADER}) not found after {self.max_retries} retries"
            )
        raise last_error
