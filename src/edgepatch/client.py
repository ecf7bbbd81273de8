"""Edge config orchestrator: deploy, roll back and preview suggestion patches."""

import logging
from typing import Iterable, Optional
from urllib.parse import urljoin, urlparse

from edgepatch.cdn.registry import CdnClientRegistry
from edgepatch.errors import (
    CacheVerificationError,
    CdnInvalidationError,
    EdgePatchError,
    StorageError,
    UnsupportedTypeError,
    ValidationError,
)
from edgepatch.mappers.base import Mapper
from edgepatch.mappers.registry import MapperRegistry
from edgepatch.models.patch import CONFIG_VERSION, EdgeConfig, Metaconfig
from edgepatch.models.results import (
    CdnInvalidationResult,
    DeployResult,
    IneligibleSuggestion,
    PreviewHtml,
    PreviewResult,
    RollbackResult,
)
from edgepatch.models.suggestion import Opportunity, Site, SiteEdgeSettings, Suggestion
from edgepatch.patches import merge_configs
from edgepatch.preview.verifier import CacheVerifier
from edgepatch.settings import EdgeSettings
from edgepatch.store.base import DocumentNotFoundError, DocumentStore
from edgepatch.store.keys import config_key, metaconfig_key
from edgepatch.store.sqlite_store import SqliteDocumentStore
from edgepatch.suggestions import filter_eligible_suggestions, group_suggestions_by_url_path
from edgepatch.validation import has_text

logger = logging.getLogger(__name__)

NO_PREVIEW_PATCHES_REASON = "No patches generated for preview"


def _url_path(url: Optional[str]) -> Optional[str]:
    if not has_text(url):
        return None
    try:
        return urlparse(url).path or "/"
    except ValueError:
        return None


def _error(error_cls: type[EdgePatchError], message: str, **kwargs) -> EdgePatchError:
    """Build an error and log it once, where it is raised."""
    error = error_cls(message, **kwargs)
    logger.error(error.message)
    return error


class EdgeConfigClient:
    """
    Turns suggestions into per-URL edge configs and keeps them in sync.

    Deploy merges new patches into each URL's stored config and writes a domain
    metaconfig on first use. Rollback removes the patches of the given suggestions.
    Preview writes a draft config to the preview namespace and fetches the page
    twice through the edge (original and optimized).

    URLs are processed one at a time. A failure part-way through a multi-URL
    deploy leaves earlier URLs written.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        preview_store: Optional[DocumentStore] = None,
        settings: Optional[EdgeSettings] = None,
        mapper_registry: Optional[MapperRegistry] = None,
        cdn_registry: Optional[CdnClientRegistry] = None,
        verifier: Optional[CacheVerifier] = None,
    ):
        if store is None:
            raise _error(ValidationError, "A document store is required")

        self.settings = settings or EdgeSettings()
        self.deploy_store = store
        self.preview_store = preview_store or store
        self.mapper_registry = mapper_registry or MapperRegistry()
        self.cdn_registry = cdn_registry or CdnClientRegistry(self.settings.cdn_config)
        self._owns_verifier = verifier is None
        self.verifier = verifier or CacheVerifier(
            warmup_delay_ms=self.settings.warmup_delay_ms,
            max_retries=self.settings.max_retries,
            retry_delay_ms=self.settings.retry_delay_ms,
        )

    def close(self) -> None:
        if self._owns_verifier:
            self.verifier.close()

    def __enter__(self) -> "EdgeConfigClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @classmethod
    def from_settings(cls, settings: EdgeSettings) -> "EdgeConfigClient":
        """Client backed by SQLite stores at the configured paths."""
        store = SqliteDocumentStore(settings.store_path)
        preview_store = (
            SqliteDocumentStore(settings.preview_store_path)
            if settings.preview_store_path
            else None
        )
        return cls(store, preview_store=preview_store, settings=settings)

    # --- mappers ---

    def _resolve_mapper(self, opportunity: Opportunity) -> Mapper:
        mapper = self.mapper_registry.lookup(opportunity.type)
        if mapper is None:
            raise _error(
                UnsupportedTypeError,
                f"No mapper found for opportunity type: {opportunity.type}. "
                f"Supported types: {', '.join(self.mapper_registry.supported_types())}",
            )
        return mapper

    def supported_opportunity_types(self) -> list[str]:
        return self.mapper_registry.supported_types()

    def register_mapper(self, mapper: Mapper) -> None:
        """Add or replace the mapper for mapper.opportunity_type() on this client."""
        self.mapper_registry.register(mapper)

    def generate_config(
        self, url: str, opportunity: Opportunity, suggestions: list[Suggestion]
    ) -> Optional[EdgeConfig]:
        """Fresh config for one URL, or None when the mapper produced no patches."""
        mapper = self._resolve_mapper(opportunity)
        patches = mapper.to_patches(urlparse(url).path or "/", suggestions, opportunity.id)
        if not patches:
            return None
        return EdgeConfig(
            url=url,
            version=CONFIG_VERSION,
            force_fail=False,
            prerender=mapper.requires_prerender(),
            patches=patches,
        )

    def merge_configs(self, existing: Optional[EdgeConfig], new: EdgeConfig) -> EdgeConfig:
        return merge_configs(existing, new)

    # --- storage ---

    def _store(self, preview: bool) -> DocumentStore:
        return self.preview_store if preview else self.deploy_store

    def _read(self, key: str, preview: bool) -> Optional[dict]:
        try:
            document = self._store(preview).get(key)
        except DocumentNotFoundError:
            logger.debug("No document found at %s", key)
            return None
        except Exception as e:
            raise _error(StorageError, f"Storage fetch failed: {e}") from e
        logger.debug("Fetched document from %s", key)
        return document

    def _write(self, key: str, document: dict, preview: bool) -> str:
        try:
            self._store(preview).put(key, document)
        except Exception as e:
            raise _error(StorageError, f"Storage upload failed: {e}") from e
        logger.info("Stored document at %s", key)
        return key

    def fetch_config(self, url: str, preview: bool = False) -> Optional[EdgeConfig]:
        """Stored config for url, or None when there is none yet."""
        if not has_text(url):
            raise _error(ValidationError, "URL is required")
        document = self._read(config_key(url, preview), preview)
        if document is None:
            return None
        try:
            return EdgeConfig.model_validate(document)
        except ValueError as e:
            raise _error(StorageError, f"Stored config for {url} is malformed: {e}") from e

    def upload_config(self, url: str, config: EdgeConfig | dict, preview: bool = False) -> str:
        """Write the config for url and return its storage key."""
        if not has_text(url):
            raise _error(ValidationError, "URL is required")
        if not config:
            raise _error(ValidationError, "Config object is required")
        if isinstance(config, dict):
            config = EdgeConfig.model_validate(config)
        return self._write(config_key(url, preview), config.to_wire(), preview)

    def fetch_metaconfig(self, url: str, preview: bool = False) -> Optional[Metaconfig]:
        if not has_text(url):
            raise _error(ValidationError, "URL is required")
        document = self._read(metaconfig_key(url, preview), preview)
        if document is None:
            return None
        try:
            return Metaconfig.model_validate(document)
        except ValueError as e:
            raise _error(StorageError, f"Stored metaconfig for {url} is malformed: {e}") from e

    def upload_metaconfig(self, url: str, metaconfig: Metaconfig | dict, preview: bool = False) -> str:
        if not has_text(url):
            raise _error(ValidationError, "URL is required")
        if not metaconfig:
            raise _error(ValidationError, "Metaconfig object is required")
        if isinstance(metaconfig, dict):
            metaconfig = Metaconfig.model_validate(metaconfig)
        return self._write(metaconfig_key(url, preview), metaconfig.to_wire(), preview)

    # --- CDN ---

    def invalidate_cdn_cache(
        self, url: str, provider: str, preview: bool = False
    ) -> CdnInvalidationResult:
        """
        Invalidate the cached config document for url. Failures come back as a
        result with status "error" instead of being raised.
        """
        if not has_text(url) or not has_text(provider):
            raise _error(ValidationError, "URL and provider are required")

        try:
            paths = [f"/{config_key(url, preview)}"]
            logger.debug("Invalidating CDN cache for %d paths via %s", len(paths), provider)
            client = self.cdn_registry.get_client(provider)
            if client is None:
                raise CdnInvalidationError(f"No CDN client available for provider: {provider}")
            with client:
                result = client.invalidate(paths)
        except Exception as e:
            message = e.message if isinstance(e, EdgePatchError) else str(e)
            logger.error("Failed to invalidate CDN cache: %s", message)
            return CdnInvalidationResult(status="error", provider=provider, message=message)

        logger.info("CDN cache invalidation completed: %s", result.model_dump(exclude_none=True))
        return result

    def _invalidate_after_write(self, url: str, preview: bool = False) -> CdnInvalidationResult:
        provider = self.settings.cdn_provider
        if not has_text(provider):
            logger.warning("No CDN provider configured, skipping invalidation for %s", url)
            return CdnInvalidationResult(status="skipped", message="No CDN provider configured")
        return self.invalidate_cdn_cache(url, provider, preview)

    # --- operations ---

    def _ensure_metaconfig(self, url: str, site_id: str, mapper: Mapper) -> None:
        if self.fetch_metaconfig(url) is not None:
            logger.debug("Domain-level metaconfig already exists")
            return
        logger.info("Creating domain-level metaconfig")
        self.upload_metaconfig(url, Metaconfig(site_id=site_id, prerender=mapper.requires_prerender()))

    def deploy(
        self, site: Site, opportunity: Opportunity, suggestions: Iterable[Suggestion]
    ) -> DeployResult:
        """Merge patches for eligible suggestions into each URL's config."""
        mapper = self._resolve_mapper(opportunity)
        base_url = site.effective_base_url

        eligible, ineligible = filter_eligible_suggestions(suggestions, mapper)
        logger.debug(
            "Deploying %d eligible suggestions (%d ineligible)", len(eligible), len(ineligible)
        )
        if not eligible:
            logger.warning("No eligible suggestions to deploy")
            return DeployResult(failed_suggestions=ineligible)

        groups = group_suggestions_by_url_path(eligible, base_url)
        if groups:
            self._ensure_metaconfig(urljoin(base_url, next(iter(groups))), site.id, mapper)

        keys: list[str] = []
        invalidations: list[CdnInvalidationResult] = []
        for url_path, url_suggestions in groups.items():
            full_url = urljoin(base_url, url_path)
            logger.debug("Processing %d suggestions for URL: %s", len(url_suggestions), full_url)

            existing = self.fetch_config(full_url)
            new_config = self.generate_config(full_url, opportunity, url_suggestions)
            if new_config is None:
                logger.warning("No patches generated for URL: %s", full_url)
                continue

            keys.append(self.upload_config(full_url, merge_configs(existing, new_config)))
            invalidations.append(self._invalidate_after_write(full_url))

        logger.info("Uploaded edge configs for %d URLs", len(keys))
        return DeployResult(
            keys=keys,
            cdn_invalidations=invalidations,
            succeeded_suggestions=eligible,
            failed_suggestions=ineligible,
        )

    def rollback(
        self, site: Site, opportunity: Opportunity, suggestions: Iterable[Suggestion]
    ) -> RollbackResult:
        """Remove the patches of eligible suggestions from each URL's config."""
        mapper = self._resolve_mapper(opportunity)
        base_url = site.effective_base_url

        eligible, ineligible = filter_eligible_suggestions(suggestions, mapper)
        logger.debug(
            "Rolling back %d eligible suggestions (%d ineligible)", len(eligible), len(ineligible)
        )
        if not eligible:
            logger.warning("No eligible suggestions to rollback")
            return RollbackResult(failed_suggestions=ineligible)

        keys: list[str] = []
        invalidations: list[CdnInvalidationResult] = []
        total_removed = 0
        for url_path, url_suggestions in group_suggestions_by_url_path(eligible, base_url).items():
            full_url = urljoin(base_url, url_path)

            existing = self.fetch_config(full_url)
            if existing is None or not existing.patches:
                logger.warning("No existing configuration found for URL: %s", full_url)
                continue

            removal = mapper.rollback(existing, [s.id for s in url_suggestions], opportunity.id)
            if removal.removed_count == 0:
                logger.warning("No patches found for URL: %s", full_url)
                continue

            logger.info("Removed %d patches for URL: %s", removal.removed_count, full_url)
            total_removed += removal.removed_count
            keys.append(self.upload_config(full_url, removal.config))
            invalidations.append(self._invalidate_after_write(full_url))

        logger.info(
            "Updated edge configs for %d URLs, removed %d patches total", len(keys), total_removed
        )
        return RollbackResult(
            keys=keys,
            cdn_invalidations=invalidations,
            succeeded_suggestions=eligible,
            failed_suggestions=ineligible,
            removed_patches_count=total_removed,
        )

    def preview(
        self, site: Site, opportunity: Opportunity, suggestions: Iterable[Suggestion]
    ) -> PreviewResult:
        """
        Write deployed-plus-draft patches for one URL to the preview namespace and
        fetch the original and optimized renderings through the edge.
        """
        suggestions = list(suggestions)
        edge = site.edge or SiteEdgeSettings()
        if not has_text(edge.forwarded_host) or not has_text(edge.api_key):
            raise _error(
                ValidationError,
                "Site does not have an edge API key or forwarded host configured",
            )

        mapper = self._resolve_mapper(opportunity)

        edge_url = self.settings.edge_url
        if not has_text(edge_url):
            raise _error(ValidationError, "EDGEPATCH_EDGE_URL is required for preview", status=500)

        eligible, ineligible = filter_eligible_suggestions(suggestions, mapper)
        logger.debug(
            "Previewing %d eligible suggestions (%d ineligible)", len(eligible), len(ineligible)
        )
        if not eligible:
            logger.warning("No eligible suggestions to preview")
            return PreviewResult(failed_suggestions=ineligible)

        preview_url = eligible[0].url
        if not has_text(preview_url):
            raise _error(ValidationError, "Preview URL not found in suggestion data")

        preview_path = _url_path(preview_url)
        if any(_url_path(s.url) != preview_path for s in eligible[1:]):
            logger.warning(
                "Preview suggestions span several URLs, applying all of them to %s", preview_url
            )

        existing = self.fetch_config(preview_url)
        new_config = self.generate_config(preview_url, opportunity, eligible)
        if new_config is None:
            logger.warning("No patches generated for preview")
            return PreviewResult(
                failed_suggestions=[
                    IneligibleSuggestion(suggestion=s, reason=NO_PREVIEW_PATCHES_REASON)
                    for s in suggestions
                ]
            )

        if existing is not None and existing.patches:
            logger.info(
                "Found %d deployed patches, merging with preview suggestions", len(existing.patches)
            )
            config = merge_configs(existing, new_config)
        else:
            logger.info("No deployed patches found, using only preview suggestions")
            config = new_config

        key = self.upload_config(preview_url, config, preview=True)
        cdn_invalidation = self._invalidate_after_write(preview_url, preview=True)

        try:
            original_html = self.verifier.fetch_html(
                preview_url, edge.api_key, edge.forwarded_host, edge_url, optimized=False
            )
            optimized_html = self.verifier.fetch_html(
                preview_url, edge.api_key, edge.forwarded_host, edge_url, optimized=True
            )
        except CacheVerificationError as e:
            raise _error(
                CacheVerificationError,
                f"Preview failed: Unable to fetch HTML - {e.message}",
                failure=e.failure,
                variant=e.variant,
                max_retries=e.max_retries,
            ) from e
        logger.info("Fetched original and optimized HTML for preview")

        return PreviewResult(
            key=key,
            config=config,
            cdn_invalidation=cdn_invalidation,
            succeeded_suggestions=eligible,
            failed_suggestions=ineligible,
            html=PreviewHtml(
                url=preview_url, original_html=original_html, optimized_html=optimized_html
            ),
        )
