"""Integration tests for EdgeConfigClient deploy, rollback and preview."""

from unittest.mock import MagicMock

import pytest
from conftest import faq_data, headings_data, make_suggestion

from edgepatch import EdgeConfigClient
from edgepatch.cdn import BaseCdnClient, CdnClientRegistry
from edgepatch.errors import (
    CacheFailure,
    CacheVerificationError,
    StorageError,
    UnsupportedTypeError,
    ValidationError,
)
from edgepatch.mappers import HeadingsMapper
from edgepatch.models import CdnInvalidationResult, EdgeConfig, Metaconfig, Opportunity, Patch, Site
from edgepatch.preview import CacheVerifier
from edgepatch.settings import EdgeSettings
from edgepatch.store import InMemoryDocumentStore
from edgepatch.store.keys import config_key, metaconfig_key

PAGE1 = "https://www.example.com/page1"
PAGE2 = "https://www.example.com/page2"


class _RecordingCdn(BaseCdnClient):
    """CDN client that records invalidated paths."""

    def __init__(self, fail: bool = False):
        self.calls: list[list[str]] = []
        self.fail = fail
        self.closed = False

    def provider_name(self) -> str:
        return "recording"

    def validate_config(self) -> bool:
        return True

    def invalidate(self, paths: list[str]) -> CdnInvalidationResult:
        self.calls.append(paths)
        if self.fail:
            raise RuntimeError("cdn down")
        return CdnInvalidationResult(status="success", provider="recording")

    def close(self) -> None:
        self.closed = True


class _FailingStore(InMemoryDocumentStore):
    def get(self, key):
        raise OSError("disk on fire")


@pytest.fixture
def cdn() -> _RecordingCdn:
    return _RecordingCdn()


@pytest.fixture
def verifier() -> MagicMock:
    mock = MagicMock(spec=CacheVerifier)
    mock.fetch_html.side_effect = lambda url, api_key, host, edge_url, optimized=False: (
        "<html>optimized</html>" if optimized else "<html>original</html>"
    )
    return mock


def _make_client(store, cdn, verifier, preview_store=None, **settings) -> EdgeConfigClient:
    registry = CdnClientRegistry()
    registry.register("recording", lambda config, http_client: cdn)
    defaults = {"edge_url": "https://edge.example.net", "cdn_provider": "recording"}
    defaults.update(settings)
    return EdgeConfigClient(
        store,
        preview_store=preview_store,
        settings=EdgeSettings(**defaults),
        cdn_registry=registry,
        verifier=verifier,
    )


@pytest.fixture
def client(memory_store, cdn, verifier) -> EdgeConfigClient:
    return _make_client(memory_store, cdn, verifier)


def _stored_config(store: InMemoryDocumentStore, url: str, preview: bool = False) -> EdgeConfig:
    return EdgeConfig.model_validate(store.get(config_key(url, preview)))


class TestDeploy:
    """Tests for EdgeConfigClient.deploy."""

    def test_unknown_type_raises_before_storage(self, client, site, memory_store) -> None:
        with pytest.raises(UnsupportedTypeError) as exc_info:
            client.deploy(site, Opportunity(id="o", type="mystery"), [make_suggestion(**headings_data())])
        assert exc_info.value.status == 501
        assert exc_info.value.message.startswith("No mapper found for opportunity type: mystery. Supported types: ")
        assert memory_store.keys() == []

    def test_all_ineligible_touches_nothing(self, client, site, headings_opportunity, memory_store, cdn) -> None:
        suggestions = [make_suggestion(**headings_data(checkType="nope"))]
        result = client.deploy(site, headings_opportunity, suggestions)
        assert result.succeeded_suggestions == []
        assert len(result.failed_suggestions) == 1
        assert memory_store.keys() == []
        assert cdn.calls == []

    def test_deploy_writes_config_metaconfig_and_invalidates(
        self, client, site, headings_opportunity, memory_store, cdn
    ) -> None:
        suggestions = [
            make_suggestion("s1", **headings_data()),
            make_suggestion("s2", **headings_data(url=PAGE2)),
            make_suggestion("bad", **headings_data(recommendedAction="")),
        ]
        result = client.deploy(site, headings_opportunity, suggestions)

        assert result.keys == [config_key(PAGE1), config_key(PAGE2)]
        assert [s.id for s in result.succeeded_suggestions] == ["s1", "s2"]
        assert result.failed_suggestions[0].reason == "recommendedAction is required"
        assert [c.status for c in result.cdn_invalidations] == ["success", "success"]
        assert cdn.calls == [[f"/{config_key(PAGE1)}"], [f"/{config_key(PAGE2)}"]]

        assert memory_store.get(metaconfig_key(PAGE1)) == {"siteId": "site-1", "prerender": True}
        config = _stored_config(memory_store, PAGE1)
        assert config.url == PAGE1
        assert [p.suggestion_id for p in config.patches] == ["s1"]

    def test_metaconfig_never_overwritten(self, client, site, headings_opportunity, memory_store) -> None:
        memory_store.put(metaconfig_key(PAGE1), {"siteId": "original-site", "prerender": False})
        client.deploy(site, headings_opportunity, [make_suggestion(**headings_data())])
        assert memory_store.get(metaconfig_key(PAGE1)) == {"siteId": "original-site", "prerender": False}

    def test_redeploy_merges_by_identity(self, client, site, headings_opportunity, memory_store) -> None:
        client.deploy(site, headings_opportunity, [make_suggestion("s1", **headings_data())])
        client.deploy(
            site,
            headings_opportunity,
            [
                make_suggestion("s1", **headings_data(recommendedAction="Updated")),
                make_suggestion("s2", **headings_data()),
            ],
        )
        config = _stored_config(memory_store, PAGE1)
        assert [p.suggestion_id for p in config.patches] == ["s1", "s2"]
        assert config.patches[0].value == "Updated"

    def test_existing_patches_from_other_opportunities_kept(
        self, client, site, headings_opportunity, memory_store
    ) -> None:
        other = Patch(opportunity_id="opp-x", suggestion_id="x1", op="replace", selector="p", last_updated=1)
        memory_store.put(config_key(PAGE1), EdgeConfig(url=PAGE1, patches=[other]).to_wire())
        client.deploy(site, headings_opportunity, [make_suggestion("s1", **headings_data())])
        config = _stored_config(memory_store, PAGE1)
        assert [p.suggestion_id for p in config.patches] == ["x1", "s1"]

    def test_cdn_failure_downgraded(self, memory_store, verifier, site, headings_opportunity) -> None:
        client = _make_client(memory_store, _RecordingCdn(fail=True), verifier)
        result = client.deploy(site, headings_opportunity, [make_suggestion(**headings_data())])
        invalidation = result.cdn_invalidations[0]
        assert invalidation.status == "error"
        assert invalidation.provider == "recording"
        assert invalidation.message == "cdn down"
        assert config_key(PAGE1) in memory_store.keys()

    def test_no_cdn_provider_skips_invalidation(self, memory_store, cdn, verifier, site, headings_opportunity) -> None:
        client = _make_client(memory_store, cdn, verifier, cdn_provider=None)
        result = client.deploy(site, headings_opportunity, [make_suggestion(**headings_data())])
        assert result.cdn_invalidations[0].status == "skipped"
        assert cdn.calls == []

    def test_storage_failure_surfaces(self, cdn, verifier, site, headings_opportunity) -> None:
        client = _make_client(_FailingStore(), cdn, verifier)
        with pytest.raises(StorageError, match="disk on fire") as exc_info:
            client.deploy(site, headings_opportunity, [make_suggestion(**headings_data())])
        assert exc_info.value.status == 500

    def test_uses_override_base_url(self, client, headings_opportunity, memory_store) -> None:
        site = Site(id="site-1", base_url="https://old.example.com", override_base_url="https://www.example.com")
        client.deploy(site, headings_opportunity, [make_suggestion(**headings_data(url="/page1"))])
        assert config_key(PAGE1) in memory_store.keys()


class TestRollback:
    """Tests for EdgeConfigClient.rollback."""

    def test_removes_patches_and_counts(self, client, site, headings_opportunity, memory_store, cdn) -> None:
        suggestions = [make_suggestion("s1", **headings_data()), make_suggestion("s2", **headings_data())]
        client.deploy(site, headings_opportunity, suggestions)
        cdn.calls.clear()

        result = client.rollback(site, headings_opportunity, [suggestions[0]])

        assert result.removed_patches_count == 1
        assert result.keys == [config_key(PAGE1)]
        assert cdn.calls == [[f"/{config_key(PAGE1)}"]]
        assert [p.suggestion_id for p in _stored_config(memory_store, PAGE1).patches] == ["s2"]

    def test_missing_config_skipped(self, client, site, headings_opportunity, memory_store, cdn) -> None:
        result = client.rollback(site, headings_opportunity, [make_suggestion(**headings_data())])
        assert result.removed_patches_count == 0
        assert result.keys == []
        assert memory_store.keys() == []
        assert cdn.calls == []

    def test_nothing_removed_skips_write(self, client, site, headings_opportunity, memory_store, cdn) -> None:
        client.deploy(site, headings_opportunity, [make_suggestion("s1", **headings_data())])
        cdn.calls.clear()
        result = client.rollback(site, headings_opportunity, [make_suggestion("other", **headings_data())])
        assert result.removed_patches_count == 0
        assert result.keys == []
        assert cdn.calls == []

    def test_faq_cascade(self, client, site, faq_opportunity, memory_store) -> None:
        suggestions = [make_suggestion(f"f{i}", **faq_data(f"Q{i}?", "A")) for i in range(3)]
        client.deploy(site, faq_opportunity, suggestions)
        assert len(_stored_config(memory_store, PAGE1).patches) == 4

        partial = client.rollback(site, faq_opportunity, suggestions[:2])
        assert partial.removed_patches_count == 2
        assert [p.suggestion_id for p in _stored_config(memory_store, PAGE1).patches] == [None, "f2"]

        rest = client.rollback(site, faq_opportunity, suggestions[2:])
        assert rest.removed_patches_count == 2
        assert _stored_config(memory_store, PAGE1).patches == []

    def test_ineligible_reported(self, client, site, headings_opportunity) -> None:
        result = client.rollback(site, headings_opportunity, [make_suggestion(**headings_data(checkType="x"))])
        assert result.succeeded_suggestions == []
        assert len(result.failed_suggestions) == 1


class TestPreview:
    """Tests for EdgeConfigClient.preview."""

    def test_requires_edge_credentials(self, client, headings_opportunity) -> None:
        site = Site(id="site-1", base_url="https://www.example.com")
        with pytest.raises(ValidationError, match="Site does not have an edge API key or forwarded host"):
            client.preview(site, headings_opportunity, [make_suggestion(**headings_data())])

    def test_requires_edge_url(self, memory_store, cdn, verifier, site, headings_opportunity) -> None:
        client = _make_client(memory_store, cdn, verifier, edge_url=None)
        with pytest.raises(ValidationError, match="EDGEPATCH_EDGE_URL is required") as exc_info:
            client.preview(site, headings_opportunity, [make_suggestion(**headings_data())])
        assert exc_info.value.status == 500

    def test_unknown_type(self, client, site) -> None:
        with pytest.raises(UnsupportedTypeError):
            client.preview(site, Opportunity(id="o", type=None), [])

    def test_preview_merges_deployed_and_writes_preview_namespace(
        self, client, site, headings_opportunity, memory_store, cdn, verifier
    ) -> None:
        client.deploy(site, headings_opportunity, [make_suggestion("deployed", **headings_data())])
        cdn.calls.clear()

        result = client.preview(site, headings_opportunity, [make_suggestion("draft", **headings_data())])

        assert result.key == config_key(PAGE1, preview=True)
        assert [p.suggestion_id for p in result.config.patches] == ["deployed", "draft"]
        assert cdn.calls == [[f"/{config_key(PAGE1, preview=True)}"]]
        assert result.html.url == PAGE1
        assert result.html.original_html == "<html>original</html>"
        assert result.html.optimized_html == "<html>optimized</html>"

        calls = verifier.fetch_html.call_args_list
        assert len(calls) == 2
        assert calls[0].args == (PAGE1, "edge-key", "www.example.com", "https://edge.example.net")
        assert calls[0].kwargs == {"optimized": False}
        assert calls[1].kwargs == {"optimized": True}

        deployed = _stored_config(memory_store, PAGE1)
        assert [p.suggestion_id for p in deployed.patches] == ["deployed"]

    def test_separate_preview_store(self, cdn, verifier, site, headings_opportunity) -> None:
        deploy_store = InMemoryDocumentStore()
        preview_store = InMemoryDocumentStore()
        client = _make_client(deploy_store, cdn, verifier, preview_store=preview_store)
        client.preview(site, headings_opportunity, [make_suggestion(**headings_data())])
        assert deploy_store.keys() == []
        assert preview_store.keys() == [config_key(PAGE1, preview=True)]

    def test_mixed_urls_previewed_under_first_url(self, client, site, headings_opportunity) -> None:
        suggestions = [
            make_suggestion("s1", **headings_data()),
            make_suggestion("s2", **headings_data(url=PAGE2)),
        ]
        result = client.preview(site, headings_opportunity, suggestions)
        assert result.config.url == PAGE1
        assert [s.id for s in result.succeeded_suggestions] == ["s1", "s2"]
        assert result.failed_suggestions == []
        assert [p.suggestion_id for p in result.config.patches] == ["s1", "s2"]

    def test_no_eligible_returns_failed(self, client, site, headings_opportunity, verifier) -> None:
        result = client.preview(site, headings_opportunity, [make_suggestion(**headings_data(checkType="x"))])
        assert result.config is None
        assert len(result.failed_suggestions) == 1
        verifier.fetch_html.assert_not_called()

    def test_no_patches_marks_all_failed(self, client, site, headings_opportunity) -> None:
        class _Empty(HeadingsMapper):
            def to_patches(self, url_path, suggestions, opportunity_id):
                return []

        client.register_mapper(_Empty())
        suggestions = [make_suggestion("s1", **headings_data()), make_suggestion("s2", **headings_data())]
        result = client.preview(site, headings_opportunity, suggestions)
        assert result.config is None
        assert [f.reason for f in result.failed_suggestions] == ["No patches generated for preview"] * 2

    def test_missing_preview_url(self, client, site) -> None:
        """Headings eligibility does not check the URL, so preview must."""
        data = headings_data()
        del data["url"]
        with pytest.raises(ValidationError, match="Preview URL not found"):
            client.preview(site, Opportunity(id="o", type="headings"), [make_suggestion(**data)])

    def test_verifier_failure_is_fatal_and_config_kept(
        self, client, site, headings_opportunity, memory_store, verifier
    ) -> None:
        verifier.fetch_html.side_effect = CacheVerificationError(
            "Failed to fetch original HTML after 3 retries: HTTP 500",
            failure=CacheFailure.TRANSPORT,
            variant="original",
            max_retries=3,
        )
        with pytest.raises(CacheVerificationError) as exc_info:
            client.preview(site, headings_opportunity, [make_suggestion(**headings_data())])

        error = exc_info.value
        assert error.message == (
            "Preview failed: Unable to fetch HTML - Failed to fetch original HTML after 3 retries: HTTP 500"
        )
        assert error.status == 500
        assert error.failure == CacheFailure.TRANSPORT
        assert config_key(PAGE1, preview=True) in memory_store.keys()


class TestHelpers:
    """Tests for storage and CDN helpers."""

    def test_fetch_missing_returns_none(self, client) -> None:
        assert client.fetch_config(PAGE1) is None
        assert client.fetch_metaconfig(PAGE1) is None

    def test_upload_then_fetch(self, client) -> None:
        key = client.upload_metaconfig(PAGE1, Metaconfig(site_id="s1", prerender=False))
        assert key == metaconfig_key(PAGE1)
        assert client.fetch_metaconfig(PAGE1) == Metaconfig(site_id="s1", prerender=False)

    @pytest.mark.parametrize("url", ["", "   "])
    def test_url_required(self, client, url: str) -> None:
        with pytest.raises(ValidationError, match="URL is required"):
            client.fetch_config(url)
        with pytest.raises(ValidationError, match="URL is required"):
            client.upload_config(url, EdgeConfig(url=PAGE1))

    def test_empty_config_rejected(self, client) -> None:
        with pytest.raises(ValidationError, match="Config object is required"):
            client.upload_config(PAGE1, {})
        with pytest.raises(ValidationError, match="Metaconfig object is required"):
            client.upload_metaconfig(PAGE1, None)

    def test_invalidate_requires_provider(self, client) -> None:
        with pytest.raises(ValidationError, match="URL and provider are required"):
            client.invalidate_cdn_cache(PAGE1, "")

    def test_invalidate_unknown_provider_is_error_result(self, client) -> None:
        result = client.invalidate_cdn_cache(PAGE1, "cloudfront")
        assert result.status == "error"
        assert result.provider == "cloudfront"
        assert "No CDN client available for provider: cloudfront" in result.message

    def test_generate_config_none_without_patches(self, client, headings_opportunity) -> None:
        config = client.generate_config(PAGE1, headings_opportunity, [make_suggestion(**headings_data(checkType="x"))])
        assert config is None

    def test_generate_config_shape(self, client, headings_opportunity) -> None:
        config = client.generate_config(PAGE1, headings_opportunity, [make_suggestion(**headings_data())])
        wire = config.to_wire()
        assert wire["url"] == PAGE1
        assert wire["version"] == "1.0"
        assert wire["forceFail"] is False
        assert wire["prerender"] is True
        assert len(wire["patches"]) == 1

    def test_supported_types(self, client) -> None:
        assert "faq" in client.supported_opportunity_types()

    def test_invalidate_closes_cdn_client(self, client, cdn) -> None:
        result = client.invalidate_cdn_cache(PAGE1, "recording")
        assert result.status == "success"
        assert cdn.closed is True


class TestClose:
    """Tests for releasing HTTP resources."""

    def test_owned_verifier_closed(self, memory_store) -> None:
        with EdgeConfigClient(memory_store) as client:
            pass
        assert client.verifier._client.is_closed

    def test_injected_verifier_left_open(self, memory_store, cdn, verifier) -> None:
        _make_client(memory_store, cdn, verifier).close()
        verifier.close.assert_not_called()
