"""Runtime settings: edge endpoint, CDN provider, stores and cache-verification timing."""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for settings loading. Run: pip install pyyaml"
    ) from e
from pydantic import BaseModel, Field

from edgepatch.errors import ValidationError

ENV_PREFIX = "EDGEPATCH_"


class EdgeSettings(BaseModel):
    """Settings shared by the orchestrator, the cache verifier and the CLI."""

    edge_url: Optional[str] = Field(default=None, description="Edge base URL used for previews")
    cdn_provider: Optional[str] = Field(default=None, description="e.g. http-purge")
    cdn_config: dict[str, Any] = Field(default_factory=dict, description="Per-provider CDN settings")
    store_path: str = "edgepatch.db"
    preview_store_path: Optional[str] = Field(
        default=None, description="Separate store for previews; defaults to the deploy store"
    )
    warmup_delay_ms: int = 2000
    max_retries: int = 3
    retry_delay_ms: int = 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EdgeSettings":
        """Load from EDGEPATCH_* environment variables; unset variables keep defaults."""
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}

        for field, var in (
            ("edge_url", "EDGE_URL"),
            ("cdn_provider", "CDN_PROVIDER"),
            ("store_path", "STORE_PATH"),
            ("preview_store_path", "PREVIEW_STORE_PATH"),
            ("warmup_delay_ms", "WARMUP_DELAY_MS"),
            ("max_retries", "MAX_RETRIES"),
            ("retry_delay_ms", "RETRY_DELAY_MS"),
        ):
            value = env.get(ENV_PREFIX + var)
            if value:
                data[field] = value

        raw_cdn = env.get(ENV_PREFIX + "CDN_CONFIG")
        if raw_cdn:
            try:
                data["cdn_config"] = json.loads(raw_cdn)
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid {ENV_PREFIX}CDN_CONFIG: must be valid JSON") from e

        return cls.model_validate(data)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "EdgeSettings":
        """Load from YAML. Supports nested (edge/cdn/store/preview) or flat structure."""
        data = yaml.safe_load(Path(path).read_text()) or {}
        edge = data.get("edge", {})
        cdn = data.get("cdn", {})
        store = data.get("store", {})
        preview = data.get("preview", {})

        def _get(key: str, nested: dict, top_key: str):
            return nested.get(key, data.get(top_key))

        flat = {
            "edge_url": _get("url", edge, "edge_url"),
            "cdn_provider": _get("provider", cdn, "cdn_provider"),
            "cdn_config": _get("config", cdn, "cdn_config"),
            "store_path": _get("path", store, "store_path"),
            "preview_store_path": _get("store_path", preview, "preview_store_path"),
            "warmup_delay_ms": _get("warmup_delay_ms", edge, "warmup_delay_ms"),
            "max_retries": _get("max_retries", edge, "max_retries"),
            "retry_delay_ms": _get("retry_delay_ms", edge, "retry_delay_ms"),
        }
        return cls.model_validate({k: v for k, v in flat.items() if v is not None})
