"""Patch, per-URL config and domain metaconfig models (persisted wire format)."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

VALUE_FORMAT_TEXT = "text"
VALUE_FORMAT_HAST = "hast"

# Audience categories a patch can target
TARGET_AI_BOTS = "ai-bots"

CONFIG_VERSION = "1.0"


class _WireModel(BaseModel):
    """Base for models persisted as camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys; unset optional fields are omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Patch(_WireModel):
    """One atomic edge-side mutation targeting a CSS selector."""

    opportunity_id: str
    suggestion_id: Optional[str] = Field(
        default=None,
        description="Absent on aggregate patches shared by the whole opportunity",
    )
    op: str
    selector: str
    value: Any = None
    value_format: str = VALUE_FORMAT_TEXT
    target: str = TARGET_AI_BOTS
    prerender_required: bool = True
    last_updated: int = Field(..., description="Epoch milliseconds")
    tag: Optional[str] = None
    curr_value: Optional[Any] = Field(default=None, description="Current page value, for review only")

    @property
    def is_aggregate(self) -> bool:
        return not self.suggestion_id


class EdgeConfig(_WireModel):
    """Ordered collection of all patches active for one URL."""

    url: str
    version: str = CONFIG_VERSION
    force_fail: bool = False
    prerender: bool = True
    patches: list[Patch] = Field(default_factory=list)


class Metaconfig(_WireModel):
    """Domain-level settings document, written once on first deploy."""

    site_id: str
    prerender: bool = True


class EligibilityResult(BaseModel):
    """Per-suggestion verdict from a mapper's eligibility check."""

    eligible: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "EligibilityResult":
        return cls(eligible=True)

    @classmethod
    def fail(cls, reason: str) -> "EligibilityResult":
        return cls(eligible=False, reason=reason)
