"""Results returned by deploy, rollback and preview."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from edgepatch.models.patch import EdgeConfig
from edgepatch.models.suggestion import Suggestion


class IneligibleSuggestion(BaseModel):
    """A suggestion that was not processed, with the reason."""

    suggestion: Suggestion
    reason: str


class CdnInvalidationResult(BaseModel):
    """Outcome of a CDN invalidation request. Never raised, always returned."""

    model_config = ConfigDict(extra="allow")

    status: str
    provider: Optional[str] = None
    message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == "error"


class DeployResult(BaseModel):
    """Result of deploying suggestions across one or more URLs."""

    keys: list[str] = Field(default_factory=list, description="Storage keys written")
    cdn_invalidations: list[CdnInvalidationResult] = Field(default_factory=list)
    succeeded_suggestions: list[Suggestion] = Field(default_factory=list)
    failed_suggestions: list[IneligibleSuggestion] = Field(default_factory=list)


class RollbackResult(DeployResult):
    """Deploy result plus the total number of patches removed."""

    removed_patches_count: int = 0


class PreviewHtml(BaseModel):
    """Baseline and optimized renderings fetched from the edge."""

    url: str
    original_html: str
    optimized_html: str


class PreviewResult(BaseModel):
    """Result of a preview: the preview config plus both renderings."""

    key: Optional[str] = None
    config: Optional[EdgeConfig] = None
    cdn_invalidation: Optional[CdnInvalidationResult] = None
    succeeded_suggestions: list[Suggestion] = Field(default_factory=list)
    failed_suggestions: list[IneligibleSuggestion] = Field(default_factory=list)
    html: Optional[PreviewHtml] = None
