"""Data models for suggestions, patches, configs and operation results."""

from edgepatch.models.patch import EdgeConfig, EligibilityResult, Metaconfig, Patch
from edgepatch.models.results import (
    CdnInvalidationResult,
    DeployResult,
    IneligibleSuggestion,
    PreviewHtml,
    PreviewResult,
    RollbackResult,
)
from edgepatch.models.suggestion import Opportunity, Site, SiteEdgeSettings, Suggestion

__all__ = [
    "CdnInvalidationResult",
    "DeployResult",
    "EdgeConfig",
    "EligibilityResult",
    "IneligibleSuggestion",
    "Metaconfig",
    "Opportunity",
    "Patch",
    "PreviewHtml",
    "PreviewResult",
    "RollbackResult",
    "Site",
    "SiteEdgeSettings",
    "Suggestion",
]
