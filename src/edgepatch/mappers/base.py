"""Mapper contract: translate suggestions of one opportunity type into patches."""

import logging
import math
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Iterable, Optional, Protocol, runtime_checkable

from edgepatch.models.patch import EdgeConfig, EligibilityResult, Patch
from edgepatch.models.suggestion import Suggestion
from edgepatch.patches import RemovalResult, remove_patches

logger = logging.getLogger(__name__)


@runtime_checkable
class Mapper(Protocol):
    """
    Capability set the registry and orchestrator rely on.
    Any object with these methods can be registered; BaseMapper is a convenience.
    """

    def opportunity_type(self) -> str: ...

    def requires_prerender(self) -> bool: ...

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult: ...

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]: ...

    def rollback(
        self, config: Optional[EdgeConfig], suggestion_ids: list[str], opportunity_id: str
    ) -> RemovalResult: ...


def _now_ms() -> int:
    return int(time.time() * 1000)


def to_epoch_ms(value: Any) -> int:
    """
    Convert a timestamp (datetime, ISO string or epoch millis) to epoch millis.
    Anything missing or unparsable becomes the current time.
    """
    if value is None or value == "":
        return _now_ms()
    if isinstance(value, bool):
        return _now_ms()
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return _now_ms()
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return _now_ms()
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp() * 1000)
    return _now_ms()


class BaseMapper(ABC):
    """
    Shared behaviour for the built-in mappers.
    Subclasses set `type_id` / `prerender_required` and implement can_deploy and to_patches.
    """

    type_id: str = ""
    prerender_required: bool = True

    def opportunity_type(self) -> str:
        return self.type_id

    def requires_prerender(self) -> bool:
        return self.prerender_required

    @abstractmethod
    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        """Check whether a suggestion carries everything needed to build its patch."""
        pass

    @abstractmethod
    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        """Build patches for suggestions that all belong to url_path."""
        pass

    def rollback(
        self, config: Optional[EdgeConfig], suggestion_ids: list[str], opportunity_id: str
    ) -> RemovalResult:
        """Remove the patches of the given suggestions. Other opportunities are untouched."""
        return remove_patches(config, suggestion_ids)

    def build_base_patch(self, suggestion: Suggestion, opportunity_id: str) -> dict[str, Any]:
        """
        Fields common to every per-suggestion patch.
        lastUpdated precedence: data.scrapedAt, transformRules.scrapedAt,
        the suggestion's updated_at, then now.
        """
        data = suggestion.data
        updated_at = (
            data.get("scrapedAt")
            or suggestion.transform_rules.get("scrapedAt")
            or suggestion.updated_at
        )
        return {
            "opportunity_id": opportunity_id,
            "suggestion_id": suggestion.id,
            "prerender_required": self.requires_prerender(),
            "last_updated": to_epoch_ms(updated_at),
        }

    def eligible_only(self, suggestions: Iterable[Suggestion]) -> list[Suggestion]:
        """Keep suggestions that pass can_deploy, logging the ones that do not."""
        kept = []
        for suggestion in suggestions:
            eligibility = self.can_deploy(suggestion)
            if not eligibility.eligible:
                logger.warning(
                    "%s suggestion %s cannot be deployed: %s",
                    self.opportunity_type(), suggestion.id, eligibility.reason,
                )
                continue
            kept.append(suggestion)
        return kept
