"""Partition suggestions by eligibility and group them by page path."""

import logging
from collections import defaultdict
from typing import Iterable
from urllib.parse import urljoin, urlparse

from edgepatch.mappers.base import Mapper
from edgepatch.models.results import IneligibleSuggestion
from edgepatch.models.suggestion import Suggestion

logger = logging.getLogger(__name__)

DEFAULT_INELIGIBLE_REASON = "Suggestion cannot be deployed"


def filter_eligible_suggestions(
    suggestions: Iterable[Suggestion], mapper: Mapper
) -> tuple[list[Suggestion], list[IneligibleSuggestion]]:
    """Split suggestions into (eligible, ineligible-with-reason) using the mapper's check."""
    eligible: list[Suggestion] = []
    ineligible: list[IneligibleSuggestion] = []
    for suggestion in suggestions:
        result = mapper.can_deploy(suggestion)
        if result.eligible:
            eligible.append(suggestion)
        else:
            ineligible.append(
                IneligibleSuggestion(
                    suggestion=suggestion,
                    reason=result.reason or DEFAULT_INELIGIBLE_REASON,
                )
            )
    return eligible, ineligible


def _resolve(url: str, base_url: str) -> str:
    """Absolute URL for `url` relative to `base_url`; ValueError when either is unusable."""
    base = urlparse(base_url)
    if not base.scheme or not base.netloc:
        raise ValueError(f"Invalid base URL: {base_url}")
    resolved = urlparse(urljoin(base_url, url))
    if not resolved.scheme or not resolved.netloc:
        raise ValueError(f"Cannot resolve URL: {url}")
    return resolved.path or "/"


def group_suggestions_by_url_path(
    suggestions: Iterable[Suggestion], base_url: str
) -> dict[str, list[Suggestion]]:
    """
    Group suggestions by the path of their `data.url`, resolved against base_url.
    Suggestions without a URL, or whose URL cannot be parsed, are dropped with a warning.
    Groups keep first-seen order.
    """
    groups: dict[str, list[Suggestion]] = defaultdict(list)
    for suggestion in suggestions:
        url = suggestion.url
        if not url:
            logger.warning("Suggestion %s does not have a URL, skipping", suggestion.id)
            continue
        try:
            path = _resolve(url, base_url)
        except ValueError as e:
            logger.warning("Failed to parse URL for suggestion %s: %s", suggestion.id, e)
            continue
        groups[path].append(suggestion)
    return dict(groups)
