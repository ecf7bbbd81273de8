"""Patch identity, merge and removal rules over an ordered patch sequence."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from edgepatch.models.patch import EdgeConfig, Patch

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Merged patch list plus how many patches were replaced vs appended."""

    patches: list[Patch]
    update_count: int
    add_count: int


@dataclass
class RemovalResult:
    """Config after removal (None passes through) and how many patches were dropped."""

    config: Optional[EdgeConfig]
    removed_count: int


def identity_key(patch: Patch) -> str:
    """
    Stable identity of a patch: `opportunityId:suggestionId`, or `opportunityId`
    alone for aggregate patches that carry no suggestion.
    """
    if patch.suggestion_id:
        return f"{patch.opportunity_id}:{patch.suggestion_id}"
    return patch.opportunity_id


def merge_patches(existing: Iterable[Patch], incoming: Iterable[Patch]) -> MergeResult:
    """
    Merge incoming patches into existing ones by identity.
    A patch whose key already exists replaces it at the same index; new keys are
    appended in incoming order. Untouched patches keep their relative order.
    """
    merged = list(existing)
    index_by_key = {identity_key(p): i for i, p in enumerate(merged)}
    update_count = 0
    add_count = 0

    for patch in incoming:
        key = identity_key(patch)
        if key in index_by_key:
            merged[index_by_key[key]] = patch
            update_count += 1
        else:
            index_by_key[key] = len(merged)
            merged.append(patch)
            add_count += 1

    return MergeResult(patches=merged, update_count=update_count, add_count=add_count)


def merge_configs(existing: Optional[EdgeConfig], new: EdgeConfig) -> EdgeConfig:
    """
    Merge a freshly generated config into the stored one.
    Without a stored config the new one is returned as is. Otherwise stored fields
    survive, url/version/forceFail/prerender come from the new config, and patches
    are merged by identity.
    """
    if existing is None:
        return new

    result = merge_patches(existing.patches, new.patches)
    logger.debug("Merged patches: %d updated, %d added", result.update_count, result.add_count)

    return existing.model_copy(
        update={
            "url": new.url,
            "version": new.version,
            "force_fail": new.force_fail,
            "prerender": new.prerender,
            "patches": result.patches,
        }
    )


def remove_patches(
    config: Optional[EdgeConfig],
    suggestion_ids: Iterable[str],
    additional_keys: Iterable[str] = (),
) -> RemovalResult:
    """
    Drop every patch whose suggestionId is listed, or whose identity key is in
    additional_keys (used to cascade-remove aggregate patches).
    A missing config is returned unchanged with a zero count.
    """
    if config is None or config.patches is None:
        return RemovalResult(config=config, removed_count=0)

    ids = set(suggestion_ids)
    keys = set(additional_keys)
    kept = [
        p for p in config.patches
        if not (p.suggestion_id in ids or identity_key(p) in keys)
    ]
    removed = len(config.patches) - len(kept)
    return RemovalResult(
        config=config.model_copy(update={"patches": kept}),
        removed_count=removed,
    )
