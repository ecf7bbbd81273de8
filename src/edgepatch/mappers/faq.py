"""FAQ mapper: one shared heading patch plus one patch per question/answer item."""

import logging
from typing import Any, Optional

from edgepatch.content.hast import element, markdown_to_hast, text_node
from edgepatch.mappers.base import BaseMapper
from edgepatch.models.patch import (
    TARGET_AI_BOTS,
    VALUE_FORMAT_HAST,
    EdgeConfig,
    EligibilityResult,
    Patch,
)
from edgepatch.models.suggestion import Suggestion
from edgepatch.patches import RemovalResult, remove_patches
from edgepatch.validation import has_text, is_valid_url

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("insertAfter", "insertBefore", "appendChild")
DEFAULT_HEADING_TEXT = "FAQs"


def build_faq_item(question: str, answer: str) -> dict[str, Any]:
    """<div><h3>question</h3>answer...</div>, with the answer rendered from markdown."""
    answer_tree = markdown_to_hast(answer)
    return element(
        "div",
        [element("h3", [text_node(question)]), *answer_tree["children"]],
    )


class FaqMapper(BaseMapper):
    """
    FAQ suggestions share a single h2 heading patch keyed by the opportunity alone.

    Every call to to_patches regenerates that heading, stamped with the newest
    lastUpdated of the batch, so merging replaces rather than duplicates it.
    Rolling back the last FAQ item of an opportunity also removes the heading.
    """

    type_id = "faq"
    prerender_required = True

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        data = suggestion.data
        if data.get("shouldOptimize") is not True:
            return EligibilityResult.fail("shouldOptimize flag is not true")

        item = data.get("item")
        if not isinstance(item, dict) or not item.get("question") or not item.get("answer"):
            return EligibilityResult.fail("item.question and item.answer are required")

        if not isinstance(data.get("transformRules"), dict):
            return EligibilityResult.fail("transformRules is required")

        rules = suggestion.transform_rules
        if not has_text(rules.get("selector")):
            return EligibilityResult.fail("transformRules.selector is required")

        if rules.get("action") not in VALID_ACTIONS:
            return EligibilityResult.fail(
                "transformRules.action must be insertAfter, insertBefore, or appendChild"
            )

        if not is_valid_url(data.get("url")):
            return EligibilityResult.fail(f"url {data.get('url')} is not a valid URL")

        return EligibilityResult.ok()

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        eligible = self.eligible_only(suggestions)
        if not eligible:
            logger.warning("No eligible FAQ suggestions to deploy for %s", url_path)
            return []

        first = eligible[0].data
        rules = first["transformRules"]
        heading_text = first.get("headingText") or DEFAULT_HEADING_TEXT

        base_patches = [self.build_base_patch(s, opportunity_id) for s in eligible]
        newest = max(base["last_updated"] for base in base_patches)

        logger.debug("Creating/updating FAQ heading patch for %s", url_path)
        patches = [
            Patch(
                opportunity_id=opportunity_id,
                prerender_required=self.requires_prerender(),
                last_updated=newest,
                op=rules["action"],
                selector=rules["selector"],
                value=element("h2", [text_node(heading_text)]),
                value_format=VALUE_FORMAT_HAST,
                target=TARGET_AI_BOTS,
            )
        ]

        for suggestion, base in zip(eligible, base_patches):
            item = suggestion.data["item"]
            try:
                value = build_faq_item(item["question"], item["answer"])
            except Exception as e:
                logger.error("Failed to build FAQ tree for suggestion %s: %s", suggestion.id, e)
                continue
            patches.append(
                Patch(
                    **base,
                    op=rules["action"],
                    selector=rules["selector"],
                    value=value,
                    value_format=VALUE_FORMAT_HAST,
                    target=TARGET_AI_BOTS,
                )
            )

        return patches

    def rollback(
        self, config: Optional[EdgeConfig], suggestion_ids: list[str], opportunity_id: str
    ) -> RemovalResult:
        if config is None or config.patches is None:
            return RemovalResult(config=config, removed_count=0)

        removing = set(suggestion_ids)
        remaining = [
            p.suggestion_id
            for p in config.patches
            if p.opportunity_id == opportunity_id
            and not p.is_aggregate
            and p.suggestion_id not in removing
        ]

        additional_keys = []
        if not remaining:
            logger.debug("No FAQ items left for opportunity %s, removing heading", opportunity_id)
            additional_keys.append(opportunity_id)
        else:
            logger.debug("%d FAQ items remain, keeping heading", len(remaining))

        return remove_patches(config, suggestion_ids, additional_keys)
