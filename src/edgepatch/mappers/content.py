"""Content summarization mapper: inserts a markdown summary as a HAST tree."""

import logging

from edgepatch.content.hast import markdown_to_hast
from edgepatch.mappers.base import BaseMapper
from edgepatch.models.patch import TARGET_AI_BOTS, VALUE_FORMAT_HAST, EligibilityResult, Patch
from edgepatch.models.suggestion import Suggestion
from edgepatch.validation import has_text

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("insertAfter", "insertBefore", "appendChild")


class ContentSummarizationMapper(BaseMapper):
    """Maps summarization suggestions onto tree-valued insert patches."""

    type_id = "summarization"
    prerender_required = True

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        data = suggestion.data
        if not has_text(data.get("summarizationText")):
            return EligibilityResult.fail("summarizationText is required")

        if not isinstance(data.get("transformRules"), dict):
            return EligibilityResult.fail("transformRules is required")

        rules = suggestion.transform_rules
        if not has_text(rules.get("selector")):
            return EligibilityResult.fail("transformRules.selector is required")

        if rules.get("action") not in VALID_ACTIONS:
            return EligibilityResult.fail(
                "transformRules.action must be insertAfter, insertBefore, or appendChild"
            )

        return EligibilityResult.ok()

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        patches: list[Patch] = []
        for suggestion in self.eligible_only(suggestions):
            rules = suggestion.transform_rules
            try:
                value = markdown_to_hast(suggestion.data["summarizationText"])
            except Exception as e:
                logger.error(
                    "Failed to convert summarization markdown for suggestion %s: %s",
                    suggestion.id, e,
                )
                continue

            patches.append(
                Patch(
                    **self.build_base_patch(suggestion, opportunity_id),
                    op=rules["action"],
                    selector=rules["selector"],
                    value=value,
                    value_format=VALUE_FORMAT_HAST,
                    target=TARGET_AI_BOTS,
                )
            )
        return patches
