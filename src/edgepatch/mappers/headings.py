"""Headings mapper: empty, missing, overlong and out-of-order headings."""

import logging

from edgepatch.mappers.base import BaseMapper
from edgepatch.models.patch import (
    TARGET_AI_BOTS,
    VALUE_FORMAT_HAST,
    VALUE_FORMAT_TEXT,
    EligibilityResult,
    Patch,
)
from edgepatch.models.suggestion import Suggestion
from edgepatch.validation import has_text

logger = logging.getLogger(__name__)

ELIGIBLE_CHECK_TYPES = (
    "heading-empty",
    "heading-missing-h1",
    "heading-h1-length",
    "heading-order-invalid",
)


class HeadingsMapper(BaseMapper):
    """Maps heading audit suggestions onto replace/insert patches."""

    type_id = "headings"
    prerender_required = True

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        data = suggestion.data
        check_type = data.get("checkType")
        rules = suggestion.transform_rules

        if check_type not in ELIGIBLE_CHECK_TYPES:
            return EligibilityResult.fail(
                f"Only {', '.join(ELIGIBLE_CHECK_TYPES)} can be deployed. "
                f"This suggestion has checkType: {check_type}"
            )

        if not data.get("recommendedAction"):
            return EligibilityResult.fail("recommendedAction is required")

        if not has_text(rules.get("selector")):
            return EligibilityResult.fail("transformRules.selector is required")

        action = rules.get("action")
        if check_type == "heading-missing-h1":
            if action not in ("insertBefore", "insertAfter"):
                return EligibilityResult.fail(
                    "transformRules.action must be insertBefore or insertAfter for heading-missing-h1"
                )
            if not has_text(rules.get("tag")):
                return EligibilityResult.fail("transformRules.tag is required for heading-missing-h1")

        if check_type in ("heading-h1-length", "heading-empty") and action != "replace":
            return EligibilityResult.fail(f"transformRules.action must be replace for {check_type}")

        if check_type == "heading-order-invalid":
            if action != "replaceWith":
                return EligibilityResult.fail(
                    f"transformRules.action must be replaceWith for {check_type}"
                )
            if rules.get("valueFormat") != VALUE_FORMAT_HAST:
                return EligibilityResult.fail(
                    f"transformRules.valueFormat must be hast for {check_type}"
                )

        return EligibilityResult.ok()

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        patches: list[Patch] = []
        for suggestion in self.eligible_only(suggestions):
            data = suggestion.data
            rules = suggestion.transform_rules
            check_type = data["checkType"]

            fields = {
                **self.build_base_patch(suggestion, opportunity_id),
                "op": rules["action"],
                "selector": rules["selector"],
                "value": data["recommendedAction"],
                "value_format": (
                    VALUE_FORMAT_HAST if check_type == "heading-order-invalid" else VALUE_FORMAT_TEXT
                ),
                "target": TARGET_AI_BOTS,
            }
            if data.get("currentValue") is not None:
                fields["curr_value"] = data["currentValue"]
            if check_type == "heading-missing-h1" and rules.get("tag"):
                fields["tag"] = rules["tag"]

            patches.append(Patch(**fields))

        logger.debug("Built %d heading patches for %s", len(patches), url_path)
        return patches
