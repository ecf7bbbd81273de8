"""Generic mapper: free-form insert/replace patches authored upstream."""

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

VALID_ACTIONS = ("insertBefore", "insertAfter", "replace")


class GenericMapper(BaseMapper):
    """
    Copies `patchValue` into a patch at `transformRules.selector`.
    Only operational fields reach the patch; review-only fields such as
    contentBefore or rationale stay on the suggestion.
    """

    type_id = "generic"
    prerender_required = True

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        data = suggestion.data
        if not isinstance(data.get("transformRules"), dict):
            return EligibilityResult.fail("transformRules is required")

        rules = suggestion.transform_rules
        if not has_text(rules.get("selector")):
            return EligibilityResult.fail("transformRules.selector is required")

        if not has_text(data.get("patchValue")):
            return EligibilityResult.fail("patchValue is required")

        action = rules.get("action")
        if not has_text(action):
            return EligibilityResult.fail("transformRules.action is required")

        if action not in VALID_ACTIONS:
            return EligibilityResult.fail(
                f"transformRules.action must be one of: {', '.join(VALID_ACTIONS)}. Got: {action}"
            )

        if not has_text(data.get("url")):
            return EligibilityResult.fail("url is required")

        return EligibilityResult.ok()

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        patches: list[Patch] = []
        for suggestion in self.eligible_only(suggestions):
            data = suggestion.data
            rules = suggestion.transform_rules
            fields = {
                **self.build_base_patch(suggestion, opportunity_id),
                "op": rules["action"],
                "selector": rules["selector"],
                "value": data["patchValue"],
                "value_format": (
                    VALUE_FORMAT_HAST if data.get("format") == VALUE_FORMAT_HAST else VALUE_FORMAT_TEXT
                ),
                "target": TARGET_AI_BOTS,
            }
            if data.get("tag"):
                fields["tag"] = data["tag"]
            patches.append(Patch(**fields))
        return patches
