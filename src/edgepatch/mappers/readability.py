"""Readability mapper: replaces hard-to-read text with a simplified version."""

from edgepatch.mappers.base import BaseMapper
from edgepatch.models.patch import TARGET_AI_BOTS, VALUE_FORMAT_TEXT, EligibilityResult, Patch
from edgepatch.models.suggestion import Suggestion
from edgepatch.validation import has_text, is_valid_url


class ReadabilityMapper(BaseMapper):
    type_id = "readability"
    prerender_required = True

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        data = suggestion.data
        if not isinstance(data.get("transformRules"), dict):
            return EligibilityResult.fail("transformRules is required")

        rules = suggestion.transform_rules
        if not has_text(rules.get("selector")):
            return EligibilityResult.fail("transformRules.selector is required")

        if rules.get("op") != "replace":
            return EligibilityResult.fail(
                'transformRules.op must be "replace" for readability suggestions'
            )

        if not has_text(rules.get("value")):
            return EligibilityResult.fail("transformRules.value is required")

        if not is_valid_url(data.get("url")):
            return EligibilityResult.fail(f"url {data.get('url')} is not a valid URL")

        return EligibilityResult.ok()

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        patches: list[Patch] = []
        for suggestion in self.eligible_only(suggestions):
            rules = suggestion.transform_rules
            fields = {
                **self.build_base_patch(suggestion, opportunity_id),
                "op": rules["op"],
                "selector": rules["selector"],
                "value": rules["value"],
                "value_format": VALUE_FORMAT_TEXT,
                "target": rules.get("target") or TARGET_AI_BOTS,
            }
            if suggestion.data.get("textPreview") is not None:
                fields["curr_value"] = suggestion.data["textPreview"]
            patches.append(Patch(**fields))
        return patches
