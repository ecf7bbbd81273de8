"""Table-of-contents mapper: inserts a prebuilt HAST navigation tree."""

from edgepatch.mappers.base import BaseMapper
from edgepatch.models.patch import TARGET_AI_BOTS, VALUE_FORMAT_HAST, EligibilityResult, Patch
from edgepatch.models.suggestion import Suggestion
from edgepatch.validation import has_text

VALID_ACTIONS = ("insertBefore", "insertAfter")


class TocMapper(BaseMapper):
    type_id = "toc"
    prerender_required = True

    def can_deploy(self, suggestion: Suggestion) -> EligibilityResult:
        data = suggestion.data
        check_type = data.get("checkType")
        if check_type != "toc":
            return EligibilityResult.fail(
                f"Only toc checkType can be deployed. This suggestion has checkType: {check_type}"
            )

        rules = suggestion.transform_rules
        if not has_text(rules.get("selector")):
            return EligibilityResult.fail("transformRules.selector is required")

        if not isinstance(rules.get("value"), dict) or not rules["value"]:
            return EligibilityResult.fail("transformRules.value is required")

        if rules.get("valueFormat") != VALUE_FORMAT_HAST:
            return EligibilityResult.fail("transformRules.valueFormat must be hast for toc")

        if rules.get("action") not in VALID_ACTIONS:
            return EligibilityResult.fail(
                f"transformRules.action must be one of {', '.join(VALID_ACTIONS)} for toc"
            )

        return EligibilityResult.ok()

    def to_patches(
        self, url_path: str, suggestions: list[Suggestion], opportunity_id: str
    ) -> list[Patch]:
        return [
            Patch(
                **self.build_base_patch(suggestion, opportunity_id),
                op=suggestion.transform_rules["action"],
                selector=suggestion.transform_rules["selector"],
                value=suggestion.transform_rules["value"],
                value_format=VALUE_FORMAT_HAST,
                target=TARGET_AI_BOTS,
            )
            for suggestion in self.eligible_only(suggestions)
        ]
