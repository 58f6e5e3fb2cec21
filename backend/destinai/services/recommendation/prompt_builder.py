"""Prompt builder: renders a preference profile into generation and repair prompts.

Both operations are pure: templates are read once at import time, and the same
inputs always produce byte-identical text.
"""

from destinai.services.recommendation.config import SEASON_MONTHS
from destinai.services.recommendation.models import FailureReason, PreferenceProfile
from destinai.services.recommendation.prompts import load_prompt

_GENERATION_TEMPLATE = load_prompt("destination_generation.md")
_REPAIR_TEMPLATE = load_prompt("destination_repair.md")


class PromptBuilder:
    """Builds the prompts sent to the LLM transport."""

    def build_generation_prompt(self, profile: PreferenceProfile) -> str:
        season = profile.season.value
        return _GENERATION_TEMPLATE.format(
            who=profile.who.value,
            travel_type=profile.travel_type.value,
            accommodation=profile.accommodation.value,
            activities=", ".join(profile.activities),
            budget=profile.budget.value,
            weather=profile.weather.value,
            season=season,
            season_months=SEASON_MONTHS.get(season, "Unknown"),
        )

    def build_repair_prompt(self, failure_reason: FailureReason | str, diagnostic: str | None = None) -> str:
        reason = failure_reason.value if isinstance(failure_reason, FailureReason) else failure_reason
        details = f"\nDetails: {diagnostic}" if diagnostic and diagnostic.strip() else ""
        return _REPAIR_TEMPLATE.format(reason=reason, details=details)


prompt_builder = PromptBuilder()
