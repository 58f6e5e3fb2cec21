"""Repair diagnostics: tells the model exactly what was wrong with its last answer."""

from destinai.services.recommendation.business_validator import normalize_key
from destinai.services.recommendation.config import recommendation_config
from destinai.services.recommendation.models import (
    FailureReason,
    PreferenceProfile,
    RecommendationPayload,
    ValidationFailure,
)

cfg = recommendation_config


def find_duplicate_countries(payload: RecommendationPayload) -> list[str]:
    """Repeated country names, each listed once, in order of repetition."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for destination in payload.destinations:
        key = normalize_key(destination.country)
        if key in seen and destination.country not in duplicates:
            duplicates.append(destination.country)
        seen.add(key)
    return duplicates


def find_over_cap_countries(payload: RecommendationPayload) -> list[str]:
    """Countries beyond the per-region allowance, in order of occurrence."""
    region_counts: dict[str, int] = {}
    over_cap: list[str] = []
    for destination in payload.destinations:
        key = normalize_key(destination.region)
        region_counts[key] = region_counts.get(key, 0) + 1
        if region_counts[key] > cfg.limits.max_region_count:
            over_cap.append(destination.country)
    return over_cap


def _reason_hint(
    failure: ValidationFailure,
    payload: RecommendationPayload,
    profile: PreferenceProfile | None,
) -> str | None:
    reason = failure.reason
    if reason == FailureReason.DUPLICATE_COUNTRIES:
        return f"Replace duplicate countries: {', '.join(find_duplicate_countries(payload))}."
    if reason == FailureReason.REGION_CAP:
        return f"Replace excess entries in regions over cap: {', '.join(find_over_cap_countries(payload))}."
    if reason == FailureReason.DESTINATIONS_COUNT:
        return f"Return exactly {cfg.limits.required_destinations} destinations, add/remove as needed."
    if reason == FailureReason.NON_COUNTRY:
        return "Replace non-country destinations (cities/regions) with actual countries."
    if reason == FailureReason.ACTIVITY_COVERAGE:
        hint = "Ensure each destination covers at least 1 of the user's selected activities."
        if profile is not None:
            hint += f" Selected activities: {', '.join(profile.activities)}."
        return hint
    return None


def build_repair_diagnostic(
    failure: ValidationFailure,
    payload: RecommendationPayload | None,
    raw_response: str | None,
    profile: PreferenceProfile | None = None,
) -> str:
    """Diagnostic text embedded in the repair prompt.

    ``payload`` is only available when the response parsed and passed the
    schema check, so list-based hints are limited to business failures.
    """
    parts = [f"Failure: {failure.reason.value}."]
    if failure.details and failure.details.strip():
        parts.append(failure.details)

    if payload is not None:
        hint = _reason_hint(failure, payload, profile)
        if hint:
            parts.append(hint)
        parts.append(f"Previous response JSON: {raw_response or ''}")
    elif raw_response and raw_response.strip():
        parts.append(f"Previous response: {raw_response}")
    return " ".join(parts)
