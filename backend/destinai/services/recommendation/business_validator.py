"""Business validator: domain rules on the parsed payload.

Rule order matters: count first, then a single pass over destinations where
region and length problems fail immediately while duplicate, non-country and
activity problems accumulate and are reported after the pass (in that order).
"""

import logging
from collections.abc import Sequence

from destinai.services.recommendation.config import (
    LIST_FIELDS,
    MIN_COUNTRY_LENGTH,
    NARRATIVE_FIELDS,
    NON_COUNTRY_TOKENS,
    recommendation_config,
)
from destinai.services.recommendation.models import (
    DestinationPayload,
    FailureReason,
    PreferenceProfile,
    RecommendationPayload,
    ValidationFailure,
)
from destinai.services.recommendation.normalizer import text_length

logger = logging.getLogger(__name__)

cfg = recommendation_config


# ---------- Domain predicates ----------


def normalize_key(value: str | None) -> str:
    """Comparison key for countries and regions."""
    return (value or "").strip().lower()


def is_valid_country(name: str | None) -> bool:
    """Heuristic: reject short names and names that read like a city or feature."""
    normalized = normalize_key(name)
    if text_length(normalized) < MIN_COUNTRY_LENGTH:
        return False
    return not any(token in normalized for token in NON_COUNTRY_TOKENS)


def activity_matches(top_activity: str, requested: str) -> bool:
    """Case-insensitive substring match in either direction."""
    a = top_activity.lower()
    r = requested.lower()
    return r in a or a in r


def count_activity_matches(top_activities: Sequence[str], requested: Sequence[str]) -> int:
    return sum(
        1 for activity in top_activities
        if any(activity_matches(activity, wanted) for wanted in requested)
    )


def _is_invalid_text(value: str | None) -> bool:
    return value is None or not value.strip() or text_length(value) > cfg.limits.max_text_length


# ---------- Validator ----------


def _fail(reason: FailureReason, details: str, index: int | None = None) -> ValidationFailure:
    where = f" index={index}" if index is not None else ""
    logger.info(f"Business validation failed. reason={reason.value}{where} details={details!r}")
    return ValidationFailure(reason, details)


def _check_lengths(destination: DestinationPayload, index: int) -> ValidationFailure | None:
    max_len = cfg.limits.max_text_length
    if text_length(destination.country) > max_len or text_length(destination.region) > max_len:
        return _fail(FailureReason.SCHEMA_INVALID, "Country and region must fit length limits.", index)

    for name in NARRATIVE_FIELDS:
        if _is_invalid_text(getattr(destination, name)):
            return _fail(FailureReason.SCHEMA_INVALID, f"{name} is blank or exceeds length limits.", index)

    for name in LIST_FIELDS:
        items = getattr(destination, name)
        if not items:
            return _fail(FailureReason.SCHEMA_INVALID, f"{name} is empty.", index)
        if any(_is_invalid_text(item) for item in items):
            return _fail(FailureReason.SCHEMA_INVALID, f"{name} items are blank or exceed length limits.", index)
    return None


def validate_business_rules(
    payload: RecommendationPayload,
    profile: PreferenceProfile,
) -> ValidationFailure | None:
    required = cfg.limits.required_destinations
    if len(payload.destinations) != required:
        return _fail(
            FailureReason.DESTINATIONS_COUNT,
            f"Expected {required} destinations, got {len(payload.destinations)}",
        )

    seen_countries: set[str] = set()
    region_counts: dict[str, int] = {}
    # dicts keep first-seen order for the report
    duplicates: dict[str, None] = {}
    non_countries: dict[str, None] = {}
    activity_mismatches: dict[str, None] = {}

    for index, destination in enumerate(payload.destinations):
        country_key = normalize_key(destination.country)
        if country_key in seen_countries:
            duplicates[destination.country] = None
            continue
        seen_countries.add(country_key)

        if not is_valid_country(destination.country):
            non_countries[destination.country] = None

        if count_activity_matches(destination.top_activities, profile.activities) < 1:
            activity_mismatches[destination.country] = None

        region_key = normalize_key(destination.region)
        if not region_key:
            return _fail(FailureReason.REGION_INVALID, f"Invalid region: {destination.region!r}", index)

        region_counts[region_key] = region_counts.get(region_key, 0) + 1
        if region_counts[region_key] > cfg.limits.max_region_count:
            return _fail(FailureReason.REGION_CAP, f"Region over cap: {destination.region}", index)

        failure = _check_lengths(destination, index)
        if failure:
            return failure

    if duplicates:
        return _fail(FailureReason.DUPLICATE_COUNTRIES, "Duplicates: " + ", ".join(duplicates))
    if non_countries:
        return _fail(
            FailureReason.NON_COUNTRY,
            "Non-country destinations detected: " + ", ".join(non_countries),
        )
    if activity_mismatches:
        return _fail(
            FailureReason.ACTIVITY_COVERAGE,
            "Destinations must cover at least 1 selected activity: " + ", ".join(activity_mismatches),
        )
    return None
