from destinai.services.recommendation.models import FailureReason, RecommendationPayload, ValidationFailure
from destinai.services.recommendation.repair import (
    build_repair_diagnostic,
    find_duplicate_countries,
    find_over_cap_countries,
)


def _payload(tree) -> RecommendationPayload:
    return RecommendationPayload.model_validate(tree)


def test_find_duplicate_countries(valid_payload):
    valid_payload["destinations"][2]["country"] = "portugal"
    valid_payload["destinations"][3]["country"] = "Japan"
    valid_payload["destinations"][4]["country"] = "portugal"
    assert find_duplicate_countries(_payload(valid_payload)) == ["portugal", "Japan"]


def test_find_duplicate_countries_none(valid_payload):
    assert find_duplicate_countries(_payload(valid_payload)) == []


def test_find_over_cap_countries(valid_payload):
    for destination in valid_payload["destinations"][:4]:
        destination["region"] = "Europe"
    assert find_over_cap_countries(_payload(valid_payload)) == ["Canada", "Chile"]


def test_duplicate_diagnostic(valid_payload, duplicate_response):
    valid_payload["destinations"][1].update(country="Portugal", region="Europe")
    failure = ValidationFailure(FailureReason.DUPLICATE_COUNTRIES, "Duplicates: Portugal")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), duplicate_response)
    assert diagnostic == (
        "Failure: duplicate_countries. Duplicates: Portugal "
        "Replace duplicate countries: Portugal. "
        f"Previous response JSON: {duplicate_response}"
    )


def test_region_cap_diagnostic_lists_excess(valid_payload):
    for destination in valid_payload["destinations"][:3]:
        destination["region"] = "Europe"
    failure = ValidationFailure(FailureReason.REGION_CAP, "Region over cap: Europe")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), "{}")
    assert "Replace excess entries in regions over cap: Canada." in diagnostic


def test_count_diagnostic(valid_payload):
    failure = ValidationFailure(FailureReason.DESTINATIONS_COUNT, "Expected 5 destinations, got 3")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), "{}")
    assert "Return exactly 5 destinations, add/remove as needed." in diagnostic


def test_non_country_diagnostic(valid_payload):
    failure = ValidationFailure(FailureReason.NON_COUNTRY, "Non-country destinations detected: Lisbon City")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), "{}")
    assert "Replace non-country destinations (cities/regions) with actual countries." in diagnostic


def test_activity_diagnostic_names_selected_activities(valid_payload, profile):
    failure = ValidationFailure(FailureReason.ACTIVITY_COVERAGE, "Destinations must cover at least 1 selected activity: Japan")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), "{}", profile)
    assert (
        "Ensure each destination covers at least 1 of the user's selected activities. "
        "Selected activities: hiking, surfing."
    ) in diagnostic


def test_activity_diagnostic_without_profile(valid_payload):
    failure = ValidationFailure(FailureReason.ACTIVITY_COVERAGE, "x")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), "{}")
    assert "Selected activities" not in diagnostic
    assert "selected activities." in diagnostic


def test_schema_failure_with_payload_has_no_hint(valid_payload):
    failure = ValidationFailure(FailureReason.SCHEMA_INVALID, "cons is empty.")
    diagnostic = build_repair_diagnostic(failure, _payload(valid_payload), '{"a": 1}')
    assert diagnostic == 'Failure: schema_invalid. cons is empty. Previous response JSON: {"a": 1}'


def test_invalid_json_diagnostic_embeds_raw_text():
    failure = ValidationFailure(FailureReason.INVALID_JSON, "Response was not valid JSON.")
    diagnostic = build_repair_diagnostic(failure, None, "not-json")
    assert diagnostic == "Failure: invalid_json. Response was not valid JSON. Previous response: not-json"


def test_raw_response_embedded_verbatim():
    raw = "x" * 2000
    failure = ValidationFailure(FailureReason.INVALID_JSON, "Response was not valid JSON.")
    assert build_repair_diagnostic(failure, None, raw).endswith(raw)


def test_blank_details_and_raw_omitted():
    failure = ValidationFailure(FailureReason.SCHEMA_INVALID, "  ")
    assert build_repair_diagnostic(failure, None, "   ") == "Failure: schema_invalid."
    assert build_repair_diagnostic(failure, None, None) == "Failure: schema_invalid."
