"""Schema validator: structural checks on the coerced JSON tree.

Returns the first failing rule as a ``schema_invalid`` failure, or None.
Messages name the field and destination index, and they become the repair
prompt's details. Once a tree passes, ``RecommendationPayload.model_validate``
only converts it into typed objects.
"""

import logging
from typing import Any

from destinai.services.recommendation.config import LIST_FIELDS, TEXT_FIELDS
from destinai.services.recommendation.models import FailureReason, ValidationFailure

logger = logging.getLogger(__name__)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _fail(details: str) -> ValidationFailure:
    logger.info(f"Schema validation failed. reason={FailureReason.SCHEMA_INVALID.value} rule={details!r}")
    return ValidationFailure(FailureReason.SCHEMA_INVALID, details)


def validate_schema(tree: Any) -> ValidationFailure | None:
    if not isinstance(tree, dict):
        return _fail("Payload must be a JSON object.")
    if not isinstance(tree.get("schema_version"), str):
        return _fail("schema_version must be a string.")
    destinations = tree.get("destinations")
    if not isinstance(destinations, list):
        return _fail("destinations must be an array.")

    for index, destination in enumerate(destinations):
        if not isinstance(destination, dict):
            return _fail(f"Destination {index} must be an object.")
        for name in TEXT_FIELDS:
            if not isinstance(destination.get(name), str):
                return _fail(f"Destination {index}: {name} must be a string.")
        for name in LIST_FIELDS:
            if not _is_string_list(destination.get(name)):
                return _fail(f"Destination {index}: {name} must be an array of strings.")
        if "relaxed_constraints" in destination and not _is_string_list(destination["relaxed_constraints"]):
            return _fail(f"Destination {index}: relaxed_constraints must be an array of strings.")
    return None
