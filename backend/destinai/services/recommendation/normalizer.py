"""Response normalizer: turns raw model text into a coerced JSON tree.

Steps:
    1. strip markdown fences / leading chatter
    2. json.loads  (failure → invalid_json)
    3. per-destination coercion of mild deviations:
       bare string → one-element list, over-long text → truncated,
       empty required list → placeholder entry

Coercion only touches values whose type already fits; anything else is left
for the schema validator to reject. The parsed input is never mutated.
Text lengths are measured in UTF-16 code units.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

from destinai.services.recommendation.config import (
    LIST_FIELDS,
    NARRATIVE_FIELDS,
    STRING_TO_LIST_FIELDS,
    TRUNCATED_LIST_FIELDS,
    recommendation_config,
)
from destinai.services.recommendation.models import FailureReason, ValidationFailure

logger = logging.getLogger(__name__)

cfg = recommendation_config

FENCE = "```"


@dataclass
class NormalizedResponse:
    """Either a coerced tree or the failure that prevented one."""
    tree: Any = None
    failure: ValidationFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


def strip_markup(text: str) -> str:
    """Remove code fences and any prose before the first ``{``."""
    start = text.find(FENCE)
    if start != -1:
        end = text.rfind(FENCE)
        body = text[start + len(FENCE):end] if end > start else text[start + len(FENCE):]
        # Language tag line ("json", "JSON", "") sits before the first newline
        newline = body.find("\n")
        if newline != -1 and "{" not in body[:newline]:
            body = body[newline + 1:]
        text = body

    brace = text.find("{")
    if brace > 0:
        text = text[brace:]
    return text.strip()


def text_length(value: str) -> int:
    """Length in UTF-16 code units; astral characters count as two."""
    return len(value.encode("utf-16-le", "surrogatepass")) // 2


def truncate_text(value: str, limit: int) -> str:
    """Cut ``value`` to at most ``limit`` code units without splitting a surrogate pair."""
    if text_length(value) <= limit:
        return value
    units = 0
    for index, char in enumerate(value):
        units += 2 if ord(char) > 0xFFFF else 1
        if units > limit:
            return value[:index]
    return value


def coerce_tree(tree: Any) -> Any:
    """Return a copy of ``tree`` with tolerated destination deviations fixed.

    Only the root and each destination dict are copied. Coercion replaces
    values instead of mutating them, so nested values can be shared with the
    input, and unknown keys of any depth pass through untouched.
    """
    if not isinstance(tree, dict):
        return tree
    destinations = tree.get("destinations")
    if not isinstance(destinations, list):
        return tree

    coerced = dict(tree)
    coerced["destinations"] = [
        _coerce_destination(dict(destination)) if isinstance(destination, dict) else destination
        for destination in destinations
    ]
    return coerced


def _coerce_destination(destination: dict) -> dict:
    max_len = cfg.limits.max_text_length
    placeholders = cfg.placeholders.as_dict()

    for name in STRING_TO_LIST_FIELDS:
        if isinstance(destination.get(name), str):
            destination[name] = [destination[name]]

    for name in NARRATIVE_FIELDS:
        value = destination.get(name)
        if isinstance(value, str):
            destination[name] = truncate_text(value, max_len)

    for name in TRUNCATED_LIST_FIELDS:
        items = destination.get(name)
        if isinstance(items, list):
            destination[name] = [
                truncate_text(item, max_len) if isinstance(item, str) else item
                for item in items
            ]

    for name in LIST_FIELDS:
        if destination.get(name) == []:
            destination[name] = [placeholders[name]]
    return destination


def normalize_response(raw: str) -> NormalizedResponse:
    """Strip, parse and coerce a raw model response."""
    text = strip_markup(raw or "")
    try:
        tree = json.loads(text)
    except (ValueError, RecursionError) as e:
        logger.warning(
            f"LLM response is not valid JSON. reason={FailureReason.INVALID_JSON.value} "
            f"error={e} raw={text[:cfg.logging.raw_response_chars]!r}"
        )
        return NormalizedResponse(
            failure=ValidationFailure(FailureReason.INVALID_JSON, "Response was not valid JSON."),
        )
    return NormalizedResponse(tree=coerce_tree(tree))
