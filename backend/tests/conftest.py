import copy
import json
from collections import deque

import pytest

from destinai.services.recommendation.models import PreferenceProfile


class ScriptedLLMClient:
    """LLM transport double: returns queued responses or raises queued errors."""

    def __init__(self, *responses):
        self._queue = deque(responses)
        self.prompts: list[str] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self._queue:
            raise AssertionError("LLM called more times than scripted")
        item = self._queue.popleft()
        if isinstance(item, BaseException):
            raise item
        return item


class RecordingSleep:
    """Stands in for asyncio.sleep; optionally fails like an interrupted pause."""

    def __init__(self, error: BaseException | None = None):
        self.delays: list[float] = []
        self.error = error

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.error is not None:
            raise self.error


def _destination(country, region, budget, months, weather, accommodation, style, pros, cons, why, relaxed):
    return {
        "country": country,
        "region": region,
        "estimated_daily_budget_eur_range": budget,
        "best_months": months,
        "weather_summary": weather,
        "accommodation_fit": accommodation,
        "travel_style_fit": style,
        "top_activities": ["hiking", "surfing"],
        "pros": pros,
        "cons": cons,
        "why_match": why,
        "relaxed_constraints": relaxed,
    }


VALID_PAYLOAD = {
    "schema_version": "1.0",
    "destinations": [
        _destination("Portugal", "Europe", "50-100", ["May", "June"], "Sunny and warm.", "Strong", "Strong",
                     ["Great food"], ["Crowded summers"], "Fits your travel style.", []),
        _destination("Japan", "East Asia", "120-200", ["April", "October"], "Mild with clear skies.", "Moderate",
                     "Strong", ["Safe cities"], ["Higher costs"], "Balanced activities.", ["weather"]),
        _destination("Canada", "North America", "80-150", ["June", "July"], "Cool and sunny.", "Strong",
                     "Moderate", ["Nature access"], ["Long distances"], "Matches outdoor goals.", []),
        _destination("Chile", "Latin America/Caribbean", "60-120", ["March", "April"], "Dry and mild.", "Moderate",
                     "Strong", ["Diverse regions"], ["Variable weather"], "Varied experiences.", ["travel_type"]),
        _destination("New Zealand", "Oceania", "90-160", ["November", "December"], "Mild and clear.", "Strong",
                     "Strong", ["Scenic landscapes"], ["Long travel times"], "Great for adventure.", []),
    ],
}


@pytest.fixture
def profile() -> PreferenceProfile:
    return PreferenceProfile(
        who="solo",
        travel_type="backpacking",
        accommodation="hostels",
        activities=("hiking", "surfing"),
        budget="medium",
        weather="sunny_dry",
        season="summer",
    )


@pytest.fixture
def valid_payload() -> dict:
    return copy.deepcopy(VALID_PAYLOAD)


@pytest.fixture
def valid_response(valid_payload) -> str:
    return json.dumps(valid_payload, indent=2)


@pytest.fixture
def duplicate_response(valid_payload) -> str:
    payload = copy.deepcopy(valid_payload)
    payload["destinations"][1]["country"] = "Portugal"
    payload["destinations"][1]["region"] = "Europe"
    return json.dumps(payload)
