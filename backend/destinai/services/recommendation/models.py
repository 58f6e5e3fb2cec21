"""Value types shared by every stage of the recommendation pipeline.

PreferenceProfile        immutable input, one per request
RecommendationPayload    pydantic view of the model's JSON (after coercion)
RecommendationResult     validated output handed back to callers
ValidationFailure        tagged parse/validation outcome, returned not raised
RecommendationError      the only exception that crosses the pipeline boundary
"""

from dataclasses import asdict, dataclass, field
from enum import Enum

from pydantic import BaseModel


# ---------- Preference enums (value = wire value) ----------


class Who(str, Enum):
    SOLO = "solo"
    COUPLE = "couple"


class TravelType(str, Enum):
    BACKPACKING = "backpacking"
    STAYING_IN_ONE_PLACE = "staying_in_one_place"


class Accommodation(str, Enum):
    CAMPING = "camping"
    HOSTELS = "hostels"
    HOTELS = "hotels"


class Budget(str, Enum):
    VERY_LOW = "very_low"
    MEDIUM = "medium"
    LUXURIOUS = "luxurious"


class Weather(str, Enum):
    SUNNY_DRY = "sunny_dry"
    SUNNY_HUMID = "sunny_humid"
    COOL = "cool"
    RAINY = "rainy"


class Season(str, Enum):
    WINTER = "winter"
    SPRING = "spring"
    SUMMER = "summer"
    AUTUMN = "autumn"


@dataclass(frozen=True)
class PreferenceProfile:
    """What the traveler asked for. Enum fields also accept their wire strings."""

    who: Who
    travel_type: TravelType
    accommodation: Accommodation
    activities: tuple[str, ...]
    budget: Budget
    weather: Weather
    season: Season

    def __post_init__(self):
        object.__setattr__(self, "who", Who(self.who))
        object.__setattr__(self, "travel_type", TravelType(self.travel_type))
        object.__setattr__(self, "accommodation", Accommodation(self.accommodation))
        object.__setattr__(self, "budget", Budget(self.budget))
        object.__setattr__(self, "weather", Weather(self.weather))
        object.__setattr__(self, "season", Season(self.season))

        activities = tuple(self.activities)
        if not activities:
            raise ValueError("activities must contain at least one entry")
        for activity in activities:
            if not isinstance(activity, str) or not activity.strip():
                raise ValueError("activities must be non-blank strings")
        object.__setattr__(self, "activities", activities)


# ---------- LLM wire schema ----------


class DestinationPayload(BaseModel):
    country: str
    region: str
    estimated_daily_budget_eur_range: str
    best_months: list[str]
    weather_summary: str
    accommodation_fit: str
    travel_style_fit: str
    top_activities: list[str]
    pros: list[str]
    cons: list[str]
    why_match: str


class RecommendationPayload(BaseModel):
    schema_version: str
    destinations: list[DestinationPayload]


# ---------- Output ----------


@dataclass
class Destination:
    country: str
    region: str
    estimated_daily_budget_eur_range: str
    best_months: list[str]
    weather_summary: str
    accommodation_fit: str
    travel_style_fit: str
    top_activities: list[str]
    pros: list[str]
    cons: list[str]
    why_match: str
    relaxed_constraints: list[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: DestinationPayload, relaxed_constraints: list[str]) -> "Destination":
        return cls(**payload.model_dump(), relaxed_constraints=list(relaxed_constraints))


@dataclass
class RecommendationResult:
    schema_version: str
    destinations: list[Destination]

    def to_dict(self) -> dict:
        return asdict(self)


# ---------- Failures ----------


class FailureReason(str, Enum):
    INVALID_JSON = "invalid_json"
    SCHEMA_INVALID = "schema_invalid"
    DESTINATIONS_COUNT = "destinations_count"
    DUPLICATE_COUNTRIES = "duplicate_countries"
    REGION_CAP = "region_cap"
    REGION_INVALID = "region_invalid"
    NON_COUNTRY = "non_country"
    ACTIVITY_COVERAGE = "activity_coverage"


@dataclass(frozen=True)
class ValidationFailure:
    reason: FailureReason
    details: str = ""


class TerminalKind(str, Enum):
    TIMEOUT = "timeout"
    PROVIDER_ERROR = "provider_error"
    NETWORK_ERROR = "network_error"
    LLM_VALIDATION_FAILED = "llm_validation_failed"


class RecommendationError(Exception):
    """Terminal pipeline outcome. ``kind`` is the closed tag callers branch on.

    provider_error carries ``status_code``; llm_validation_failed carries the
    second failure's ``reason`` and ``details``. Transport causes are chained.
    """

    def __init__(
        self,
        kind: TerminalKind,
        message: str,
        *,
        status_code: int | None = None,
        reason: FailureReason | None = None,
        details: str = "",
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.reason = reason
        self.details = details
