"""Recommendation pipeline configuration: single source for all limits."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ResultLimits:
    """Shape the LLM result must have."""
    required_destinations: int = 5
    max_region_count: int = 2      # destinations sharing one region
    max_text_length: int = 120     # UTF-16 code units, every text field and list element


@dataclass(frozen=True)
class RetryPolicy:
    """In-band transient retry around each LLM call."""
    delay_seconds: float = 0.2     # sleep before the single retry


@dataclass(frozen=True)
class EmptyListPlaceholders:
    """Values that replace an empty list returned by the model."""
    best_months: str = "Year-round"
    top_activities: str = "General exploration"
    pros: str = "Good destination"
    cons: str = "Consider your preferences"

    def as_dict(self) -> dict[str, str]:
        return {
            "best_months": self.best_months,
            "top_activities": self.top_activities,
            "pros": self.pros,
            "cons": self.cons,
        }


@dataclass(frozen=True)
class LoggingLimits:
    """Caps applied when echoing model output into logs."""
    raw_response_chars: int = 500


# Text fields every destination carries
TEXT_FIELDS: tuple[str, ...] = (
    "country",
    "region",
    "estimated_daily_budget_eur_range",
    "weather_summary",
    "accommodation_fit",
    "travel_style_fit",
    "why_match",
)

# Narrative text fields: truncated during coercion, length-checked by the validator
NARRATIVE_FIELDS: tuple[str, ...] = (
    "estimated_daily_budget_eur_range",
    "weather_summary",
    "accommodation_fit",
    "travel_style_fit",
    "why_match",
)

# Required non-empty list fields
LIST_FIELDS: tuple[str, ...] = ("best_months", "top_activities", "pros", "cons")

# Lists the model sometimes returns as a bare string
STRING_TO_LIST_FIELDS: tuple[str, ...] = ("best_months", "pros", "cons", "relaxed_constraints")

# Lists whose string elements are truncated
TRUNCATED_LIST_FIELDS: tuple[str, ...] = LIST_FIELDS + ("relaxed_constraints",)

# Substrings that mark a city/region/physical feature rather than a country
NON_COUNTRY_TOKENS: tuple[str, ...] = (
    "city", "region", "province", "valley", "peninsula",
    "archipelago", "bay", "gulf", "sea", "ocean",
)
MIN_COUNTRY_LENGTH = 2

# Season → month window shown to the model (U+2013 en dash)
SEASON_MONTHS: dict[str, str] = {
    "winter": "Nov–Feb",
    "spring": "Mar–May",
    "summer": "Jun–Aug",
    "autumn": "Sep–Oct",
}


@dataclass(frozen=True)
class RecommendationConfig:
    """Top-level config aggregating all sub-configs."""
    limits: ResultLimits = field(default_factory=ResultLimits)
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    placeholders: EmptyListPlaceholders = field(default_factory=EmptyListPlaceholders)
    logging: LoggingLimits = field(default_factory=LoggingLimits)


# Singleton, import this everywhere
recommendation_config = RecommendationConfig()
