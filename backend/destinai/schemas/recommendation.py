from pydantic import BaseModel, Field, field_validator

from destinai.services.recommendation.models import (
    Accommodation,
    Budget,
    PreferenceProfile,
    RecommendationResult,
    Season,
    TravelType,
    Weather,
    Who,
)


class RecommendationRequest(BaseModel):
    who: Who
    travel_type: TravelType
    accommodation: Accommodation
    activities: list[str] = Field(min_length=1)
    budget: Budget
    weather: Weather
    season: Season

    @field_validator("activities")
    @classmethod
    def activities_not_blank(cls, value: list[str]) -> list[str]:
        if any(not activity.strip() for activity in value):
            raise ValueError("activities must not contain blank entries")
        return value

    def to_profile(self) -> PreferenceProfile:
        return PreferenceProfile(
            who=self.who,
            travel_type=self.travel_type,
            accommodation=self.accommodation,
            activities=tuple(self.activities),
            budget=self.budget,
            weather=self.weather,
            season=self.season,
        )


class DestinationResponse(BaseModel):
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
    relaxed_constraints: list[str] = []


class RecommendationResponse(BaseModel):
    schema_version: str
    destinations: list[DestinationResponse]

    @classmethod
    def from_result(cls, result: RecommendationResult) -> "RecommendationResponse":
        return cls.model_validate(result.to_dict())


class ApiError(BaseModel):
    error: str
    message: str
    field_errors: dict[str, str] | None = None
