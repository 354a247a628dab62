"""Decoded response envelope variants.

The generator answers with one of two top-level shapes:

- ``{"tripPlan": {...}}`` - already canonical
- ``{"travel_plan": {...}}`` - the shape the system prompt asks for

Both are modelled here so the normalizer classifies a payload once instead of
probing fields ad hoc. The ``travel_plan`` models are lenient per field: a
malformed value degrades to empty or unknown instead of rejecting the whole
payload, and non-object list entries are dropped.
"""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from tripplan.models.common import Location
from tripplan.models.trip import TripPlan


def _text_or_none(v: object) -> object:
    return v if isinstance(v, str) else None


def _location_or_none(v: object) -> object:
    if v is None or isinstance(v, Location):
        return v
    try:
        return Location.model_validate(v)
    except ValidationError:
        return None


def _objects(v: object) -> list[object]:
    return [item for item in v if isinstance(item, dict)] if isinstance(v, list) else []


class RawModel(BaseModel):
    """Lenient base for generator output - unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class RawMealDetail(RawModel):
    name: str | None = None
    description: str | None = None
    address: str | None = None
    location: Location | None = None

    @field_validator("name", "description", "address", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> object:
        return _text_or_none(v)

    @field_validator("location", mode="before")
    @classmethod
    def coerce_location(cls, v: object) -> object:
        return _location_or_none(v)


class RawMeals(RawModel):
    breakfast: str | RawMealDetail | None = None
    lunch: str | RawMealDetail | None = None
    dinner: str | RawMealDetail | None = None

    @field_validator("breakfast", "lunch", "dinner", mode="before")
    @classmethod
    def coerce_meal(cls, v: object) -> object:
        return v if isinstance(v, (str, dict, RawMealDetail)) else None


class RawActivity(RawModel):
    type: str = ""
    name: str = ""
    description: str | None = None
    suggested_duration: str | int | float | None = None
    address: str | None = None
    location: Location | None = None
    tips: str | None = None

    @field_validator("type", "name", mode="before")
    @classmethod
    def coerce_label(cls, v: object) -> object:
        return v if isinstance(v, str) else ""

    @field_validator("suggested_duration", mode="before")
    @classmethod
    def coerce_duration(cls, v: object) -> object:
        if isinstance(v, bool):
            return None
        return v if isinstance(v, (str, int, float)) else None

    @field_validator("description", "address", "tips", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> object:
        return _text_or_none(v)

    @field_validator("location", mode="before")
    @classmethod
    def coerce_location(cls, v: object) -> object:
        return _location_or_none(v)


class RawDay(RawModel):
    day: int | None = None
    date: str | None = None
    activities: list[RawActivity] = Field(default_factory=list)
    meals: RawMeals | None = None

    @field_validator("day", mode="before")
    @classmethod
    def coerce_day(cls, v: object) -> object:
        return v if isinstance(v, int) and not isinstance(v, bool) else None

    @field_validator("date", mode="before")
    @classmethod
    def coerce_date(cls, v: object) -> object:
        return _text_or_none(v)

    @field_validator("activities", mode="before")
    @classmethod
    def coerce_activities(cls, v: object) -> object:
        return _objects(v)

    @field_validator("meals", mode="before")
    @classmethod
    def coerce_meals(cls, v: object) -> object:
        return v if isinstance(v, dict) else None


class RawTravelPlan(RawModel):
    destination: str | None = None
    days: list[RawDay] = Field(default_factory=list)
    overall_suggestions: str | None = Field(
        None, validation_alias=AliasChoices("overallSuggestions", "overall_suggestions")
    )

    @field_validator("destination", "overall_suggestions", mode="before")
    @classmethod
    def coerce_text(cls, v: object) -> object:
        return _text_or_none(v)

    @field_validator("days", mode="before")
    @classmethod
    def coerce_days(cls, v: object) -> object:
        return _objects(v)


class CanonicalEnvelope(RawModel):
    """Payload already in the canonical ``tripPlan`` shape."""

    kind: Literal["trip_plan"] = "trip_plan"
    trip_plan: TripPlan = Field(alias="tripPlan")


class TravelPlanEnvelope(RawModel):
    """Payload in the alternate ``travel_plan`` shape."""

    kind: Literal["travel_plan"] = "travel_plan"
    travel_plan: RawTravelPlan


PlanEnvelope = CanonicalEnvelope | TravelPlanEnvelope
