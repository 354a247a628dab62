"""Canonical itinerary models.

Every accepted response shape is normalized into these before completion.
Input validation is lenient about structure (missing lists, missing dates,
stringly-typed numbers) because the completer repairs structure afterwards;
it is strict about content types such as the closed meal enumeration.
"""

import datetime as dt
import math
import re

from pydantic import Field, field_validator

from tripplan.models.common import CamelModel, Location, MealType

_LEADING_NUMBER = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def _list_or_empty(v: object) -> object:
    return v if isinstance(v, list) else []


class Attraction(CamelModel):
    """Single attraction in a day plan."""

    name: str
    address: str = ""
    location: Location | None = None
    visit_duration: int | None = Field(None, description="Minutes")
    description: str = ""
    image_url: str | None = None
    rating: float | None = Field(None, ge=0, le=5)
    category: str | None = None

    @field_validator("visit_duration", mode="before")
    @classmethod
    def coerce_minutes(cls, v: object) -> object:
        """Accept "90", "90 minutes" and floats; anything else becomes unknown."""
        minutes: float | None = None
        if isinstance(v, bool):
            minutes = None
        elif isinstance(v, int):
            return v
        elif isinstance(v, float):
            minutes = v
        elif isinstance(v, str):
            match = _LEADING_NUMBER.match(v)
            minutes = float(match.group(1)) if match else None

        if minutes is None or not math.isfinite(minutes):
            return None
        return int(minutes)


class Meal(CamelModel):
    """Meal slot in a day plan."""

    type: MealType
    name: str
    address: str | None = None
    location: Location | None = None
    description: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def lowercase_type(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v


class DayPlan(CamelModel):
    """Itinerary for a single day."""

    date: dt.date | None = None
    day_index: int = 0
    attractions: list[Attraction] = Field(default_factory=list)
    meals: list[Meal] = Field(default_factory=list)
    transportation: str = ""
    accommodation: str = ""
    description: str = ""

    @field_validator("attractions", "meals", mode="before")
    @classmethod
    def coerce_lists(cls, v: object) -> object:
        """Treat a missing or non-sequence value as empty."""
        return _list_or_empty(v)

    def meal_types(self) -> set[MealType]:
        """Meal types present on this day."""
        return {meal.type for meal in self.meals}


class WeatherInfo(CamelModel):
    """Daily weather forecast."""

    date: dt.date
    day_weather: str
    night_weather: str
    day_temp: int
    night_temp: int
    wind_direction: str = Field(alias="winddirection")
    wind_power: str = Field(alias="windpower")


class TripPlan(CamelModel):
    """Complete itinerary."""

    city: str = ""
    start_date: dt.date | None = None
    end_date: dt.date | None = None
    days: list[DayPlan] = Field(default_factory=list)
    weather_info: list[WeatherInfo] = Field(default_factory=list)
    overall_suggestions: str = ""

    @field_validator("days", "weather_info", mode="before")
    @classmethod
    def coerce_lists(cls, v: object) -> object:
        """Treat a missing or non-sequence value as empty."""
        return _list_or_empty(v)
