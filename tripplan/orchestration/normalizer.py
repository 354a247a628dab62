"""Schema normalizer - reconcile known response shapes into the canonical TripPlan."""

import logging
import math
import re
from datetime import date, timedelta
from typing import Any

from pydantic import ValidationError

from tripplan.errors import NormalizeError
from tripplan.models.common import CORE_MEAL_TYPES, Location, MealType
from tripplan.models.envelopes import (
    CanonicalEnvelope,
    PlanEnvelope,
    RawActivity,
    RawDay,
    RawMealDetail,
    RawMeals,
    TravelPlanEnvelope,
)
from tripplan.models.request import TripRequest
from tripplan.models.trip import Attraction, DayPlan, Meal, TripPlan
from tripplan.utils.seeded import seeded_offset

logger = logging.getLogger(__name__)

ATTRACTION_TYPES = frozenset({"景点", "attraction"})
DEFAULT_CATEGORY = "景点"
DEFAULT_SUGGESTIONS = (
    "This itinerary was designed around your preferences and schedule. Check opening "
    "hours in advance and adjust plans to the weather."
)

_HOURS = re.compile(r"^\s*(\d+(?:\.\d+)?)")


def placeholder_meal(meal_type: MealType, day_number: int) -> Meal:
    """Generic meal tagged with the (1-based) day number."""
    label = meal_type.value
    return Meal(
        type=meal_type,
        name=f"Day {day_number} {label} recommendation",
        description=f"Day {day_number} {label} recommendation near the day's attractions",
    )


def hours_to_minutes(value: Any, default: int) -> int:
    """Convert a suggested duration in hours ("2", "1.5 hours", 2) to minutes."""
    hours: float | None = None
    if isinstance(value, bool):
        hours = None
    elif isinstance(value, (int, float)):
        hours = value
    elif isinstance(value, str):
        match = _HOURS.match(value)
        hours = float(match.group(1)) if match else None

    if hours is None or hours <= 0:
        return default
    try:
        minutes = float(hours) * 60
    except OverflowError:
        return default
    return round(minutes) if math.isfinite(minutes) else default


def classify_payload(decoded: Any) -> PlanEnvelope:
    """Parse-and-classify a decoded payload into one of the known envelope variants.

    Raises:
        NormalizeError: unrecognized_shape if neither variant key is present,
            invalid_shape if the recognized variant fails validation
    """
    if not isinstance(decoded, dict):
        raise NormalizeError("unrecognized_shape", f"Expected an object, got {type(decoded).__name__}")

    variant: type[CanonicalEnvelope] | type[TravelPlanEnvelope]
    if isinstance(decoded.get("tripPlan"), dict):
        variant = CanonicalEnvelope
    elif isinstance(decoded.get("travel_plan"), dict):
        variant = TravelPlanEnvelope
    else:
        keys = ", ".join(sorted(str(k) for k in decoded)) or "<none>"
        raise NormalizeError("unrecognized_shape", f"No tripPlan or travel_plan object (keys: {keys})")

    try:
        return variant.model_validate(decoded)
    except ValidationError as e:
        raise NormalizeError(
            "invalid_shape", f"{variant.__name__} failed validation: {e.error_count()} error(s)"
        ) from e


class SchemaNormalizer:
    """Maps decoded payloads into the canonical TripPlan."""

    def __init__(
        self,
        reference_location: Location,
        jitter_deg: float = 0.1,
        default_visit_duration: int = 120,
    ) -> None:
        """Initialize normalizer.

        Args:
            reference_location: Anchor for attractions that arrive without coordinates
            jitter_deg: Upper bound of the seeded offset added to the anchor
            default_visit_duration: Minutes used when no usable duration is given
        """
        self._reference = reference_location
        self._jitter_deg = jitter_deg
        self._default_visit_duration = default_visit_duration

    def normalize(self, decoded: Any, request: TripRequest) -> TripPlan:
        """Return the canonical plan for ``decoded``."""
        envelope = classify_payload(decoded)

        if isinstance(envelope, CanonicalEnvelope):
            logger.info("Response already in tripPlan shape")
            return envelope.trip_plan

        logger.info("Converting travel_plan response to tripPlan shape")
        travel_plan = envelope.travel_plan
        return TripPlan(
            city=request.city,
            start_date=request.start_date,
            end_date=request.end_date,
            days=[self._map_day(day, index, request) for index, day in enumerate(travel_plan.days)],
            weather_info=[],
            overall_suggestions=travel_plan.overall_suggestions or DEFAULT_SUGGESTIONS,
        )

    def _map_day(self, day: RawDay, index: int, request: TripRequest) -> DayPlan:
        attractions = [
            self._map_attraction(activity, index, position, request)
            for position, activity in enumerate(
                a for a in day.activities if a.name and a.type.strip().lower() in ATTRACTION_TYPES
            )
        ]

        meals = self._map_meals(day.meals)
        present = {meal.type for meal in meals}
        for meal_type in CORE_MEAL_TYPES:
            if meal_type not in present:
                meals.append(placeholder_meal(meal_type, index + 1))

        return DayPlan(
            date=self._parse_day_date(day.date) or request.start_date + timedelta(days=index),
            day_index=index,
            description=f"Day {index + 1} itinerary",
            transportation=request.transportation,
            accommodation=request.accommodation,
            attractions=attractions,
            meals=meals,
        )

    def _map_attraction(
        self, activity: RawActivity, day_index: int, position: int, request: TripRequest
    ) -> Attraction:
        location = activity.location or Location(
            longitude=self._reference.longitude
            + seeded_offset(day_index, position, activity.name, "lon", scale=self._jitter_deg),
            latitude=self._reference.latitude
            + seeded_offset(day_index, position, activity.name, "lat", scale=self._jitter_deg),
        )
        return Attraction(
            name=activity.name,
            address=activity.address or request.city,
            location=location,
            visit_duration=hours_to_minutes(
                activity.suggested_duration, self._default_visit_duration
            ),
            description=activity.description
            or f"{activity.name} is a well-known attraction in {request.city}",
            category=activity.type or DEFAULT_CATEGORY,
        )

    @staticmethod
    def _map_meals(meals: RawMeals | None) -> list[Meal]:
        if meals is None:
            return []

        mapped: list[Meal] = []
        for meal_type in CORE_MEAL_TYPES:
            source: str | RawMealDetail | None = getattr(meals, meal_type.value)
            if not source:
                continue
            generic = f"{meal_type.value.capitalize()} recommendation"
            if isinstance(source, str):
                mapped.append(Meal(type=meal_type, name=source, description=source))
            else:
                mapped.append(
                    Meal(
                        type=meal_type,
                        name=source.name or generic,
                        description=source.description or generic,
                        address=source.address,
                        location=source.location,
                    )
                )
        return mapped

    @staticmethod
    def _parse_day_date(value: str | None) -> date | None:
        if not value:
            return None
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            logger.warning(f"Ignoring unparseable day date {value!r}")
            return None
