"""Invariant completion - repair plan structure, never content.

After ``complete``:
- every day's ``day_index`` equals its position, so days are in ascending
  ``day_index`` order without reordering the received list
- every day has a date (``start_date + day_index`` when missing)
- every day has breakfast, lunch, and dinner (placeholders appended)
- every attraction has a positive visit duration
- attractions are never fabricated

Day count is not forced unless padding is enabled; a shortfall or surplus is
left for the caller to report.
"""

import logging
from datetime import timedelta

from tripplan.models.common import CORE_MEAL_TYPES
from tripplan.models.request import TripRequest
from tripplan.models.trip import Attraction, DayPlan, TripPlan
from tripplan.orchestration.normalizer import placeholder_meal

logger = logging.getLogger(__name__)


class InvariantCompleter:
    """Post-processes a canonical TripPlan so structural invariants hold."""

    def __init__(self, default_visit_duration: int = 120, pad_missing_days: bool = False) -> None:
        """Initialize completer.

        Args:
            default_visit_duration: Minutes substituted for missing/non-positive durations
            pad_missing_days: Clone the last produced day to cover a day-count shortfall
        """
        self._default_visit_duration = default_visit_duration
        self._pad_missing_days = pad_missing_days

    def complete(self, plan: TripPlan, request: TripRequest) -> TripPlan:
        """Return a completed copy of ``plan``; ``plan`` itself is not modified."""
        plan = plan.model_copy(deep=True)

        plan.city = plan.city or request.city
        plan.start_date = plan.start_date or request.start_date
        plan.end_date = plan.end_date or request.end_date

        logger.info(
            f"Completing plan: {len(plan.days)} day(s) received, {request.travel_days} requested"
        )

        for index, day in enumerate(plan.days):
            self._complete_day(day, index, request)

        if self._pad_missing_days and plan.days and len(plan.days) < request.travel_days:
            self._pad_days(plan, request)

        return plan

    def _complete_day(self, day: DayPlan, index: int, request: TripRequest) -> None:
        day.day_index = index
        if day.date is None:
            day.date = request.start_date + timedelta(days=index)
        day.transportation = day.transportation or request.transportation
        day.accommodation = day.accommodation or request.accommodation

        for attraction in day.attractions:
            self._complete_attraction(attraction)

        present = day.meal_types()
        for meal_type in CORE_MEAL_TYPES:
            if meal_type not in present:
                day.meals.append(placeholder_meal(meal_type, index + 1))

    def _complete_attraction(self, attraction: Attraction) -> None:
        if attraction.visit_duration is None or attraction.visit_duration <= 0:
            attraction.visit_duration = self._default_visit_duration

    def _pad_days(self, plan: TripPlan, request: TripRequest) -> None:
        template = plan.days[-1]
        missing = request.travel_days - len(plan.days)
        logger.warning(f"Padding {missing} missing day(s) from day {template.day_index + 1}")

        for index in range(len(plan.days), request.travel_days):
            clone = template.model_copy(deep=True)
            clone.day_index = index
            clone.date = request.start_date + timedelta(days=index)
            clone.description = f"Day {index + 1} (repeats day {template.day_index + 1})"
            for meal in clone.meals:
                meal.name = meal.name.replace(
                    f"Day {template.day_index + 1} ", f"Day {index + 1} ", 1
                )
            plan.days.append(clone)
