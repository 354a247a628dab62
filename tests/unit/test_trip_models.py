"""Tests for request and itinerary models."""

from datetime import date

import pytest
from pydantic import ValidationError

from tripplan.models import (
    Attraction,
    DayPlan,
    Meal,
    MealType,
    PlanResult,
    PlanStatus,
    TripPlan,
    TripRequest,
)


class TestTripRequest:
    def test_travel_days_is_inclusive(self, trip_request: TripRequest) -> None:
        assert trip_request.travel_days == 3

    def test_end_before_start_rejected(self) -> None:
        with pytest.raises(ValidationError, match="end_date must be >= start_date"):
            TripRequest(city="Beijing", start_date=date(2025, 5, 3), end_date=date(2025, 5, 1))

    def test_empty_city_rejected(self) -> None:
        with pytest.raises(ValidationError):
            TripRequest(city="", start_date=date(2025, 5, 1), end_date=date(2025, 5, 1))

    def test_camel_case_payload(self) -> None:
        request = TripRequest.model_validate(
            {
                "city": "Xi'an",
                "startDate": "2025-06-01",
                "endDate": "2025-06-02",
                "preferences": [" history ", "", "history", "food"],
                "freeTextInput": "vegetarian",
            }
        )
        assert request.preferences == frozenset({"history", "food"})
        assert request.sorted_preferences() == ["food", "history"]
        assert request.notes == "vegetarian"

    def test_is_immutable(self, trip_request: TripRequest) -> None:
        with pytest.raises(ValidationError):
            trip_request.city = "Shanghai"  # type: ignore[misc]


class TestItineraryModels:
    def test_visit_duration_coercion(self) -> None:
        assert Attraction(name="a", visit_duration="90 minutes").visit_duration == 90
        assert Attraction(name="a", visit_duration=45.7).visit_duration == 45
        assert Attraction(name="a", visit_duration="about an hour").visit_duration is None
        assert Attraction(name="a", visit_duration=float("inf")).visit_duration is None
        assert Attraction(name="a", visit_duration=float("nan")).visit_duration is None
        assert Attraction(name="a", visit_duration="9" * 400).visit_duration is None

    def test_meal_type_is_case_insensitive(self) -> None:
        assert Meal(type="Dinner", name="x").type is MealType.dinner

    def test_unknown_meal_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Meal(type="brunch", name="x")

    def test_non_list_collections_become_empty(self) -> None:
        day = DayPlan.model_validate({"attractions": None, "meals": "none"})
        plan = TripPlan.model_validate({"days": {}, "weatherInfo": "n/a"})
        assert day.attractions == [] and day.meals == []
        assert plan.days == [] and plan.weather_info == []

    def test_plan_result_serializes_status(self) -> None:
        result = PlanResult(status=PlanStatus.fallback_parse_failed, trip_plan=TripPlan())
        dumped = result.model_dump(by_alias=True, mode="json")

        assert dumped["status"] == "fallback-parse-failed"
        assert dumped["failureCause"] is None
        assert "tripPlan" in dumped
        assert result.is_fallback
        assert not PlanResult(status=PlanStatus.success, trip_plan=TripPlan()).is_fallback
