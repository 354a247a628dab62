"""Models package - re-exports for convenience."""

from tripplan.models.common import CORE_MEAL_TYPES, CamelModel, Location, MealType
from tripplan.models.envelopes import (
    CanonicalEnvelope,
    PlanEnvelope,
    RawActivity,
    RawDay,
    RawMealDetail,
    RawMeals,
    RawTravelPlan,
    TravelPlanEnvelope,
)
from tripplan.models.poi import AttractionEnrichment, AttractionQuery, EnrichmentSource
from tripplan.models.request import TripRequest
from tripplan.models.result import PlanResult, PlanStatus
from tripplan.models.trip import Attraction, DayPlan, Meal, TripPlan, WeatherInfo

__all__ = [
    # Common
    "CamelModel",
    "Location",
    "MealType",
    "CORE_MEAL_TYPES",
    # Request
    "TripRequest",
    # Itinerary
    "TripPlan",
    "DayPlan",
    "Attraction",
    "Meal",
    "WeatherInfo",
    # Envelopes
    "PlanEnvelope",
    "CanonicalEnvelope",
    "TravelPlanEnvelope",
    "RawTravelPlan",
    "RawDay",
    "RawActivity",
    "RawMeals",
    "RawMealDetail",
    # Enrichment
    "AttractionQuery",
    "AttractionEnrichment",
    "EnrichmentSource",
    # Result
    "PlanStatus",
    "PlanResult",
]
