"""Deterministic placeholder plan used when generation fails and fallback is enabled."""

import json
from datetime import timedelta
from functools import lru_cache
from pathlib import Path
from typing import Any

from tripplan.models.request import TripRequest
from tripplan.models.trip import DayPlan, TripPlan

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"


@lru_cache
def load_template() -> dict[str, Any]:
    """Load the bundled fallback template."""
    fixtures_path = FIXTURES_DIR / "fallback_plan.json"
    with open(fixtures_path, encoding="utf-8") as f:
        data: dict[str, Any] = json.load(f)
    return data


def _fill_city(value: Any, city: str) -> Any:
    if isinstance(value, str):
        return value.replace("{city}", city)
    if isinstance(value, list):
        return [_fill_city(v, city) for v in value]
    if isinstance(value, dict):
        return {k: _fill_city(v, city) for k, v in value.items()}
    return value


def build_fallback_plan(request: TripRequest) -> TripPlan:
    """Build a placeholder plan for ``request``.

    Template days are cycled to cover ``travel_days`` and re-dated from the
    start date. The same request always yields the same plan.
    """
    template = _fill_city(load_template(), request.city)
    template_days: list[dict[str, Any]] = template["days"]

    days = []
    for index in range(request.travel_days):
        day = DayPlan.model_validate(template_days[index % len(template_days)])
        day.day_index = index
        day.date = request.start_date + timedelta(days=index)
        day.transportation = request.transportation
        day.accommodation = request.accommodation
        days.append(day)

    return TripPlan(
        city=request.city,
        start_date=request.start_date,
        end_date=request.end_date,
        days=days,
        weather_info=[],
        overall_suggestions=template["overallSuggestions"],
    )
