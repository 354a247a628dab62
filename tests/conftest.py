"""Shared pytest fixtures for all test suites."""

from collections.abc import Generator
from datetime import date

import pytest

from tripplan.api import deps
from tripplan.config import get_settings
from tripplan.models.common import Location
from tripplan.models.request import TripRequest
from tripplan.tools.executor import RequestConfig, RetryingRequestExecutor


@pytest.fixture(autouse=True)
def reset_cached_singletons() -> Generator[None, None, None]:
    """Drop cached settings and composition-root objects between tests."""
    yield
    get_settings.cache_clear()
    for factory in (
        deps.get_poi_cache,
        deps.get_amap_client,
        deps.get_executor,
        deps.get_orchestrator,
        deps.get_enrichment,
    ):
        factory.cache_clear()


@pytest.fixture
def trip_request() -> TripRequest:
    """Three-day Beijing trip."""
    return TripRequest(
        city="Beijing",
        start_date=date(2025, 5, 1),
        end_date=date(2025, 5, 3),
        transportation="public transit",
        accommodation="hotel",
        preferences=["history", "food"],
        notes="No early mornings",
    )


@pytest.fixture
def one_day_request() -> TripRequest:
    return TripRequest(city="Hangzhou", start_date=date(2025, 1, 1), end_date=date(2025, 1, 1))


@pytest.fixture
def reference_location() -> Location:
    return Location(longitude=116.3, latitude=39.9)


@pytest.fixture
def sleep_calls() -> list[float]:
    return []


@pytest.fixture
def fast_executor(sleep_calls: list[float]) -> RetryingRequestExecutor:
    """Executor whose retry delay is recorded instead of slept."""

    async def fake_sleep(seconds: float) -> None:
        sleep_calls.append(seconds)

    return RetryingRequestExecutor(
        config=RequestConfig(max_retries=2, retry_delay_ms=2000, timeout_ms=1000),
        sleep_fn=fake_sleep,
    )
