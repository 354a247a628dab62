"""Composition root: builds the long-lived pipeline objects once per process.

Routes receive these through ``Depends`` so tests can swap any of them via
``app.dependency_overrides``.
"""

import logging
from functools import lru_cache

from tripplan.adapters.amap import AmapClient
from tripplan.adapters.weather import fetch_weather
from tripplan.config import get_settings
from tripplan.enrichment.poi_cache import PoiCache, PoiEnrichmentCache
from tripplan.llm.client import get_llm_client
from tripplan.models.common import Location
from tripplan.models.trip import WeatherInfo
from tripplan.orchestration.completer import InvariantCompleter
from tripplan.orchestration.normalizer import SchemaNormalizer
from tripplan.orchestration.orchestrator import PlanGenerationOrchestrator, WeatherSource
from tripplan.parsing.decoder import ResponseDecoder
from tripplan.tools.executor import RequestConfig, RetryingRequestExecutor
from tripplan.utils.logging import StructuredRequestLogger
from tripplan.utils.metrics import PrometheusRequestMetrics

logger = logging.getLogger(__name__)


@lru_cache
def get_poi_cache() -> PoiCache:
    """Process-wide POI cache."""
    return PoiCache()


@lru_cache
def get_amap_client() -> AmapClient:
    settings = get_settings()
    return AmapClient(
        api_key=settings.amap_api_key,
        base_url=settings.amap_base_url,
        timeout_s=settings.request_timeout_ms / 1000,
    )


@lru_cache
def get_executor() -> RetryingRequestExecutor:
    """Retrying executor wired to Prometheus metrics and structured logs."""
    settings = get_settings()
    return RetryingRequestExecutor(
        config=RequestConfig(
            max_retries=settings.max_retry_count,
            retry_delay_ms=settings.retry_delay_ms,
            timeout_ms=settings.request_timeout_ms,
        ),
        metrics=PrometheusRequestMetrics(),
        logger=StructuredRequestLogger(),
    )


def _reference_location() -> Location:
    settings = get_settings()
    return Location(longitude=settings.reference_longitude, latitude=settings.reference_latitude)


def _weather_source() -> WeatherSource | None:
    settings = get_settings()
    if not settings.attach_weather:
        return None
    if not settings.amap_api_key:
        logger.info("No Amap key configured, weather will not be attached")
        return None

    amap = get_amap_client()

    async def lookup(city: str) -> list[WeatherInfo]:
        return await fetch_weather(city, amap)

    return lookup


@lru_cache
def get_orchestrator() -> PlanGenerationOrchestrator:
    """Plan generation pipeline assembled from settings."""
    settings = get_settings()
    return PlanGenerationOrchestrator(
        llm_client=get_llm_client(settings),
        executor=get_executor(),
        decoder=ResponseDecoder(structural_repair=settings.decoder_structural_repair),
        normalizer=SchemaNormalizer(
            reference_location=_reference_location(),
            jitter_deg=settings.fallback_jitter_deg,
            default_visit_duration=settings.default_visit_duration_min,
        ),
        completer=InvariantCompleter(
            default_visit_duration=settings.default_visit_duration_min,
            pad_missing_days=settings.pad_missing_days,
        ),
        allow_fallback_on_failure=settings.allow_fallback_on_failure,
        weather_source=_weather_source(),
    )


@lru_cache
def get_enrichment() -> PoiEnrichmentCache:
    """Attraction enrichment sharing the process-wide cache."""
    settings = get_settings()
    return PoiEnrichmentCache(
        cache=get_poi_cache(),
        client=get_amap_client(),
        executor=get_executor(),
        reference_location=_reference_location(),
        jitter_deg=settings.fallback_jitter_deg,
    )
