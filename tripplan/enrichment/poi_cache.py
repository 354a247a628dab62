"""POI enrichment with an explicit in-memory cache and degrading fallback tiers.

Resolution order for an attraction:

1. cache hit (key ``<normalized name>_<city>``)
2. POI keyword search scoped to the city
3. city centroid from geocoding (cached separately as ``city_center_<city>``)
4. synthetic record at the reference coordinate plus a seeded offset

``resolve_attraction`` never raises: enrichment is best-effort and must not
block itinerary display.
"""

import asyncio
import logging
import re
from collections.abc import Sequence
from typing import Any, Protocol, get_args

import httpx

from tripplan.adapters.amap import parse_lon_lat
from tripplan.errors import EnrichmentError
from tripplan.models.common import Location
from tripplan.models.poi import AttractionEnrichment, AttractionQuery, EnrichmentSource
from tripplan.tools.executor import RequestContext, RetryingRequestExecutor
from tripplan.utils.metrics import poi_cache_hits_total, poi_fallback_total
from tripplan.utils.seeded import seeded_offset, seeded_rating

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "景点"
CITY_CENTER_PREFIX = "city_center_"
POI_ID_PREFIX = "poi_id_"

_DAY_MARKER = re.compile(
    r"^\s*(?:第\s*\d+\s*天\s*景点|day\s*\d+\s*attraction)\s*[:：]\s*", re.IGNORECASE
)

# Failures a single enrichment tier may absorb.
_TIER_ERRORS = (EnrichmentError, httpx.HTTPError, TimeoutError, ValueError)

_SOURCES = frozenset(get_args(EnrichmentSource))


def normalize_attraction_name(name: str) -> str:
    """Strip a leading "Day N attraction:" style marker and surrounding whitespace."""
    return _DAY_MARKER.sub("", name).strip()


def make_cache_key(name: str, city: str) -> str:
    return f"{normalize_attraction_name(name)}_{city}"


class PoiCache:
    """Process-lifetime mapping of lookup keys to provider responses.

    Entries never expire; the owner decides the cache's lifetime.
    """

    def __init__(self) -> None:
        self._entries: dict[str, Any] = {}

    def get(self, key: str) -> Any | None:
        return self._entries.get(key)

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = value

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class PoiClient(Protocol):
    """POI provider operations used by enrichment."""

    async def search_text(self, keyword: str, city: str) -> dict[str, Any]: ...

    async def poi_detail(self, poi_id: str) -> dict[str, Any]: ...

    async def geocode(self, address: str, city: str) -> dict[str, Any]: ...


def top_poi(response: Any) -> dict[str, Any] | None:
    """First POI of a successful search response, if any."""
    if not isinstance(response, dict) or response.get("status") != "1":
        return None
    pois = response.get("pois")
    if isinstance(pois, list) and pois and isinstance(pois[0], dict):
        return pois[0]
    return None


def _parse_rating(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return None
    return rating if 0 <= rating <= 5 else None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""


class PoiEnrichmentCache:
    """Resolves attraction names to coordinates, ratings, and categories."""

    def __init__(
        self,
        cache: PoiCache,
        client: PoiClient,
        executor: RetryingRequestExecutor,
        reference_location: Location,
        jitter_deg: float = 0.1,
    ) -> None:
        """Initialize enrichment.

        Args:
            cache: Shared cache object owned by the composition root
            client: POI/geocoding provider
            executor: Retrying executor for provider calls
            reference_location: Anchor for synthetic records
            jitter_deg: Upper bound of the seeded offset added to the anchor
        """
        self._cache = cache
        self._client = client
        self._executor = executor
        self._reference = reference_location
        self._jitter_deg = jitter_deg

    async def resolve_attraction(self, name: str, city: str) -> AttractionEnrichment:
        """Resolve one attraction; always returns a usable record."""
        clean_name = normalize_attraction_name(name)
        key = f"{clean_name}_{city}"

        cached = self._cache.get(key)
        poi = top_poi(cached)
        if poi is not None:
            logger.debug(f"Using cached POI info: {key}")
            poi_cache_hits_total.labels(kind="attraction").inc()
            source: EnrichmentSource = cached.get("source", "poi")
            if source not in _SOURCES:
                source = "poi"
            return self._reshape(poi, clean_name, city, source)

        search_ok = True
        response: Any = None
        try:
            logger.info(f"Searching POI for '{clean_name}' in {city}")
            response = await self._executor.execute(
                RequestContext(trace_id=key, request_name="amap.place_text"),
                lambda: self._client.search_text(clean_name, city),
            )
        except _TIER_ERRORS as e:
            search_ok = False
            logger.warning(f"POI search failed for '{clean_name}' in {city}: {e}")

        poi = top_poi(response)
        if poi is not None:
            self._cache.set(key, response)
            poi_fallback_total.labels(tier="poi").inc()
            return self._reshape(poi, clean_name, city, "poi")

        if search_ok:
            logger.warning(f"No POI match for '{clean_name}' in {city}")

        try:
            lon, lat = await self._city_center(city)
            record = AttractionEnrichment(
                name=clean_name,
                address=f"{clean_name}, {city}",
                location=Location(longitude=lon, latitude=lat),
                rating=seeded_rating(clean_name, city),
                category=DEFAULT_CATEGORY,
                source="city_center",
            )
        except _TIER_ERRORS as e:
            logger.warning(f"City centre lookup failed for {city}: {e}")
            record = self._synthetic(clean_name, city)

        poi_fallback_total.labels(tier=record.source).inc()

        # A failed search may be transient; only cache answers to a search that completed
        if search_ok:
            self._cache.set(key, self._as_provider_response(record))
        return record

    async def resolve_attractions(
        self, items: Sequence[AttractionQuery | tuple[str, str]]
    ) -> list[AttractionEnrichment]:
        """Resolve many attractions; results follow input order.

        Uncached keys are looked up concurrently, once per distinct key.
        """
        queries = [
            item if isinstance(item, AttractionQuery) else AttractionQuery(name=item[0], city=item[1])
            for item in items
        ]

        unique: dict[str, AttractionQuery] = {}
        for query in queries:
            unique.setdefault(make_cache_key(query.name, query.city), query)

        resolved = await asyncio.gather(
            *(self.resolve_attraction(q.name, q.city) for q in unique.values())
        )
        by_key = dict(zip(unique.keys(), resolved))
        return [by_key[make_cache_key(q.name, q.city)] for q in queries]

    async def search_poi(self, keyword: str, city: str) -> dict[str, Any]:
        """Raw keyword search, memoized under the attraction cache key.

        Raises:
            Transport errors from the provider (after retries)
        """
        key = make_cache_key(keyword, city)
        cached = self._cache.get(key)
        if cached is not None:
            poi_cache_hits_total.labels(kind="search").inc()
            return cached

        response = await self._executor.execute(
            RequestContext(trace_id=key, request_name="amap.place_text"),
            lambda: self._client.search_text(keyword, city),
        )
        self._cache.set(key, response)
        return response

    async def get_poi_by_id(self, poi_id: str) -> dict[str, Any]:
        """Raw POI detail lookup, memoized by id.

        Raises:
            Transport errors from the provider (after retries)
        """
        key = f"{POI_ID_PREFIX}{poi_id}"
        cached = self._cache.get(key)
        if cached is not None:
            poi_cache_hits_total.labels(kind="poi_id").inc()
            return cached

        response = await self._executor.execute(
            RequestContext(trace_id=key, request_name="amap.place_detail"),
            lambda: self._client.poi_detail(poi_id),
        )
        self._cache.set(key, response)
        return response

    async def _city_center(self, city: str) -> tuple[float, float]:
        key = f"{CITY_CENTER_PREFIX}{city}"
        cached = parse_lon_lat(self._cache.get(key))
        if cached is not None:
            poi_cache_hits_total.labels(kind="city_center").inc()
            return cached

        data = await self._executor.execute(
            RequestContext(trace_id=key, request_name="amap.geocode"),
            lambda: self._client.geocode(city, city),
        )
        geocodes = data.get("geocodes") if isinstance(data, dict) and data.get("status") == "1" else None
        if not isinstance(geocodes, list) or not geocodes or not isinstance(geocodes[0], dict):
            raise EnrichmentError(f"No geocode result for {city}")

        location = geocodes[0].get("location")
        parsed = parse_lon_lat(location)
        if parsed is None:
            raise EnrichmentError(f"Malformed geocode location for {city}: {location!r}")

        self._cache.set(key, location)
        return parsed

    def _synthetic(self, clean_name: str, city: str) -> AttractionEnrichment:
        return AttractionEnrichment(
            name=clean_name,
            address=f"{clean_name}, {city}",
            location=Location(
                longitude=self._reference.longitude
                + seeded_offset(clean_name, city, "lon", scale=self._jitter_deg),
                latitude=self._reference.latitude
                + seeded_offset(clean_name, city, "lat", scale=self._jitter_deg),
            ),
            rating=seeded_rating(clean_name, city),
            category=DEFAULT_CATEGORY,
            source="synthetic",
        )

    def _reshape(
        self, poi: dict[str, Any], clean_name: str, city: str, source: EnrichmentSource
    ) -> AttractionEnrichment:
        longitude, latitude = parse_lon_lat(poi.get("location")) or (0.0, 0.0)

        address = _text(poi.get("address")).strip()
        if not address:
            address = "".join(_text(poi.get(k)) for k in ("pname", "cityname", "adname", "name"))

        business = poi.get("business")
        rating = _parse_rating(poi.get("rating"))
        if rating is None and isinstance(business, dict):
            rating = _parse_rating(business.get("rating"))
        if rating is None:
            rating = seeded_rating(clean_name, city)

        return AttractionEnrichment(
            name=clean_name,
            address=address,
            location=Location(longitude=longitude, latitude=latitude),
            rating=rating,
            category=_text(poi.get("type")) or DEFAULT_CATEGORY,
            source=source,
        )

    @staticmethod
    def _as_provider_response(record: AttractionEnrichment) -> dict[str, Any]:
        """Store a synthesized record in provider shape, tagged with its tier."""
        return {
            "status": "1",
            "source": record.source,
            "pois": [
                {
                    "id": f"{record.source}_{record.name}",
                    "name": record.name,
                    "type": record.category,
                    "address": record.address,
                    "location": f"{record.location.longitude},{record.location.latitude}",
                    "rating": str(record.rating),
                }
            ],
        }
