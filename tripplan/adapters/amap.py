"""Amap web-service adapter: POI text search, POI detail, geocoding, weather.

Returns decoded JSON bodies untouched; callers interpret ``status`` ("1" = OK)
and the payload lists. HTTP errors are raised via ``raise_for_status`` so the
retrying executor can classify them.
"""

import math
from typing import Any

import httpx


class AmapClient:
    """Thin async client for the Amap REST endpoints used by enrichment."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://restapi.amap.com",
        timeout_s: float = 120.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize client.

        Args:
            api_key: Amap web-service key
            base_url: API base URL
            timeout_s: Per-request timeout when this adapter owns the client
            client: Optional httpx client (for testing with mocks); not closed by us
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._client = client

    async def _get(self, path: str, params: dict[str, str]) -> dict[str, Any]:
        query = {"key": self._api_key, **params}
        url = f"{self._base_url}{path}"

        close_client = False
        client = self._client
        if client is None:
            client = httpx.AsyncClient(timeout=self._timeout_s)
            close_client = True

        try:
            response = await client.get(url, params=query)
            response.raise_for_status()
            data: dict[str, Any] = response.json()
            return data
        finally:
            if close_client:
                await client.aclose()

    async def search_text(self, keyword: str, city: str) -> dict[str, Any]:
        """Keyword POI search restricted to ``city``.

        Response: {status, count, info, pois: [{id, name, type, address,
        location: "lon,lat", pname, cityname, adname, ...}]}
        """
        return await self._get(
            "/v5/place/text",
            {"keywords": keyword, "city": city, "citylimit": "true"},
        )

    async def poi_detail(self, poi_id: str) -> dict[str, Any]:
        """POI detail by id."""
        return await self._get("/v5/place/detail", {"id": poi_id})

    async def geocode(self, address: str, city: str) -> dict[str, Any]:
        """Geocode free text. Response: {status, geocodes: [{adcode, location: "lon,lat"}]}."""
        return await self._get("/v3/geocode/geo", {"address": address, "city": city})

    async def weather_forecast(self, city: str) -> dict[str, Any]:
        """Multi-day forecast. Response: {status, forecasts: [{city, casts: [...]}]}."""
        return await self._get("/v3/weather/weatherInfo", {"city": city, "extensions": "all"})


def parse_lon_lat(value: Any) -> tuple[float, float] | None:
    """Parse a ``"lon,lat"`` string; None when malformed or outside WGS84 bounds."""
    if not isinstance(value, str):
        return None
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        lon, lat = float(parts[0]), float(parts[1])
    except ValueError:
        return None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return None
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        return None
    return lon, lat
