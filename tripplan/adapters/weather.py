"""Weather adapter using the Amap forecast API.

The provider has been seen answering in two shapes, and both are accepted:

- nested: {"forecasts": [{"city": ..., "casts": [{"date": "2024-05-01",
  "dayweather": ..., "daytemp": "28", "daywind": ..., "daypower": ...}]}]}
- flat: [{"date": "20240501", "dayWeather": ..., "dayTemp": 28,
  "dayWindDirection": ..., "dayWindPower": ...}] (optionally under "forecasts")
"""

import logging
import re
from datetime import date
from typing import Any

from tripplan.adapters.amap import AmapClient
from tripplan.models.trip import WeatherInfo

logger = logging.getLogger(__name__)

UNKNOWN = "未知"

_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def _records(data: Any) -> list[dict[str, Any]]:
    if isinstance(data, dict):
        if isinstance(data.get("casts"), list):
            data = data["casts"]
        else:
            data = data.get("forecasts")

    if not isinstance(data, list):
        return []

    records: list[dict[str, Any]] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        if isinstance(item.get("casts"), list):
            records.extend(cast for cast in item["casts"] if isinstance(cast, dict))
        else:
            records.append(item)
    return records


def _parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    text = value.strip()
    if len(text) == 8 and text.isdigit():
        text = f"{text[:4]}-{text[4:6]}-{text[6:]}"
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def _parse_temp(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        if match:
            return int(match.group(1))
    return 0


def _text(record: dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = record.get(key)
        if isinstance(value, str) and value:
            return value
    return UNKNOWN


def parse_weather(data: Any) -> list[WeatherInfo]:
    """Normalize either forecast shape into WeatherInfo records.

    Records without a usable date are skipped.
    """
    weather: list[WeatherInfo] = []
    for record in _records(data):
        day = _parse_date(record.get("date"))
        if day is None:
            logger.warning(f"Skipping forecast record without a valid date: {record.get('date')!r}")
            continue

        weather.append(
            WeatherInfo(
                date=day,
                day_weather=_text(record, "dayweather", "dayWeather"),
                night_weather=_text(record, "nightweather", "nightWeather"),
                day_temp=_parse_temp(record.get("daytemp", record.get("dayTemp"))),
                night_temp=_parse_temp(record.get("nighttemp", record.get("nightTemp"))),
                wind_direction=_text(record, "daywind", "dayWindDirection"),
                wind_power=_text(record, "daypower", "dayWindPower"),
            )
        )
    return weather


async def fetch_weather(city: str, amap: AmapClient) -> list[WeatherInfo]:
    """Fetch and normalize the forecast for ``city``.

    Raises:
        httpx.HTTPError: On network or HTTP errors
    """
    data = await amap.weather_forecast(city)
    if isinstance(data, dict) and data.get("status") not in (None, "1"):
        logger.warning(f"Weather provider returned status {data.get('status')!r}: {data.get('info')}")
        return []
    return parse_weather(data)
