"""Integration tests for the attraction enrichment endpoints."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from tripplan.api.deps import get_enrichment
from tripplan.enrichment.poi_cache import PoiCache, PoiEnrichmentCache
from tripplan.main import app
from tripplan.models.common import Location
from tripplan.tools.executor import RetryingRequestExecutor


@pytest.fixture
def provider() -> MagicMock:
    async def search(keyword: str, city: str) -> dict[str, object]:
        if keyword == "故宫":
            return {
                "status": "1",
                "pois": [
                    {
                        "name": "故宫博物院",
                        "type": "风景名胜",
                        "address": "景山前街4号",
                        "location": "116.397029,39.917839",
                        "rating": "4.9",
                    }
                ],
            }
        return {"status": "1", "pois": []}

    client = MagicMock()
    client.search_text = AsyncMock(side_effect=search)
    client.geocode = AsyncMock(return_value={"status": "0"})
    return client


@pytest.fixture
def client(provider: MagicMock) -> Generator[TestClient, None, None]:
    enrichment = PoiEnrichmentCache(
        cache=PoiCache(),
        client=provider,
        executor=RetryingRequestExecutor(),
        reference_location=Location(longitude=116.3, latitude=39.9),
    )
    app.dependency_overrides[get_enrichment] = lambda: enrichment
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_resolve_single(client: TestClient, provider: MagicMock) -> None:
    response = client.post("/attractions/resolve", json={"name": "第1天景点：故宫", "city": "北京"})

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "故宫"
    assert data["source"] == "poi"
    assert data["location"] == {"longitude": 116.397029, "latitude": 39.917839}
    assert data["rating"] == 4.9


def test_resolve_batch_keeps_order(client: TestClient, provider: MagicMock) -> None:
    response = client.post(
        "/attractions/resolve-batch",
        json={
            "items": [
                {"name": "Unmapped Teahouse", "city": "北京"},
                {"name": "故宫", "city": "北京"},
            ]
        },
    )

    assert response.status_code == 200
    assert [r["source"] for r in response.json()] == ["synthetic", "poi"]


def test_cache_shared_across_requests(client: TestClient, provider: MagicMock) -> None:
    client.post("/attractions/resolve", json={"name": "故宫", "city": "北京"})
    client.post("/attractions/resolve", json={"name": "Day 1 attraction: 故宫", "city": "北京"})

    provider.search_text.assert_awaited_once()


def test_blank_name_rejected(client: TestClient) -> None:
    response = client.post("/attractions/resolve", json={"name": "", "city": "北京"})
    assert response.status_code == 422
