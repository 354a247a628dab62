"""Prometheus exposition."""

from typing import Annotated

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

from tripplan.api.deps import get_poi_cache
from tripplan.enrichment.poi_cache import PoiCache
from tripplan.utils.metrics import poi_cache_entries

router = APIRouter()


@router.get("/metrics")
async def metrics(cache: Annotated[PoiCache, Depends(get_poi_cache)]) -> Response:
    """Request, decoder, plan-result, and enrichment metrics.

    The cache never evicts, so its size is read here rather than tracked on
    every write.
    """
    poi_cache_entries.set(len(cache))
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
