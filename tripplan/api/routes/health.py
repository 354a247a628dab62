"""Health check endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from tripplan.api.deps import get_poi_cache
from tripplan.config import get_settings
from tripplan.enrichment.poi_cache import PoiCache

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Simple health check for Docker/k8s.

    Returns:
        200 OK always (application is running)
    """
    return {"status": "ok"}


@router.get("/healthz")
async def healthz(cache: Annotated[PoiCache, Depends(get_poi_cache)]) -> dict[str, Any]:
    """Report which providers are configured.

    No outbound calls are made; an unconfigured provider means the stub client
    or the enrichment fallback tiers are in use.
    """
    settings = get_settings()
    llm_key = settings.llm_api_key
    return {
        "status": "ok",
        "components": {
            "llm": "configured" if llm_key and llm_key.get_secret_value() else "stub",
            "amap": "configured" if settings.amap_api_key else "not_configured",
            "poi_cache_entries": len(cache),
        },
    }
