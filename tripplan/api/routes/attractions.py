"""Attraction enrichment endpoints - POST /attractions/resolve[-batch]."""

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import Field

from tripplan.api.deps import get_enrichment
from tripplan.enrichment.poi_cache import PoiEnrichmentCache
from tripplan.models.common import CamelModel
from tripplan.models.poi import AttractionEnrichment, AttractionQuery

router = APIRouter(prefix="/attractions", tags=["attractions"])


class BatchResolveRequest(CamelModel):
    items: list[AttractionQuery] = Field(default_factory=list)


@router.post("/resolve", response_model=AttractionEnrichment)
async def resolve_attraction(
    query: AttractionQuery,
    enrichment: Annotated[PoiEnrichmentCache, Depends(get_enrichment)],
) -> AttractionEnrichment:
    """Resolve one attraction. Always answers 200; see ``source`` for the tier used."""
    return await enrichment.resolve_attraction(query.name, query.city)


@router.post("/resolve-batch", response_model=list[AttractionEnrichment])
async def resolve_attractions(
    body: BatchResolveRequest,
    enrichment: Annotated[PoiEnrichmentCache, Depends(get_enrichment)],
) -> list[AttractionEnrichment]:
    """Resolve many attractions; results follow request order."""
    return await enrichment.resolve_attractions(body.items)
