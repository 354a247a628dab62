"""POI enrichment models."""

from typing import Literal

from pydantic import Field

from tripplan.models.common import CamelModel, Location

EnrichmentSource = Literal["poi", "city_center", "synthetic"]


class AttractionQuery(CamelModel):
    """Place name (possibly day-prefixed) scoped to a city."""

    name: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)


class AttractionEnrichment(CamelModel):
    """Resolved coordinates and facts for one attraction."""

    name: str
    address: str
    location: Location
    rating: float = Field(..., ge=0, le=5)
    category: str
    source: EnrichmentSource
