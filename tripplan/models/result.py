"""Tagged result of a plan generation run."""

from enum import Enum

from pydantic import Field

from tripplan.models.common import CamelModel
from tripplan.models.trip import TripPlan


class PlanStatus(str, Enum):
    """How the returned plan was produced."""

    success = "success"
    fallback = "fallback"
    fallback_parse_failed = "fallback-parse-failed"


class PlanResult(CamelModel):
    """Plan plus the tag presentation logic uses to warn about generic results."""

    status: PlanStatus
    trip_plan: TripPlan
    warnings: list[str] = Field(default_factory=list)
    failure_cause: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.status is not PlanStatus.success
