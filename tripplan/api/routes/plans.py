"""Plan generation endpoint - POST /plans."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from tripplan.api.deps import get_orchestrator
from tripplan.errors import ClientError, DecodeError, NetworkError, NormalizeError
from tripplan.models.request import TripRequest
from tripplan.models.result import PlanResult
from tripplan.orchestration.orchestrator import PlanGenerationOrchestrator

router = APIRouter(tags=["plans"])
logger = logging.getLogger(__name__)


@router.post("/plans", response_model=PlanResult, status_code=status.HTTP_200_OK)
async def create_plan(
    request: TripRequest,
    orchestrator: Annotated[PlanGenerationOrchestrator, Depends(get_orchestrator)],
) -> PlanResult:
    """Generate a trip plan.

    Returns:
        PlanResult tagged success, fallback, or fallback-parse-failed

    Raises:
        HTTPException: 503 when the provider is unreachable, 502 when it
            rejected the request or answered with an unusable payload
            (only when fallback is disabled)
    """
    try:
        return await orchestrator.generate_trip_plan(request)
    except NetworkError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "network_error", "cause": e.cause},
        ) from e
    except ClientError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "client_error", "cause": e.cause},
        ) from e
    except DecodeError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "decode_error", "cause": str(e), "reason": e.reason},
        ) from e
    except NormalizeError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": "normalize_error", "cause": str(e), "reason": e.reason},
        ) from e
