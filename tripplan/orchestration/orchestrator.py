"""Plan generation orchestrator.

Sequences one run through:

    building_request -> awaiting_response -> decoding -> normalizing -> completing -> done

Any stage failure moves the run to ``failed``. Depending on
``allow_fallback_on_failure`` the orchestrator then either substitutes the
deterministic fallback plan (tagged ``fallback`` for transport failures,
``fallback-parse-failed`` for decode/normalize failures) or raises the typed
error. Only the network call is retried; the later stages are deterministic
functions of data already received.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from enum import Enum

from tripplan.errors import DecodeError, NormalizeError, PlanPipelineError
from tripplan.llm.client import CompletionClient
from tripplan.models.request import TripRequest
from tripplan.models.result import PlanResult, PlanStatus
from tripplan.models.trip import TripPlan, WeatherInfo
from tripplan.orchestration.completer import InvariantCompleter
from tripplan.orchestration.fallback import build_fallback_plan
from tripplan.orchestration.normalizer import SchemaNormalizer
from tripplan.parsing.decoder import ResponseDecoder
from tripplan.tools.executor import RequestContext, RetryingRequestExecutor, classify_failure
from tripplan.utils.metrics import plan_results_total

logger = logging.getLogger(__name__)

WeatherSource = Callable[[str], Awaitable[list[WeatherInfo]]]


class PipelineStage(str, Enum):
    """Orchestration state."""

    BUILDING_REQUEST = "building_request"
    AWAITING_RESPONSE = "awaiting_response"
    DECODING = "decoding"
    NORMALIZING = "normalizing"
    COMPLETING = "completing"
    DONE = "done"
    FAILED = "failed"


class PlanGenerationOrchestrator:
    """Top-level coordinator for plan generation."""

    def __init__(
        self,
        llm_client: CompletionClient,
        executor: RetryingRequestExecutor,
        decoder: ResponseDecoder,
        normalizer: SchemaNormalizer,
        completer: InvariantCompleter,
        allow_fallback_on_failure: bool = False,
        weather_source: WeatherSource | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            llm_client: Completion provider
            executor: Retrying executor wrapping every outbound call
            decoder: Response decoder
            normalizer: Schema normalizer
            completer: Invariant completer
            allow_fallback_on_failure: Substitute the fallback plan instead of raising
            weather_source: Optional best-effort forecast lookup by city
        """
        self._llm = llm_client
        self._executor = executor
        self._decoder = decoder
        self._normalizer = normalizer
        self._completer = completer
        self._allow_fallback = allow_fallback_on_failure
        self._weather_source = weather_source

    async def generate_trip_plan(self, request: TripRequest) -> PlanResult:
        """Generate a plan for ``request``.

        Returns:
            PlanResult tagged success, fallback, or fallback-parse-failed

        Raises:
            NetworkError, ClientError: transport failure with fallback disabled
            DecodeError, NormalizeError: unusable response with fallback disabled
        """
        trace_id = f"trace_{uuid.uuid4().hex[:8]}"
        stage = PipelineStage.BUILDING_REQUEST
        self._log_stage(trace_id, stage, request)

        ctx = RequestContext(trace_id=trace_id, request_name="llm.chat_completions")
        try:
            stage = PipelineStage.AWAITING_RESPONSE
            self._log_stage(trace_id, stage)
            envelope = await self._executor.execute(ctx, lambda: self._llm.complete(request))
        except Exception as e:
            failure = classify_failure(e)
            if failure is None:
                raise
            return await self._handle_failure(
                trace_id, stage, request, PlanStatus.fallback, failure, e
            )

        try:
            stage = PipelineStage.DECODING
            self._log_stage(trace_id, stage)
            decoded = self._decoder.decode(envelope)

            stage = PipelineStage.NORMALIZING
            self._log_stage(trace_id, stage)
            plan = self._normalizer.normalize(decoded, request)

            stage = PipelineStage.COMPLETING
            self._log_stage(trace_id, stage)
            plan = self._completer.complete(plan, request)
        except (DecodeError, NormalizeError) as e:
            return await self._handle_failure(
                trace_id, stage, request, PlanStatus.fallback_parse_failed, e, e
            )

        self._log_stage(trace_id, PipelineStage.DONE)
        plan = await self._attach_weather(trace_id, plan)
        plan_results_total.labels(status=PlanStatus.success.value).inc()
        return PlanResult(
            status=PlanStatus.success,
            trip_plan=plan,
            warnings=day_count_warnings(plan, request),
        )

    async def _handle_failure(
        self,
        trace_id: str,
        stage: PipelineStage,
        request: TripRequest,
        status: PlanStatus,
        error: PlanPipelineError,
        original: BaseException,
    ) -> PlanResult:
        structured = {"trace_id": trace_id, "stage": stage.value, "error": type(error).__name__}
        logger.error(
            f"[{trace_id}] Plan generation failed during {stage.value}: {error}",
            extra={"structured": structured},
        )
        self._log_stage(trace_id, PipelineStage.FAILED)

        if not self._allow_fallback:
            plan_results_total.labels(status="failed").inc()
            if error is original:
                raise error
            raise error from original

        logger.warning(f"[{trace_id}] Substituting fallback plan ({status.value})")
        plan = self._completer.complete(build_fallback_plan(request), request)
        plan = await self._attach_weather(trace_id, plan)
        plan_results_total.labels(status=status.value).inc()
        return PlanResult(
            status=status,
            trip_plan=plan,
            warnings=day_count_warnings(plan, request),
            failure_cause=str(error),
        )

    async def _attach_weather(self, trace_id: str, plan: TripPlan) -> TripPlan:
        if self._weather_source is None:
            return plan

        source = self._weather_source
        city = plan.city
        ctx = RequestContext(trace_id=trace_id, request_name="amap.weather")
        try:
            weather = await self._executor.execute(ctx, lambda: source(city))
        except Exception as e:
            # Weather never changes the outcome of a run
            logger.warning(f"[{trace_id}] Weather lookup for {city} failed: {e}")
            return plan

        if weather:
            plan = plan.model_copy(update={"weather_info": weather})
        return plan

    @staticmethod
    def _log_stage(trace_id: str, stage: PipelineStage, request: TripRequest | None = None) -> None:
        structured: dict[str, object] = {"trace_id": trace_id, "stage": stage.value}
        if request is not None:
            structured.update(city=request.city, travel_days=request.travel_days)
        logger.info(f"[{trace_id}] Stage: {stage.value}", extra={"structured": structured})


def day_count_warnings(plan: TripPlan, request: TripRequest) -> list[str]:
    """Soft warnings about a completed plan."""
    if len(plan.days) != request.travel_days:
        return [f"day_count_mismatch: expected {request.travel_days} days, got {len(plan.days)}"]
    return []
