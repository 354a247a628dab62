"""Async request executor with per-attempt timeout and bounded fixed-delay retries.

Retries only transient failures:
- timeouts and connection failures (no response received)
- HTTP status >= 500

Anything else (4xx, programming errors, decode failures) propagates on the
first attempt. Once attempts are exhausted the last error propagates
unchanged; ``classify_failure`` turns it into the typed taxonomy for callers
that need a human-readable cause.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx
import openai

from tripplan.errors import ClientError, NetworkError

T = TypeVar("T")


@dataclass(frozen=True)
class RequestContext:
    """Context for request execution with tracing."""

    trace_id: str
    request_name: str


@dataclass(frozen=True)
class RequestConfig:
    """Configuration for request execution."""

    max_retries: int = 2
    retry_delay_ms: int = 2000
    timeout_ms: int = 120_000


def status_code_of(exc: BaseException) -> int | None:
    """HTTP status carried by ``exc``, if a response was received."""
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    if isinstance(exc, openai.APIStatusError):
        return exc.status_code
    if isinstance(exc, (NetworkError, ClientError)):
        return exc.status_code
    return None


def is_retryable(exc: BaseException) -> bool:
    """True for timeouts, missing responses, and 5xx statuses."""
    if isinstance(exc, ClientError):
        return False
    if isinstance(exc, NetworkError):
        return True
    if isinstance(exc, TimeoutError):
        return True
    if isinstance(exc, (httpx.TimeoutException, openai.APITimeoutError)):
        return True
    if isinstance(exc, (httpx.TransportError, openai.APIConnectionError)):
        return True
    status = status_code_of(exc)
    return status is not None and status >= 500


def failure_reason(exc: BaseException) -> str:
    """Short metric/log label for a failure."""
    if isinstance(exc, (TimeoutError, httpx.TimeoutException, openai.APITimeoutError)):
        return "timeout"
    if isinstance(exc, (httpx.TransportError, openai.APIConnectionError)):
        return "connection"
    status = status_code_of(exc)
    if status is not None:
        return f"http_{status}"
    return type(exc).__name__


_CLIENT_CAUSES = {
    400: "Request rejected as malformed (400)",
    401: "Invalid API credentials (401)",
    403: "Access forbidden; the account may need verification (403)",
    429: "Request quota or rate limit exceeded (429)",
}


def classify_failure(exc: BaseException) -> NetworkError | ClientError | None:
    """Map a transport failure to NetworkError/ClientError.

    Returns None when ``exc`` is not a transport failure.
    """
    if isinstance(exc, (NetworkError, ClientError)):
        return exc
    if isinstance(exc, (TimeoutError, httpx.TimeoutException, openai.APITimeoutError)):
        return NetworkError("Request timed out waiting for the server")
    if isinstance(exc, (httpx.TransportError, openai.APIConnectionError)):
        return NetworkError("Could not reach the server")
    status = status_code_of(exc)
    if status is None:
        return None
    if status >= 500:
        if status in (503, 504):
            return NetworkError(f"Server overloaded, try again later ({status})", status)
        return NetworkError(f"Server error ({status})", status)
    cause = _CLIENT_CAUSES.get(status, f"Request failed with client error ({status})")
    return ClientError(cause, status)


class RequestMetrics:
    """Interface for request execution metrics."""

    def record_latency(self, request: str, outcome: str, latency_ms: float) -> None:
        """Record request latency."""
        pass

    def inc_error(self, request: str, reason: str) -> None:
        """Increment error counter."""
        pass


class RequestLogger:
    """Interface for structured logging."""

    def log_attempt(
        self,
        ctx: RequestContext,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log request attempt."""
        pass


class RetryingRequestExecutor:
    """Runs a zero-argument async request with bounded retries."""

    def __init__(
        self,
        config: RequestConfig | None = None,
        metrics: RequestMetrics | None = None,
        logger: RequestLogger | None = None,
        sleep_fn: Callable[[float], Awaitable[None]] | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            config: Default retry/timeout configuration
            metrics: Metrics recorder (optional, defaults to no-op)
            logger: Structured logger (optional, defaults to no-op)
            sleep_fn: Injectable sleep function (default: asyncio.sleep)
        """
        self._config = config or RequestConfig()
        self._metrics = metrics or RequestMetrics()
        self._logger = logger or RequestLogger()
        self._sleep = sleep_fn or asyncio.sleep

    @property
    def config(self) -> RequestConfig:
        return self._config

    async def execute(
        self,
        ctx: RequestContext,
        fn: Callable[[], Awaitable[T]],
        config: RequestConfig | None = None,
    ) -> T:
        """Execute ``fn`` until it succeeds, fails permanently, or runs out of attempts.

        Args:
            ctx: Request context for logs and metrics
            fn: Zero-argument coroutine factory; called once per attempt
            config: Per-call override of the executor's configuration

        Returns:
            Whatever ``fn`` returns

        Raises:
            The last exception raised by ``fn`` (or TimeoutError from the
            per-attempt ceiling), unchanged.
        """
        config = config or self._config
        last_error: BaseException | None = None

        for attempt in range(config.max_retries + 1):
            if attempt > 0:
                self._logger.log_attempt(ctx, attempt + 1, "retrying", 0.0)
                await self._sleep(config.retry_delay_ms / 1000)

            attempt_start = time.monotonic()
            try:
                result = await asyncio.wait_for(fn(), timeout=config.timeout_ms / 1000)
            except Exception as e:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                last_error = e
                reason = failure_reason(e)
                self._metrics.inc_error(ctx.request_name, reason)

                if not is_retryable(e):
                    self._metrics.record_latency(ctx.request_name, "failed", elapsed_ms)
                    self._logger.log_attempt(
                        ctx, attempt + 1, "failed", elapsed_ms, error_reason=reason
                    )
                    raise

                outcome = "retryable_error" if attempt < config.max_retries else "exhausted"
                self._metrics.record_latency(ctx.request_name, outcome, elapsed_ms)
                self._logger.log_attempt(ctx, attempt + 1, outcome, elapsed_ms, error_reason=reason)
                continue

            elapsed_ms = (time.monotonic() - attempt_start) * 1000
            self._metrics.record_latency(ctx.request_name, "success", elapsed_ms)
            self._logger.log_attempt(ctx, attempt + 1, "success", elapsed_ms)
            return result

        assert last_error is not None
        raise last_error
