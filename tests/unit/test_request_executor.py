"""Unit tests for the retrying request executor and failure classification."""

import asyncio
import logging
from unittest.mock import MagicMock

import httpx
import openai
import pytest

from tripplan.errors import ClientError, NetworkError
from tripplan.tools.executor import (
    RequestConfig,
    RequestContext,
    RetryingRequestExecutor,
    classify_failure,
    failure_reason,
    is_retryable,
)
from tripplan.utils.logging import StructuredRequestLogger

CTX = RequestContext(trace_id="trace_test", request_name="test.request")


def status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test/path")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


def read_timeout() -> httpx.ReadTimeout:
    return httpx.ReadTimeout("timed out", request=httpx.Request("GET", "https://example.test"))


class FlakyCall:
    """Raises the queued errors in order, then returns ``result``."""

    def __init__(self, errors: list[Exception], result: object = "ok") -> None:
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestRetryingRequestExecutor:
    """Retry policy: fixed delay, bounded attempts, transient failures only."""

    @pytest.mark.asyncio
    async def test_success_on_first_attempt(
        self, fast_executor: RetryingRequestExecutor, sleep_calls: list[float]
    ) -> None:
        call = FlakyCall([])
        result = await fast_executor.execute(CTX, call)

        assert result == "ok"
        assert call.calls == 1
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_two_timeouts_then_success(
        self, fast_executor: RetryingRequestExecutor, sleep_calls: list[float]
    ) -> None:
        call = FlakyCall([read_timeout(), read_timeout()], result={"choices": []})
        result = await fast_executor.execute(CTX, call)

        assert result == {"choices": []}
        assert call.calls == 3
        assert sleep_calls == [2.0, 2.0]

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(
        self, fast_executor: RetryingRequestExecutor, sleep_calls: list[float]
    ) -> None:
        error = status_error(400)
        call = FlakyCall([error])

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await fast_executor.execute(CTX, call)

        assert exc_info.value is error
        assert call.calls == 1
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_exhaustion_reraises_last_error(
        self, fast_executor: RetryingRequestExecutor, sleep_calls: list[float]
    ) -> None:
        errors = [status_error(500), status_error(502), status_error(503)]
        last = errors[-1]
        call = FlakyCall(errors)

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await fast_executor.execute(CTX, call)

        assert exc_info.value is last
        assert call.calls == 3
        assert len(sleep_calls) == 2

    @pytest.mark.asyncio
    async def test_per_attempt_timeout_is_enforced(self, sleep_calls: list[float]) -> None:
        async def fake_sleep(seconds: float) -> None:
            sleep_calls.append(seconds)

        executor = RetryingRequestExecutor(
            config=RequestConfig(max_retries=1, retry_delay_ms=500, timeout_ms=20),
            sleep_fn=fake_sleep,
        )
        calls = 0

        async def hangs() -> None:
            nonlocal calls
            calls += 1
            await asyncio.sleep(10)

        with pytest.raises(TimeoutError):
            await executor.execute(CTX, hangs)

        assert calls == 2
        assert sleep_calls == [0.5]

    @pytest.mark.asyncio
    async def test_per_call_config_override(
        self, fast_executor: RetryingRequestExecutor, sleep_calls: list[float]
    ) -> None:
        call = FlakyCall([read_timeout()])

        with pytest.raises(httpx.ReadTimeout):
            await fast_executor.execute(CTX, call, config=RequestConfig(max_retries=0))

        assert call.calls == 1
        assert sleep_calls == []

    @pytest.mark.asyncio
    async def test_programming_errors_propagate_immediately(
        self, fast_executor: RetryingRequestExecutor
    ) -> None:
        call = FlakyCall([KeyError("boom")])

        with pytest.raises(KeyError):
            await fast_executor.execute(CTX, call)

        assert call.calls == 1

    @pytest.mark.asyncio
    async def test_metrics_and_logger_wiring(self) -> None:
        metrics = MagicMock()
        request_logger = MagicMock()

        async def no_sleep(seconds: float) -> None:
            return None

        executor = RetryingRequestExecutor(
            config=RequestConfig(max_retries=1, retry_delay_ms=0, timeout_ms=1000),
            metrics=metrics,
            logger=request_logger,
            sleep_fn=no_sleep,
        )
        await executor.execute(CTX, FlakyCall([read_timeout()]))

        metrics.inc_error.assert_called_once_with("test.request", "timeout")
        outcomes = [c.args[2] for c in metrics.record_latency.call_args_list]
        assert outcomes == ["retryable_error", "success"]
        logged = [c.args[2] for c in request_logger.log_attempt.call_args_list]
        assert logged == ["retryable_error", "retrying", "success"]


class TestFailureClassification:
    """Transport failures map onto NetworkError/ClientError."""

    def test_timeout_is_network_error(self) -> None:
        error = classify_failure(TimeoutError())
        assert isinstance(error, NetworkError)
        assert "timed out" in error.cause

    def test_connection_failure_is_network_error(self) -> None:
        exc = httpx.ConnectError("refused", request=httpx.Request("GET", "https://example.test"))
        error = classify_failure(exc)
        assert isinstance(error, NetworkError)
        assert error.status_code is None

    @pytest.mark.parametrize("status", [503, 504])
    def test_overloaded_statuses(self, status: int) -> None:
        error = classify_failure(status_error(status))
        assert isinstance(error, NetworkError)
        assert error.status_code == status
        assert "overloaded" in error.cause

    def test_other_5xx_is_server_error(self) -> None:
        error = classify_failure(status_error(500))
        assert isinstance(error, NetworkError)
        assert error.cause == "Server error (500)"

    @pytest.mark.parametrize(
        "status, fragment",
        [
            (400, "malformed"),
            (401, "credentials"),
            (403, "verification"),
            (429, "rate limit"),
            (418, "client error"),
        ],
    )
    def test_4xx_is_client_error(self, status: int, fragment: str) -> None:
        error = classify_failure(status_error(status))
        assert isinstance(error, ClientError)
        assert error.status_code == status
        assert fragment in error.cause

    def test_openai_status_error_is_classified(self) -> None:
        request = httpx.Request("POST", "https://example.test/v1/chat/completions")
        exc = openai.APIStatusError(
            "Unauthorized", response=httpx.Response(401, request=request), body=None
        )
        error = classify_failure(exc)
        assert isinstance(error, ClientError)
        assert error.status_code == 401

    def test_non_transport_errors_are_not_classified(self) -> None:
        assert classify_failure(ValueError("bad")) is None

    def test_retryability(self) -> None:
        assert is_retryable(read_timeout())
        assert is_retryable(status_error(502))
        assert not is_retryable(status_error(429))
        assert not is_retryable(ValueError("bad"))

    def test_failure_reason_labels(self) -> None:
        assert failure_reason(TimeoutError()) == "timeout"
        assert failure_reason(status_error(404)) == "http_404"
        assert failure_reason(ValueError("bad")) == "ValueError"


class TestStructuredRequestLogger:
    def test_levels_and_payload(self, caplog: pytest.LogCaptureFixture) -> None:
        request_logger = StructuredRequestLogger()

        with caplog.at_level(logging.INFO, logger="tripplan.utils.logging"):
            request_logger.log_attempt(CTX, 1, "retryable_error", 12.3456, error_reason="timeout")
            request_logger.log_attempt(CTX, 2, "success", 3.0)

        first, second = caplog.records
        assert first.levelno == logging.WARNING
        assert first.getMessage() == "[trace_test] test.request attempt 1: retryable_error (timeout)"
        assert first.structured == {
            "trace_id": "trace_test",
            "request": "test.request",
            "attempt": 1,
            "outcome": "retryable_error",
            "latency_ms": 12.35,
            "error_reason": "timeout",
        }
        assert second.levelno == logging.INFO
        assert "error_reason" not in second.structured
