"""Structured logging for outbound request attempts."""

import logging
from typing import Any

from tripplan.tools.executor import RequestContext

logger = logging.getLogger(__name__)

# Outcomes emitted by RetryingRequestExecutor, by severity
_LEVELS = {
    "success": logging.INFO,
    "retrying": logging.INFO,
    "retryable_error": logging.WARNING,
    "exhausted": logging.ERROR,
    "failed": logging.ERROR,
}


class StructuredRequestLogger:
    """Logs each attempt with a ``structured`` payload for JSON log shippers."""

    def log_attempt(
        self,
        ctx: RequestContext,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        structured: dict[str, Any] = {
            "trace_id": ctx.trace_id,
            "request": ctx.request_name,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }
        suffix = ""
        if error_reason:
            structured["error_reason"] = error_reason
            suffix = f" ({error_reason})"

        logger.log(
            _LEVELS.get(outcome, logging.WARNING),
            f"[{ctx.trace_id}] {ctx.request_name} attempt {attempt}: {outcome}{suffix}",
            extra={"structured": structured},
        )
