"""Error taxonomy for the plan generation pipeline.

NetworkError and ClientError describe transport failures and carry a
human-readable cause. DecodeError and NormalizeError describe payloads that
arrived but could not be turned into a plan. EnrichmentError never leaves the
enrichment layer.
"""

from typing import Literal

DecodeReason = Literal["missing_content", "unparseable"]
NormalizeReason = Literal["unrecognized_shape", "invalid_shape"]


class PlanPipelineError(Exception):
    """Base class for pipeline failures."""

    pass


class NetworkError(PlanPipelineError):
    """Timeout, connection failure, or 5xx response (retryable)."""

    def __init__(self, cause: str, status_code: int | None = None) -> None:
        super().__init__(cause)
        self.cause = cause
        self.status_code = status_code


class ClientError(PlanPipelineError):
    """4xx response (not retryable)."""

    def __init__(self, cause: str, status_code: int) -> None:
        super().__init__(cause)
        self.cause = cause
        self.status_code = status_code


class DecodeError(PlanPipelineError):
    """Response content could not be decoded into a JSON object."""

    def __init__(
        self,
        reason: DecodeReason,
        message: str,
        stage_errors: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.stage_errors = stage_errors or {}


class NormalizeError(PlanPipelineError):
    """Decoded payload does not match a known plan shape."""

    def __init__(self, reason: NormalizeReason, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class EnrichmentError(PlanPipelineError):
    """A POI enrichment tier failed; always absorbed into a fallback record."""

    pass
