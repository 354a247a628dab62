"""Decode generator output into a JSON object via a cascade of repair stages.

Stages run strictly in order and the first success wins:

1. direct      - the content as-is
2. cleaned     - whitespace/escape/separator clean-up, trailing commas removed
3. extracted   - first ``{`` through last ``}`` only
4. patched     - targeted regex patches for known generator failure signatures
5. structural  - bracket balancing (optional; only reached when 1-4 failed)

This is not a general JSON repair algorithm. Each stage targets a corruption
pattern observed from the upstream generator.
"""

import json
import logging
from collections.abc import Callable
from typing import Any

from tripplan.errors import DecodeError
from tripplan.parsing.repair import (
    apply_targeted_patches,
    balance_brackets,
    clean_text,
    extract_object,
)
from tripplan.utils.metrics import decode_stage_total

logger = logging.getLogger(__name__)

Stage = tuple[str, Callable[[str], Any]]


def _loads_object(text: str) -> dict[str, Any]:
    value = json.loads(text)
    if not isinstance(value, dict):
        raise ValueError(f"expected a JSON object, got {type(value).__name__}")
    return value


def parse_direct(text: str) -> dict[str, Any]:
    return _loads_object(text)


def parse_cleaned(text: str) -> dict[str, Any]:
    return _loads_object(clean_text(text))


def parse_extracted(text: str) -> dict[str, Any]:
    return _loads_object(extract_object(text))


def parse_patched(text: str) -> dict[str, Any]:
    cleaned = clean_text(text)
    try:
        cleaned = extract_object(cleaned)
    except ValueError:
        pass
    return _loads_object(apply_targeted_patches(cleaned))


def parse_structural(text: str) -> dict[str, Any]:
    cleaned = clean_text(text)
    start = cleaned.find("{")
    if start == -1:
        raise ValueError("no JSON object start found")
    return _loads_object(balance_brackets(apply_targeted_patches(cleaned[start:])))


BASE_STAGES: list[Stage] = [
    ("direct", parse_direct),
    ("cleaned", parse_cleaned),
    ("extracted", parse_extracted),
    ("patched", parse_patched),
]

STRUCTURAL_STAGE: Stage = ("structural", parse_structural)


def first_success(stages: list[Stage], text: str) -> tuple[str, Any]:
    """Run ``stages`` in order and return ``(stage_name, value)`` of the first success.

    Raises:
        DecodeError: if every stage fails; the last stage's exception is chained
    """
    stage_errors: dict[str, str] = {}
    last_error: Exception | None = None

    for name, stage in stages:
        try:
            return name, stage(text)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            stage_errors[name] = str(e)
            last_error = e
            logger.debug(f"Decode stage '{name}' failed: {e}")

    raise DecodeError(
        "unparseable",
        f"All {len(stages)} decode stages failed; last error: {last_error}",
        stage_errors=stage_errors,
    ) from last_error


class ResponseDecoder:
    """Extracts and decodes the JSON payload of a chat-completion envelope."""

    def __init__(self, structural_repair: bool = True) -> None:
        """Initialize decoder.

        Args:
            structural_repair: Append the bracket-balancing stage. Use for
                content known to come from the same generator family.
        """
        self._stages = list(BASE_STAGES)
        if structural_repair:
            self._stages.append(STRUCTURAL_STAGE)

    @staticmethod
    def extract_content(envelope: Any) -> str:
        """Return ``choices[0].message.content`` or raise DecodeError."""
        try:
            content = envelope["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise DecodeError(
                "missing_content", "Response envelope has no message content"
            ) from e
        if not isinstance(content, str) or not content.strip():
            raise DecodeError("missing_content", "Response message content is empty")
        return content

    def decode_content(self, content: str) -> dict[str, Any]:
        """Decode raw message content into a JSON object."""
        try:
            stage, value = first_success(self._stages, content)
        except DecodeError as e:
            decode_stage_total.labels(stage="failed").inc()
            logger.error(f"Failed to decode response content: {e}")
            raise

        decode_stage_total.labels(stage=stage).inc()
        if stage != "direct":
            logger.warning(f"Response content required repair; decoded by stage '{stage}'")
        return value

    def decode(self, envelope: Any) -> dict[str, Any]:
        """Decode a chat-completion envelope into a JSON object."""
        return self.decode_content(self.extract_content(envelope))
