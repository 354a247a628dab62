"""Deterministic pseudo-random values for synthesized fallbacks.

Values are derived from a SHA-256 digest of the inputs, so the same
(day, position, name) or (name, city) always yields the same coordinate or
rating across runs and processes.
"""

import hashlib
import math


def seeded_unit(*parts: object) -> float:
    """Map ``parts`` to a float in [0.0, 1.0)."""
    key = "|".join(str(p) for p in parts)
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") / 2**64


def seeded_offset(*parts: object, scale: float) -> float:
    """Offset in [0.0, scale) derived from ``parts``."""
    return seeded_unit(*parts) * scale


def seeded_rating(*parts: object) -> float:
    """Plausible rating in [4.0, 5.0) with one decimal place."""
    tenths = math.floor(seeded_unit("rating", *parts) * 10)
    return round(4.0 + tenths / 10, 1)
