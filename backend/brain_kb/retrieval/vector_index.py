"""Vector similarity helpers."""

from __future__ import annotations

import math
from typing import Sequence


class DimensionMismatchError(AssertionError):
    """Two vectors of different length were compared or stored under one model.

    This signals mixed embedding models or corrupted storage and is never
    recovered from.
    """


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return ``dot(a, b) / (|a| * |b|)``, or 0.0 when either vector is all zeros."""
    if len(a) != len(b):
        raise DimensionMismatchError(f"Vectors must have same length ({len(a)} != {len(b)})")
    dot = 0.0
    norm_a = 0.0
    norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    similarity = dot / (math.sqrt(norm_a) * math.sqrt(norm_b))
    # float rounding can push parallel vectors just past the unit bound
    return max(-1.0, min(1.0, similarity))


__all__ = ["DimensionMismatchError", "cosine_similarity"]
