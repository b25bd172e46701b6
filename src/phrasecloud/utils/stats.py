"""Statistical helpers for frequency distributions."""
from __future__ import annotations

from collections.abc import Iterable, Sequence

import numpy as np


def safe_div(a: float, b: float, default: float = 0.0) -> float:
    """Return *a / b* guarding against division by zero."""

    return default if b == 0 else a / b


def median(values: Sequence[float]) -> float:
    """Return the median of *values*, averaging the two middle items for even sizes."""

    if len(values) == 0:
        return 0.0
    return float(np.median(np.asarray(values, dtype=float)))


def count_at_least(frequencies: Iterable[int], threshold: int) -> int:
    """Count how many frequencies reach *threshold*."""

    arr = np.fromiter(frequencies, dtype=int)
    if arr.size == 0:
        return 0
    return int(np.count_nonzero(arr >= threshold))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


__all__ = ["clamp", "count_at_least", "median", "safe_div"]
