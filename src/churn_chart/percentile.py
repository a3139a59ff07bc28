# ABOUTME: Nearest-rank percentile cutoff, typical-value average and percentile rank.
# ABOUTME: Pure functions over non-negative totals; no state kept between calls.

from __future__ import annotations

import math
from bisect import bisect_left
from dataclasses import dataclass
from typing import Sequence

PERCENTILE_ERROR = "Percentile must be a number between 1 and 100"


class InvalidPercentileError(ValueError):
    """Raised for a percentile threshold outside 1..100."""


@dataclass(frozen=True)
class Classification:
    percentile_value: float
    filtered_values: tuple[float, ...]
    average_value: float


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def validate_percentile(value: object) -> int:
    if isinstance(value, bool):
        raise InvalidPercentileError(PERCENTILE_ERROR)
    try:
        if isinstance(value, str):
            p = int(value.strip(), 10)
        elif isinstance(value, float):
            if not value.is_integer():
                raise InvalidPercentileError(PERCENTILE_ERROR)
            p = int(value)
        elif isinstance(value, int):
            p = value
        else:
            raise InvalidPercentileError(PERCENTILE_ERROR)
    except ValueError as e:
        raise InvalidPercentileError(PERCENTILE_ERROR) from e
    if p < 1 or p > 100:
        raise InvalidPercentileError(PERCENTILE_ERROR)
    return p


def percentile_cutoff(values: Sequence[float], percentile: int) -> float:
    """Nearest-rank value: sorted[ceil(p/100 * n) - 1], clamped into range."""
    if not values:
        return 0
    values_sorted = sorted(values)
    n = len(values_sorted)
    # ceil(p * n / 100) in integer arithmetic
    index = -(-percentile * n // 100) - 1
    index = min(max(index, 0), n - 1)
    return values_sorted[index]


def classify(values: Sequence[float], percentile: int) -> Classification:
    """Split `values` at the percentile cutoff and average the typical part.

    Values equal to the cutoff are kept, so clustered ties can retain more
    than the nominal share. With fewer than two samples nothing is filtered.
    """
    percentile = validate_percentile(percentile)
    if len(values) <= 1:
        sole = values[0] if values else 0
        return Classification(
            percentile_value=sole,
            filtered_values=tuple(values),
            average_value=sole,
        )

    cutoff = percentile_cutoff(values, percentile)
    filtered = tuple(v for v in values if v <= cutoff)
    average = sum(filtered) / len(filtered) if filtered else 0
    return Classification(percentile_value=cutoff, filtered_values=filtered, average_value=average)


def percentile_rank(value: float, values: Sequence[float]) -> int:
    """Position of the first element >= `value` in the sorted set, as 0..100.

    A display approximation, not the inverse of `classify`. Ties resolve to
    the first matching position.
    """
    if not values:
        return 0
    values_sorted = sorted(values)
    index = bisect_left(values_sorted, value)
    return round_half_up(index / len(values_sorted) * 100)
