"""
Summary statistics for timing samples.

Quantiles use linear interpolation between order statistics (the same
definition as numpy's default ``linear`` method), so the median of an
even-length sample is the midpoint of the two middle values rather than the
upper middle element.
"""

import math
from typing import NamedTuple, Sequence


class TimingStats(NamedTuple):
    median: float
    mean: float
    p95: float
    p99: float
    min: float
    max: float


def quantile(sorted_values: Sequence[float], p: float) -> float:
    """Interpolated quantile of an ascending sequence.

    Args:
        sorted_values: Samples sorted ascending.
        p: Quantile in [0, 1]; values outside are clamped to the extrema.

    Returns:
        The interpolated value, or 0.0 for an empty sequence.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if p <= 0:
        return float(sorted_values[0])
    if p >= 1:
        return float(sorted_values[n - 1])

    index = (n - 1) * p
    lo = math.floor(index)
    hi = math.ceil(index)
    if lo == hi:
        return float(sorted_values[lo])
    weight = index - lo
    return sorted_values[lo] * (1 - weight) + sorted_values[hi] * weight


def calculate_stats(times: Sequence[float]) -> TimingStats:
    """Reduce raw timings (ms) to median, mean, p95, p99, min and max.

    Empty input yields all zeros.
    """
    if not times:
        return TimingStats(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)

    ordered = sorted(times)
    return TimingStats(
        median=quantile(ordered, 0.5),
        mean=math.fsum(times) / len(times),
        p95=quantile(ordered, 0.95),
        p99=quantile(ordered, 0.99),
        min=float(ordered[0]),
        max=float(ordered[-1]),
    )
