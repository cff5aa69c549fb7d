from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class BreakEvenPoint:
    p: float
    usd_value: float


SERIES_FIELDS = {
    "cumulative": "cumulative_usd",
    "instantaneous": "y_usd",
}


def interpolate_crossing(p_values, series, threshold: float) -> Optional[float]:
    """Performance at which `series` first reaches `threshold` from below.

    Only the first bracketing pair series[i-1] <= threshold <= series[i] is
    used; the result is the linear interpolation inside that pair. Returns
    None when no pair brackets the threshold.
    """
    p = np.asarray(p_values, dtype=float)
    s = np.asarray(series, dtype=float)
    if s.size < 2:
        return None
    prev, curr = s[:-1], s[1:]
    hits = np.flatnonzero((prev <= threshold) & (threshold <= curr))
    if hits.size == 0:
        return None
    i = int(hits[0]) + 1
    rise = s[i] - s[i - 1]
    if rise == 0:
        return float(p[i - 1])
    return float(p[i - 1] + (threshold - s[i - 1]) / rise * (p[i] - p[i - 1]))


def locate_break_even(samples: Sequence, threshold_usd: float, series: str = "cumulative") -> Optional[BreakEvenPoint]:
    field = SERIES_FIELDS[series]
    p_values = [s.p for s in samples]
    values = [getattr(s, field) for s in samples]
    p = interpolate_crossing(p_values, values, threshold_usd)
    if p is None:
        return None
    return BreakEvenPoint(p=p, usd_value=threshold_usd)
