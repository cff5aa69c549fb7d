"""
Population model: players' performance is Gaussian around avg_performance.

The density is unnormalised (peak = 1); cumulative probability is obtained by
trapezoidal integration over the sampled performance axis, so it always reads
0% at p = 0 and 100% at the last sample.
"""

import math

import numpy as np

from reward_curve_app.config import SIGMA_EPSILON
from reward_curve_app.schemas import CurveParameters


def _sigma(std_deviation: float) -> float:
    return max(float(std_deviation), SIGMA_EPSILON)


def density(p, mu: float, sigma: float):
    """exp(-(p - mu)^2 / (2 sigma^2)) for a scalar or an array of p."""
    s = _sigma(sigma)
    if np.ndim(p) == 0:
        return math.exp(-((float(p) - mu) ** 2) / (2.0 * s * s))
    arr = np.asarray(p, dtype=float)
    return np.exp(-((arr - mu) ** 2) / (2.0 * s * s))


def _trapezoid_running(p_values: np.ndarray, values: np.ndarray) -> np.ndarray:
    out = np.zeros_like(values, dtype=float)
    if values.size > 1:
        out[1:] = np.cumsum((values[:-1] + values[1:]) / 2.0 * np.diff(p_values))
    return out


def cumulative_probability(p_values, densities) -> np.ndarray:
    """Running integral of density as a percentage of the total over the grid."""
    p = np.asarray(p_values, dtype=float)
    d = np.asarray(densities, dtype=float)
    running = _trapezoid_running(p, d)
    total = running[-1] if running.size else 0.0
    if total == 0:
        return np.zeros_like(running)
    return running / total * 100.0


def probability_at(p: float, params: CurveParameters) -> float:
    """Cumulative probability (%) at an arbitrary performance value.

    Uses the same unit grid as the sampler, interpolating inside the last
    partial step, so values agree with the sampled series at integers.
    """
    last = math.floor(params.P)
    grid = np.arange(0, last + 1, dtype=float)
    dens = density(grid, params.avg_performance, params.std_deviation)
    running = _trapezoid_running(grid, dens)
    total = running[-1]
    if total == 0:
        return 0.0
    x = min(max(float(p), 0.0), float(last))
    i = int(math.floor(x))
    partial = 0.0
    if x > i:
        d_x = density(x, params.avg_performance, params.std_deviation)
        partial = (dens[i] + d_x) / 2.0 * (x - i)
    return float((running[i] + partial) / total * 100.0)


def share_reaching(p: float, params: CurveParameters) -> float:
    """Percentage of players performing at or above p."""
    return 100.0 - probability_at(p, params)
