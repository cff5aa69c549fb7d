import logging
import math
from dataclasses import asdict, dataclass
from typing import List

import numpy as np

from reward_curve_app.config import (
    DENSITY_DECIMALS,
    PERCENT_DECIMALS,
    TOKEN_DECIMALS,
    USD_DECIMALS,
)
from reward_curve_app.schemas import CurveParameters
from reward_curve_app.services.break_even import BreakEvenPoint, interpolate_crossing
from reward_curve_app.services.population import cumulative_probability, density, share_reaching
from reward_curve_app.services.reward import FORMULAS, curve_shape, resolve_scale, supply_numerator


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SamplePoint:
    p: float
    y: float
    cumulative: float
    y_usd: float
    cumulative_usd: float
    distribution_density: float
    cumulative_probability: float


def performance_grid(P: float) -> np.ndarray:
    """Every integer performance value from 0 to floor(P) inclusive."""
    return np.arange(0, math.floor(P) + 1, dtype=float)


def trapezoid_cumulative(values: np.ndarray) -> np.ndarray:
    """Unit-step trapezoidal running integral, starting at 0."""
    out = np.zeros_like(values, dtype=float)
    if values.size > 1:
        out[1:] = np.cumsum((values[:-1] + values[1:]) / 2.0)
    return out


def usd_series(shape: np.ndarray, numerator: float, price: float, series: str) -> np.ndarray:
    """Unrounded USD value of the reward (instantaneous or cumulative) on the grid."""
    y = numerator * shape
    if series == "cumulative":
        y = trapezoid_cumulative(y)
    return y * price


def _sample_arrays(params: CurveParameters):
    grid = performance_grid(params.P)
    shape = curve_shape(grid, params)
    numerator = supply_numerator(params.S, params, resolve_scale(params))
    y = numerator * shape
    cumulative = trapezoid_cumulative(y)
    dens = density(grid, params.avg_performance, params.std_deviation)
    return {
        "p": grid,
        "y": y,
        "cumulative": cumulative,
        "y_usd": y * params.price,
        "cumulative_usd": cumulative * params.price,
        "density": dens,
        "cumulative_probability": cumulative_probability(grid, dens),
    }


def sample_curve(params: CurveParameters) -> List[SamplePoint]:
    """Sample the reward curve at integer performance values, rounded for display."""
    arrays = _sample_arrays(params)
    return _to_points(arrays)


def _to_points(arrays) -> List[SamplePoint]:
    points = []
    for i in range(arrays["p"].size):
        points.append(
            SamplePoint(
                p=round(float(arrays["p"][i]), TOKEN_DECIMALS),
                y=round(float(arrays["y"][i]), TOKEN_DECIMALS),
                cumulative=round(float(arrays["cumulative"][i]), TOKEN_DECIMALS),
                y_usd=round(float(arrays["y_usd"][i]), USD_DECIMALS),
                cumulative_usd=round(float(arrays["cumulative_usd"][i]), USD_DECIMALS),
                distribution_density=round(float(arrays["density"][i]), DENSITY_DECIMALS),
                cumulative_probability=round(float(arrays["cumulative_probability"][i]), PERCENT_DECIMALS),
            )
        )
    return points


def compute_curve(params: CurveParameters):
    """Chart series plus the entry-fee break-even marker.

    The break-even is located on the unrounded USD series; only the emitted
    values are rounded.
    """
    arrays = _sample_arrays(params)
    series_key = "cumulative_usd" if params.break_even_series == "cumulative" else "y_usd"
    p_star = interpolate_crossing(arrays["p"], arrays[series_key], params.entry_fee)

    break_even = None
    population_share = None
    if p_star is not None:
        break_even = BreakEvenPoint(p=round(p_star, TOKEN_DECIMALS), usd_value=params.entry_fee)
        population_share = round(share_reaching(p_star, params), PERCENT_DECIMALS)

    logger.debug(
        "Sampled %d points (P=%s), break-even=%s on %s series",
        arrays["p"].size,
        params.P,
        p_star,
        params.break_even_series,
    )

    return {
        "samples": [asdict(s) for s in _to_points(arrays)],
        "break_even": asdict(break_even) if break_even is not None else None,
        "population_break_even_share": population_share,
        "formula": FORMULAS[params.curve_form],
    }
