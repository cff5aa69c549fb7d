import logging
import math

import numpy as np

from reward_curve_app.schemas import CurveParameters


logger = logging.getLogger(__name__)

# LaTeX of each curve form, shown next to the chart
FORMULAS = {
    "offset": r"y = a \cdot \frac{1 - \frac{S - T}{T}}{(P+b)^k - p^k} - \frac{a \cdot (1 - \frac{S - T}{T})}{(P+b)^k}",
    "simple": r"y = a \cdot \frac{1 - \frac{S - T}{T}}{(P+b)^k - p^k}",
}


def derive_scale(max_reward: float, b: float, k: float, P: float, curve_form: str = "offset") -> float:
    """Scale `a` that makes reward(P) equal `max_reward` when S = T.

    Degenerate curves (a zero or overflowing denominator term) get a = 0,
    i.e. no reward anywhere.
    """
    with np.errstate(over="ignore", invalid="ignore"):
        top = float(np.power(P + b, k))
        gap = top - float(np.power(P, k))
    if not (math.isfinite(top) and math.isfinite(gap)) or gap == 0 or top == 0:
        logger.debug("Degenerate calibration (P=%s, b=%s, k=%s): a = 0", P, b, k)
        return 0.0
    denom = 1.0 / gap
    if curve_form == "offset":
        denom -= 1.0 / top
    if denom == 0 or not math.isfinite(denom):
        return 0.0
    return max_reward / denom


def resolve_scale(params: CurveParameters) -> float:
    if params.a is not None:
        return float(params.a)
    return derive_scale(params.max_reward, params.b, params.k, params.P, params.curve_form)


def supply_numerator(supply: float, params: CurveParameters, a: float = None) -> float:
    """a * (1 - (S - T) / T): the supply-dependent factor of the curve."""
    if params.T == 0:
        raise ValueError("target supply T must be non-zero")
    if a is None:
        a = resolve_scale(params)
    return a * (1.0 - (supply - params.T) / params.T)


def curve_shape(p_values, params: CurveParameters) -> np.ndarray:
    """Supply-independent factor of the curve, evaluated on a performance grid.

    Each partial term with a zero or overflowing denominator contributes zero.
    """
    p = np.asarray(p_values, dtype=float)
    with np.errstate(over="ignore", invalid="ignore"):
        top = float(np.power(params.P + params.b, params.k))
        term1 = top - np.power(p, params.k)
        shape = np.divide(1.0, term1, out=np.zeros_like(term1), where=np.isfinite(term1) & (term1 != 0))
    if params.curve_form == "offset" and top != 0 and math.isfinite(top):
        shape = shape - 1.0 / top
    return shape


def reward_series(p_values, supply: float, params: CurveParameters) -> np.ndarray:
    return supply_numerator(supply, params) * curve_shape(p_values, params)


def reward(p: float, supply: float, params: CurveParameters) -> float:
    """Instantaneous reward y at performance p for the given outstanding supply."""
    return float(reward_series([p], supply, params)[0])


def compute_derived_supply_figures(params: CurveParameters):
    """Calibration figures displayed next to the inputs."""
    share = params.treasury_share / 100.0
    treasury_supply = params.initial_liquidity * share / (1.0 - share)
    return {
        "a": resolve_scale(params),
        "treasury_supply": treasury_supply,
        "current_supply": params.initial_liquidity + treasury_supply,
    }
