"""
Reward Curve Engine Tests
=========================
Reward function, curve sampler, break-even locator and population model.
Run with: python3 -m pytest tests/test_curve_engine.py -v

Or directly: python3 tests/test_curve_engine.py
"""

import math
import sys
import os

import numpy as np
import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from reward_curve_app.schemas import CurveParameters
from reward_curve_app.services.break_even import interpolate_crossing, locate_break_even
from reward_curve_app.services.population import (
    cumulative_probability,
    density,
    probability_at,
    share_reaching,
)
from reward_curve_app.services.reward import compute_derived_supply_figures, derive_scale, reward
from reward_curve_app.services.sampler import compute_curve, sample_curve


# ── Helpers ──────────────────────────────────────────────────────────────────

def make_params(**overrides) -> CurveParameters:
    """Calibrated curve: reward at P = 20 is 100,000 tokens when S = T."""
    defaults = dict(
        max_reward=100_000,
        b=3,
        k=5,
        P=20,
        T=1e9,
        S=1e9,
        price=0.0001,
        entry_fee=2.0,
        avg_performance=10,
        std_deviation=3,
        treasury_share=20,
        initial_liquidity=1_000_000,
    )
    defaults.update(overrides)
    return CurveParameters(**defaults)


# ── Reward function ──────────────────────────────────────────────────────────

def test_max_reward_calibration_round_trip():
    """Deriving a from max_reward and evaluating y(P) at S = T gives max_reward back."""
    params = make_params()
    y_at_p = reward(params.P, params.S, params)

    assert abs(y_at_p - 100_000) < 1e-3, f"y(P) should equal max_reward, got {y_at_p}"
    assert abs(y_at_p - 100_000) / 100_000 < 1e-6
    print(f"  [PASS] Calibration round trip: y(P)={y_at_p:.6f}")


def test_single_term_curve_worked_example():
    """a=2.7e8, k=5, P=23, S=T: the single-term curve gives y(0) = a / 23^5."""
    params = CurveParameters(a=270_000_000, k=5, P=23, T=1e9, S=1e9, curve_form="simple")
    y0 = reward(0, params.S, params)

    assert math.isclose(y0, 270_000_000 / 23 ** 5, rel_tol=1e-12), f"y(0)={y0}"
    assert round(y0, 2) == 41.95, f"y(0) should display as 41.95, got {y0:.4f}"


def test_offset_curve_starts_at_zero():
    params = CurveParameters(a=270_000_000, k=5, P=23, T=1e9, S=1e9)
    assert reward(0, params.S, params) == 0.0


def test_supply_above_target_scales_reward_down():
    params = make_params()
    at_target = reward(15, 1e9, params)
    above = reward(15, 1.5e9, params)

    # numerator factor goes from 1 to 0.5
    assert math.isclose(above, at_target * 0.5, rel_tol=1e-9), f"{above} vs {at_target}"


def test_zero_denominator_term_contributes_zero():
    """b = 0 makes (P+b)^k - P^k vanish at p = P: only the second term remains."""
    params = CurveParameters(a=1.0, b=0, k=2, P=10, T=100, S=100)
    y = reward(10, params.S, params)

    assert math.isfinite(y)
    assert math.isclose(y, -1.0 / 100.0, rel_tol=1e-12), f"y(P)={y}"


def test_degenerate_calibration_gives_zero_scale():
    assert derive_scale(100_000, b=0, k=5, P=20) == 0.0

    params = make_params(b=0)
    assert compute_derived_supply_figures(params)["a"] == 0.0
    assert all(s.y == 0 for s in sample_curve(params))


def test_overflowing_exponent_degrades_to_zero_reward():
    """(P+b)^k overflows at k = 300: the curve must stay finite, never NaN."""
    params = make_params(k=300)
    assert compute_derived_supply_figures(params)["a"] == 0.0

    direct = make_params(a=1.0, max_reward=None, k=300)
    for p in (0, 19, 20):
        y = reward(p, direct.S, direct)
        assert math.isfinite(y), f"y({p})={y} is not finite"

    for curve in (params, direct):
        samples = sample_curve(curve)
        for s in samples:
            assert all(math.isfinite(v) for v in (s.y, s.cumulative, s.y_usd, s.cumulative_usd)), (
                f"Non-finite sample at p={s.p}: {s}"
            )
        break_even = compute_curve(curve)["break_even"]
        assert break_even is None or math.isfinite(break_even["p"])


def test_zero_target_supply_rejected():
    with pytest.raises(ValidationError):
        make_params(T=0)

    unchecked = CurveParameters.model_construct(
        a=1.0, max_reward=None, b=0.0, k=2.0, P=10.0, T=0.0, S=1.0, curve_form="offset"
    )
    with pytest.raises(ValueError):
        reward(1, unchecked.S, unchecked)


def test_exactly_one_scale_input_required():
    with pytest.raises(ValidationError):
        CurveParameters(k=5, P=20, T=1e9, S=1e9)
    with pytest.raises(ValidationError):
        CurveParameters(a=1.0, max_reward=10.0, k=5, P=20, T=1e9, S=1e9)


def test_derived_supply_figures():
    params = make_params(a=42.0, max_reward=None, initial_liquidity=1000, treasury_share=20)
    figures = compute_derived_supply_figures(params)

    assert figures["a"] == 42.0
    assert math.isclose(figures["treasury_supply"], 250.0)
    assert math.isclose(figures["current_supply"], 1250.0)


# ── Curve sampler ────────────────────────────────────────────────────────────

def test_sampler_integer_grid_and_cumulative_start():
    params = make_params(P=20.5, avg_performance=10)
    samples = sample_curve(params)

    assert len(samples) == 21, f"Expected samples at 0..20, got {len(samples)}"
    assert [s.p for s in samples] == [float(i) for i in range(21)]
    assert samples[0].cumulative == 0
    assert samples[0].cumulative_usd == 0


def test_cumulative_non_decreasing_for_non_negative_reward():
    samples = sample_curve(make_params())
    assert all(s.y >= 0 for s in samples)
    for prev, curr in zip(samples, samples[1:]):
        assert curr.cumulative >= prev.cumulative, f"Cumulative dropped at p={curr.p}"


def test_trapezoid_cumulative_and_usd_projection():
    params = make_params(price=0.5)
    samples = sample_curve(params)
    ys = [reward(p, params.S, params) for p in range(21)]

    expected = 0.0
    for i in range(1, 21):
        expected += (ys[i - 1] + ys[i]) / 2.0
        assert abs(samples[i].cumulative - round(expected, 2)) <= 0.011, (
            f"p={i}: cumulative={samples[i].cumulative}, expected={expected:.4f}"
        )
    assert abs(samples[20].y_usd - round(ys[20] * 0.5, 4)) < 1e-9
    for s in samples:
        assert round(s.y_usd, 4) == s.y_usd
        assert round(s.cumulative, 2) == s.cumulative


def test_density_and_cumulative_probability_annotations():
    samples = sample_curve(make_params(avg_performance=10, std_deviation=3))

    assert samples[10].distribution_density == 1.0
    assert samples[0].cumulative_probability == 0.0
    assert samples[-1].cumulative_probability == 100.0
    probs = [s.cumulative_probability for s in samples]
    assert probs == sorted(probs)


def test_non_positive_std_deviation_is_floored():
    samples = sample_curve(make_params(std_deviation=0))
    assert samples[10].distribution_density == 1.0
    assert samples[9].distribution_density == 0.0
    assert all(math.isfinite(s.cumulative_probability) for s in samples)


def test_compute_curve_idempotent():
    params = make_params()
    assert sample_curve(params) == sample_curve(params)
    assert compute_curve(params) == compute_curve(params)


# ── Break-even locator ───────────────────────────────────────────────────────

def test_interpolate_crossing_linear():
    assert interpolate_crossing([0, 1, 2], [0.0, 1.0, 3.0], 2.0) == 1.5
    assert interpolate_crossing([0, 1, 2], [0.0, 1.0, 3.0], 0.0) == 0.0


def test_interpolate_crossing_first_pair_and_flat_pair():
    assert interpolate_crossing([0, 1, 2, 3], [0.0, 2.0, 0.0, 2.0], 1.0) == 0.5
    assert interpolate_crossing([0, 1, 2], [1.0, 1.0, 1.0], 1.0) == 0.0


def test_interpolate_crossing_not_found():
    assert interpolate_crossing([0, 1, 2], [0.0, 1.0, 3.0], 3.5) is None
    assert interpolate_crossing([0], [0.0], 0.0) is None


def test_break_even_absent_when_fee_above_series_max():
    params = make_params(entry_fee=1e6)
    samples = sample_curve(params)

    assert locate_break_even(samples, params.entry_fee) is None
    assert locate_break_even(samples, params.entry_fee, series="instantaneous") is None
    result = compute_curve(params)
    assert result["break_even"] is None
    assert result["population_break_even_share"] is None


def test_compute_curve_break_even_brackets_fee():
    params = make_params()
    result = compute_curve(params)
    be = result["break_even"]

    assert be is not None, "Entry fee of $2 should be recouped before P"
    assert 0 < be["p"] < params.P
    assert be["usd_value"] == params.entry_fee

    samples = result["samples"]
    i = math.ceil(be["p"])
    assert samples[i - 1]["cumulative_usd"] <= params.entry_fee + 1e-4
    assert samples[i]["cumulative_usd"] >= params.entry_fee - 1e-4

    share = result["population_break_even_share"]
    assert 0 <= share <= 100
    assert "(P+b)^k" in result["formula"]


def test_instantaneous_break_even_is_later_than_cumulative():
    """Cumulative USD outgrows the per-point USD reward on this curve, so it crosses first."""
    cumulative = compute_curve(make_params(entry_fee=1.0))["break_even"]
    instantaneous = compute_curve(make_params(entry_fee=1.0, break_even_series="instantaneous"))["break_even"]

    assert cumulative is not None and instantaneous is not None
    assert cumulative["p"] <= instantaneous["p"]


# ── Population model ─────────────────────────────────────────────────────────

def test_density_scalar_and_array():
    assert density(10.0, 10.0, 3.0) == 1.0
    arr = density(np.array([7.0, 10.0, 13.0]), 10.0, 3.0)
    assert math.isclose(arr[0], arr[2])
    assert math.isclose(arr[0], math.exp(-0.5))


def test_cumulative_probability_zero_total():
    out = cumulative_probability([0, 1, 2], [0.0, 0.0, 0.0])
    assert list(out) == [0.0, 0.0, 0.0]


def test_probability_at_matches_sampled_series():
    params = make_params(avg_performance=8, std_deviation=4)
    samples = sample_curve(params)

    for p in (0, 5, 8, 13, 20):
        assert abs(probability_at(p, params) - samples[p].cumulative_probability) <= 0.005
    mid = probability_at(8.5, params)
    assert samples[8].cumulative_probability < mid < samples[9].cumulative_probability
    assert math.isclose(share_reaching(8.5, params), 100.0 - mid)


if __name__ == "__main__":
    sys.exit(pytest.main([__file__, "-v"]))
