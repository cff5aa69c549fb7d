"""
Equilibrium simulator: repeated play against a constant-product pool.

Each round the break-even performance is recomputed for the current supply
and pool price, then one of two transitions is applied:

  buy_and_burn   break-even above the population mean (or not reached):
                 one player pays entry_fee USD into the pool, the tokens
                 bought are burned from supply.
  mint_and_swap  break-even at or below the mean: the reward earned at the
                 mean performance is minted and sold into the pool.

The loop stops when |break_even - avg_performance| <= CONVERGENCE_TOLERANCE,
after MAX_ROUNDS rounds, or as soon as a transition leaves the state
unchanged (every later round would repeat it). All state is local to one simulator instance.
"""

import logging
from dataclasses import asdict, dataclass
from typing import Callable, Optional

import numpy as np

from reward_curve_app.config import CONVERGENCE_TOLERANCE, MAX_ROUNDS, RESERVE_EPSILON
from reward_curve_app.schemas import CurveParameters
from reward_curve_app.services.break_even import interpolate_crossing
from reward_curve_app.services.reward import curve_shape, resolve_scale, supply_numerator
from reward_curve_app.services.sampler import performance_grid, usd_series


logger = logging.getLogger(__name__)

CONVERGED = "converged"
BUDGET_EXHAUSTED = "budget_exhausted"
CANCELLED = "cancelled"
NO_POOL = "no_pool"
STALLED = "stalled"

MINT_AND_SWAP = "mint_and_swap"
BUY_AND_BURN = "buy_and_burn"


@dataclass
class PoolState:
    token_reserve: float
    usd_reserve: float
    supply: float

    @property
    def price(self) -> float:
        return self.usd_reserve / self.token_reserve

    def sell_tokens(self, amount: float) -> float:
        """Swap `amount` tokens into the pool; returns the USD paid out."""
        usd_out = self.usd_reserve * amount / (self.token_reserve + amount)
        self.token_reserve += amount
        self.usd_reserve = max(self.usd_reserve - usd_out, RESERVE_EPSILON)
        return usd_out

    def quote_buy(self, usd_in: float) -> float:
        """Tokens a buyer would receive for `usd_in` USD."""
        product = self.token_reserve * self.usd_reserve
        return self.token_reserve - product / (self.usd_reserve + usd_in)

    def buy_tokens(self, amount: float) -> float:
        """Take exactly `amount` tokens out of the pool; returns the USD paid in."""
        product = self.token_reserve * self.usd_reserve
        new_tokens = self.token_reserve - amount
        usd_in = product / new_tokens - self.usd_reserve
        self.token_reserve = new_tokens
        self.usd_reserve += usd_in
        return usd_in


@dataclass(frozen=True)
class EquilibriumResult:
    supply_created: float
    usd_extracted: float
    final_price: float
    rounds_run: int
    current_break_even: Optional[float]
    initial_break_even: Optional[float]
    converged: bool
    termination: str


class EquilibriumSimulator:
    def __init__(self, params: CurveParameters, max_rounds: int = MAX_ROUNDS,
                 tolerance: float = CONVERGENCE_TOLERANCE):
        self.params = params
        self.max_rounds = max_rounds
        self.tolerance = tolerance

        # The curve shape does not depend on supply; only its scale does
        self._a = resolve_scale(params)
        self._grid = performance_grid(params.P)
        self._shape = curve_shape(self._grid, params)
        self._shape_at_mean = float(curve_shape([params.avg_performance], params)[0])

        self.pool = PoolState(
            token_reserve=float(params.initial_liquidity),
            usd_reserve=float(params.initial_liquidity) * float(params.price),
            supply=float(params.S),
        )
        self.rounds = 0
        self.supply_created = 0.0
        self.usd_extracted = 0.0
        self.break_even = None
        self.last_moved = False

    @property
    def has_pool(self) -> bool:
        return self.params.initial_liquidity > 0 and self.params.price > 0

    def break_even_at(self, supply: float, price: float) -> Optional[float]:
        numerator = supply_numerator(supply, self.params, self._a)
        values = usd_series(self._shape, numerator, price, self.params.break_even_series)
        return interpolate_crossing(self._grid, values, self.params.entry_fee)

    def is_converged(self) -> bool:
        return (
            self.break_even is not None
            and abs(self.break_even - self.params.avg_performance) <= self.tolerance
        )

    def step(self) -> str:
        """Observe the current break-even, then apply one transition."""
        pool = self.pool
        self.break_even = self.break_even_at(pool.supply, pool.price)
        if self.is_converged():
            return CONVERGED

        if self.break_even is None or self.break_even > self.params.avg_performance:
            transition = self._buy_and_burn()
        else:
            transition = self._mint_and_swap()
        self.rounds += 1
        return transition

    def _buy_and_burn(self) -> str:
        pool = self.pool
        tokens = pool.quote_buy(self.params.entry_fee)
        tokens = min(max(tokens, 0.0), max(pool.supply - 1.0, 0.0))
        self.last_moved = tokens > 0
        if tokens > 0:
            usd_in = pool.buy_tokens(tokens)
            pool.supply -= tokens
            self.supply_created -= tokens
            self.usd_extracted -= usd_in
        return BUY_AND_BURN

    def _mint_and_swap(self) -> str:
        pool = self.pool
        numerator = supply_numerator(pool.supply, self.params, self._a)
        minted = max(numerator * self._shape_at_mean, 0.0)
        self.last_moved = minted > 0
        if minted > 0:
            pool.supply += minted
            self.supply_created += minted
            self.usd_extracted += pool.sell_tokens(minted)
        return MINT_AND_SWAP

    def _result(self, termination: str, initial_break_even: Optional[float]) -> EquilibriumResult:
        final_price = self.pool.price if self.has_pool else float(self.params.price)
        return EquilibriumResult(
            supply_created=self.supply_created,
            usd_extracted=self.usd_extracted,
            final_price=final_price,
            rounds_run=self.rounds,
            current_break_even=self.break_even,
            initial_break_even=initial_break_even,
            converged=termination == CONVERGED,
            termination=termination,
        )

    def run(self, should_stop: Callable[[], bool] = None) -> EquilibriumResult:
        """Iterate until convergence, a stalled round, the round budget, or `should_stop()`.

        `should_stop` is polled once per round.
        """
        params = self.params
        initial_break_even = self.break_even_at(params.S, params.price)
        self.break_even = initial_break_even

        if not self.has_pool:
            logger.info(
                "No pool to simulate against (initial_liquidity=%s, price=%s)",
                params.initial_liquidity,
                params.price,
            )
            return self._result(NO_POOL, initial_break_even)

        debug = logger.isEnabledFor(logging.DEBUG)
        termination = BUDGET_EXHAUSTED
        while self.rounds < self.max_rounds:
            if should_stop is not None and should_stop():
                termination = CANCELLED
                break
            transition = self.step()
            if transition == CONVERGED:
                termination = CONVERGED
                break
            if not self.last_moved:
                termination = STALLED
                break
            if debug and self.rounds % 10_000 == 0:
                logger.debug(
                    "round=%d transition=%s break_even=%s supply=%.2f price=%.6g",
                    self.rounds,
                    transition,
                    self.break_even,
                    self.pool.supply,
                    self.pool.price,
                )
        else:
            # Budget spent: report the break-even of the final state
            self.break_even = self.break_even_at(self.pool.supply, self.pool.price)

        result = self._result(termination, initial_break_even)
        logger.info(
            "Equilibrium %s after %d rounds: break-even %s -> %s, supply delta %.2f, usd extracted %.4f",
            termination,
            result.rounds_run,
            initial_break_even,
            result.current_break_even,
            result.supply_created,
            result.usd_extracted,
        )
        return result


def run_equilibrium(params: CurveParameters, should_stop: Callable[[], bool] = None):
    result = EquilibriumSimulator(params).run(should_stop=should_stop)
    return asdict(result)
