"""
Liquidity Risk — Monte Carlo Cash Simulation
=============================================
Implements:
  - Stochastic daily cash evolution (revenue, expense, market-liquidity effect)
  - Distribution of terminal cash across independent paths
  - Worst / 5th percentile / mean / 95th percentile / best summary

Each day of each path:
    expense       = V · 0.001  · (1 + 0.30·Z1)
    revenue       = V · 0.0012 · (1 + 0.25·Z2)
    market_effect = (L − 0.5) · 2 · V · 0.0002
    cash         += revenue − expense + market_effect
    L             = clip(L + 0.05·Z3, 0.5, 1.0)

with V the portfolio total value and Z1, Z2, Z3 independent N(0, 1).
Paths are evaluated together as numpy vectors; the draws for one day are
a single ``(path_count, 3)`` standard-normal block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np

from treasury_simulator.config import (
    DAILY_EXPENSE_RATE,
    DAILY_EXPENSE_VOL,
    DAILY_REVENUE_RATE,
    DAILY_REVENUE_VOL,
    LIQUIDITY_CAP,
    LIQUIDITY_FLOOR,
    LIQUIDITY_PATH_VOL,
    MARKET_EFFECT_RATE,
    P5_QUANTILE,
    P95_QUANTILE,
)
from treasury_simulator.engine.market_state import MarketState, RandomSource, make_rng
from treasury_simulator.engine.portfolio import PortfolioSnapshot
from treasury_simulator.errors import InvalidParameterError

logger = logging.getLogger(__name__)


def percentile_index(n: int, quantile: float) -> int:
    """Floor-based order-statistic index, clamped into ``[0, n-1]``."""
    return min(max(int(n * quantile), 0), n - 1)


def linear_interpolate(low: float, high: float, target: float) -> float:
    """
    Position of ``target`` between ``low`` and ``high`` as a value in [0, 1].

    Used as a crude shortfall-probability proxy from the worst and best
    simulated outcomes; it is not an estimate of the outcome CDF.
    """
    if target <= low:
        return 0.0
    if target >= high:
        return 1.0
    return (target - low) / (high - low)


@dataclass(frozen=True, eq=False)
class SimulationOutcome:
    """Sorted terminal cash values, one per path."""
    outcomes: np.ndarray
    horizon_days: int

    @property
    def path_count(self) -> int:
        return int(self.outcomes.shape[0])

    @property
    def worst_case(self) -> float:
        return float(self.outcomes[0])

    @property
    def best_case(self) -> float:
        return float(self.outcomes[-1])

    @property
    def mean(self) -> float:
        return float(self.outcomes.mean())

    @property
    def p5(self) -> float:
        return float(self.outcomes[percentile_index(self.path_count, P5_QUANTILE)])

    @property
    def p95(self) -> float:
        return float(self.outcomes[percentile_index(self.path_count, P95_QUANTILE)])

    def summary(self) -> Dict[str, float]:
        return {
            "worst_case": self.worst_case,
            "p5": self.p5,
            "mean": self.mean,
            "p95": self.p95,
            "best_case": self.best_case,
        }


def simulate_liquidity(
    portfolio: PortfolioSnapshot,
    market: MarketState,
    horizon_days: int,
    path_count: int,
    rng: RandomSource,
) -> SimulationOutcome:
    """
    Simulate terminal cash after ``horizon_days`` over ``path_count`` paths.

    Every path starts from ``portfolio.cash_reserve`` and
    ``market.liquidity_index``; neither input is modified.

    Parameters
    ----------
    portfolio : snapshot supplying total value and starting cash
    market : supplies the starting liquidity index
    horizon_days : number of daily steps (>= 1)
    path_count : number of independent paths (>= 1)
    rng : random source; the same seeded stream reproduces identical outcomes
    """
    if horizon_days < 1:
        raise InvalidParameterError(f"horizon_days must be >= 1, got {horizon_days}")
    if path_count < 1:
        raise InvalidParameterError(f"path_count must be >= 1, got {path_count}")
    if path_count < 20:
        logger.debug("path_count=%d < 20: p5 collapses onto the worst case", path_count)

    total = portfolio.total_value
    cash = np.full(path_count, portfolio.cash_reserve, dtype=float)
    liquidity = np.full(path_count, market.liquidity_index, dtype=float)

    for _ in range(horizon_days):
        z = np.asarray(rng.standard_normal((path_count, 3)), dtype=float)
        expense = total * DAILY_EXPENSE_RATE * (1 + z[:, 0] * DAILY_EXPENSE_VOL)
        revenue = total * DAILY_REVENUE_RATE * (1 + z[:, 1] * DAILY_REVENUE_VOL)
        market_effect = (liquidity - 0.5) * 2.0 * total * MARKET_EFFECT_RATE
        cash = cash + revenue - expense + market_effect
        liquidity = np.clip(liquidity + z[:, 2] * LIQUIDITY_PATH_VOL,
                            LIQUIDITY_FLOOR, LIQUIDITY_CAP)

    outcomes = np.sort(cash)
    outcomes.flags.writeable = False
    return SimulationOutcome(outcomes=outcomes, horizon_days=horizon_days)


# ═══════════════════════════════════════════════════════════════════════════════
#  Engine wrapper
# ═══════════════════════════════════════════════════════════════════════════════

class MonteCarloLiquidityEngine:
    """
    Monte Carlo liquidity engine with a fixed path count and seed.

    A fresh generator is built from ``seed`` on every run, so repeated runs
    with a seed are identical; without a seed each run draws new entropy.
    """

    def __init__(self, path_count: int = 1_000, seed: Optional[int] = None):
        if path_count < 1:
            raise InvalidParameterError(f"path_count must be >= 1, got {path_count}")
        self.path_count = path_count
        self.seed = seed

    def run(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
        horizon_days: int,
        rng: Optional[RandomSource] = None,
    ) -> SimulationOutcome:
        rng = rng if rng is not None else make_rng(self.seed)
        logger.info("Liquidity simulation: %d paths x %d days",
                    self.path_count, horizon_days)
        outcome = simulate_liquidity(portfolio, market, horizon_days,
                                     self.path_count, rng)
        logger.debug("Liquidity simulation summary: %s", outcome.summary())
        return outcome
