"""
Market State
============
Interest-rate curve, FX quotes and a scalar market-liquidity index, plus
the one-day stochastic evolution step used by the day-by-day simulator.

All randomness is drawn from an injectable ``RandomSource``; a
``numpy.random.Generator`` satisfies the protocol, and tests can pass any
object with the same two methods.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Dict, Optional, Protocol

import numpy as np

from treasury_simulator.config import (
    DEFAULT_FX_RATES,
    DEFAULT_LIQUIDITY_INDEX,
    DEFAULT_RATES,
    FX_DAILY_MAX_MOVE,
    LIQUIDITY_CAP,
    LIQUIDITY_DAILY_MAX_MOVE,
    LIQUIDITY_FLOOR,
    RATE_DAILY_MAX_MOVE,
)

logger = logging.getLogger(__name__)


class RandomSource(Protocol):
    """Subset of ``numpy.random.Generator`` the engines rely on."""

    def uniform(self, low: float = 0.0, high: float = 1.0, size=None): ...

    def standard_normal(self, size=None): ...


def make_rng(seed: Optional[int] = None) -> np.random.Generator:
    """Return a fresh numpy generator (entropy-seeded when ``seed`` is None)."""
    return np.random.default_rng(seed)


def clamp_liquidity(value: float) -> float:
    return min(LIQUIDITY_CAP, max(LIQUIDITY_FLOOR, value))


@dataclass
class MarketState:
    """Snapshot of market conditions on ``as_of``."""
    rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RATES))
    fx_rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_FX_RATES))
    liquidity_index: float = DEFAULT_LIQUIDITY_INDEX
    as_of: date = field(default_factory=date.today)

    def __post_init__(self):
        self.liquidity_index = clamp_liquidity(self.liquidity_index)
        self.rates = {tenor: max(0.0, rate) for tenor, rate in self.rates.items()}

    # ── Lookups ──────────────────────────────────────────────────────────

    def rate(self, tenor: str) -> float:
        """Annual rate (%) for ``tenor``; unknown tenors quote 0."""
        return self.rates.get(tenor, 0.0)

    def fx_rate(self, pair: str) -> Optional[float]:
        """Price for ``pair`` (e.g. ``"USD/IDR"``), or None when not quoted."""
        return self.fx_rates.get(pair)

    def copy(self) -> "MarketState":
        return copy.deepcopy(self)

    # ── Evolution ────────────────────────────────────────────────────────

    def evolve_one_day(self, rng: RandomSource) -> None:
        """
        Apply one day of random market moves in place.

        Rates move by U(-0.15, 0.15) percentage points (floored at 0), FX
        quotes by U(-1%, +1%) of their value, and the liquidity index by
        U(-0.05, 0.05) within [0.5, 1.0]. The date advances by one day.
        """
        new_rates = {}
        for tenor, current in self.rates.items():
            change = float(rng.uniform(-RATE_DAILY_MAX_MOVE, RATE_DAILY_MAX_MOVE))
            new_rates[tenor] = max(0.0, current + change)

        new_fx = {}
        for pair, current in self.fx_rates.items():
            pct_change = float(rng.uniform(-FX_DAILY_MAX_MOVE, FX_DAILY_MAX_MOVE))
            new_fx[pair] = current * (1 + pct_change)

        change = float(rng.uniform(-LIQUIDITY_DAILY_MAX_MOVE, LIQUIDITY_DAILY_MAX_MOVE))

        self.rates = new_rates
        self.fx_rates = new_fx
        self.liquidity_index = clamp_liquidity(self.liquidity_index + change)
        self.as_of = self.as_of + timedelta(days=1)
        logger.debug("Market evolved to %s (liquidity %.4f)",
                     self.as_of, self.liquidity_index)
