"""
Allocation & Cash Optimisation
==============================
Implements:
  - Target allocation across five asset classes from risk tolerance,
    market liquidity and the shape of the money-market yield curve
  - Cash band recommendation (increase / decrease / maintain)
  - Current-vs-target cash comparison
  - Yield-curve regime and best-value tenor
  - Strategic alerts (low market liquidity, inverted or steep curve)

Base weights (t = risk tolerance, L = liquidity index):
    cash        = max(0.15, 0.30 − 0.20·t − 0.10·L)
    short-term  = 0.30 − 0.15·t
    medium-term = 0.20 + 0.05·t
    long-term   = 0.10 + 0.15·t
    alternatives= 0.10 + 0.15·t

Curve slopes in % per month:
    slope_short = (r3M − r1M) / 2,   slope_long = (r1Y − r3M) / 9
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from treasury_simulator.config import (
    ASSET_CLASSES,
    LOW_MARKET_LIQUIDITY,
    MAX_CASH_SHARE,
    MIN_CASH_SHARE,
    REBALANCE_TOLERANCE,
    STEEP_CURVE_SPREAD,
    STEEP_SLOPE_PCT_PER_MONTH,
    STRATEGIC_STEEP_SPREAD,
    TENOR_DAYS,
)
from treasury_simulator.engine.market_state import MarketState
from treasury_simulator.engine.portfolio import PortfolioSnapshot
from treasury_simulator.errors import InvalidParameterError

logger = logging.getLogger(__name__)


class CurveAdjustment(str, Enum):
    NONE = "NONE"
    INVERTED = "INVERTED"
    STEEP = "STEEP"


class CurveRegime(str, Enum):
    NORMAL = "NORMAL"
    INVERTED = "INVERTED"
    STEEP = "STEEP"


class CashAction(str, Enum):
    INCREASE_CASH = "INCREASE_CASH"
    DECREASE_CASH = "DECREASE_CASH"
    MAINTAIN = "MAINTAIN"


class StrategicAlert(str, Enum):
    LOW_LIQUIDITY = "LOW_LIQUIDITY"
    INVERTED_CURVE = "INVERTED_CURVE"
    STEEP_CURVE = "STEEP_CURVE"

    @property
    def message(self) -> str:
        return _ALERT_MESSAGES[self]


_ALERT_MESSAGES = {
    StrategicAlert.LOW_LIQUIDITY: "Market liquidity is low. Prioritise defensive positions "
                                  "and hold higher cash reserves.",
    StrategicAlert.INVERTED_CURVE: "Inverted yield curve. Position defensively for a "
                                   "possible slowdown.",
    StrategicAlert.STEEP_CURVE: "Steep yield curve. Consider extending duration to "
                                "capture higher yields.",
}


@dataclass(frozen=True)
class AllocationEntry:
    weight: float
    amount: float


@dataclass(frozen=True)
class AllocationPlan:
    """Target weights and amounts for each of the five asset classes."""
    entries: Mapping[str, AllocationEntry]
    risk_tolerance: float
    adjustment: CurveAdjustment

    def __getitem__(self, asset_class: str) -> AllocationEntry:
        return self.entries[asset_class]

    @property
    def weights(self) -> Dict[str, float]:
        return {k: e.weight for k, e in self.entries.items()}

    @property
    def amounts(self) -> Dict[str, float]:
        return {k: e.amount for k, e in self.entries.items()}


@dataclass(frozen=True)
class CashRecommendation:
    action: CashAction
    amount: float
    current_cash: float
    min_cash: float
    max_cash: float


@dataclass(frozen=True)
class PlanComparison:
    """Current base-currency cash against the plan's cash amount."""
    current_cash: float
    target_cash: float
    action: CashAction
    amount: float


@dataclass(frozen=True)
class YieldCurveView:
    regime: CurveRegime
    best_tenor: Optional[str]
    best_rate: Optional[float]
    spread_1y_overnight: float


# ═══════════════════════════════════════════════════════════════════════════════
#  Allocation optimiser
# ═══════════════════════════════════════════════════════════════════════════════

class AllocationOptimizer:
    """Rule-based target allocation for a treasury portfolio."""

    @staticmethod
    def curve_slopes(market: MarketState):
        slope_short = (market.rate("3MONTH") - market.rate("1MONTH")) / 2.0
        slope_long = (market.rate("1YEAR") - market.rate("3MONTH")) / 9.0
        return slope_short, slope_long

    def generate_allocation(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
        risk_tolerance: float,
    ) -> AllocationPlan:
        """
        Build the target allocation.

        Parameters
        ----------
        portfolio : supplies the total value to allocate
        market : supplies the liquidity index and the 1M / 3M / 1Y rates
        risk_tolerance : 0 (risk-averse) to 1 (risk-seeking)
        """
        if not 0.0 <= risk_tolerance <= 1.0:
            raise InvalidParameterError(
                f"risk_tolerance must lie in [0, 1], got {risk_tolerance}")

        t = risk_tolerance
        liquidity = market.liquidity_index
        raw = {
            "CASH": max(0.15, 0.3 - t * 0.2 - liquidity * 0.1),
            "SHORT_TERM_BONDS": 0.3 - t * 0.15,
            "MEDIUM_TERM_BONDS": 0.2 + t * 0.05,
            "LONG_TERM_BONDS": 0.1 + t * 0.15,
            "ALTERNATIVES": 0.1 + t * 0.15,
        }

        slope_short, slope_long = self.curve_slopes(market)
        if slope_short < 0 and slope_long < 0:
            adjustment = CurveAdjustment.INVERTED
            raw["CASH"] += 0.1
            raw["SHORT_TERM_BONDS"] += 0.05
            raw["MEDIUM_TERM_BONDS"] -= 0.05
            raw["LONG_TERM_BONDS"] -= 0.1
        elif slope_short > STEEP_SLOPE_PCT_PER_MONTH or slope_long > STEEP_SLOPE_PCT_PER_MONTH:
            adjustment = CurveAdjustment.STEEP
            raw["CASH"] -= 0.05
            raw["SHORT_TERM_BONDS"] -= 0.05
            raw["LONG_TERM_BONDS"] += 0.1
        else:
            adjustment = CurveAdjustment.NONE

        negative = [k for k, w in raw.items() if w < 0]
        if negative:
            # Left unfloored; normalisation proceeds on the raw weights.
            logger.warning("Negative raw allocation weights before normalisation: %s",
                           negative)

        raw_total = sum(raw.values())
        total_value = portfolio.total_value
        entries = {}
        for asset_class in ASSET_CLASSES:
            weight = raw[asset_class] / raw_total
            entries[asset_class] = AllocationEntry(weight=weight, amount=weight * total_value)

        logger.debug("Allocation (t=%.2f, %s): %s", t, adjustment.value,
                     {k: round(e.weight, 4) for k, e in entries.items()})
        return AllocationPlan(
            entries=MappingProxyType(entries),
            risk_tolerance=risk_tolerance,
            adjustment=adjustment,
        )

    # ── Cash management ──────────────────────────────────────────────────

    @staticmethod
    def recommend_cash_action(
        portfolio: PortfolioSnapshot,
        market: MarketState,
    ) -> CashRecommendation:
        """
        Keep base-currency cash inside a band that widens as market
        liquidity falls: [0.15, 0.30] · V · (2 − L).
        """
        stress = 2 - market.liquidity_index
        min_cash = portfolio.total_value * MIN_CASH_SHARE * stress
        max_cash = portfolio.total_value * MAX_CASH_SHARE * stress
        cash = portfolio.cash_reserve

        if cash < min_cash:
            action, amount = CashAction.INCREASE_CASH, min_cash - cash
        elif cash > max_cash:
            action, amount = CashAction.DECREASE_CASH, cash - max_cash
        else:
            action, amount = CashAction.MAINTAIN, 0.0
        return CashRecommendation(action, amount, cash, min_cash, max_cash)

    @staticmethod
    def compare_to_plan(
        portfolio: PortfolioSnapshot,
        plan: AllocationPlan,
        tolerance: float = REBALANCE_TOLERANCE,
    ) -> PlanComparison:
        current = portfolio.cash_reserve
        target = plan["CASH"].amount
        gap = target - current
        if abs(gap) <= tolerance:
            return PlanComparison(current, target, CashAction.MAINTAIN, 0.0)
        if gap > 0:
            return PlanComparison(current, target, CashAction.INCREASE_CASH, gap)
        return PlanComparison(current, target, CashAction.DECREASE_CASH, -gap)

    # ── Yield curve ──────────────────────────────────────────────────────

    @staticmethod
    def analyse_yield_curve(market: MarketState) -> YieldCurveView:
        """
        Classify the curve from the overnight-to-1Y spread; on a normal
        curve, pick the tenor with the highest rate per day of tenor.
        """
        overnight = market.rate("OVERNIGHT")
        one_year = market.rate("1YEAR")
        spread = one_year - overnight

        if one_year < overnight:
            return YieldCurveView(CurveRegime.INVERTED, "OVERNIGHT", overnight, spread)
        if spread > STEEP_CURVE_SPREAD:
            return YieldCurveView(CurveRegime.STEEP, "1YEAR", one_year, spread)

        best_tenor, best_per_day = None, 0.0
        for tenor, days in TENOR_DAYS.items():
            per_day = market.rate(tenor) / days
            if per_day > best_per_day:
                best_tenor, best_per_day = tenor, per_day
        best_rate = market.rate(best_tenor) if best_tenor else None
        return YieldCurveView(CurveRegime.NORMAL, best_tenor, best_rate, spread)

    @staticmethod
    def strategic_alerts(market: MarketState) -> List[StrategicAlert]:
        """Positioning alerts from market liquidity and the overnight-to-1Y spread."""
        alerts = []
        if market.liquidity_index < LOW_MARKET_LIQUIDITY:
            alerts.append(StrategicAlert.LOW_LIQUIDITY)
        spread = market.rate("1YEAR") - market.rate("OVERNIGHT")
        if spread < 0:
            alerts.append(StrategicAlert.INVERTED_CURVE)
        elif spread > STRATEGIC_STEEP_SPREAD:
            alerts.append(StrategicAlert.STEEP_CURVE)
        return alerts


# ═══════════════════════════════════════════════════════════════════════════════
#  Convenience function
# ═══════════════════════════════════════════════════════════════════════════════

def run_full_optimization(
    portfolio: PortfolioSnapshot,
    market: MarketState,
    risk_tolerance: float = 0.5,
):
    """Allocation plan, cash band recommendation and plan comparison together."""
    optimizer = AllocationOptimizer()
    plan = optimizer.generate_allocation(portfolio, market, risk_tolerance)
    return (
        plan,
        optimizer.recommend_cash_action(portfolio, market),
        optimizer.compare_to_plan(portfolio, plan),
    )
