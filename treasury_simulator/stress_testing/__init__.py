"""
Stress Testing & Resilience Scoring
===================================
Implements:
  - Liquidity-crisis scenario (market liquidity collapses to 0.2)
  - Interest-rate shock ladder with severity bands
  - Currency shock on foreign holdings
  - Composite resilience score in [0, 10]

Orchestrates: MonteCarloLiquidityEngine × InterestRateRiskAssessor × CurrencyRiskAssessor
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import List, Optional

from treasury_simulator.config import (
    CRISIS_DISCOUNT_FLOOR,
    CRISIS_HORIZON_DAYS,
    CRISIS_LIQUIDITY,
    RATE_SHOCK_MODERATE_PCT,
    RATE_SHOCK_SEVERE_PCT,
    REQUIRED_RESERVE_SHARE,
    RESILIENCE_MODERATE,
    RESILIENCE_STRONG,
    RESILIENCE_WEIGHTS,
    STANDARD_FX_SHOCK_PCT,
    STANDARD_RATE_SHOCKS_PP,
    SURVIVAL_DAYS_PER_RATIO,
)
from treasury_simulator.engine.market_state import MarketState
from treasury_simulator.engine.portfolio import PortfolioSnapshot
from treasury_simulator.errors import InvalidParameterError
from treasury_simulator.risk_modules.currency_risk import CurrencyRiskAssessor
from treasury_simulator.risk_modules.liquidity_risk import (
    MonteCarloLiquidityEngine,
    SimulationOutcome,
    linear_interpolate,
)
from treasury_simulator.risk_modules.market_risk import (
    InterestRateRiskAssessor,
    RiskImpactReport,
)

logger = logging.getLogger(__name__)


class ResilienceRating(str, Enum):
    VULNERABLE = "VULNERABLE"
    MODERATE = "MODERATE"
    STRONG = "STRONG"

    @classmethod
    def from_score(cls, score: float) -> "ResilienceRating":
        if score >= RESILIENCE_STRONG:
            return cls.STRONG
        if score >= RESILIENCE_MODERATE:
            return cls.MODERATE
        return cls.VULNERABLE


class ShockSeverity(str, Enum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    SEVERE = "SEVERE"

    @classmethod
    def from_impact_percent(cls, impact_pct: float) -> "ShockSeverity":
        if impact_pct < RATE_SHOCK_SEVERE_PCT:
            return cls.SEVERE
        if impact_pct < RATE_SHOCK_MODERATE_PCT:
            return cls.MODERATE
        return cls.LOW


@dataclass
class LiquidityCrisisResult:
    """Outcome of the liquidity-crisis scenario."""
    liquidity_ratio: float
    survival_days_estimate: float
    shortfall_probability: float
    liquid_assets: float
    required_reserve: float
    simulation: SimulationOutcome


@dataclass
class RateShockResult:
    shock_pp: float
    report: RiskImpactReport
    impact_percent: float
    severity: ShockSeverity


@dataclass
class CurrencyShockResult:
    shock_pct: float
    report: RiskImpactReport
    impact_percent: float


@dataclass
class ResilienceScore:
    """Weighted composite of the liquidity, shortfall and currency sub-scores."""
    liquidity_score: float
    shortfall_score: float
    currency_score: float
    score: float
    rating: ResilienceRating


@dataclass
class StressTestReport:
    """All scenarios of a full stress-test run."""
    as_of: date
    liquidity_crisis: LiquidityCrisisResult
    rate_shocks: List[RateShockResult]
    currency_shock: CurrencyShockResult
    resilience: ResilienceScore
    warnings: List[str] = field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════════════════
#  Orchestrator
# ═══════════════════════════════════════════════════════════════════════════════

class StressTestOrchestrator:
    """
    Runs the deterministic shock scenarios and the Monte Carlo shortfall
    check against one portfolio / market snapshot pair.
    """

    def __init__(
        self,
        engine: Optional[MonteCarloLiquidityEngine] = None,
        rate_assessor: Optional[InterestRateRiskAssessor] = None,
        currency_assessor: Optional[CurrencyRiskAssessor] = None,
    ):
        self.engine = engine or MonteCarloLiquidityEngine()
        self.rate_assessor = rate_assessor or InterestRateRiskAssessor()
        self.currency_assessor = currency_assessor or CurrencyRiskAssessor()

    # ── Liquidity crisis ─────────────────────────────────────────────────

    def run_liquidity_crisis(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
        engine: Optional[MonteCarloLiquidityEngine] = None,
    ) -> LiquidityCrisisResult:
        """
        Mark assets down for a collapse in market liquidity and estimate
        the chance of ending below the required cash reserve.

        Non-cash assets are valued at
            amount · max(0.5, 1 − (1 − rating) · (L_now / 0.2))
        Cash counts in full. The shortfall probability is the linear
        position of the reserve target between the worst and best 30-day
        simulated outcomes, a crude proxy rather than a quantile estimate.
        """
        total = portfolio.total_value
        if total <= 0:
            raise InvalidParameterError("portfolio total_value must be positive")
        engine = engine or self.engine

        original_liquidity = market.liquidity_index
        stress_factor = original_liquidity / CRISIS_LIQUIDITY
        liquid_assets = 0.0
        for asset in portfolio.assets:
            if asset.is_cash:
                liquid_assets += asset.amount
            else:
                discount = 1.0 - (1.0 - asset.liquidity_rating) * stress_factor
                liquid_assets += asset.amount * max(CRISIS_DISCOUNT_FLOOR, discount)

        liquidity_ratio = liquid_assets / total
        simulation = engine.run(portfolio, market, CRISIS_HORIZON_DAYS)
        required_reserve = total * REQUIRED_RESERVE_SHARE
        shortfall = linear_interpolate(simulation.worst_case, simulation.best_case,
                                       required_reserve)

        logger.info("Liquidity crisis: ratio=%.4f shortfall=%.4f",
                    liquidity_ratio, shortfall)
        return LiquidityCrisisResult(
            liquidity_ratio=liquidity_ratio,
            survival_days_estimate=liquidity_ratio * SURVIVAL_DAYS_PER_RATIO,
            shortfall_probability=shortfall,
            liquid_assets=liquid_assets,
            required_reserve=required_reserve,
            simulation=simulation,
        )

    # ── Rate & FX shocks ─────────────────────────────────────────────────

    def run_rate_shock(
        self,
        portfolio: PortfolioSnapshot,
        shock_pp: float,
        as_of: date,
    ) -> RateShockResult:
        report = self.rate_assessor.assess_rate_shock(portfolio, shock_pp, as_of)
        impact_pct = report.impact_percent(portfolio)
        return RateShockResult(
            shock_pp=shock_pp,
            report=report,
            impact_percent=impact_pct,
            severity=ShockSeverity.from_impact_percent(impact_pct),
        )

    def run_currency_shock(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
        shock_pct: float = STANDARD_FX_SHOCK_PCT,
    ) -> CurrencyShockResult:
        report = self.currency_assessor.simulate_shock(portfolio, market, shock_pct)
        return CurrencyShockResult(
            shock_pct=shock_pct,
            report=report,
            impact_percent=report.impact_percent(portfolio),
        )

    # ── Resilience ───────────────────────────────────────────────────────

    @staticmethod
    def compute_resilience_score(
        crisis: LiquidityCrisisResult,
        currency_impact_percent: float,
    ) -> ResilienceScore:
        """
        score = 0.5 · min(10, 10·ratio)
              + 0.3 · max(0, 10 − 20·shortfall)
              + 0.2 · max(0, 10 − |currency impact %|)
        """
        liquidity_score = max(0.0, min(10.0, crisis.liquidity_ratio * 10))
        shortfall_score = max(0.0, 10.0 - crisis.shortfall_probability * 20)
        currency_score = max(0.0, 10.0 - abs(currency_impact_percent))
        score = (liquidity_score * RESILIENCE_WEIGHTS["liquidity"] +
                 shortfall_score * RESILIENCE_WEIGHTS["shortfall"] +
                 currency_score * RESILIENCE_WEIGHTS["currency"])
        score = min(10.0, max(0.0, score))
        return ResilienceScore(
            liquidity_score=liquidity_score,
            shortfall_score=shortfall_score,
            currency_score=currency_score,
            score=score,
            rating=ResilienceRating.from_score(score),
        )

    # ── Full run ─────────────────────────────────────────────────────────

    def run_full_stress_test(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
        as_of: Optional[date] = None,
        rate_shocks_pp: Optional[List[float]] = None,
        fx_shock_pct: float = STANDARD_FX_SHOCK_PCT,
    ) -> StressTestReport:
        """Liquidity crisis, +1/+2/+3 pp rate shocks, FX shock and resilience."""
        as_of = as_of or market.as_of
        shocks = STANDARD_RATE_SHOCKS_PP if rate_shocks_pp is None else rate_shocks_pp

        crisis = self.run_liquidity_crisis(portfolio, market)
        rate_results = [self.run_rate_shock(portfolio, s, as_of) for s in shocks]
        fx_result = self.run_currency_shock(portfolio, market, fx_shock_pct)
        resilience = self.compute_resilience_score(crisis, fx_result.impact_percent)

        warnings = [f"No FX quote for {pair}; exposure treated as zero"
                    for pair in fx_result.report.missing_pairs]
        logger.info("Stress test complete: resilience %.2f (%s)",
                    resilience.score, resilience.rating.value)
        return StressTestReport(
            as_of=as_of,
            liquidity_crisis=crisis,
            rate_shocks=rate_results,
            currency_shock=fx_result,
            resilience=resilience,
            warnings=warnings,
        )


# ═══════════════════════════════════════════════════════════════════════════════
#  Convenience function
# ═══════════════════════════════════════════════════════════════════════════════

def run_stress_test(
    portfolio: PortfolioSnapshot,
    market: MarketState,
    path_count: int = 1_000,
    seed: Optional[int] = None,
) -> StressTestReport:
    """Run the full stress-test suite with a fresh engine."""
    orchestrator = StressTestOrchestrator(
        engine=MonteCarloLiquidityEngine(path_count=path_count, seed=seed),
    )
    return orchestrator.run_full_stress_test(portfolio, market)
