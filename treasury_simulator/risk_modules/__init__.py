"""Risk modules sub-package — liquidity, interest-rate and currency risk."""

from treasury_simulator.risk_modules.liquidity_risk import (
    MonteCarloLiquidityEngine,
    SimulationOutcome,
    linear_interpolate,
    simulate_liquidity,
)
from treasury_simulator.risk_modules.market_risk import (
    TOTAL_IMPACT,
    InterestRateRiskAssessor,
    RiskImpactReport,
)
from treasury_simulator.risk_modules.currency_risk import (
    CurrencyExposure,
    CurrencyRiskAssessor,
)

__all__ = [
    "MonteCarloLiquidityEngine",
    "SimulationOutcome",
    "linear_interpolate",
    "simulate_liquidity",
    "TOTAL_IMPACT",
    "InterestRateRiskAssessor",
    "RiskImpactReport",
    "CurrencyExposure",
    "CurrencyRiskAssessor",
]
