"""Engine sub-package — market state, portfolio bookkeeping and the day step."""

from treasury_simulator.engine.market_state import MarketState, RandomSource, make_rng
from treasury_simulator.engine.portfolio import (
    Asset,
    AssetType,
    AssetView,
    CashFlowEvent,
    CashFlowSchedule,
    PortfolioSnapshot,
    TreasuryPortfolio,
)
from treasury_simulator.engine.simulator import (
    DayReport,
    TreasurySimulator,
    build_sample_simulator,
)

__all__ = [
    "MarketState",
    "RandomSource",
    "make_rng",
    "Asset",
    "AssetType",
    "AssetView",
    "CashFlowEvent",
    "CashFlowSchedule",
    "PortfolioSnapshot",
    "TreasuryPortfolio",
    "DayReport",
    "TreasurySimulator",
    "build_sample_simulator",
]
