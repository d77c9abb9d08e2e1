"""Configuration, engine constants and seed market / portfolio data."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from treasury_simulator.errors import InvalidParameterError


# ── Market data seed ─────────────────────────────────────────────────────────
BASE_CURRENCY = "IDR"

TENORS = ["OVERNIGHT", "1MONTH", "3MONTH", "6MONTH", "1YEAR"]

TENOR_DAYS = {
    "OVERNIGHT": 1,
    "1MONTH": 30,
    "3MONTH": 90,
    "6MONTH": 180,
    "1YEAR": 365,
}

DEFAULT_RATES = {
    "OVERNIGHT": 4.25,
    "1MONTH": 4.35,
    "3MONTH": 4.45,
    "6MONTH": 4.50,
    "1YEAR": 4.75,
}

DEFAULT_FX_RATES = {
    "USD/IDR": 15_750.0,
    "EUR/IDR": 17_000.0,
    "JPY/IDR": 105.0,
}

DEFAULT_LIQUIDITY_INDEX = 0.85


# ── Daily market evolution ───────────────────────────────────────────────────
RATE_DAILY_MAX_MOVE = 0.15        # absolute percentage points
FX_DAILY_MAX_MOVE = 0.01          # relative
LIQUIDITY_DAILY_MAX_MOVE = 0.05
LIQUIDITY_FLOOR = 0.5
LIQUIDITY_CAP = 1.0


# ── Monte Carlo cash-flow model ──────────────────────────────────────────────
DAILY_EXPENSE_RATE = 0.001        # share of total value spent per day
DAILY_EXPENSE_VOL = 0.30
DAILY_REVENUE_RATE = 0.0012       # share of total value collected per day
DAILY_REVENUE_VOL = 0.25
MARKET_EFFECT_RATE = 0.0002
LIQUIDITY_PATH_VOL = 0.05
P5_QUANTILE = 0.05
P95_QUANTILE = 0.95


# ── Stress testing ───────────────────────────────────────────────────────────
CRISIS_LIQUIDITY = 0.2            # market liquidity under severe stress
CRISIS_DISCOUNT_FLOOR = 0.5       # no asset marked below half value
CRISIS_HORIZON_DAYS = 30
REQUIRED_RESERVE_SHARE = 0.2      # cash reserve target as share of total value
SURVIVAL_DAYS_PER_RATIO = 100.0
STANDARD_RATE_SHOCKS_PP = [1.0, 2.0, 3.0]
STANDARD_FX_SHOCK_PCT = 10.0

RESILIENCE_WEIGHTS = {
    "liquidity": 0.5,
    "shortfall": 0.3,
    "currency": 0.2,
}
RESILIENCE_STRONG = 7.5
RESILIENCE_MODERATE = 5.0

RATE_SHOCK_SEVERE_PCT = -10.0
RATE_SHOCK_MODERATE_PCT = -5.0


# ── Allocation & cash management ─────────────────────────────────────────────
ASSET_CLASSES = [
    "CASH",
    "SHORT_TERM_BONDS",
    "MEDIUM_TERM_BONDS",
    "LONG_TERM_BONDS",
    "ALTERNATIVES",
]
STEEP_SLOPE_PCT_PER_MONTH = 0.2
STEEP_CURVE_SPREAD = 1.0          # 1Y minus overnight, percentage points
MIN_CASH_SHARE = 0.15
MAX_CASH_SHARE = 0.30
REBALANCE_TOLERANCE = 100_000.0   # base-currency units
HIGH_LIQUIDITY_RATING = 0.8
CURRENCY_CONCENTRATION_LIMIT = 0.2
LOW_MARKET_LIQUIDITY = 0.6        # strategic alert: defensive positioning below this
STRATEGIC_STEEP_SPREAD = 1.5      # strategic alert: extend duration above this spread


# ── Access roles (presentation boundary only) ────────────────────────────────
class UserRole(str, Enum):
    TREASURY_ANALYST = "Treasury Analyst"
    ADMINISTRATOR = "Administrator"


# ── Run configuration ────────────────────────────────────────────────────────
@dataclass
class SimulationConfig:
    """Parameters for one analysis run.

    Attributes:
        path_count: Number of Monte Carlo paths. 1000+ gives stable percentiles.
        horizon_days: Forecast horizon for the cash simulation.
        seed: Optional seed for reproducible results.
        risk_tolerance: 0 is risk-averse, 1 is risk-seeking.
    """
    path_count: int = 1_000
    horizon_days: int = 30
    seed: Optional[int] = None
    risk_tolerance: float = 0.5

    def __post_init__(self):
        if self.path_count < 1:
            raise InvalidParameterError("path_count must be at least 1")
        if self.horizon_days < 1:
            raise InvalidParameterError("horizon_days must be at least 1")
        if not 0.0 <= self.risk_tolerance <= 1.0:
            raise InvalidParameterError("risk_tolerance must lie in [0, 1]")


# ── Sample treasury (starting point for the console and dashboard) ──────────
@dataclass
class SampleAsset:
    """Seed asset; maturity expressed relative to the start date."""
    name: str
    asset_type: str
    amount: float
    currency: str
    interest_rate_pct: float
    days_to_maturity: Optional[int]
    liquidity_rating: float


@dataclass
class SampleCashFlow:
    """Seed cash-flow event; date expressed relative to the start date."""
    description: str
    days_from_start: int
    amount: float
    is_inflow: bool
    recurring_interval_days: int = 0


@dataclass
class SampleTreasury:
    """Synthetic corporate treasury used as the t=0 starting point."""
    base_currency: str = BASE_CURRENCY
    initial_cash: float = 1_000_000_000.0
    assets: List[SampleAsset] = field(default_factory=lambda: [
        SampleAsset("Government Bonds", "BONDS", 500_000_000.0, "IDR", 5.25, 365, 0.7),
        SampleAsset("Money Market Deposit", "MM_DEPOSIT", 250_000_000.0, "IDR", 4.30, 30, 0.9),
        SampleAsset("USD Cash", "CASH", 50_000.0, "USD", 0.0, None, 1.0),
    ])
    cash_flows: List[SampleCashFlow] = field(default_factory=lambda: [
        SampleCashFlow("Quarterly Tax Payment", 20, 120_000_000.0, False),
        SampleCashFlow("Monthly Revenue Collection", 30, 420_000_000.0, True, 30),
        SampleCashFlow("Bond Interest Payment", 45, 26_250_000.0, True),
    ])
    rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_RATES))
    fx_rates: Dict[str, float] = field(default_factory=lambda: dict(DEFAULT_FX_RATES))
    liquidity_index: float = DEFAULT_LIQUIDITY_INDEX
