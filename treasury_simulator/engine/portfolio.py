"""
Treasury Portfolio
==================
Live bookkeeping objects (``Asset``, ``TreasuryPortfolio``, cash-flow
schedule) and the immutable ``PortfolioSnapshot`` handed to the risk
modules. The risk modules only ever see snapshots.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Tuple

from treasury_simulator.config import BASE_CURRENCY, HIGH_LIQUIDITY_RATING


class AssetType(str, Enum):
    CASH = "CASH"
    BONDS = "BONDS"
    MM_DEPOSIT = "MM_DEPOSIT"
    EQUITY = "EQUITY"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, label: str) -> "AssetType":
        """Map a free-text type label onto a known type (unknown -> OTHER)."""
        try:
            return cls(label.strip().upper())
        except ValueError:
            return cls.OTHER


# ═══════════════════════════════════════════════════════════════════════════════
#  Immutable views (input contract of the risk modules)
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class AssetView:
    """Read-only projection of one holding."""
    name: str
    asset_type: AssetType
    amount: float
    currency: str
    interest_rate_pct: float = 0.0
    maturity_date: Optional[date] = None
    liquidity_rating: float = 1.0

    @property
    def is_cash(self) -> bool:
        return self.asset_type is AssetType.CASH


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Immutable view of the portfolio at a single point in time."""
    total_value: float
    cash_reserve: float
    assets: Tuple[AssetView, ...] = ()
    base_currency: str = BASE_CURRENCY

    @property
    def liquid_share(self) -> float:
        """Share of total value held in assets rated >= 0.8 for liquidity."""
        if self.total_value <= 0:
            return 0.0
        liquid = sum(a.amount for a in self.assets
                     if a.liquidity_rating >= HIGH_LIQUIDITY_RATING)
        return liquid / self.total_value

    @classmethod
    def from_assets(
        cls,
        assets: List[AssetView],
        base_currency: str = BASE_CURRENCY,
    ) -> "PortfolioSnapshot":
        """Build a consistent snapshot (total and cash reserve derived from assets)."""
        assets = tuple(assets)
        total = sum(a.amount for a in assets)
        cash = sum(a.amount for a in assets
                   if a.is_cash and a.currency == base_currency)
        return cls(total_value=total, cash_reserve=cash,
                   assets=assets, base_currency=base_currency)


# ═══════════════════════════════════════════════════════════════════════════════
#  Live bookkeeping layer
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass
class Asset:
    """A holding whose amount changes as interest accrues and cash flows land."""
    name: str
    asset_type: AssetType
    amount: float
    currency: str
    interest_rate_pct: float = 0.0
    maturity_date: Optional[date] = None
    liquidity_rating: float = 1.0

    def view(self) -> AssetView:
        return AssetView(
            name=self.name,
            asset_type=self.asset_type,
            amount=self.amount,
            currency=self.currency,
            interest_rate_pct=self.interest_rate_pct,
            maturity_date=self.maturity_date,
            liquidity_rating=self.liquidity_rating,
        )


class TreasuryPortfolio:
    """
    Mutable portfolio owned by the bookkeeping layer.

    Starts with a single base-currency cash position; ``total_value`` is
    refreshed whenever assets are added or the day step changes amounts.
    """

    def __init__(self, base_currency: str = BASE_CURRENCY, initial_cash: float = 0.0):
        self.base_currency = base_currency
        self.assets: List[Asset] = [
            Asset("Cash Reserve", AssetType.CASH, initial_cash, base_currency, 0.0, None, 1.0)
        ]
        self.total_value = initial_cash

    def add_asset(self, asset: Asset) -> None:
        self.assets.append(asset)
        self.update_total_value()

    def update_total_value(self) -> float:
        self.total_value = sum(a.amount for a in self.assets)
        return self.total_value

    @property
    def cash_reserve(self) -> float:
        return sum(a.amount for a in self.assets
                   if a.asset_type is AssetType.CASH and a.currency == self.base_currency)

    def primary_cash_account(self) -> Optional[Asset]:
        """First base-currency cash position, which receives scheduled cash flows."""
        for asset in self.assets:
            if asset.asset_type is AssetType.CASH and asset.currency == self.base_currency:
                return asset
        return None

    def liquidity_ratio(self) -> float:
        return self.snapshot().liquid_share

    def snapshot(self) -> PortfolioSnapshot:
        return PortfolioSnapshot(
            total_value=self.total_value,
            cash_reserve=self.cash_reserve,
            assets=tuple(a.view() for a in self.assets),
            base_currency=self.base_currency,
        )


# ── Scheduled cash flows ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class CashFlowEvent:
    """A dated inflow or outflow, optionally repeating every N days."""
    description: str
    due_date: date
    amount: float
    is_inflow: bool
    recurring_interval_days: int = 0

    @property
    def is_recurring(self) -> bool:
        return self.recurring_interval_days > 0

    @property
    def signed_amount(self) -> float:
        return self.amount if self.is_inflow else -self.amount

    def next_recurrence(self) -> Optional["CashFlowEvent"]:
        if not self.is_recurring:
            return None
        return CashFlowEvent(
            description=self.description,
            due_date=self.due_date + timedelta(days=self.recurring_interval_days),
            amount=self.amount,
            is_inflow=self.is_inflow,
            recurring_interval_days=self.recurring_interval_days,
        )


@dataclass
class CashFlowSchedule:
    """Pending cash-flow events, in insertion order."""
    events: List[CashFlowEvent] = field(default_factory=list)

    def add(self, event: CashFlowEvent) -> None:
        self.events.append(event)

    def due_on(self, day: date) -> List[CashFlowEvent]:
        return [e for e in self.events if e.due_date == day]
