"""
Day-by-Day Treasury Simulator
=============================
Owns the live portfolio, market state and cash-flow schedule, and applies
one simulated day at a time:

1. market evolution
2. daily interest accrual on interest-bearing assets
3. scheduled cash flows due on the new day (with recurrences re-queued)
4. total-value refresh

This is the only place in the package that mutates state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from treasury_simulator.config import SampleTreasury
from treasury_simulator.engine.market_state import MarketState, RandomSource, make_rng
from treasury_simulator.engine.portfolio import (
    Asset,
    AssetType,
    CashFlowEvent,
    CashFlowSchedule,
    TreasuryPortfolio,
)
from treasury_simulator.errors import InvalidParameterError

logger = logging.getLogger(__name__)


@dataclass
class DayReport:
    """What happened during one simulated day."""
    date: date
    interest_accrued: float = 0.0
    applied_events: List[CashFlowEvent] = field(default_factory=list)
    unapplied_events: List[CashFlowEvent] = field(default_factory=list)
    maturing_assets: List[str] = field(default_factory=list)
    total_value: float = 0.0
    cash_reserve: float = 0.0


class TreasurySimulator:
    """Coordinates the live portfolio, market and cash-flow schedule."""

    def __init__(
        self,
        portfolio: TreasuryPortfolio,
        market: MarketState,
        schedule: Optional[CashFlowSchedule] = None,
        rng: Optional[RandomSource] = None,
    ):
        self.portfolio = portfolio
        self.market = market
        self.schedule = schedule or CashFlowSchedule()
        self.rng = rng if rng is not None else make_rng()
        self.current_date = market.as_of
        self.history: List[DayReport] = []

    def advance_one_day(self) -> DayReport:
        """Move the whole treasury forward by one day."""
        next_day = self.current_date + timedelta(days=1)
        report = DayReport(date=next_day)

        # ── 1. Market moves ──────────────────────────────────────────────
        self.market.evolve_one_day(self.rng)

        # ── 2. Interest accrual & maturities ─────────────────────────────
        for asset in self.portfolio.assets:
            if asset.interest_rate_pct > 0:
                daily_interest = asset.amount * (asset.interest_rate_pct / 100 / 365)
                asset.amount += daily_interest
                report.interest_accrued += daily_interest
            if asset.maturity_date is not None and asset.maturity_date == next_day:
                report.maturing_assets.append(asset.name)

        # ── 3. Scheduled cash flows ──────────────────────────────────────
        cash_account = self.portfolio.primary_cash_account()
        remaining: List[CashFlowEvent] = []
        recurrences: List[CashFlowEvent] = []
        for event in self.schedule.events:
            if event.due_date != next_day:
                remaining.append(event)
                continue
            if cash_account is None:
                logger.warning("No %s cash account for %r; event kept pending",
                               self.portfolio.base_currency, event.description)
                report.unapplied_events.append(event)
                remaining.append(event)
                continue
            cash_account.amount += event.signed_amount
            report.applied_events.append(event)
            logger.info("Cash flow applied on %s: %s %+.2f",
                        next_day, event.description, event.signed_amount)
            follow_up = event.next_recurrence()
            if follow_up is not None:
                recurrences.append(follow_up)
        self.schedule.events = remaining + recurrences

        # ── 4. Totals ────────────────────────────────────────────────────
        report.total_value = self.portfolio.update_total_value()
        report.cash_reserve = self.portfolio.cash_reserve

        self.current_date = next_day
        self.history.append(report)
        return report

    def run(self, days: int) -> List[DayReport]:
        return [self.advance_one_day() for _ in range(days)]

    # ── User input ───────────────────────────────────────────────────────

    def add_asset(
        self,
        name: str,
        asset_type: str,
        amount: float,
        currency: str,
        interest_rate_pct: float = 0.0,
        days_to_maturity: Optional[int] = None,
        liquidity_rating: float = 1.0,
    ) -> Asset:
        """Add a holding; maturity is given in days from the current date."""
        if amount < 0:
            raise InvalidParameterError(f"amount must be >= 0, got {amount}")
        if not 0.0 <= liquidity_rating <= 1.0:
            raise InvalidParameterError(
                f"liquidity_rating must lie in [0, 1], got {liquidity_rating}")
        if days_to_maturity is not None and days_to_maturity < 0:
            raise InvalidParameterError(
                f"days_to_maturity must be >= 0, got {days_to_maturity}")

        maturity = (self.current_date + timedelta(days=days_to_maturity)
                    if days_to_maturity is not None else None)
        asset = Asset(
            name=name,
            asset_type=AssetType.parse(asset_type),
            amount=amount,
            currency=currency.strip().upper(),
            interest_rate_pct=interest_rate_pct,
            maturity_date=maturity,
            liquidity_rating=liquidity_rating,
        )
        self.portfolio.add_asset(asset)
        logger.info("Asset added: %s (%s %.2f %s)", asset.name,
                    asset.asset_type.value, asset.amount, asset.currency)
        return asset

    def add_cash_flow(
        self,
        description: str,
        days_from_now: int,
        amount: float,
        is_inflow: bool,
        recurring_interval_days: int = 0,
    ) -> CashFlowEvent:
        """Schedule an event; it must fall on a future simulated day."""
        if days_from_now < 1:
            raise InvalidParameterError(f"days_from_now must be >= 1, got {days_from_now}")
        if amount < 0:
            raise InvalidParameterError(f"amount must be >= 0, got {amount}")
        if recurring_interval_days < 0:
            raise InvalidParameterError(
                f"recurring_interval_days must be >= 0, got {recurring_interval_days}")

        event = CashFlowEvent(
            description=description,
            due_date=self.current_date + timedelta(days=days_from_now),
            amount=amount,
            is_inflow=is_inflow,
            recurring_interval_days=recurring_interval_days,
        )
        self.schedule.add(event)
        logger.info("Cash flow scheduled for %s: %s %+.2f",
                    event.due_date, event.description, event.signed_amount)
        return event


# ═══════════════════════════════════════════════════════════════════════════════
#  Convenience builder
# ═══════════════════════════════════════════════════════════════════════════════

def build_sample_simulator(
    sample: Optional[SampleTreasury] = None,
    start: Optional[date] = None,
    seed: Optional[int] = None,
) -> TreasurySimulator:
    """Assemble a simulator from the synthetic sample treasury."""
    sample = sample or SampleTreasury()
    start = start or date.today()

    market = MarketState(
        rates=dict(sample.rates),
        fx_rates=dict(sample.fx_rates),
        liquidity_index=sample.liquidity_index,
        as_of=start,
    )
    portfolio = TreasuryPortfolio(sample.base_currency, sample.initial_cash)
    sim = TreasurySimulator(portfolio, market, CashFlowSchedule(), rng=make_rng(seed))

    for a in sample.assets:
        sim.add_asset(a.name, a.asset_type, a.amount, a.currency,
                      a.interest_rate_pct, a.days_to_maturity, a.liquidity_rating)
    for cf in sample.cash_flows:
        sim.add_cash_flow(cf.description, cf.days_from_start, cf.amount,
                          cf.is_inflow, cf.recurring_interval_days)
    return sim
