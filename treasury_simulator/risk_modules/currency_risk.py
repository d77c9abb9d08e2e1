"""
Currency Risk
=============
Implements:
  - Exposure by currency as a share of total portfolio value
  - Base-currency impact of a uniform FX shock on foreign holdings
  - Concentration alerts for large foreign-currency exposures

Foreign amounts are converted with the ``"<CCY>/<BASE>"`` quote. When a
pair is not quoted the holding contributes zero, the pair is reported in
``missing_pairs`` and a warning is logged; ``strict=True`` raises
``MissingMarketDataError`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from treasury_simulator.config import CURRENCY_CONCENTRATION_LIMIT
from treasury_simulator.engine.market_state import MarketState
from treasury_simulator.engine.portfolio import PortfolioSnapshot
from treasury_simulator.errors import MissingMarketDataError
from treasury_simulator.risk_modules.market_risk import RiskImpactReport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyExposure:
    """Share of total value per currency, with any unquoted pairs."""
    shares: Mapping[str, float]
    missing_pairs: Tuple[str, ...] = ()

    def __getitem__(self, currency: str) -> float:
        return self.shares[currency]


class CurrencyRiskAssessor:
    """FX exposure and shock analysis on a portfolio snapshot."""

    def __init__(self, strict: bool = False):
        self.strict = strict

    def _rate_for(self, currency: str, base: str, market: MarketState,
                  missing: List[str]) -> Optional[float]:
        pair = f"{currency}/{base}"
        rate = market.fx_rate(pair)
        if rate is None:
            if self.strict:
                raise MissingMarketDataError(pair)
            if pair not in missing:
                logger.warning("No FX quote for %s; treating exposure as zero", pair)
                missing.append(pair)
        return rate

    def calculate_exposure(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
    ) -> CurrencyExposure:
        """Currency -> base-currency value / total value."""
        base = portfolio.base_currency
        missing: List[str] = []
        values: Dict[str, float] = {}
        for asset in portfolio.assets:
            amount = asset.amount
            if asset.currency != base:
                rate = self._rate_for(asset.currency, base, market, missing)
                amount = amount * rate if rate is not None else 0.0
            values[asset.currency] = values.get(asset.currency, 0.0) + amount

        total = portfolio.total_value
        shares = {ccy: (v / total if total else 0.0) for ccy, v in values.items()}
        return CurrencyExposure(shares=MappingProxyType(shares),
                                missing_pairs=tuple(missing))

    def simulate_shock(
        self,
        portfolio: PortfolioSnapshot,
        market: MarketState,
        shock_pct: float,
    ) -> RiskImpactReport:
        """Base-currency impact of moving every foreign quote by ``shock_pct`` %."""
        base = portfolio.base_currency
        missing: List[str] = []
        per_asset = []
        for asset in portfolio.assets:
            if asset.currency == base:
                continue
            rate = self._rate_for(asset.currency, base, market, missing)
            value_in_base = asset.amount * rate if rate is not None else 0.0
            per_asset.append((asset.name, value_in_base * (shock_pct / 100)))
        return RiskImpactReport.build(per_asset, tuple(missing))

    @staticmethod
    def concentration_alerts(
        exposure: CurrencyExposure,
        base_currency: str,
        limit: float = CURRENCY_CONCENTRATION_LIMIT,
    ) -> List[str]:
        """Foreign currencies whose share of value exceeds ``limit``."""
        return [ccy for ccy, share in exposure.shares.items()
                if ccy != base_currency and share > limit]
