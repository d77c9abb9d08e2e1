"""
Market Risk — Interest Rate Shock
=================================
Implements:
  - Duration-based mark-to-market impact of a parallel rate shock
  - Impact as a share of portfolio value

Duration is simplified to years-to-maturity:
    duration = max(0, days_to_maturity / 365)
    impact   = −amount · duration · Δr / 100

Assets without a maturity date are not rate-sensitive and are left out
of the report entirely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from treasury_simulator.engine.portfolio import PortfolioSnapshot

TOTAL_IMPACT = "TOTAL_IMPACT"


@dataclass(frozen=True)
class RiskImpactReport:
    """Signed monetary impact per asset name plus ``TOTAL_IMPACT``."""
    impacts: Mapping[str, float]
    missing_pairs: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def build(cls, per_asset: List[Tuple[str, float]],
              missing_pairs: Tuple[str, ...] = ()) -> "RiskImpactReport":
        """Aggregate ``(name, impact)`` pairs; repeated names are summed."""
        impacts: Dict[str, float] = {}
        total = 0.0
        for name, impact in per_asset:
            impacts[name] = impacts.get(name, 0.0) + impact
            total += impact
        impacts[TOTAL_IMPACT] = total
        return cls(impacts=MappingProxyType(impacts), missing_pairs=tuple(missing_pairs))

    @property
    def total_impact(self) -> float:
        return self.impacts[TOTAL_IMPACT]

    def impact_percent(self, portfolio: PortfolioSnapshot) -> float:
        """Total impact as a percentage of the portfolio value."""
        if portfolio.total_value == 0:
            return 0.0
        return self.total_impact / portfolio.total_value * 100

    def __getitem__(self, key: str) -> float:
        return self.impacts[key]

    def __contains__(self, key: object) -> bool:
        return key in self.impacts


class InterestRateRiskAssessor:
    """Deterministic rate-shock assessment on a portfolio snapshot."""

    def assess_rate_shock(
        self,
        portfolio: PortfolioSnapshot,
        rate_change_pp: float,
        as_of: date,
    ) -> RiskImpactReport:
        """
        Mark-to-market impact of a parallel shift of ``rate_change_pp``
        percentage points, valued on ``as_of``. Already-matured assets
        carry zero duration.
        """
        per_asset = []
        for asset in portfolio.assets:
            if asset.maturity_date is None:
                continue
            days_to_maturity = (asset.maturity_date - as_of).days
            duration = max(0.0, days_to_maturity / 365.0)
            per_asset.append((asset.name, -asset.amount * duration * (rate_change_pp / 100)))
        return RiskImpactReport.build(per_asset)

    def assess_shock_ladder(
        self,
        portfolio: PortfolioSnapshot,
        shocks_pp: List[float],
        as_of: date,
    ) -> Dict[float, RiskImpactReport]:
        """Run ``assess_rate_shock`` for each shock size."""
        return {shock: self.assess_rate_shock(portfolio, shock, as_of)
                for shock in shocks_pp}
