"""
Test Suite for the Treasury Liquidity Simulator.
Covers market evolution, the Monte Carlo engine, rate / FX assessors,
stress testing, allocation and the day-by-day simulator.
"""

from dataclasses import FrozenInstanceError
from datetime import date, timedelta
from itertools import product
from pathlib import Path

import numpy as np
import pytest

from treasury_simulator.config import SimulationConfig
from treasury_simulator.engine.market_state import MarketState, make_rng
from treasury_simulator.engine.portfolio import (
    Asset,
    AssetType,
    AssetView,
    CashFlowEvent,
    CashFlowSchedule,
    PortfolioSnapshot,
    TreasuryPortfolio,
)
from treasury_simulator.engine.simulator import TreasurySimulator, build_sample_simulator
from treasury_simulator.errors import InvalidParameterError, MissingMarketDataError
from treasury_simulator.optimization import (
    AllocationOptimizer,
    CashAction,
    CurveAdjustment,
    CurveRegime,
    StrategicAlert,
    run_full_optimization,
)
from treasury_simulator.risk_modules.currency_risk import CurrencyRiskAssessor
from treasury_simulator.risk_modules.liquidity_risk import (
    MonteCarloLiquidityEngine,
    linear_interpolate,
    simulate_liquidity,
)
from treasury_simulator.risk_modules.market_risk import (
    TOTAL_IMPACT,
    InterestRateRiskAssessor,
)
from treasury_simulator.stress_testing import (
    LiquidityCrisisResult,
    ResilienceRating,
    ShockSeverity,
    StressTestOrchestrator,
    run_stress_test,
)
from treasury_simulator.utils import dict_list_to_df, format_amount, format_pct

TODAY = date(2026, 1, 1)


class ExtremeRng:
    """Random source pinned to one end of every range."""

    def __init__(self, upper: bool = True, normal: float = 0.0):
        self.upper = upper
        self.normal = normal

    def uniform(self, low=0.0, high=1.0, size=None):
        value = high if self.upper else low
        return value if size is None else np.full(size, value)

    def standard_normal(self, size=None):
        return self.normal if size is None else np.full(size, self.normal)


def cash(name, amount, currency="IDR"):
    return AssetView(name, AssetType.CASH, amount, currency, 0.0, None, 1.0)


def bond(name, amount, days, rating=0.7, as_of=TODAY):
    return AssetView(name, AssetType.BONDS, amount, "IDR", 5.25,
                     as_of + timedelta(days=days), rating)


@pytest.fixture
def market():
    return MarketState(liquidity_index=0.85, as_of=TODAY)


@pytest.fixture
def bond_portfolio():
    return PortfolioSnapshot.from_assets([
        cash("Cash Reserve", 500_000_000.0),
        bond("Government Bonds", 500_000_000.0, 365),
    ])


@pytest.fixture
def cash_portfolio():
    return PortfolioSnapshot.from_assets([cash("Cash Reserve", 1_000_000_000.0)])


# ═══════════════════════════════════════════════════════════════════════════════
#  Market State
# ═══════════════════════════════════════════════════════════════════════════════

class TestMarketState:
    def test_construction_clamps_liquidity(self):
        assert MarketState(liquidity_index=1.4).liquidity_index == 1.0
        assert MarketState(liquidity_index=0.1).liquidity_index == 0.5

    def test_construction_floors_rates(self):
        m = MarketState(rates={"1MONTH": -0.5})
        assert m.rate("1MONTH") == 0.0

    def test_unknown_tenor_quotes_zero(self, market):
        assert market.rate("30YEAR") == 0.0
        assert market.fx_rate("CHF/IDR") is None

    def test_evolve_advances_date(self, market):
        market.evolve_one_day(make_rng(1))
        assert market.as_of == TODAY + timedelta(days=1)

    def test_evolve_upper_extreme(self, market):
        before = market.copy()
        market.evolve_one_day(ExtremeRng(upper=True))
        for tenor, rate in before.rates.items():
            assert market.rate(tenor) == pytest.approx(rate + 0.15)
        for pair, price in before.fx_rates.items():
            assert market.fx_rate(pair) == pytest.approx(price * 1.01)
        assert market.liquidity_index == pytest.approx(0.90)

    def test_evolve_lower_extreme_floors_rates(self):
        m = MarketState(rates={"OVERNIGHT": 0.1}, liquidity_index=0.52)
        m.evolve_one_day(ExtremeRng(upper=False))
        assert m.rate("OVERNIGHT") == 0.0
        assert m.liquidity_index == 0.5

    def test_bounds_hold_over_many_days(self, market):
        rng = make_rng(123)
        for _ in range(1_000):
            market.evolve_one_day(rng)
            assert 0.5 <= market.liquidity_index <= 1.0
            assert all(r >= 0 for r in market.rates.values())

    def test_evolution_reproducible(self):
        a, b = MarketState(as_of=TODAY), MarketState(as_of=TODAY)
        rng_a, rng_b = make_rng(9), make_rng(9)
        for _ in range(10):
            a.evolve_one_day(rng_a)
            b.evolve_one_day(rng_b)
        assert a.rates == b.rates
        assert a.fx_rates == b.fx_rates
        assert a.liquidity_index == b.liquidity_index


# ═══════════════════════════════════════════════════════════════════════════════
#  Monte Carlo Liquidity Engine
# ═══════════════════════════════════════════════════════════════════════════════

class TestMonteCarloLiquidity:
    def test_outcome_count(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 30, 250, make_rng(1))
        assert outcome.path_count == 250
        assert outcome.horizon_days == 30

    def test_summary_ordering(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 30, 1_000, make_rng(42))
        s = outcome.summary()
        assert s["worst_case"] <= s["p5"] <= s["mean"] <= s["p95"] <= s["best_case"]
        assert np.all(np.diff(outcome.outcomes) >= 0)

    def test_percentile_indices(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 10, 1_000, make_rng(3))
        assert outcome.p5 == outcome.outcomes[50]
        assert outcome.worst_case <= outcome.p95 <= outcome.best_case

    def test_small_path_count_clamps(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 10, 5, make_rng(3))
        assert outcome.p5 == outcome.worst_case
        assert outcome.p95 == outcome.best_case

    def test_single_path(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 10, 1, make_rng(3))
        s = outcome.summary()
        assert len(set(s.values())) == 1

    def test_seeded_runs_identical(self, bond_portfolio, market):
        a = simulate_liquidity(bond_portfolio, market, 30, 500, make_rng(7))
        b = simulate_liquidity(bond_portfolio, market, 30, 500, make_rng(7))
        np.testing.assert_array_equal(a.outcomes, b.outcomes)

    def test_noise_free_drift(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 30, 10, ExtremeRng(normal=0.0))
        # revenue 1.2m − expense 1.0m + market effect 0.14m per day
        expected = 500_000_000.0 + 30 * 340_000.0
        np.testing.assert_allclose(outcome.outcomes, expected)

    def test_inputs_untouched(self, bond_portfolio, market):
        before = market.copy()
        simulate_liquidity(bond_portfolio, market, 30, 100, make_rng(1))
        assert market.liquidity_index == before.liquidity_index
        assert market.as_of == before.as_of
        assert bond_portfolio.cash_reserve == 500_000_000.0

    @pytest.mark.parametrize("horizon,paths", [(0, 100), (30, 0), (-1, 10)])
    def test_invalid_parameters(self, bond_portfolio, market, horizon, paths):
        with pytest.raises(InvalidParameterError):
            simulate_liquidity(bond_portfolio, market, horizon, paths, make_rng(1))

    def test_invalid_parameter_is_value_error(self, bond_portfolio, market):
        with pytest.raises(ValueError):
            simulate_liquidity(bond_portfolio, market, 0, 10, make_rng(1))

    def test_engine_reproducible_with_seed(self, bond_portfolio, market):
        engine = MonteCarloLiquidityEngine(path_count=200, seed=11)
        a = engine.run(bond_portfolio, market, 30)
        b = engine.run(bond_portfolio, market, 30)
        np.testing.assert_array_equal(a.outcomes, b.outcomes)

    def test_outcomes_read_only(self, bond_portfolio, market):
        outcome = simulate_liquidity(bond_portfolio, market, 5, 20, make_rng(1))
        with pytest.raises(ValueError):
            outcome.outcomes[0] = 0.0


class TestLinearInterpolate:
    def test_below_range(self):
        assert linear_interpolate(10.0, 20.0, 5.0) == 0.0

    def test_above_range(self):
        assert linear_interpolate(10.0, 20.0, 25.0) == 1.0

    def test_inside_range(self):
        assert linear_interpolate(10.0, 20.0, 12.5) == pytest.approx(0.25)

    def test_degenerate_range(self):
        assert linear_interpolate(10.0, 10.0, 10.0) == 0.0


# ═══════════════════════════════════════════════════════════════════════════════
#  Interest Rate Risk
# ═══════════════════════════════════════════════════════════════════════════════

class TestInterestRateRisk:
    def test_one_year_bond_one_point_shock(self, bond_portfolio):
        report = InterestRateRiskAssessor().assess_rate_shock(bond_portfolio, 1.0, TODAY)
        assert report["Government Bonds"] == pytest.approx(-5_000_000.0)
        assert report.total_impact == pytest.approx(-5_000_000.0)

    def test_zero_shock_zero_impact(self, bond_portfolio):
        report = InterestRateRiskAssessor().assess_rate_shock(bond_portfolio, 0.0, TODAY)
        assert report[TOTAL_IMPACT] == 0.0

    def test_linear_in_shock(self, bond_portfolio):
        assessor = InterestRateRiskAssessor()
        one = assessor.assess_rate_shock(bond_portfolio, 0.75, TODAY).total_impact
        two = assessor.assess_rate_shock(bond_portfolio, 1.5, TODAY).total_impact
        assert two == pytest.approx(2 * one)

    def test_assets_without_maturity_excluded(self, bond_portfolio):
        report = InterestRateRiskAssessor().assess_rate_shock(bond_portfolio, 1.0, TODAY)
        assert "Cash Reserve" not in report
        assert set(report.impacts) == {"Government Bonds", TOTAL_IMPACT}

    def test_matured_asset_has_zero_duration(self):
        portfolio = PortfolioSnapshot.from_assets([bond("Old Bond", 1_000.0, -30)])
        report = InterestRateRiskAssessor().assess_rate_shock(portfolio, 2.0, TODAY)
        assert report["Old Bond"] == 0.0

    def test_total_always_present(self):
        portfolio = PortfolioSnapshot.from_assets([cash("Cash", 100.0)])
        report = InterestRateRiskAssessor().assess_rate_shock(portfolio, 1.0, TODAY)
        assert report.total_impact == 0.0

    def test_report_is_immutable(self, bond_portfolio):
        report = InterestRateRiskAssessor().assess_rate_shock(bond_portfolio, 1.0, TODAY)
        with pytest.raises(TypeError):
            report.impacts["Government Bonds"] = 0.0

    def test_shock_ladder(self, bond_portfolio):
        ladder = InterestRateRiskAssessor().assess_shock_ladder(
            bond_portfolio, [1.0, 2.0, 3.0], TODAY)
        assert [r.total_impact for r in ladder.values()] == pytest.approx(
            [-5e6, -10e6, -15e6])


# ═══════════════════════════════════════════════════════════════════════════════
#  Currency Risk
# ═══════════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fx_portfolio():
    return PortfolioSnapshot.from_assets([
        cash("Cash Reserve", 900_000_000.0),
        cash("USD Cash", 50_000.0, "USD"),
    ])


class TestCurrencyRisk:
    def test_exposure_converts_foreign(self, fx_portfolio, market):
        exposure = CurrencyRiskAssessor().calculate_exposure(fx_portfolio, market)
        total = fx_portfolio.total_value
        assert exposure["USD"] == pytest.approx(50_000.0 * 15_750.0 / total)
        assert exposure["IDR"] == pytest.approx(900_000_000.0 / total)
        assert exposure.missing_pairs == ()

    def test_shock_impact(self, fx_portfolio, market):
        report = CurrencyRiskAssessor().simulate_shock(fx_portfolio, market, 10.0)
        assert report["USD Cash"] == pytest.approx(78_750_000.0)
        assert "Cash Reserve" not in report
        assert report.total_impact == pytest.approx(78_750_000.0)

    def test_negative_shock(self, fx_portfolio, market):
        report = CurrencyRiskAssessor().simulate_shock(fx_portfolio, market, -10.0)
        assert report.total_impact == pytest.approx(-78_750_000.0)

    def test_missing_pair_zero_with_diagnostic(self, market):
        portfolio = PortfolioSnapshot.from_assets([
            cash("Cash Reserve", 1_000.0), cash("CHF Cash", 10.0, "CHF"),
        ])
        fx = CurrencyRiskAssessor()
        exposure = fx.calculate_exposure(portfolio, market)
        assert exposure["CHF"] == 0.0
        assert exposure.missing_pairs == ("CHF/IDR",)
        report = fx.simulate_shock(portfolio, market, 10.0)
        assert report["CHF Cash"] == 0.0
        assert report.missing_pairs == ("CHF/IDR",)

    def test_missing_pair_strict(self, market):
        portfolio = PortfolioSnapshot.from_assets([cash("CHF Cash", 10.0, "CHF")])
        with pytest.raises(MissingMarketDataError):
            CurrencyRiskAssessor(strict=True).simulate_shock(portfolio, market, 10.0)

    def test_concentration_alerts(self, fx_portfolio, market):
        fx = CurrencyRiskAssessor()
        exposure = fx.calculate_exposure(fx_portfolio, market)
        assert fx.concentration_alerts(exposure, "IDR") == ["USD"]


# ═══════════════════════════════════════════════════════════════════════════════
#  Stress Testing
# ═══════════════════════════════════════════════════════════════════════════════

def crisis_result(ratio, shortfall):
    return LiquidityCrisisResult(
        liquidity_ratio=ratio,
        survival_days_estimate=ratio * 100,
        shortfall_probability=shortfall,
        liquid_assets=0.0,
        required_reserve=0.0,
        simulation=None,
    )


class TestStressTesting:
    @pytest.fixture
    def orchestrator(self):
        return StressTestOrchestrator(engine=MonteCarloLiquidityEngine(path_count=200, seed=5))

    def test_cash_only_fully_liquid(self, orchestrator, cash_portfolio, market):
        crisis = orchestrator.run_liquidity_crisis(cash_portfolio, market)
        assert crisis.liquidity_ratio == 1.0
        assert crisis.survival_days_estimate == pytest.approx(100.0)
        assert crisis.shortfall_probability == 0.0

    def test_crisis_discount_and_floor(self, orchestrator, market):
        portfolio = PortfolioSnapshot.from_assets([
            cash("Cash", 500.0),
            bond("Bond", 300.0, 365, rating=0.7),
            bond("Deposit", 200.0, 30, rating=0.95),
        ])
        crisis = orchestrator.run_liquidity_crisis(portfolio, market)
        # bond floored at 0.5; deposit keeps 1 − 0.05·4.25
        assert crisis.liquid_assets == pytest.approx(500.0 + 150.0 + 157.5)
        assert crisis.liquidity_ratio == pytest.approx(0.8075)

    def test_no_cash_means_certain_shortfall(self, orchestrator, market):
        portfolio = PortfolioSnapshot.from_assets([bond("Bond", 1_000_000_000.0, 365)])
        crisis = orchestrator.run_liquidity_crisis(portfolio, market)
        assert crisis.shortfall_probability == 1.0

    def test_zero_value_portfolio_rejected(self, orchestrator, market):
        with pytest.raises(InvalidParameterError):
            orchestrator.run_liquidity_crisis(PortfolioSnapshot.from_assets([]), market)

    def test_resilience_strong(self):
        score = StressTestOrchestrator.compute_resilience_score(crisis_result(1.0, 0.0), 0.0)
        assert score.score == pytest.approx(10.0)
        assert score.rating is ResilienceRating.STRONG

    def test_resilience_moderate(self):
        score = StressTestOrchestrator.compute_resilience_score(crisis_result(0.5, 0.2), 5.0)
        assert score.score == pytest.approx(5.3)
        assert score.rating is ResilienceRating.MODERATE

    def test_resilience_vulnerable(self):
        score = StressTestOrchestrator.compute_resilience_score(crisis_result(0.2, 0.5), -20.0)
        assert score.shortfall_score == 0.0
        assert score.currency_score == 0.0
        assert score.score == pytest.approx(1.0)
        assert score.rating is ResilienceRating.VULNERABLE

    @pytest.mark.parametrize("ratio,shortfall,fx", list(product(
        [-0.5, 0.0, 0.4, 1.0, 3.0], [0.0, 0.3, 1.0], [-50.0, 0.0, 7.5, 200.0])))
    def test_resilience_bounded(self, ratio, shortfall, fx):
        score = StressTestOrchestrator.compute_resilience_score(
            crisis_result(ratio, shortfall), fx)
        assert 0.0 <= score.score <= 10.0

    def test_rate_shock_severity(self, orchestrator):
        portfolio = PortfolioSnapshot.from_assets([bond("Long Bond", 1_000_000.0, 3650)])
        assert orchestrator.run_rate_shock(portfolio, 2.0, TODAY).severity is ShockSeverity.SEVERE
        short = PortfolioSnapshot.from_assets([bond("Note", 1_000_000.0, 730)])
        assert orchestrator.run_rate_shock(short, 1.0, TODAY).severity is ShockSeverity.LOW
        assert orchestrator.run_rate_shock(short, 3.0, TODAY).severity is ShockSeverity.MODERATE

    def test_full_stress_test(self, orchestrator, bond_portfolio, market):
        report = orchestrator.run_full_stress_test(bond_portfolio, market)
        assert report.as_of == TODAY
        assert [r.shock_pp for r in report.rate_shocks] == [1.0, 2.0, 3.0]
        assert report.currency_shock.report.total_impact == 0.0
        assert 0.0 <= report.resilience.score <= 10.0
        assert report.warnings == []

    def test_full_stress_test_flags_missing_fx(self, orchestrator, market):
        portfolio = PortfolioSnapshot.from_assets([
            cash("Cash", 1_000_000.0), cash("CHF Cash", 10.0, "CHF"),
        ])
        report = orchestrator.run_full_stress_test(portfolio, market)
        assert len(report.warnings) == 1
        assert "CHF/IDR" in report.warnings[0]

    def test_run_stress_test_convenience(self, bond_portfolio, market):
        report = run_stress_test(bond_portfolio, market, path_count=100, seed=1)
        assert report.liquidity_crisis.simulation.path_count == 100

    def test_empty_shock_ladder_runs_no_rate_shocks(self, orchestrator, bond_portfolio, market):
        report = orchestrator.run_full_stress_test(bond_portfolio, market, rate_shocks_pp=[])
        assert report.rate_shocks == []

    def test_custom_shock_ladder(self, orchestrator, bond_portfolio, market):
        report = orchestrator.run_full_stress_test(bond_portfolio, market,
                                                   rate_shocks_pp=[0.5])
        assert [r.shock_pp for r in report.rate_shocks] == [0.5]


# ═══════════════════════════════════════════════════════════════════════════════
#  Allocation Optimisation
# ═══════════════════════════════════════════════════════════════════════════════

INVERTED_RATES = {"OVERNIGHT": 5.2, "1MONTH": 5.0, "3MONTH": 4.8, "6MONTH": 4.6, "1YEAR": 4.5}
STEEP_RATES = {"OVERNIGHT": 3.8, "1MONTH": 4.0, "3MONTH": 4.5, "6MONTH": 5.0, "1YEAR": 6.0}
FLAT_RATES = {"OVERNIGHT": 4.0, "1MONTH": 4.0, "3MONTH": 4.0, "6MONTH": 4.0, "1YEAR": 4.0}


class TestAllocation:
    @pytest.mark.parametrize("tolerance,rates,liquidity", list(product(
        [0.0, 0.25, 0.5, 0.75, 1.0],
        [None, INVERTED_RATES, STEEP_RATES, FLAT_RATES],
        [0.5, 0.85, 1.0],
    )))
    def test_weights_sum_to_one(self, bond_portfolio, tolerance, rates, liquidity):
        m = MarketState(liquidity_index=liquidity) if rates is None else \
            MarketState(rates=dict(rates), liquidity_index=liquidity)
        plan = AllocationOptimizer().generate_allocation(bond_portfolio, m, tolerance)
        assert sum(plan.weights.values()) == pytest.approx(1.0, abs=1e-9)
        assert all(w >= 0 for w in plan.weights.values())

    def test_five_classes_and_amounts(self, bond_portfolio, market):
        plan = AllocationOptimizer().generate_allocation(bond_portfolio, market, 0.5)
        assert list(plan.entries) == ["CASH", "SHORT_TERM_BONDS", "MEDIUM_TERM_BONDS",
                                      "LONG_TERM_BONDS", "ALTERNATIVES"]
        for entry in plan.entries.values():
            assert entry.amount == pytest.approx(entry.weight * bond_portfolio.total_value)

    def test_normal_curve_weights(self, bond_portfolio, market):
        plan = AllocationOptimizer().generate_allocation(bond_portfolio, market, 0.5)
        assert plan.adjustment is CurveAdjustment.NONE
        # raw: cash 0.15 (floored), 0.225, 0.225, 0.175, 0.175 -> sum 0.95
        assert plan["CASH"].weight == pytest.approx(0.15 / 0.95)
        assert plan["LONG_TERM_BONDS"].weight == pytest.approx(0.175 / 0.95)

    def test_inverted_curve_raises_cash(self, bond_portfolio, market):
        inverted = MarketState(rates=dict(INVERTED_RATES), liquidity_index=0.85)
        optimizer = AllocationOptimizer()
        base = optimizer.generate_allocation(bond_portfolio, market, 0.5)
        plan = optimizer.generate_allocation(bond_portfolio, inverted, 0.5)
        assert plan.adjustment is CurveAdjustment.INVERTED
        assert plan["CASH"].weight > base["CASH"].weight
        assert plan["LONG_TERM_BONDS"].weight < base["LONG_TERM_BONDS"].weight

    def test_steep_curve_extends_duration(self, bond_portfolio, market):
        steep = MarketState(rates=dict(STEEP_RATES), liquidity_index=0.85)
        optimizer = AllocationOptimizer()
        base = optimizer.generate_allocation(bond_portfolio, market, 0.5)
        plan = optimizer.generate_allocation(bond_portfolio, steep, 0.5)
        assert plan.adjustment is CurveAdjustment.STEEP
        assert plan["LONG_TERM_BONDS"].weight > base["LONG_TERM_BONDS"].weight

    @pytest.mark.parametrize("tolerance", [-0.1, 1.5])
    def test_invalid_tolerance(self, bond_portfolio, market, tolerance):
        with pytest.raises(InvalidParameterError):
            AllocationOptimizer().generate_allocation(bond_portfolio, market, tolerance)

    @pytest.mark.parametrize("cash_amount,action,amount", [
        (100_000_000.0, CashAction.INCREASE_CASH, 72_500_000.0),
        (500_000_000.0, CashAction.DECREASE_CASH, 155_000_000.0),
        (200_000_000.0, CashAction.MAINTAIN, 0.0),
    ])
    def test_cash_band(self, market, cash_amount, action, amount):
        portfolio = PortfolioSnapshot.from_assets([
            cash("Cash", cash_amount),
            bond("Bond", 1_000_000_000.0 - cash_amount, 365),
        ])
        rec = AllocationOptimizer.recommend_cash_action(portfolio, market)
        assert rec.min_cash == pytest.approx(172_500_000.0)
        assert rec.max_cash == pytest.approx(345_000_000.0)
        assert rec.action is action
        assert rec.amount == pytest.approx(amount)

    def test_compare_to_plan(self, bond_portfolio, market):
        optimizer = AllocationOptimizer()
        plan = optimizer.generate_allocation(bond_portfolio, market, 0.5)
        cmp = optimizer.compare_to_plan(bond_portfolio, plan)
        assert cmp.action is CashAction.DECREASE_CASH
        assert cmp.amount == pytest.approx(500_000_000.0 - plan["CASH"].amount)
        loose = optimizer.compare_to_plan(bond_portfolio, plan, tolerance=1e12)
        assert loose.action is CashAction.MAINTAIN

    def test_yield_curve_regimes(self, market):
        analyse = AllocationOptimizer.analyse_yield_curve
        normal = analyse(market)
        assert normal.regime is CurveRegime.NORMAL
        assert normal.best_tenor == "OVERNIGHT"
        assert analyse(MarketState(rates=dict(INVERTED_RATES))).regime is CurveRegime.INVERTED
        steep = analyse(MarketState(rates=dict(STEEP_RATES)))
        assert steep.regime is CurveRegime.STEEP
        assert steep.best_tenor == "1YEAR"

    def test_run_full_optimization(self, bond_portfolio, market):
        plan, rec, cmp = run_full_optimization(bond_portfolio, market, 0.3)
        assert plan.risk_tolerance == 0.3
        assert rec.current_cash == cmp.current_cash == 500_000_000.0

    def test_no_strategic_alerts_in_calm_market(self, market):
        assert AllocationOptimizer.strategic_alerts(market) == []

    def test_low_liquidity_alert(self):
        alerts = AllocationOptimizer.strategic_alerts(MarketState(liquidity_index=0.55))
        assert alerts == [StrategicAlert.LOW_LIQUIDITY]
        assert "defensive" in alerts[0].message

    def test_curve_alerts(self):
        alerts = AllocationOptimizer.strategic_alerts
        assert alerts(MarketState(rates=dict(INVERTED_RATES))) == [StrategicAlert.INVERTED_CURVE]
        assert alerts(MarketState(rates=dict(STEEP_RATES))) == [StrategicAlert.STEEP_CURVE]

    def test_moderately_steep_curve_has_no_alert(self):
        m = MarketState(rates={"OVERNIGHT": 4.0, "1YEAR": 5.2})
        assert AllocationOptimizer.analyse_yield_curve(m).regime is CurveRegime.STEEP
        assert AllocationOptimizer.strategic_alerts(m) == []


# ═══════════════════════════════════════════════════════════════════════════════
#  Portfolio & Day-by-Day Simulator
# ═══════════════════════════════════════════════════════════════════════════════

class TestPortfolio:
    def test_asset_type_parse(self):
        assert AssetType.parse("bonds") is AssetType.BONDS
        assert AssetType.parse("crypto") is AssetType.OTHER

    def test_total_and_cash_reserve(self):
        p = TreasuryPortfolio("IDR", 1_000.0)
        p.add_asset(Asset("USD Cash", AssetType.CASH, 10.0, "USD"))
        p.add_asset(Asset("Bond", AssetType.BONDS, 500.0, "IDR", 5.0, TODAY, 0.7))
        assert p.total_value == 1_510.0
        assert p.cash_reserve == 1_000.0
        assert p.liquidity_ratio() == pytest.approx(1_010.0 / 1_510.0)

    def test_snapshot_is_frozen(self):
        snap = TreasuryPortfolio("IDR", 1_000.0).snapshot()
        with pytest.raises(FrozenInstanceError):
            snap.total_value = 0.0

    def test_recurrence(self):
        event = CashFlowEvent("Rent", TODAY, 10.0, False, 30)
        nxt = event.next_recurrence()
        assert nxt.due_date == TODAY + timedelta(days=30)
        assert CashFlowEvent("Tax", TODAY, 10.0, False).next_recurrence() is None


class TestSimulator:
    @pytest.fixture
    def sim(self):
        return build_sample_simulator(start=TODAY, seed=3)

    def test_sample_total(self, sim):
        assert sim.portfolio.total_value == pytest.approx(
            1_000_000_000.0 + 500_000_000.0 + 250_000_000.0 + 50_000.0)

    def test_advance_one_day(self, sim):
        bond_before = sim.portfolio.assets[1].amount
        report = sim.advance_one_day()
        assert report.date == TODAY + timedelta(days=1)
        assert sim.market.as_of == report.date
        assert sim.portfolio.assets[1].amount == pytest.approx(
            bond_before * (1 + 5.25 / 100 / 365))
        assert report.interest_accrued > 0

    def test_tax_payment_lands_on_day_20(self, sim):
        reports = sim.run(20)
        assert [e.description for e in reports[-1].applied_events] == ["Quarterly Tax Payment"]
        assert sim.portfolio.cash_reserve == pytest.approx(880_000_000.0)

    def test_recurring_revenue_requeued(self, sim):
        reports = sim.run(30)
        assert "Monthly Revenue Collection" in [e.description for e in reports[-1].applied_events]
        assert "Money Market Deposit" in reports[-1].maturing_assets
        pending = [e for e in sim.schedule.events if e.description == "Monthly Revenue Collection"]
        assert [e.due_date for e in pending] == [TODAY + timedelta(days=60)]

    def test_event_without_cash_account_stays_pending(self):
        portfolio = TreasuryPortfolio("IDR", 0.0)
        portfolio.assets = []
        schedule = CashFlowSchedule([CashFlowEvent("Fee", TODAY + timedelta(days=1), 5.0, False)])
        sim = TreasurySimulator(portfolio, MarketState(as_of=TODAY), schedule, make_rng(1))
        report = sim.advance_one_day()
        assert report.applied_events == []
        assert len(report.unapplied_events) == 1
        assert len(sim.schedule.events) == 1

    def test_market_bounds_during_run(self, sim):
        for _ in range(200):
            sim.advance_one_day()
            assert 0.5 <= sim.market.liquidity_index <= 1.0

    def test_added_asset_and_event_flow_through_day(self, sim):
        asset = sim.add_asset("Term Deposit", "mm_deposit", 100_000_000.0, "idr",
                              3.65, 1, 0.9)
        event = sim.add_cash_flow("Supplier Payment", 1, 50_000_000.0, False)
        assert asset.asset_type is AssetType.MM_DEPOSIT
        assert asset.currency == "IDR"
        assert event.due_date == TODAY + timedelta(days=1)

        report = sim.advance_one_day()
        assert asset.amount == pytest.approx(100_010_000.0)
        assert "Term Deposit" in report.maturing_assets
        assert [e.description for e in report.applied_events] == ["Supplier Payment"]
        assert sim.portfolio.cash_reserve == pytest.approx(950_000_000.0)

    def test_added_recurring_event_requeued(self, sim):
        sim.add_cash_flow("Payroll", 2, 10_000_000.0, False, recurring_interval_days=7)
        sim.run(2)
        pending = [e for e in sim.schedule.events if e.description == "Payroll"]
        assert [e.due_date for e in pending] == [TODAY + timedelta(days=9)]

    def test_added_cash_or_equity_without_maturity(self, sim):
        asset = sim.add_asset("Shares", "EQUITY", 1_000.0, "IDR")
        assert asset.maturity_date is None
        assert sim.portfolio.total_value == pytest.approx(1_750_051_000.0)

    @pytest.mark.parametrize("kwargs", [
        {"amount": -1.0},
        {"liquidity_rating": 1.2},
        {"days_to_maturity": -5},
    ])
    def test_add_asset_rejects_bad_input(self, sim, kwargs):
        args = {"name": "Bad", "asset_type": "BONDS", "amount": 1.0, "currency": "IDR"}
        args.update(kwargs)
        with pytest.raises(InvalidParameterError):
            sim.add_asset(**args)

    @pytest.mark.parametrize("days,amount,every", [(0, 1.0, 0), (3, -1.0, 0), (3, 1.0, -7)])
    def test_add_cash_flow_rejects_bad_input(self, sim, days, amount, every):
        with pytest.raises(InvalidParameterError):
            sim.add_cash_flow("Bad", days, amount, True, every)


# ═══════════════════════════════════════════════════════════════════════════════
#  Configuration, Utilities & CLI
# ═══════════════════════════════════════════════════════════════════════════════

class TestConfigAndUtils:
    @pytest.mark.parametrize("kwargs", [
        {"path_count": 0}, {"horizon_days": 0}, {"risk_tolerance": 1.2},
    ])
    def test_simulation_config_validation(self, kwargs):
        with pytest.raises(InvalidParameterError):
            SimulationConfig(**kwargs)

    def test_formatting(self):
        assert format_pct(0.1234, 1) == "12.3%"
        assert format_amount(1234.5, "IDR") == "IDR 1,234.50"

    def test_dict_list_to_df(self):
        df = dict_list_to_df([{"a": 1}, {"a": 2}])
        assert len(df) == 2

    def test_cli_summary(self, capsys):
        from treasury_simulator.__main__ import main
        main(["--paths", "50", "--seed", "1", "--days", "2", "--log-level", "WARNING"])
        out = capsys.readouterr().out
        assert "STRESS TEST" in out
        assert "TARGET ALLOCATION" in out
        assert "CASH POSITION ADJUSTMENT" in out


# ═══════════════════════════════════════════════════════════════════════════════
#  Dashboard
# ═══════════════════════════════════════════════════════════════════════════════

APP_PATH = Path(__file__).resolve().parents[1] / "dashboard" / "app.py"


class TestDashboard:
    @pytest.fixture
    def app(self):
        testing = pytest.importorskip("streamlit.testing.v1")
        at = testing.AppTest.from_file(str(APP_PATH), default_timeout=60)
        at.run()
        assert not at.exception
        return at

    @staticmethod
    def metric_labels(at):
        return [m.label for m in at.metric]

    def test_stress_report_shown_after_run(self, app):
        app.button(key="run_stress").click().run()
        assert "Crisis Liquidity Ratio" in self.metric_labels(app)

    def test_stress_report_dropped_after_next_day(self, app):
        app.button(key="run_stress").click().run()
        app.button(key="next_day").click().run()
        assert not app.exception
        assert "Crisis Liquidity Ratio" not in self.metric_labels(app)

    def test_stress_report_dropped_after_reset(self, app):
        app.button(key="run_stress").click().run()
        app.button(key="reset_treasury").click().run()
        assert "Crisis Liquidity Ratio" not in self.metric_labels(app)

    def test_stress_report_dropped_when_path_count_changes(self, app):
        app.button(key="run_stress").click().run()
        paths = next(s for s in app.slider if s.label == "Monte Carlo Paths")
        paths.set_value(200).run()
        assert "Crisis Liquidity Ratio" not in self.metric_labels(app)


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
