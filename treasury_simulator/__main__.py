"""
Main entry point — run every risk module against the sample treasury.
Usage: python -m treasury_simulator [--paths N] [--horizon D] [--seed S]
                                    [--risk-tolerance T] [--days D]
"""

import argparse
import logging

from treasury_simulator.config import SimulationConfig, UserRole
from treasury_simulator.engine.simulator import build_sample_simulator
from treasury_simulator.optimization import (
    AllocationOptimizer,
    CashAction,
    run_full_optimization,
)
from treasury_simulator.risk_modules.currency_risk import CurrencyRiskAssessor
from treasury_simulator.risk_modules.liquidity_risk import MonteCarloLiquidityEngine
from treasury_simulator.stress_testing import StressTestOrchestrator
from treasury_simulator.utils import (
    configure_logging,
    dict_list_to_df,
    format_amount,
    format_pct,
)

logger = logging.getLogger("treasury_simulator.cli")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="treasury_simulator",
                                     description="Treasury liquidity risk summary")
    parser.add_argument("--paths", type=int, default=1_000, help="Monte Carlo paths")
    parser.add_argument("--horizon", type=int, default=30, help="forecast horizon (days)")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    parser.add_argument("--risk-tolerance", type=float, default=0.5,
                        help="0 = risk-averse, 1 = risk-seeking")
    parser.add_argument("--days", type=int, default=0,
                        help="simulated days to advance before the analysis")
    parser.add_argument("--role", choices=[r.name for r in UserRole],
                        default=UserRole.TREASURY_ANALYST.name)
    parser.add_argument("--log-level", default=None)
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.log_level)
    cfg = SimulationConfig(
        path_count=args.paths,
        horizon_days=args.horizon,
        seed=args.seed,
        risk_tolerance=args.risk_tolerance,
    )
    role = UserRole[args.role]

    sim = build_sample_simulator(seed=cfg.seed)
    for report in sim.run(args.days):
        for event in report.applied_events:
            print(f"  {report.date}: {event.description} {event.signed_amount:+,.2f}")
        for name in report.maturing_assets:
            print(f"  {report.date}: {name} matures")

    portfolio = sim.portfolio.snapshot()
    market = sim.market
    ccy = portfolio.base_currency

    print("=" * 72)
    print("  TREASURY LIQUIDITY SIMULATOR")
    print(f"  {role.value} session — as of {market.as_of}")
    print("=" * 72)

    # ── Portfolio ────────────────────────────────────────────────────────
    print(f"\n{'─' * 40}")
    print("PORTFOLIO")
    print(f"{'─' * 40}")
    print(f"  Total Value:      {format_amount(portfolio.total_value, ccy)}")
    print(f"  Cash Reserve:     {format_amount(portfolio.cash_reserve, ccy)}")
    print(f"  Liquid Share:     {format_pct(portfolio.liquid_share, 1)}")

    # ── Market ───────────────────────────────────────────────────────────
    print(f"\n{'─' * 40}")
    print("MARKET DATA")
    print(f"{'─' * 40}")
    for tenor, rate in market.rates.items():
        print(f"  {tenor:10s}: {rate:6.2f}%")
    for pair, price in market.fx_rates.items():
        print(f"  {pair:10s}: {price:,.2f}")
    print(f"  Liquidity index: {format_pct(market.liquidity_index, 1)}")

    # ── Monte Carlo liquidity ────────────────────────────────────────────
    print(f"\n{'─' * 40}")
    print(f"CASH AFTER {cfg.horizon_days} DAYS ({cfg.path_count:,} paths)")
    print(f"{'─' * 40}")
    engine = MonteCarloLiquidityEngine(path_count=cfg.path_count, seed=cfg.seed)
    outcome = engine.run(portfolio, market, cfg.horizon_days)
    for label, value in outcome.summary().items():
        print(f"  {label:12s}: {format_amount(value, ccy)}")

    # ── Currency ─────────────────────────────────────────────────────────
    print(f"\n{'─' * 40}")
    print("CURRENCY EXPOSURE")
    print(f"{'─' * 40}")
    fx = CurrencyRiskAssessor()
    exposure = fx.calculate_exposure(portfolio, market)
    for currency, share in exposure.shares.items():
        print(f"  {currency:5s}: {format_pct(share, 1)}")
    for currency in fx.concentration_alerts(exposure, ccy):
        print(f"  High {currency} exposure — consider hedging")

    # ── Stress test ──────────────────────────────────────────────────────
    print(f"\n{'─' * 40}")
    print("STRESS TEST")
    print(f"{'─' * 40}")
    stress = StressTestOrchestrator(engine=engine).run_full_stress_test(portfolio, market)
    crisis = stress.liquidity_crisis
    print(f"  Crisis liquidity ratio:  {format_pct(crisis.liquidity_ratio, 1)}")
    print(f"  Survival estimate:       {crisis.survival_days_estimate:.0f} days")
    print(f"  Shortfall probability:   {format_pct(crisis.shortfall_probability, 1)}")
    for shock in stress.rate_shocks:
        print(f"  Rates +{shock.shock_pp:.0f}pp: {format_amount(shock.report.total_impact, ccy)}"
              f" ({shock.impact_percent:+.2f}%, {shock.severity.value})")
    print(f"  FX {stress.currency_shock.shock_pct:+.0f}%: "
          f"{format_amount(stress.currency_shock.report.total_impact, ccy)}")
    print(f"  Resilience: {stress.resilience.score:.1f}/10 ({stress.resilience.rating.value})")
    for warning in stress.warnings:
        print(f"  ! {warning}")

    # ── Allocation ───────────────────────────────────────────────────────
    print(f"\n{'─' * 40}")
    print(f"TARGET ALLOCATION (risk tolerance {cfg.risk_tolerance:.2f})")
    print(f"{'─' * 40}")
    plan, cash_rec, adjustment = run_full_optimization(portfolio, market, cfg.risk_tolerance)
    table = dict_list_to_df([
        {"Class": k, "Weight": format_pct(e.weight, 1), "Amount": format_amount(e.amount, ccy)}
        for k, e in plan.entries.items()
    ])
    print(table.to_string(index=False))
    print(f"\n  Cash band: {format_amount(cash_rec.min_cash, ccy)} – "
          f"{format_amount(cash_rec.max_cash, ccy)}")
    print(f"  Action:    {cash_rec.action.value} {format_amount(cash_rec.amount, ccy)}")
    curve = AllocationOptimizer.analyse_yield_curve(market)
    print(f"  Curve:     {curve.regime.value}, best tenor {curve.best_tenor}")

    print(f"\n{'─' * 40}")
    print("CASH POSITION ADJUSTMENT")
    print(f"{'─' * 40}")
    print(f"  Current cash: {format_amount(adjustment.current_cash, ccy)}")
    print(f"  Plan cash:    {format_amount(adjustment.target_cash, ccy)}")
    if adjustment.action is CashAction.MAINTAIN:
        print("  Current cash position is within tolerance of the plan")
    else:
        print(f"  {adjustment.action.value} by {format_amount(adjustment.amount, ccy)}")
    for alert in AllocationOptimizer.strategic_alerts(market):
        print(f"  ! {alert.message}")

    print(f"\n{'=' * 72}")
    print("  Run 'streamlit run treasury_simulator/dashboard/app.py' for the dashboard")
    print(f"{'=' * 72}")
    logger.debug("Summary finished")


if __name__ == "__main__":
    main()
