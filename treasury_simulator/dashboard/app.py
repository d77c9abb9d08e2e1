"""
Streamlit Treasury Dashboard
============================
Interactive view of:
  1. Portfolio & market data (with day-by-day simulation)
  2. Monte Carlo cash distribution
  3. Interest-rate & currency risk
  4. Stress test & resilience score
  5. Target allocation & cash recommendation

Launch: streamlit run treasury_simulator/dashboard/app.py
"""

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from treasury_simulator.config import (
    REQUIRED_RESERVE_SHARE,
    RESILIENCE_MODERATE,
    RESILIENCE_STRONG,
    STANDARD_RATE_SHOCKS_PP,
    TENORS,
)
from treasury_simulator.engine.portfolio import AssetType
from treasury_simulator.engine.simulator import build_sample_simulator
from treasury_simulator.errors import InvalidParameterError
from treasury_simulator.optimization import AllocationOptimizer, CashAction
from treasury_simulator.risk_modules.currency_risk import CurrencyRiskAssessor
from treasury_simulator.risk_modules.liquidity_risk import MonteCarloLiquidityEngine
from treasury_simulator.risk_modules.market_risk import InterestRateRiskAssessor
from treasury_simulator.stress_testing import StressTestOrchestrator
from treasury_simulator.utils import configure_logging, format_amount, traffic_light

configure_logging()


# ══════════════════════════════════════════════════════════════════════════════
#  Page Configuration
# ══════════════════════════════════════════════════════════════════════════════

st.set_page_config(
    page_title="Treasury Liquidity Simulator",
    page_icon="💧",
    layout="wide",
    initial_sidebar_state="expanded",
)


# ══════════════════════════════════════════════════════════════════════════════
#  Sidebar Controls
# ══════════════════════════════════════════════════════════════════════════════

st.sidebar.title("💧 Treasury Simulator")
st.sidebar.markdown("---")

mc_paths = st.sidebar.slider("Monte Carlo Paths", 100, 5000, 1000, step=100)
horizon = st.sidebar.slider("Forecast Horizon (days)", 1, 180, 30)
risk_tolerance = st.sidebar.slider("Risk Tolerance", 0.0, 1.0, 0.5, step=0.05)
seed = st.sidebar.number_input("Random Seed", value=42, step=1)

reset = st.sidebar.button("Reset Treasury", key="reset_treasury")
if reset or "simulator" not in st.session_state:
    st.session_state["simulator"] = build_sample_simulator(seed=int(seed))
    st.session_state.pop("stress", None)
sim = st.session_state["simulator"]

if st.sidebar.button("⏭ Simulate Next Day", key="next_day"):
    st.session_state.pop("stress", None)
    day = sim.advance_one_day()
    for event in day.applied_events:
        st.sidebar.success(f"{day.date}: {event.description} {event.signed_amount:+,.0f}")
    for name in day.maturing_assets:
        st.sidebar.info(f"{day.date}: {name} matures")
    for event in day.unapplied_events:
        st.sidebar.warning(f"{day.date}: {event.description} not applied (no cash account)")

with st.sidebar.expander("➕ Add Asset"):
    with st.form("add_asset", clear_on_submit=True):
        a_name = st.text_input("Asset Name")
        a_type = st.selectbox("Asset Type", [t.value for t in AssetType])
        a_amount = st.number_input("Amount", min_value=0.0, value=0.0, step=1_000_000.0)
        a_ccy = st.text_input("Currency", value=sim.portfolio.base_currency)
        a_rate = st.number_input("Interest Rate (%)", min_value=0.0, value=0.0, step=0.05)
        a_days = st.number_input("Maturity (days from now, 0 = none)", min_value=0, value=0)
        a_rating = st.slider("Liquidity Rating", 0.0, 1.0, 0.8, step=0.05)
        if st.form_submit_button("Add Asset"):
            try:
                asset = sim.add_asset(
                    a_name or "Unnamed Asset", a_type, a_amount, a_ccy, a_rate,
                    int(a_days) if a_days > 0 and a_type not in ("CASH", "EQUITY") else None,
                    a_rating,
                )
                st.success(f"Added {asset.name}")
            except InvalidParameterError as exc:
                st.error(str(exc))

with st.sidebar.expander("➕ Add Cash Flow Event"):
    with st.form("add_cash_flow", clear_on_submit=True):
        e_desc = st.text_input("Description")
        e_days = st.number_input("Days from now", min_value=1, value=1)
        e_amount = st.number_input("Amount", min_value=0.0, value=0.0, step=1_000_000.0,
                                   key="cf_amount")
        e_inflow = st.checkbox("Inflow", value=True)
        e_every = st.number_input("Repeat every (days, 0 = once)", min_value=0, value=0)
        if st.form_submit_button("Add Event"):
            try:
                event = sim.add_cash_flow(e_desc or "Cash Flow", int(e_days), e_amount,
                                          e_inflow, int(e_every))
                st.success(f"Scheduled {event.description} on {event.due_date}")
            except InvalidParameterError as exc:
                st.error(str(exc))

portfolio = sim.portfolio.snapshot()
market = sim.market
ccy = portfolio.base_currency
engine = MonteCarloLiquidityEngine(path_count=mc_paths, seed=int(seed))
# a stored stress report is only shown for the state it was computed on
stress_key = (id(sim), market.as_of, portfolio.total_value, len(portfolio.assets),
              mc_paths, int(seed))

st.title("💧 Treasury Liquidity Simulator")
st.markdown(f"**As of {market.as_of}** — Horizon: {horizon} days — "
            f"Monte Carlo: {mc_paths:,} paths")

tabs = st.tabs([
    "📋 Portfolio & Market",
    "🎲 Liquidity Simulation",
    "📈 Rate & FX Risk",
    "🧪 Stress Test",
    "🎯 Allocation",
])


# ══════════════════════════════════════════════════════════════════════════════
#  TAB 1 — Portfolio & Market
# ══════════════════════════════════════════════════════════════════════════════

with tabs[0]:
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Value", format_amount(portfolio.total_value, ccy, 0))
    col2.metric("Cash Reserve", format_amount(portfolio.cash_reserve, ccy, 0))
    col3.metric("Liquid Share", f"{portfolio.liquid_share:.1%}")
    col4.metric("Market Liquidity", f"{market.liquidity_index:.1%}")

    col_a, col_b = st.columns(2)
    with col_a:
        st.subheader("Holdings")
        holdings = pd.DataFrame([{
            "Asset": a.name,
            "Type": a.asset_type.value,
            "Amount": a.amount,
            "Currency": a.currency,
            "Rate (%)": a.interest_rate_pct or None,
            "Maturity": a.maturity_date,
            "Liquidity": a.liquidity_rating,
        } for a in portfolio.assets])
        st.dataframe(holdings, use_container_width=True)
    with col_b:
        st.subheader("Yield Curve")
        fig_curve = go.Figure(go.Scatter(
            x=TENORS, y=[market.rate(t) for t in TENORS], mode="lines+markers",
        ))
        fig_curve.update_layout(height=320, yaxis_title="Rate (%)")
        st.plotly_chart(fig_curve, use_container_width=True)

    if sim.schedule.events:
        st.subheader("Scheduled Cash Flows")
        st.dataframe(pd.DataFrame([{
            "Date": e.due_date,
            "Description": e.description,
            "Amount": e.signed_amount,
            "Every (days)": e.recurring_interval_days or None,
        } for e in sim.schedule.events]), use_container_width=True)


# ══════════════════════════════════════════════════════════════════════════════
#  TAB 2 — Monte Carlo liquidity
# ══════════════════════════════════════════════════════════════════════════════

with tabs[1]:
    outcome = engine.run(portfolio, market, horizon)
    summary = outcome.summary()
    cols = st.columns(5)
    for col, (label, value) in zip(cols, summary.items()):
        col.metric(label.replace("_", " ").title(), format_amount(value, ccy, 0))

    fig_hist = px.histogram(x=outcome.outcomes, nbins=60,
                            labels={"x": f"Cash after {horizon} days ({ccy})"})
    fig_hist.add_vline(x=portfolio.total_value * REQUIRED_RESERVE_SHARE, line_dash="dash",
                       annotation_text="Required reserve")
    fig_hist.update_layout(height=380)
    st.plotly_chart(fig_hist, use_container_width=True)


# ══════════════════════════════════════════════════════════════════════════════
#  TAB 3 — Rate & FX risk
# ══════════════════════════════════════════════════════════════════════════════

with tabs[2]:
    col_a, col_b = st.columns(2)
    with col_a:
        st.subheader("Rate Shock Ladder")
        ladder = InterestRateRiskAssessor().assess_shock_ladder(
            portfolio, [-3.0, -2.0, -1.0] + STANDARD_RATE_SHOCKS_PP, market.as_of)
        df_rates = pd.DataFrame([{
            "Shock (pp)": shock,
            "Impact": report.total_impact,
            "Impact (%)": report.impact_percent(portfolio),
        } for shock, report in ladder.items()])
        fig_rates = px.bar(df_rates, x="Shock (pp)", y="Impact")
        st.plotly_chart(fig_rates, use_container_width=True)
    with col_b:
        st.subheader("Currency Exposure")
        exposure = CurrencyRiskAssessor().calculate_exposure(portfolio, market)
        fig_fx = px.pie(names=list(exposure.shares.keys()),
                        values=list(exposure.shares.values()), hole=0.4)
        st.plotly_chart(fig_fx, use_container_width=True)
        for pair in exposure.missing_pairs:
            st.warning(f"No FX quote for {pair}; exposure treated as zero")


# ══════════════════════════════════════════════════════════════════════════════
#  TAB 4 — Stress test
# ══════════════════════════════════════════════════════════════════════════════

with tabs[3]:
    if st.button("🚀 Run Stress Test", type="primary", key="run_stress"):
        with st.spinner("Running stress scenarios..."):
            st.session_state["stress"] = (stress_key, StressTestOrchestrator(
                engine=engine).run_full_stress_test(portfolio, market))

    stored = st.session_state.get("stress")
    if stored is not None and stored[0] != stress_key:
        st.session_state.pop("stress")
        stored = None

    if stored is not None:
        report = stored[1]
        crisis = report.liquidity_crisis
        res = report.resilience
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Crisis Liquidity Ratio", f"{crisis.liquidity_ratio:.1%}")
        col2.metric("Survival Estimate", f"{crisis.survival_days_estimate:.0f} days")
        col3.metric("Shortfall Probability", f"{crisis.shortfall_probability:.1%}")
        col4.metric("Resilience",
                    f"{traffic_light(res.score, RESILIENCE_STRONG, RESILIENCE_MODERATE)} "
                    f"{res.score:.1f}/10")
        st.dataframe(pd.DataFrame([{
            "Scenario": f"Rates +{r.shock_pp:.0f}pp",
            "Impact": r.report.total_impact,
            "Impact (%)": r.impact_percent,
            "Severity": r.severity.value,
        } for r in report.rate_shocks] + [{
            "Scenario": f"FX {report.currency_shock.shock_pct:+.0f}%",
            "Impact": report.currency_shock.report.total_impact,
            "Impact (%)": report.currency_shock.impact_percent,
            "Severity": "",
        }]), use_container_width=True)
        fig_score = px.bar(
            x=["Liquidity", "Shortfall", "Currency"],
            y=[res.liquidity_score, res.shortfall_score, res.currency_score],
            labels={"x": "Component", "y": "Score (0-10)"},
        )
        st.plotly_chart(fig_score, use_container_width=True)
    else:
        st.info("Click **Run Stress Test** to execute the scenarios.")


# ══════════════════════════════════════════════════════════════════════════════
#  TAB 5 — Allocation
# ══════════════════════════════════════════════════════════════════════════════

with tabs[4]:
    optimizer = AllocationOptimizer()
    plan = optimizer.generate_allocation(portfolio, market, risk_tolerance)
    cash_rec = optimizer.recommend_cash_action(portfolio, market)
    adjustment = optimizer.compare_to_plan(portfolio, plan)
    curve = optimizer.analyse_yield_curve(market)

    col_a, col_b = st.columns(2)
    with col_a:
        fig_alloc = px.pie(names=list(plan.weights.keys()),
                           values=list(plan.weights.values()), hole=0.4)
        st.plotly_chart(fig_alloc, use_container_width=True)
    with col_b:
        st.dataframe(pd.DataFrame([{
            "Class": k, "Weight": e.weight, "Amount": e.amount,
        } for k, e in plan.entries.items()]).style.format(
            {"Weight": "{:.1%}", "Amount": "{:,.0f}"}), use_container_width=True)
        st.markdown(f"**Curve adjustment:** {plan.adjustment.value}  \n"
                    f"**Curve regime:** {curve.regime.value} — best tenor "
                    f"{curve.best_tenor}")
        st.markdown(f"**Cash action:** {cash_rec.action.value} "
                    f"{format_amount(cash_rec.amount, ccy, 0)} "
                    f"(band {format_amount(cash_rec.min_cash, ccy, 0)} – "
                    f"{format_amount(cash_rec.max_cash, ccy, 0)})")

    st.subheader("Cash Position Adjustment")
    col1, col2, col3 = st.columns(3)
    col1.metric("Current Cash", format_amount(adjustment.current_cash, ccy, 0))
    col2.metric("Plan Cash", format_amount(adjustment.target_cash, ccy, 0))
    if adjustment.action is CashAction.MAINTAIN:
        col3.metric("Adjustment", "Within tolerance")
    else:
        col3.metric(adjustment.action.value.replace("_", " ").title(),
                    format_amount(adjustment.amount, ccy, 0))

    for alert in optimizer.strategic_alerts(market):
        st.warning(alert.message)
