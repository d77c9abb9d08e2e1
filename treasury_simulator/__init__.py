"""
Treasury Liquidity Simulator
============================
Cash & portfolio position modelling with Monte Carlo liquidity risk,
deterministic stress scenarios and allocation recommendations.

Modules
-------
- engine        : Market state, portfolio snapshots and the day-by-day simulator
- risk_modules  : Monte Carlo liquidity, interest-rate shock, currency risk
- stress_testing: Liquidity-crisis scenario and resilience scoring
- optimization  : Target allocation, cash band and yield-curve analysis
- dashboard     : Streamlit-based reporting layer
"""

__version__ = "1.0.0"
