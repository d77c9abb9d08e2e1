"""Utility helpers for formatting, tabulation and logging setup."""

import logging
import os
from typing import Dict, List, Optional

import pandas as pd

LOG_LEVEL_ENV = "TREASURY_SIM_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stream handler on the package logger."""
    level = (level or os.environ.get(LOG_LEVEL_ENV, "INFO")).upper()
    logger = logging.getLogger("treasury_simulator")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


def format_pct(value: float, decimals: int = 2) -> str:
    """Format a decimal as percentage string."""
    return f"{value * 100:.{decimals}f}%"


def format_amount(value: float, currency: str = "IDR", decimals: int = 2) -> str:
    """Format a monetary amount with its currency code."""
    return f"{currency} {value:,.{decimals}f}"


def dict_list_to_df(data: List[Dict]) -> pd.DataFrame:
    """Convert a list of dicts to a formatted DataFrame."""
    return pd.DataFrame(data)


def traffic_light(value: float, green_threshold: float, amber_threshold: float) -> str:
    """Return a traffic-light emoji based on thresholds."""
    if value >= green_threshold:
        return "🟢"
    elif value >= amber_threshold:
        return "🟡"
    return "🔴"
