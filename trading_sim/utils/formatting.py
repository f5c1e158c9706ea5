"""Display formatting. Engine values stay numeric; text is produced only here."""

from __future__ import annotations
from typing import Optional

from trading_sim.core.types import Indicator, IndicatorKind

NOT_AVAILABLE = "N/A"


def format_currency(value: float) -> str:
    """USD with thousands separators, e.g. -$1,234.50."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_percentage(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{value:.2f}%"


def format_profit_factor(value: Optional[float]) -> str:
    """None means profits with no losses."""
    if value is None:
        return "∞"
    return f"{value:.2f}"


def format_indicator_value(indicator: Indicator) -> str:
    if indicator.value is None:
        return NOT_AVAILABLE
    if indicator.kind == IndicatorKind.RSI:
        return f"{indicator.value:.1f}"
    if indicator.kind == IndicatorKind.MACD:
        hist = indicator.details.get("histogram")
        if hist is None:
            return f"{indicator.value:.4f}"
        return f"{indicator.value:.4f} (hist {hist:+.4f})"
    if indicator.kind == IndicatorKind.BOLLINGER and "upper" in indicator.details:
        return f"{indicator.details['lower']:.2f} / {indicator.value:.2f} / {indicator.details['upper']:.2f}"
    return f"{indicator.value:.2f}"
