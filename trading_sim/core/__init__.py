"""Core: types, logging. Config lives in trading_sim.core.config."""

from trading_sim.core.types import (
    AccountStats,
    Candle,
    Direction,
    EnabledIndicators,
    Indicator,
    IndicatorKind,
    Position,
    PositionStatus,
    SignalDecision,
    SignalType,
    TradeSettings,
)
from trading_sim.core.logger import setup_logging

__all__ = [
    "AccountStats",
    "Candle",
    "Direction",
    "EnabledIndicators",
    "Indicator",
    "IndicatorKind",
    "Position",
    "PositionStatus",
    "SignalDecision",
    "SignalType",
    "TradeSettings",
    "setup_logging",
]
