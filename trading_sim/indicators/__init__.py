"""Indicators: math helpers and the scoring engine."""

from trading_sim.indicators.engine import IndicatorEngine

__all__ = ["IndicatorEngine"]
