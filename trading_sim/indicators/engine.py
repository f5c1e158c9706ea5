"""
Indicator engine: computes and scores SMA, EMA, RSI, MACD, Bollinger Bands and
Parabolic SAR from the candle window. Everything is recomputed on each call.
"""

from __future__ import annotations
import logging
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from trading_sim.core.types import Candle, EnabledIndicators, Indicator, IndicatorKind, SignalType
from trading_sim.indicators import calculations as calc
from trading_sim.market.generator import candles_to_frame

logger = logging.getLogger("trading_sim.indicators")

# Moving averages: distance of close from the average, in percent
TREND_NEUTRAL_BAND_PCT = 0.05
TREND_BASE_STRENGTH = 0.3
TREND_STRENGTH_PER_PCT = 0.2
TREND_MAX_STRENGTH = 0.9

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
RSI_EXTREME_BASE = 0.6
RSI_EXTREME_SPAN = 75.0

# Histogram size that maps to full strength before the cap
MACD_NORMALIZER = 0.1
MACD_MAX_STRENGTH = 0.9
MACD_FLAT_EPSILON = 1e-12

BOLLINGER_OUTSIDE_BASE = 0.7
BOLLINGER_INSIDE_MAX = 0.5

SAR_BASE_STRENGTH = 0.5
SAR_STRENGTH_PER_PCT = 0.1
SAR_MAX_STRENGTH = 0.9


def _unavailable(kind: IndicatorKind, name: str, needed: int) -> Indicator:
    return Indicator(
        kind=kind,
        name=name,
        value=None,
        signal=SignalType.NEUTRAL,
        strength=0.0,
        description=f"Insufficient history (needs {needed} candles)",
    )


def _trend_reading(kind: IndicatorKind, name: str, close: float, average: float) -> Indicator:
    """Close above the average is bullish, below is bearish."""
    if average <= 0:
        return Indicator(kind=kind, name=name, value=average, description="Degenerate average")
    dev_pct = (close - average) / average * 100.0
    if abs(dev_pct) < TREND_NEUTRAL_BAND_PCT:
        return Indicator(kind=kind, name=name, value=average, description=f"Price at {name}")
    strength = min(TREND_BASE_STRENGTH + abs(dev_pct) * TREND_STRENGTH_PER_PCT, TREND_MAX_STRENGTH)
    side = SignalType.BUY if dev_pct > 0 else SignalType.SELL
    where = "above" if dev_pct > 0 else "below"
    return Indicator(
        kind=kind,
        name=name,
        value=average,
        signal=side,
        strength=strength,
        description=f"Price {where} {name} by {abs(dev_pct):.2f}%",
        details={"deviation_pct": dev_pct},
    )


class IndicatorEngine:
    """
    One Indicator per enabled method, in a fixed order.
    Short history yields an N/A neutral reading instead of an error.
    """

    def __init__(
        self,
        sma_period: int = 50,
        ema_period: int = 9,
        rsi_period: int = 14,
        macd_fast: int = 12,
        macd_slow: int = 26,
        macd_signal: int = 9,
        macd_norm: float = MACD_NORMALIZER,
        bb_period: int = 20,
        bb_std: float = 2.0,
        sar_step: float = 0.02,
        sar_max: float = 0.2,
    ):
        self.sma_period = sma_period
        self.ema_period = ema_period
        self.rsi_period = rsi_period
        self.macd_fast = macd_fast
        self.macd_slow = macd_slow
        self.macd_signal = macd_signal
        self.macd_norm = macd_norm
        self.bb_period = bb_period
        self.bb_std = bb_std
        self.sar_step = sar_step
        self.sar_max = sar_max

    def _methods(self) -> Dict[IndicatorKind, Callable[[pd.DataFrame], Indicator]]:
        return {
            IndicatorKind.SMA: self.compute_sma,
            IndicatorKind.EMA: self.compute_ema,
            IndicatorKind.RSI: self.compute_rsi,
            IndicatorKind.MACD: self.compute_macd,
            IndicatorKind.BOLLINGER: self.compute_bollinger,
            IndicatorKind.PARABOLIC_SAR: self.compute_parabolic_sar,
        }

    def compute(self, candles: Sequence[Candle], enabled: Optional[EnabledIndicators] = None) -> List[Indicator]:
        enabled = enabled or EnabledIndicators()
        df = candles_to_frame(candles)
        readings = [method(df) for kind, method in self._methods().items() if enabled.is_enabled(kind)]
        logger.debug(
            "Indicators refreshed over %d candles: %s",
            len(df),
            ", ".join(f"{i.name}={i.signal.value}" for i in readings),
        )
        return readings

    def compute_sma(self, df: pd.DataFrame) -> Indicator:
        name = f"SMA ({self.sma_period})"
        value = calc.sma(df["close"], self.sma_period)
        if value is None:
            return _unavailable(IndicatorKind.SMA, name, self.sma_period)
        return _trend_reading(IndicatorKind.SMA, name, float(df["close"].iloc[-1]), value)

    def compute_ema(self, df: pd.DataFrame) -> Indicator:
        name = f"EMA ({self.ema_period})"
        value = calc.ema(df["close"], self.ema_period)
        if value is None:
            return _unavailable(IndicatorKind.EMA, name, self.ema_period)
        return _trend_reading(IndicatorKind.EMA, name, float(df["close"].iloc[-1]), value)

    def compute_rsi(self, df: pd.DataFrame) -> Indicator:
        name = f"RSI ({self.rsi_period})"
        value = calc.rsi(df["close"], self.rsi_period)
        if value is None:
            return _unavailable(IndicatorKind.RSI, name, self.rsi_period + 1)
        if value >= RSI_OVERBOUGHT:
            strength = min(RSI_EXTREME_BASE + (value - RSI_OVERBOUGHT) / RSI_EXTREME_SPAN, 1.0)
            return Indicator(IndicatorKind.RSI, name, value, SignalType.SELL, strength, "Overbought")
        if value <= RSI_OVERSOLD:
            strength = min(RSI_EXTREME_BASE + (RSI_OVERSOLD - value) / RSI_EXTREME_SPAN, 1.0)
            return Indicator(IndicatorKind.RSI, name, value, SignalType.BUY, strength, "Oversold")
        return Indicator(
            IndicatorKind.RSI, name, value, SignalType.NEUTRAL, abs(value - 50.0) / 100.0, "Neutral zone"
        )

    def compute_macd(self, df: pd.DataFrame) -> Indicator:
        name = f"MACD ({self.macd_fast},{self.macd_slow},{self.macd_signal})"
        result = calc.macd(df["close"], self.macd_fast, self.macd_slow, self.macd_signal)
        if result is None:
            return _unavailable(IndicatorKind.MACD, name, self.macd_slow + self.macd_signal - 1)
        details = {"signal": result.signal, "histogram": result.histogram}
        if result.prev_histogram is not None:
            details["prev_histogram"] = result.prev_histogram
        hist = result.histogram
        if abs(hist) < MACD_FLAT_EPSILON or self.macd_norm <= 0:
            return Indicator(IndicatorKind.MACD, name, result.line, description="Flat histogram", details=details)
        strength = min(abs(hist) / self.macd_norm, MACD_MAX_STRENGTH)
        side = SignalType.BUY if hist > 0 else SignalType.SELL
        desc = "Bullish momentum" if hist > 0 else "Bearish momentum"
        return Indicator(IndicatorKind.MACD, name, result.line, side, strength, desc, details)

    def compute_bollinger(self, df: pd.DataFrame) -> Indicator:
        name = f"Bollinger ({self.bb_period},{self.bb_std:g})"
        bands = calc.bollinger_bands(df["close"], self.bb_period, self.bb_std)
        if bands is None:
            return _unavailable(IndicatorKind.BOLLINGER, name, self.bb_period)
        details = {"upper": bands.upper, "lower": bands.lower, "std": bands.std}
        close = float(df["close"].iloc[-1])
        half = bands.half_width
        if half <= 0:
            return Indicator(IndicatorKind.BOLLINGER, name, bands.middle, description="Zero band width", details=details)
        if close > bands.upper:
            strength = min(BOLLINGER_OUTSIDE_BASE + (close - bands.upper) / half * 0.3, 1.0)
            return Indicator(
                IndicatorKind.BOLLINGER, name, bands.middle, SignalType.SELL, strength, "Above upper band", details
            )
        if close < bands.lower:
            strength = min(BOLLINGER_OUTSIDE_BASE + (bands.lower - close) / half * 0.3, 1.0)
            return Indicator(
                IndicatorKind.BOLLINGER, name, bands.middle, SignalType.BUY, strength, "Below lower band", details
            )
        position = (close - bands.middle) / half
        if position == 0:
            return Indicator(IndicatorKind.BOLLINGER, name, bands.middle, description="At middle band", details=details)
        # Inside the bands: weak mean-reversion lean
        side = SignalType.SELL if position > 0 else SignalType.BUY
        strength = min(abs(position), 1.0) * BOLLINGER_INSIDE_MAX
        return Indicator(IndicatorKind.BOLLINGER, name, bands.middle, side, strength, "Inside bands", details)

    def compute_parabolic_sar(self, df: pd.DataFrame) -> Indicator:
        name = "Parabolic SAR"
        state = calc.parabolic_sar(df["high"], df["low"], df["close"], self.sar_step, self.sar_max)
        if state is None:
            return _unavailable(IndicatorKind.PARABOLIC_SAR, name, 2)
        close = float(df["close"].iloc[-1])
        details = {
            "trend": 1.0 if state.uptrend else -1.0,
            "acceleration": state.acceleration,
            "extreme_point": state.extreme_point,
        }
        dist_pct = abs(close - state.sar) / close * 100.0 if close > 0 else 0.0
        strength = min(SAR_BASE_STRENGTH + dist_pct * SAR_STRENGTH_PER_PCT, SAR_MAX_STRENGTH)
        if state.uptrend:
            return Indicator(IndicatorKind.PARABOLIC_SAR, name, state.sar, SignalType.BUY, strength, "Uptrend", details)
        return Indicator(IndicatorKind.PARABOLIC_SAR, name, state.sar, SignalType.SELL, strength, "Downtrend", details)
