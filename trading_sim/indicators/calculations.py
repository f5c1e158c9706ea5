"""Indicator math over close/high/low Series.

Functions return None when the series is shorter than the indicator needs;
callers turn that into an N/A reading.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd


@dataclass
class MacdResult:
    line: float
    signal: float
    histogram: float
    prev_histogram: Optional[float] = None


@dataclass
class BollingerBands:
    upper: float
    middle: float
    lower: float
    std: float

    @property
    def half_width(self) -> float:
        return (self.upper - self.lower) / 2.0


@dataclass
class SarState:
    sar: float
    uptrend: bool
    extreme_point: float
    acceleration: float


def _seeded_ewm(series: pd.Series, period: int, alpha: float) -> pd.Series:
    """
    Recursive average seeded with the simple mean of the first `period` values.
    NaN before index period-1.
    """
    if period <= 0:
        raise ValueError("period must be positive")
    values = series.astype(float).reset_index(drop=True)
    out = pd.Series(np.nan, index=values.index)
    if len(values) < period:
        return out
    seeded = values.iloc[period - 1:].copy()
    seeded.iloc[0] = values.iloc[:period].mean()
    out.iloc[period - 1:] = seeded.ewm(alpha=alpha, adjust=False).mean().to_numpy()
    return out


def sma(closes: pd.Series, period: int) -> Optional[float]:
    """Arithmetic mean of the last `period` closes."""
    if period <= 0 or len(closes) < period:
        return None
    return float(closes.iloc[-period:].mean())


def ema_series(closes: pd.Series, period: int) -> pd.Series:
    """EMA with k = 2/(period+1), seeded with SMA(period) of the first points."""
    return _seeded_ewm(closes, period, 2.0 / (period + 1))


def ema(closes: pd.Series, period: int) -> Optional[float]:
    if period <= 0 or len(closes) < period:
        return None
    return float(ema_series(closes, period).iloc[-1])


def rsi(closes: pd.Series, period: int = 14) -> Optional[float]:
    """
    Wilder RSI. Needs period + 1 closes.
    Zero average loss gives 100.
    """
    if period <= 0 or len(closes) < period + 1:
        return None
    delta = closes.astype(float).diff().iloc[1:]
    gains = delta.clip(lower=0)
    losses = (-delta).clip(lower=0)
    avg_gain = float(_seeded_ewm(gains, period, 1.0 / period).iloc[-1])
    avg_loss = float(_seeded_ewm(losses, period, 1.0 / period).iloc[-1])
    if avg_loss <= 0:
        return 100.0
    rs = avg_gain / avg_loss
    return 100.0 - (100.0 / (1.0 + rs))


def macd(closes: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> Optional[MacdResult]:
    """MACD line, signal line (EMA of the line history), histogram."""
    if len(closes) < slow + signal - 1:
        return None
    line = (ema_series(closes, fast) - ema_series(closes, slow)).dropna().reset_index(drop=True)
    signal_line = ema_series(line, signal)
    hist = (line - signal_line).dropna()
    if hist.empty:
        return None
    prev = float(hist.iloc[-2]) if len(hist) >= 2 else None
    return MacdResult(
        line=float(line.iloc[-1]),
        signal=float(signal_line.iloc[-1]),
        histogram=float(hist.iloc[-1]),
        prev_histogram=prev,
    )


def bollinger_bands(closes: pd.Series, period: int = 20, std_mult: float = 2.0) -> Optional[BollingerBands]:
    """Middle = SMA(period); bands at +/- std_mult population standard deviations."""
    if period <= 0 or len(closes) < period:
        return None
    window = closes.iloc[-period:].astype(float)
    middle = float(window.mean())
    std = float(window.std(ddof=0))
    return BollingerBands(
        upper=middle + std_mult * std,
        middle=middle,
        lower=middle - std_mult * std,
        std=std,
    )


def parabolic_sar(
    high: pd.Series,
    low: pd.Series,
    close: pd.Series,
    step: float = 0.02,
    max_step: float = 0.2,
) -> Optional[SarState]:
    """
    Parabolic SAR walked forward over the whole history.
    The trend state depends on every bar, so a truncated window gives a different answer.
    """
    n = len(close)
    if n < 2:
        return None
    h = high.to_numpy(dtype=float)
    lo = low.to_numpy(dtype=float)
    c = close.to_numpy(dtype=float)

    uptrend = c[1] >= c[0]
    af = step
    if uptrend:
        sar, ep = lo[0], h[0]
    else:
        sar, ep = h[0], lo[0]

    for i in range(1, n):
        sar = sar + af * (ep - sar)
        if uptrend:
            # SAR may not sit above the two prior lows
            sar = min(sar, lo[i - 1], lo[i - 2] if i >= 2 else lo[i - 1])
            if lo[i] < sar:
                uptrend = False
                sar, ep, af = ep, lo[i], step
            elif h[i] > ep:
                ep = h[i]
                af = min(af + step, max_step)
        else:
            sar = max(sar, h[i - 1], h[i - 2] if i >= 2 else h[i - 1])
            if h[i] > sar:
                uptrend = True
                sar, ep, af = ep, h[i], step
            elif lo[i] < ep:
                ep = lo[i]
                af = min(af + step, max_step)

    return SarState(sar=float(sar), uptrend=bool(uptrend), extreme_point=float(ep), acceleration=float(af))
