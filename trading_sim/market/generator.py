"""
Synthetic OHLCV candles from a biased random walk.
open = previous close; close = open * (1 + (u - 0.5 + drift_bias) * volatility + trend).
"""

from __future__ import annotations
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from trading_sim.core.types import Candle


class PriceSeriesGenerator:
    """
    Random-walk candle source. drift_bias shifts the uniform draw so the walk
    has a slight upward drift (0.02 means u - 0.48).
    """

    def __init__(
        self,
        initial_price: float = 20.0,
        drift_bias: float = 0.02,
        wick_factor: float = 0.005,
        volume_min: int = 500,
        volume_max: int = 1500,
        seed: Optional[int] = None,
    ):
        self.initial_price = initial_price
        self.drift_bias = drift_bias
        self.wick_factor = wick_factor
        self.volume_min = volume_min
        self.volume_max = volume_max
        self._rng = np.random.default_rng(seed)

    def reseed(self, seed: Optional[int]) -> None:
        self._rng = np.random.default_rng(seed)

    def _next_candle(self, prev_close: float, time: int, volatility: float, trend: float) -> Candle:
        open_ = prev_close
        change = (self._rng.random() - 0.5 + self.drift_bias) * volatility + trend
        close = open_ * (1 + change)
        wick = open_ * self.wick_factor * self._rng.random()
        high = max(open_, close) + wick
        low = min(open_, close) - wick
        volume = int(self._rng.integers(self.volume_min, self.volume_max))
        return Candle(time=time, open=open_, high=high, low=low, close=close, volume=volume)

    def generate_candles(
        self,
        count: int,
        volatility: float = 0.01,
        trend: float = 0.0,
        start_time: int = 0,
    ) -> List[Candle]:
        """Generate count candles starting from initial_price."""
        candles: List[Candle] = []
        prev_close = self.initial_price
        for i in range(count):
            candle = self._next_candle(prev_close, start_time + i, volatility, trend)
            candles.append(candle)
            prev_close = candle.close
        return candles

    def advance(self, series: Sequence[Candle], volatility: float = 0.01, trend: float = 0.0) -> List[Candle]:
        """Append one candle and drop the oldest. Window length is unchanged."""
        if not series:
            return self.generate_candles(1, volatility, trend)
        last = series[-1]
        candle = self._next_candle(last.close, last.time + 1, volatility, trend)
        return list(series[1:]) + [candle]

    def next_tick_price(self, price: float, tick_volatility: float = 0.005) -> float:
        """Intra-candle price sample for marking open positions."""
        change = (self._rng.random() - 0.5 + self.drift_bias) * tick_volatility
        return price * (1 + change)


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """OHLCV DataFrame with columns: time, open, high, low, close, volume."""
    return pd.DataFrame(
        [(c.time, c.open, c.high, c.low, c.close, c.volume) for c in candles],
        columns=["time", "open", "high", "low", "close", "volume"],
    )
