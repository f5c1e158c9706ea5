"""Market: synthetic candle generation."""

from trading_sim.market.generator import PriceSeriesGenerator, candles_to_frame

__all__ = ["PriceSeriesGenerator", "candles_to_frame"]
