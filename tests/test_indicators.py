"""Unit tests for indicators.calculations and indicators.engine."""

import pandas as pd
import pytest
from trading_sim.core.types import Candle, EnabledIndicators, IndicatorKind, SignalType
from trading_sim.indicators import calculations as calc
from trading_sim.indicators.engine import IndicatorEngine


def _candles(closes, spread=0.5):
    return [
        Candle(time=i, open=c, high=c + spread, low=c - spread, close=c, volume=1000)
        for i, c in enumerate(closes)
    ]


def test_sma_scenario():
    closes = pd.Series([100.0, 102.0, 101.0, 105.0, 107.0])
    assert calc.sma(closes, 3) == pytest.approx(104.3333, rel=1e-4)


def test_sma_ema_constant_series():
    closes = pd.Series([42.0] * 60)
    assert calc.sma(closes, 50) == pytest.approx(42.0)
    assert calc.ema(closes, 9) == pytest.approx(42.0)


def test_ema_seeded_with_sma():
    # seed mean(1,2,3)=2, k=0.5: 4*0.5+2*0.5=3, then 5*0.5+3*0.5=4
    assert calc.ema(pd.Series([1.0, 2.0, 3.0, 4.0, 5.0]), 3) == pytest.approx(4.0)


def test_short_history_returns_none():
    closes = pd.Series([1.0, 2.0, 3.0])
    assert calc.sma(closes, 5) is None
    assert calc.ema(closes, 5) is None
    assert calc.rsi(closes, 3) is None  # needs period + 1
    assert calc.macd(closes) is None
    assert calc.bollinger_bands(closes, 20) is None
    assert calc.parabolic_sar(closes[:1], closes[:1], closes[:1]) is None


def test_rsi_extremes():
    rising = pd.Series([float(x) for x in range(1, 40)])
    falling = pd.Series([float(x) for x in range(40, 1, -1)])
    assert calc.rsi(rising, 14) == pytest.approx(100.0)
    assert calc.rsi(falling, 14) == pytest.approx(0.0, abs=1e-9)


def test_rsi_wilder_smoothing():
    # changes: +1, -1, +2 with period 2 => seed gain 0.5 loss 0.5; then gain (0.5+2)/2=1.25, loss 0.25
    closes = pd.Series([10.0, 11.0, 10.0, 12.0])
    expected = 100 - 100 / (1 + 1.25 / 0.25)
    assert calc.rsi(closes, 2) == pytest.approx(expected)


def test_macd_needs_slow_plus_signal():
    closes = pd.Series([float(x) for x in range(1, 34)])
    assert calc.macd(closes) is None
    result = calc.macd(pd.Series([float(x) for x in range(1, 35)]))
    assert result is not None
    assert result.line > 0
    assert result.histogram == pytest.approx(result.line - result.signal)


def test_bollinger_constant_series_has_zero_width():
    bands = calc.bollinger_bands(pd.Series([5.0] * 20))
    assert bands.upper == bands.middle == bands.lower == 5.0


def test_bollinger_bands_population_std():
    closes = pd.Series([100.0] * 19 + [130.0])
    bands = calc.bollinger_bands(closes, 20, 2.0)
    assert bands.middle == pytest.approx(101.5)
    assert bands.std == pytest.approx(42.75 ** 0.5)
    assert bands.upper == pytest.approx(101.5 + 2 * 42.75 ** 0.5)


def test_parabolic_sar_trends():
    up = _candles([10.0 + i for i in range(30)])
    df = pd.DataFrame([(c.high, c.low, c.close) for c in up], columns=["high", "low", "close"])
    state = calc.parabolic_sar(df["high"], df["low"], df["close"])
    assert state.uptrend
    assert state.sar < up[-1].low
    assert state.acceleration == pytest.approx(0.2)

    reversal = _candles([10.0 + i for i in range(20)] + [29.0 - 2 * i for i in range(1, 10)])
    df = pd.DataFrame([(c.high, c.low, c.close) for c in reversal], columns=["high", "low", "close"])
    state = calc.parabolic_sar(df["high"], df["low"], df["close"])
    assert not state.uptrend
    assert state.sar > reversal[-1].high


def test_engine_insufficient_history_is_neutral():
    engine = IndicatorEngine()
    for candles in ([], _candles([10.0]), _candles([10.0, 11.0, 12.0, 11.0, 10.0])):
        readings = engine.compute(candles)
        assert len(readings) == 6
        for ind in readings:
            if ind.kind == IndicatorKind.PARABOLIC_SAR and len(candles) >= 2:
                continue
            assert ind.value is None
            assert ind.signal == SignalType.NEUTRAL
            assert ind.strength == 0.0


def test_engine_order_and_enabled_set():
    engine = IndicatorEngine()
    candles = _candles([20.0 + (i % 7) * 0.1 for i in range(100)])
    kinds = [i.kind for i in engine.compute(candles)]
    assert kinds == [
        IndicatorKind.SMA,
        IndicatorKind.EMA,
        IndicatorKind.RSI,
        IndicatorKind.MACD,
        IndicatorKind.BOLLINGER,
        IndicatorKind.PARABOLIC_SAR,
    ]
    readings = engine.compute(candles, EnabledIndicators(macd=False, rsi=False))
    assert IndicatorKind.MACD not in [i.kind for i in readings]
    assert len(readings) == 4


def test_engine_strengths_in_unit_range():
    engine = IndicatorEngine()
    candles = _candles([20.0 * (1.01 ** i) for i in range(100)])
    for ind in engine.compute(candles):
        assert 0.0 <= ind.strength <= 1.0


def test_engine_rising_market():
    engine = IndicatorEngine()
    readings = {i.kind: i for i in engine.compute(_candles([20.0 * (1.01 ** i) for i in range(100)]))}
    assert readings[IndicatorKind.SMA].signal == SignalType.BUY
    assert readings[IndicatorKind.EMA].signal == SignalType.BUY
    assert readings[IndicatorKind.PARABOLIC_SAR].signal == SignalType.BUY
    rsi = readings[IndicatorKind.RSI]
    assert rsi.value == pytest.approx(100.0)
    assert rsi.signal == SignalType.SELL
    assert rsi.strength == pytest.approx(1.0)


def test_engine_falling_market_rsi_oversold():
    engine = IndicatorEngine()
    readings = {i.kind: i for i in engine.compute(_candles([50.0 * (0.99 ** i) for i in range(100)]))}
    rsi = readings[IndicatorKind.RSI]
    assert rsi.signal == SignalType.BUY
    assert rsi.strength == pytest.approx(1.0)
    assert readings[IndicatorKind.SMA].signal == SignalType.SELL


def test_rsi_strength_grows_past_band():
    engine = IndicatorEngine(rsi_period=2)
    # RSI(2) of 10, 11, 10, 12 is 83.3; of 10, 11, 10, 10.5 is lower
    strong = engine.compute_rsi(pd.DataFrame({"close": [10.0, 11.0, 10.0, 12.0]}))
    weaker = engine.compute_rsi(pd.DataFrame({"close": [10.0, 11.0, 10.0, 10.9]}))
    assert strong.signal == SignalType.SELL
    assert weaker.value < strong.value
    if weaker.signal == SignalType.SELL:
        assert weaker.strength < strong.strength


def test_engine_bollinger_breakout_and_flat():
    engine = IndicatorEngine()
    breakout = engine.compute_bollinger(pd.DataFrame({"close": [100.0] * 19 + [130.0]}))
    assert breakout.signal == SignalType.SELL
    assert breakout.strength > 0.7
    flat = engine.compute_bollinger(pd.DataFrame({"close": [100.0] * 20}))
    assert flat.signal == SignalType.NEUTRAL


def test_engine_macd_flat_is_neutral():
    engine = IndicatorEngine()
    reading = engine.compute_macd(pd.DataFrame({"close": [10.0] * 60}))
    assert reading.value == pytest.approx(0.0)
    assert reading.signal == SignalType.NEUTRAL


def test_engine_macd_strength_scales_by_normalizer():
    df = pd.DataFrame({"close": [10.0] * 58 + [10.01, 10.03]})
    reading = IndicatorEngine().compute_macd(df)
    hist = reading.details["histogram"]
    assert hist > 0
    assert reading.signal == SignalType.BUY
    assert reading.strength == pytest.approx(min(hist / 0.1, 0.9))
    wide = IndicatorEngine(macd_norm=0.5).compute_macd(df)
    assert wide.strength == pytest.approx(min(hist / 0.5, 0.9))
    assert wide.strength <= reading.strength
