"""Unit tests for market.generator."""

from trading_sim.market.generator import PriceSeriesGenerator, candles_to_frame


def test_generate_candles_shape():
    gen = PriceSeriesGenerator(initial_price=20.0, seed=1)
    candles = gen.generate_candles(100, volatility=0.01)
    assert len(candles) == 100
    assert candles[0].open == 20.0
    assert [c.time for c in candles] == list(range(100))
    for prev, cur in zip(candles, candles[1:]):
        assert cur.open == prev.close
    for c in candles:
        assert c.high >= max(c.open, c.close)
        assert c.low <= min(c.open, c.close)
        assert 500 <= c.volume < 1500


def test_advance_is_fifo():
    gen = PriceSeriesGenerator(seed=2)
    candles = gen.generate_candles(50)
    advanced = gen.advance(candles)
    assert len(advanced) == 50
    assert advanced[0] == candles[1]
    assert advanced[-1].open == candles[-1].close
    assert advanced[-1].time == candles[-1].time + 1
    assert len(candles) == 50  # input untouched


def test_advance_empty_series():
    gen = PriceSeriesGenerator(seed=2)
    assert len(gen.advance([])) == 1


def test_seed_is_reproducible():
    a = PriceSeriesGenerator(seed=42).generate_candles(30)
    b = PriceSeriesGenerator(seed=42).generate_candles(30)
    assert a == b


def test_drift_bias_pushes_prices_up():
    # bias 0.5 turns u - 0.5 + bias into u >= 0, so closes never fall
    gen = PriceSeriesGenerator(drift_bias=0.5, seed=3)
    candles = gen.generate_candles(40, volatility=0.01)
    assert all(c.close >= c.open for c in candles)


def test_trend_term():
    gen = PriceSeriesGenerator(drift_bias=0.0, seed=4)
    candles = gen.generate_candles(40, volatility=0.01, trend=0.01)
    # per-step change is at least -0.005 + 0.01 > 0
    assert all(c.close > c.open for c in candles)


def test_next_tick_price_bounds():
    gen = PriceSeriesGenerator(drift_bias=0.02, seed=5)
    for _ in range(100):
        p = gen.next_tick_price(100.0, tick_volatility=0.005)
        assert 100.0 * (1 - 0.48 * 0.005) <= p <= 100.0 * (1 + 0.52 * 0.005)


def test_candles_to_frame():
    candles = PriceSeriesGenerator(seed=6).generate_candles(5)
    df = candles_to_frame(candles)
    assert list(df.columns) == ["time", "open", "high", "low", "close", "volume"]
    assert len(df) == 5
    assert df["close"].iloc[-1] == candles[-1].close
