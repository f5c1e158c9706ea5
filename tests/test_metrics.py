"""Unit tests for analytics.metrics."""

import pytest
from trading_sim.analytics.metrics import (
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
    compute_metrics,
)


def test_win_rate():
    assert win_rate([1, -1, 1, 1]) == 0.75
    assert win_rate([]) == 0.0


def test_profit_factor():
    assert profit_factor([10, -5, 10, -5]) == 2.0
    assert profit_factor([10, 10]) is None  # unbounded
    assert profit_factor([-5, -5]) == 0.0
    assert profit_factor([]) == 0.0


def test_profit_factor_never_negative():
    for pnls in ([-1.0], [3.0, -1.0], [0.0, -2.0, 5.0]):
        pf = profit_factor(pnls)
        assert pf is None or pf >= 0


def test_expectancy():
    assert expectancy([10, -5, 5]) == pytest.approx(10 / 3)
    assert expectancy([]) == 0.0


def test_max_drawdown():
    # equity 1 -> 1.2 -> 1.0 -> 1.1  =>  peak 1.2, dd (1.0-1.2)/1.2 = -16.67%
    assert max_drawdown([1.0, 1.2, 1.0, 1.1]) == pytest.approx(-16.666, rel=0.01)


def test_compute_metrics():
    m = compute_metrics([10.0, -5.0, 15.0, -3.0], initial_capital=1000.0)
    assert m.total_trades == 4
    assert m.winning_trades == 2
    assert m.losing_trades == 2
    assert m.expectancy == pytest.approx(4.25)
    assert m.win_rate == 0.5
    assert m.total_pnl == pytest.approx(17.0)
    assert m.total_return_pct == pytest.approx(1.7)
    assert m.largest_win == 15.0
    assert m.largest_loss == -5.0
    # equity 1000 -> 1010 -> 1005: deepest dip is 5 off a 1010 peak
    assert m.max_drawdown_pct == pytest.approx(-5 / 1010 * 100)


def test_compute_metrics_empty():
    m = compute_metrics([])
    assert m.total_trades == 0
    assert m.profit_factor == 0.0
