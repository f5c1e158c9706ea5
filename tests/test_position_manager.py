"""Unit tests for trading.position_manager."""

import random

import pytest
from trading_sim.core.types import Direction, PositionStatus, TradeSettings
from trading_sim.trading.position_manager import PositionManager, compute_account_stats


def _manager():
    ids = iter(f"p{i}" for i in range(1000))
    return PositionManager(clock=lambda: 1_700_000_000.0, id_factory=lambda: next(ids))


def _open_long(pm, settings=None, price=100.0, balance=10000.0):
    settings = settings or TradeSettings()
    return pm.open(Direction.LONG, price, settings, balance).position


def test_open_long_sizing():
    pm = _manager()
    r = pm.open(Direction.LONG, 100.0, TradeSettings(), 10000.0)
    assert r.opened
    p = r.position
    # risk 5% of 10000 = 500, stop 98 => risk per unit 2, qty 250, TP 104
    assert r.risk_amount == pytest.approx(500.0)
    assert p.stop_loss == pytest.approx(98.0)
    assert p.quantity == pytest.approx(250.0)
    assert p.take_profit == pytest.approx(104.0)
    assert p.status == PositionStatus.OPEN
    assert p.take_profit_hits == 0
    assert p.current_price == 100.0
    assert p.id == "p0"


def test_open_short_sizing():
    pm = _manager()
    p = pm.open(Direction.SHORT, 100.0, TradeSettings(), 10000.0).position
    assert p.stop_loss == pytest.approx(102.0)
    assert p.take_profit == pytest.approx(96.0)
    assert p.quantity == pytest.approx(250.0)


def test_open_rejected_at_capacity():
    pm = _manager()
    settings = TradeSettings(max_trades=2)
    open_positions = [_open_long(pm), _open_long(pm)]
    r = pm.open(Direction.LONG, 100.0, settings, 10000.0, open_positions)
    assert r.opened is False
    assert r.position is None
    assert "max trades" in r.reason


def test_effective_max_trades_from_risk():
    assert TradeSettings().effective_max_trades == 20
    assert TradeSettings(risk_percentage=3).effective_max_trades == 33
    assert TradeSettings(max_trades=4).effective_max_trades == 4


def test_open_zero_stop_distance():
    pm = _manager()
    r = pm.open(Direction.LONG, 100.0, TradeSettings(stop_loss_percent=0), 10000.0)
    assert r.opened is False
    assert "zero" in r.reason.lower()


def test_tick_marks_to_market():
    pm = _manager()
    settings = TradeSettings()
    p = pm.tick(_open_long(pm), 101.0, settings)
    assert p.profit_loss == pytest.approx(250.0)
    assert p.profit_loss_percent == pytest.approx(1.0)
    assert p.take_profit_hits == 0
    short = pm.open(Direction.SHORT, 100.0, settings, 10000.0).position
    short = pm.tick(short, 101.0, settings)
    assert short.profit_loss == pytest.approx(-250.0)


def test_partial_take_profit_ladder_long():
    pm = _manager()
    settings = TradeSettings(max_take_profit=3, partial_take_percentage=30)
    p = pm.tick(_open_long(pm), 104.5, settings)
    assert p.take_profit_hits == 1
    assert p.quantity == pytest.approx(175.0)
    assert p.stop_loss == pytest.approx(100.0)
    assert p.take_profit == pytest.approx(106.0)
    assert p.profit_loss == pytest.approx(4.5 * 250.0)
    assert not pm.evaluate_exit(p, settings)

    p = pm.tick(p, 106.5, settings)
    assert p.take_profit_hits == 2
    assert p.quantity == pytest.approx(122.5)
    assert p.take_profit == pytest.approx(109.0)

    p = pm.tick(p, 109.5, settings)
    assert p.take_profit_hits == 3
    assert p.quantity == pytest.approx(122.5)  # final level leaves quantity alone
    assert pm.evaluate_exit(p, settings)
    assert pm.exit_reason(p, settings) == "take_profit"

    p = pm.tick(p, 120.0, settings)
    assert p.take_profit_hits == 3


def test_partial_take_profit_short():
    pm = _manager()
    settings = TradeSettings()
    p = pm.open(Direction.SHORT, 100.0, settings, 10000.0).position
    p = pm.tick(p, 95.5, settings)
    assert p.take_profit_hits == 1
    assert p.stop_loss == pytest.approx(100.0)
    assert p.take_profit == pytest.approx(94.0)
    assert p.quantity == pytest.approx(175.0)


def test_stop_loss_exit_and_close():
    pm = _manager()
    settings = TradeSettings()
    p = pm.tick(_open_long(pm), 97.9, settings)
    assert pm.evaluate_exit(p, settings)
    assert pm.exit_reason(p, settings) == "stop_loss"
    result = pm.close(p, [], 10000.0, [p], reason="stop_loss")
    assert result.position.status == PositionStatus.CLOSED
    assert result.position.exit_reason == "stop_loss"
    assert result.history == [result.position]
    assert result.balance == pytest.approx(10000.0 + p.profit_loss)
    assert result.stats.open_positions == 0
    assert result.stats.win_rate == 0.0
    assert result.stats.profit_factor == 0.0


def test_short_stop_loss_exit():
    pm = _manager()
    settings = TradeSettings()
    p = pm.open(Direction.SHORT, 100.0, settings, 10000.0).position
    assert not pm.evaluate_exit(p, settings)
    p = pm.tick(p, 102.5, settings)
    assert pm.evaluate_exit(p, settings)


def test_quantity_never_increases():
    pm = _manager()
    settings = TradeSettings(max_take_profit=4)
    rng = random.Random(3)
    p = _open_long(pm)
    price = 100.0
    for _ in range(500):
        price *= 1 + (rng.random() - 0.45) * 0.02
        prev_qty = p.quantity
        p = pm.tick(p, price, settings)
        assert p.quantity <= prev_qty
        assert p.take_profit_hits <= settings.max_take_profit


def test_close_updates_stats():
    pm = _manager()
    settings = TradeSettings()
    a = pm.tick(_open_long(pm), 102.0, settings)  # +500
    b = pm.tick(_open_long(pm), 99.0, settings)   # -250
    c = _open_long(pm)
    first = pm.close(a, [], 10000.0, [a, b, c])
    assert first.stats.profit_factor is None
    assert first.stats.win_rate == pytest.approx(100.0)
    assert first.stats.open_positions == 2
    second = pm.close(b, first.history, first.balance, [b, c])
    assert second.balance == pytest.approx(10250.0)
    assert second.stats.profit_factor == pytest.approx(2.0)
    assert second.stats.win_rate == pytest.approx(50.0)
    assert second.stats.open_positions == 1


def test_compute_account_stats_equity():
    pm = _manager()
    settings = TradeSettings()
    p = pm.tick(_open_long(pm), 101.0, settings)
    stats = compute_account_stats(10000.0, [], [p])
    assert stats.balance == 10000.0
    assert stats.equity == pytest.approx(10250.0)
    assert stats.open_positions == 1
    assert stats.profit_factor == 0.0
