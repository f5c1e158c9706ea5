"""
Performance metrics over closed trades: net P&L and return, win rate, profit
factor, expectancy, max drawdown on the closed-trade equity curve, largest win/loss.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

import numpy as np


@dataclass
class PerformanceMetrics:
    """Aggregate performance metrics."""
    total_pnl: float
    total_return_pct: float
    max_drawdown_pct: float
    win_rate: float
    profit_factor: Optional[float]
    expectancy: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    avg_win: float
    avg_loss: float
    largest_win: float
    largest_loss: float


def max_drawdown(equity_curve: List[float]) -> float:
    """Max drawdown in percent (negative, e.g. -15.0)."""
    if not equity_curve:
        return 0.0
    arr = np.array(equity_curve, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (arr - peak) / np.where(peak != 0, peak, 1)
    return float(np.min(dd)) * 100.0


def win_rate(pnls: List[float]) -> float:
    """Fraction of trades with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls)


def profit_factor(pnls: List[float]) -> Optional[float]:
    """
    Gross profit / gross loss.
    No losses: None when there are profits (unbounded), 0.0 when there are none.
    """
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    if losses <= 0:
        return None if wins > 0 else 0.0
    return wins / losses


def expectancy(pnls: List[float]) -> float:
    """Average PnL per trade."""
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def compute_metrics(
    pnls: List[float],
    initial_capital: float = 10000.0,
) -> PerformanceMetrics:
    """Full metrics from closed-trade PnLs in account currency."""
    total_trades = len(pnls)
    if total_trades == 0:
        return PerformanceMetrics(
            total_pnl=0.0, total_return_pct=0.0, max_drawdown_pct=0.0,
            win_rate=0.0, profit_factor=0.0, expectancy=0.0,
            total_trades=0, winning_trades=0, losing_trades=0, avg_win=0.0, avg_loss=0.0,
            largest_win=0.0, largest_loss=0.0,
        )
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    total_pnl = sum(pnls)
    equity = [initial_capital]
    for p in pnls:
        equity.append(equity[-1] + p)
    return PerformanceMetrics(
        total_pnl=total_pnl,
        total_return_pct=total_pnl / initial_capital * 100.0 if initial_capital else 0.0,
        max_drawdown_pct=max_drawdown(equity),
        win_rate=win_rate(pnls),
        profit_factor=profit_factor(pnls),
        expectancy=expectancy(pnls),
        total_trades=total_trades,
        winning_trades=len(wins),
        losing_trades=len(losses),
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
        largest_win=max(pnls),
        largest_loss=min(pnls),
    )
