"""Analytics: performance metrics (P&L, win rate, profit factor, drawdown)."""

from trading_sim.analytics.metrics import (
    PerformanceMetrics,
    compute_metrics,
    max_drawdown,
    win_rate,
    profit_factor,
    expectancy,
)

__all__ = [
    "PerformanceMetrics",
    "compute_metrics",
    "max_drawdown",
    "win_rate",
    "profit_factor",
    "expectancy",
]
