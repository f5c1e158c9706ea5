"""Trading: position sizing, take-profit ladder, exits, account stats."""

from trading_sim.trading.position_manager import (
    CloseResult,
    OpenResult,
    PositionManager,
    compute_account_stats,
)

__all__ = ["CloseResult", "OpenResult", "PositionManager", "compute_account_stats"]
