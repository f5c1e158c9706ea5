"""Utils: notices, formatting, intervals, lot sizing."""

from trading_sim.utils.telegram import Notifier, send_telegram
from trading_sim.utils.intervals import interval_seconds

__all__ = ["Notifier", "send_telegram", "interval_seconds"]
