"""Simulation: clock and the session that owns engine state."""

from trading_sim.simulation.clock import SimulationClock
from trading_sim.simulation.session import SessionSnapshot, TradingSession

__all__ = ["SimulationClock", "SessionSnapshot", "TradingSession"]
