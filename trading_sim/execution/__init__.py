"""Execution: broker abstraction and the simulated MetaTrader bridge."""

from trading_sim.execution.base import BrokerClient, OrderResult
from trading_sim.execution.mock_metatrader import MockMetaTraderClient

__all__ = ["BrokerClient", "OrderResult", "MockMetaTraderClient"]
