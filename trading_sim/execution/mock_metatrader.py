"""
Simulated MetaTrader 5 bridge. Nothing leaves the process: connection and fills
are faked after a short delay.
"""

from __future__ import annotations
import asyncio
import logging
import random
from typing import Optional

from trading_sim.core.types import Direction
from trading_sim.execution.base import BrokerClient, OrderResult

logger = logging.getLogger("trading_sim.execution.mock_mt5")

ORDER_COMMENT = "Order placed by trading_sim"


class MockMetaTraderClient(BrokerClient):
    """Accepts http(s) endpoints only; rejects orders while disconnected."""

    def __init__(self, connect_delay: float = 1.0, order_delay: float = 1.5, seed: Optional[int] = None):
        self.connect_delay = connect_delay
        self.order_delay = order_delay
        self._endpoint: Optional[str] = None
        self._connected = False
        self._rng = random.Random(seed)

    async def connect(self, endpoint: str) -> bool:
        await asyncio.sleep(self.connect_delay)
        if endpoint and endpoint.startswith("http"):
            self._endpoint = endpoint
            self._connected = True
            logger.info("Connected to MetaTrader at %s", endpoint)
            return True
        logger.error("Invalid MetaTrader endpoint: %r", endpoint)
        return False

    async def disconnect(self) -> None:
        self._endpoint = None
        self._connected = False
        logger.info("Disconnected from MetaTrader")

    def is_connected(self) -> bool:
        return self._connected

    async def submit_order(
        self,
        direction: Direction,
        symbol: str,
        volume: float,
        stop_loss: Optional[float] = None,
        take_profit: Optional[float] = None,
    ) -> OrderResult:
        if not self._connected or not self._endpoint:
            logger.error("Order rejected: not connected to MetaTrader")
            return OrderResult(success=False, message="Not connected to MetaTrader 5")
        command = "BUY" if direction == Direction.LONG else "SELL"
        logger.info(
            "Sending %s %s volume=%.2f SL=%s TP=%s (%s)",
            command, symbol, volume, stop_loss, take_profit, ORDER_COMMENT,
        )
        await asyncio.sleep(self.order_delay)
        order_id = str(self._rng.randrange(1_000_000))
        return OrderResult(success=True, order_id=order_id, message=f"Order executed successfully with ID: {order_id}")
