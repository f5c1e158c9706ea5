"""Abstract trade-execution collaborator. All calls are async and may fail."""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from trading_sim.core.types import Direction


@dataclass
class OrderResult:
    """Result of submitting an order."""
    success: bool
    order_id: Optional[str] = None
    message: str = ""


class BrokerClient(ABC):
    """Remote broker bridge: connection lifecycle and order submission."""

    @abstractmethod
    async def connect(self, endpoint: str) -> bool:
        """Connect to endpoint. Returns False on failure."""
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    async def submit_order(
        self,
        direction: Direction,
        symbol: str,
        volume: float,
        stop_loss: Optional[float] = None,
        take_profit: Optional[float] = None,
    ) -> OrderResult:
        """Submit a market order with attached SL/TP."""
        pass
