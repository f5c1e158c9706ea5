"""
Core data types for candles, indicators, decisions, positions, and account stats.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class Direction(str, Enum):
    LONG = "long"
    SHORT = "short"


class SignalType(str, Enum):
    BUY = "buy"
    SELL = "sell"
    NEUTRAL = "neutral"


class PositionStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class IndicatorKind(str, Enum):
    SMA = "sma"
    EMA = "ema"
    RSI = "rsi"
    MACD = "macd"
    BOLLINGER = "bollinger"
    PARABOLIC_SAR = "parabolic_sar"


@dataclass(frozen=True)
class Candle:
    """OHLCV candle. Immutable once appended to the window."""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: int


@dataclass
class Indicator:
    """One indicator reading. value is None when there is not enough history."""
    kind: IndicatorKind
    name: str
    value: Optional[float]
    signal: SignalType = SignalType.NEUTRAL
    strength: float = 0.0
    description: str = ""
    details: Dict[str, float] = field(default_factory=dict)

    @property
    def available(self) -> bool:
        return self.value is not None


@dataclass
class SignalDecision:
    """Aggregate decision derived from one indicator snapshot."""
    decision: SignalType
    confidence: float
    confirmed_count: int
    reason: str
    buy_strength: float = 0.0
    sell_strength: float = 0.0


@dataclass
class Position:
    """Simulated trade. Open while status is OPEN; moved to history on close."""
    id: str
    symbol: str
    direction: Direction
    entry_price: float
    current_price: float
    quantity: float
    stop_loss: float
    take_profit: float
    timestamp: float
    status: PositionStatus = PositionStatus.OPEN
    profit_loss: float = 0.0
    profit_loss_percent: float = 0.0
    take_profit_hits: int = 0
    closed_at: Optional[float] = None
    exit_reason: str = ""  # "stop_loss" | "take_profit" | "manual"


@dataclass
class AccountStats:
    """Account summary. profit_factor is None when there are profits but no losses."""
    balance: float
    equity: float
    open_positions: int = 0
    win_rate: float = 0.0
    profit_factor: Optional[float] = 0.0


@dataclass
class EnabledIndicators:
    sma: bool = True
    ema: bool = True
    rsi: bool = True
    macd: bool = True
    bollinger: bool = True
    parabolic_sar: bool = True

    def is_enabled(self, kind: IndicatorKind) -> bool:
        return bool(getattr(self, kind.value))


@dataclass
class TradeSettings:
    """Risk and auto-trading settings, read and written by the UI layer."""
    risk_percentage: float = 5.0
    stop_loss_percent: float = 2.0
    take_profit_percent: float = 4.0
    partial_take_percentage: float = 30.0
    max_take_profit: int = 3
    max_trades: Optional[int] = None
    auto_trading: bool = False
    min_signal_strength: float = 0.7
    confirmation_count: int = 3
    enabled_indicators: EnabledIndicators = field(default_factory=EnabledIndicators)
    trading_interval: float = 30.0
    symbol: str = "EURUSD"
    broker_enabled: bool = False

    @property
    def effective_max_trades(self) -> int:
        """Explicit max_trades, else as many trades as fit in 100% risk."""
        if self.max_trades is not None:
            return self.max_trades
        if self.risk_percentage <= 0:
            return 0
        return int(math.floor(100.0 / self.risk_percentage))
