"""
Position lifecycle: risk-based entry sizing, partial take-profit ladder,
stop-loss/take-profit exits, and account statistics on close.
Quantity = (balance * risk%) / |entry - stop| (lose exactly the risk amount at the stop).
"""

from __future__ import annotations
import logging
import time
import uuid
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence

from trading_sim.analytics.metrics import profit_factor, win_rate
from trading_sim.core.types import AccountStats, Direction, Position, PositionStatus, TradeSettings

logger = logging.getLogger("trading_sim.positions")

# Share of the entry-to-target distance added to the target after a partial take
TAKE_PROFIT_EXTENSION = 0.5


@dataclass
class OpenResult:
    """Result of an open request: a new position, or None plus the reason."""
    position: Optional[Position] = None
    reason: str = ""
    risk_amount: float = 0.0

    @property
    def opened(self) -> bool:
        return self.position is not None


@dataclass
class CloseResult:
    """Closed position plus the account state that follows from it."""
    position: Position
    history: List[Position]
    balance: float
    stats: AccountStats


def stop_loss_price(direction: Direction, price: float, settings: TradeSettings) -> float:
    if direction == Direction.LONG:
        return price * (1 - settings.stop_loss_percent / 100.0)
    return price * (1 + settings.stop_loss_percent / 100.0)


def take_profit_price(direction: Direction, price: float, settings: TradeSettings) -> float:
    if direction == Direction.LONG:
        return price * (1 + settings.take_profit_percent / 100.0)
    return price * (1 - settings.take_profit_percent / 100.0)


def compute_account_stats(
    balance: float,
    history: Sequence[Position],
    open_positions: Sequence[Position] = (),
) -> AccountStats:
    """Stats from the full closed-trade history; equity adds unrealized P&L."""
    pnls = [p.profit_loss for p in history]
    unrealized = sum(p.profit_loss for p in open_positions)
    return AccountStats(
        balance=balance,
        equity=balance + unrealized,
        open_positions=len(open_positions),
        win_rate=win_rate(pnls) * 100.0,
        profit_factor=profit_factor(pnls),
    )


class PositionManager:
    """
    Stateless rules over Position values. Each operation returns new values;
    the owning session decides what to publish.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self._clock = clock
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex[:12])

    def open(
        self,
        direction: Direction,
        price: float,
        settings: TradeSettings,
        balance: float,
        open_positions: Sequence[Position] = (),
    ) -> OpenResult:
        """Size and create a position, or return a rejected result."""
        max_trades = settings.effective_max_trades
        if len(open_positions) >= max_trades:
            reason = f"max trades reached ({max_trades} with {settings.risk_percentage:g}% risk per trade)"
            logger.warning("Open rejected: %s", reason)
            return OpenResult(reason=reason)
        if price <= 0:
            return OpenResult(reason="non-positive price")

        risk_amount = balance * (settings.risk_percentage / 100.0)
        stop = stop_loss_price(direction, price, settings)
        risk_per_unit = abs(price - stop)
        if risk_per_unit <= 0:
            return OpenResult(reason="zero stop distance")
        quantity = risk_amount / risk_per_unit
        if quantity <= 0:
            return OpenResult(reason="quantity is zero")

        position = Position(
            id=self._id_factory(),
            symbol=settings.symbol,
            direction=direction,
            entry_price=price,
            current_price=price,
            quantity=quantity,
            stop_loss=stop,
            take_profit=take_profit_price(direction, price, settings),
            timestamp=self._clock(),
        )
        logger.info(
            "Opened %s %s qty=%.4f entry=%.4f SL=%.4f TP=%.4f",
            direction.value, position.id, quantity, price, position.stop_loss, position.take_profit,
        )
        return OpenResult(position=position, risk_amount=risk_amount)

    def tick(self, position: Position, new_price: float, settings: TradeSettings) -> Position:
        """
        Mark to market at new_price and apply the take-profit ladder.
        Below the last level: cut quantity, stop to break-even, push the target out.
        At the last level: quantity is left alone and evaluate_exit closes it.
        """
        if position.status != PositionStatus.OPEN:
            return position
        entry = position.entry_price
        diff = new_price - entry if position.direction == Direction.LONG else entry - new_price
        profit_loss = diff * position.quantity
        profit_loss_percent = diff / entry * 100.0 if entry else 0.0

        hits = position.take_profit_hits
        quantity = position.quantity
        stop_loss = position.stop_loss
        take_profit = position.take_profit

        if position.direction == Direction.LONG:
            target_reached = new_price >= position.take_profit
        else:
            target_reached = new_price <= position.take_profit

        if target_reached and hits < settings.max_take_profit:
            hits += 1
            if hits < settings.max_take_profit:
                quantity = quantity * (1 - settings.partial_take_percentage / 100.0)
                stop_loss = entry
                # Signed distance, so the same formula pushes shorts downwards
                take_profit = position.take_profit + (position.take_profit - entry) * TAKE_PROFIT_EXTENSION
                logger.info(
                    "Partial take-profit %d/%d on %s: qty=%.4f SL=%.4f TP=%.4f",
                    hits, settings.max_take_profit, position.id, quantity, stop_loss, take_profit,
                )
            else:
                logger.info("Final take-profit level reached on %s", position.id)

        return replace(
            position,
            current_price=new_price,
            profit_loss=profit_loss,
            profit_loss_percent=profit_loss_percent,
            take_profit_hits=hits,
            quantity=quantity,
            stop_loss=stop_loss,
            take_profit=take_profit,
        )

    @staticmethod
    def exit_reason(position: Position, settings: TradeSettings) -> Optional[str]:
        """Why the position should close now, or None."""
        if position.take_profit_hits >= settings.max_take_profit:
            return "take_profit"
        if position.direction == Direction.LONG and position.current_price <= position.stop_loss:
            return "stop_loss"
        if position.direction == Direction.SHORT and position.current_price >= position.stop_loss:
            return "stop_loss"
        return None

    def evaluate_exit(self, position: Position, settings: TradeSettings) -> bool:
        return self.exit_reason(position, settings) is not None

    def close(
        self,
        position: Position,
        history: Sequence[Position],
        balance: float,
        open_positions: Sequence[Position] = (),
        reason: str = "manual",
    ) -> CloseResult:
        """Move to history, credit profit_loss to balance, recompute stats."""
        closed = replace(
            position,
            status=PositionStatus.CLOSED,
            closed_at=self._clock(),
            exit_reason=reason,
        )
        new_history = list(history) + [closed]
        new_balance = balance + position.profit_loss
        remaining = [p for p in open_positions if p.id != position.id]
        stats = compute_account_stats(new_balance, new_history, remaining)
        logger.info(
            "Closed %s %s (%s) pnl=%.2f balance=%.2f",
            position.direction.value, position.id, reason, position.profit_loss, new_balance,
        )
        return CloseResult(position=closed, history=new_history, balance=new_balance, stats=stats)
