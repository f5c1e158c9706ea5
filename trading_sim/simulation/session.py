"""
Trading session: the single owner of simulation state.
Every step computes the next state from the current one and publishes it in one
assignment block under the session lock.
"""

from __future__ import annotations
import asyncio
import copy
import logging
import threading
from dataclasses import dataclass, fields, replace
from typing import Any, List, Optional

from trading_sim.analytics.metrics import PerformanceMetrics, compute_metrics
from trading_sim.core.config import Config
from trading_sim.core.types import (
    AccountStats,
    Candle,
    Direction,
    Indicator,
    Position,
    SignalDecision,
    SignalType,
    TradeSettings,
)
from trading_sim.execution.base import BrokerClient
from trading_sim.indicators.engine import IndicatorEngine
from trading_sim.market.generator import PriceSeriesGenerator
from trading_sim.signals.aggregator import SignalAggregator
from trading_sim.simulation.clock import SimulationClock
from trading_sim.trading.position_manager import (
    CloseResult,
    OpenResult,
    PositionManager,
    compute_account_stats,
    stop_loss_price,
    take_profit_price,
)
from trading_sim.utils.formatting import format_currency
from trading_sim.utils.intervals import interval_seconds
from trading_sim.utils.lots import broker_volume
from trading_sim.utils.telegram import Notifier

logger = logging.getLogger("trading_sim.session")

TASK_CANDLES = "candles"
TASK_INDICATORS = "indicators"
TASK_POSITIONS = "positions"
TASK_AUTO_TRADE = "auto_trade"


@dataclass
class SessionSnapshot:
    """Everything the UI renders, taken at one instant."""
    candles: List[Candle]
    indicators: List[Indicator]
    decision: SignalDecision
    open_positions: List[Position]
    trade_history: List[Position]
    account_stats: AccountStats
    settings: TradeSettings
    price: float


class TradingSession:
    """
    Owns the candle window, indicators, decision, positions, history and
    account. Public methods are serialized by one re-entrant lock so a UI
    thread and the clock cannot interleave partial updates.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        generator: Optional[PriceSeriesGenerator] = None,
        indicator_engine: Optional[IndicatorEngine] = None,
        aggregator: Optional[SignalAggregator] = None,
        position_manager: Optional[PositionManager] = None,
        notifier: Optional[Notifier] = None,
        broker: Optional[BrokerClient] = None,
    ):
        self.config = config or Config()
        self.generator = generator or PriceSeriesGenerator(
            initial_price=self.config.initial_price,
            drift_bias=self.config.drift_bias,
            wick_factor=self.config.wick_factor,
            seed=self.config.seed,
        )
        self.indicator_engine = indicator_engine or IndicatorEngine()
        self.aggregator = aggregator or SignalAggregator(self.config.aggregator_weights)
        self.position_manager = position_manager or PositionManager()
        self.notifier = notifier or Notifier(self.config.telegram_bot_token, self.config.telegram_chat_id)
        self.broker = broker
        self._lock = threading.RLock()
        self._clock: Optional[SimulationClock] = None
        self._init_state()

    def _init_state(self) -> None:
        cfg = self.config
        candles = self.generator.generate_candles(cfg.candle_count, cfg.volatility, cfg.trend)
        settings = copy.deepcopy(cfg.trade_settings)
        indicators = self.indicator_engine.compute(candles, settings.enabled_indicators)
        self._settings = settings
        self._candles = candles
        self._price = candles[-1].close if candles else cfg.initial_price
        self._indicators = indicators
        self._decision = self.aggregator.analyze(indicators)
        self._positions: List[Position] = []
        self._history: List[Position] = []
        self._balance = cfg.initial_balance
        self._stats = compute_account_stats(self._balance, [], [])

    # --- queries ---

    @property
    def candles(self) -> List[Candle]:
        with self._lock:
            return list(self._candles)

    @property
    def indicators(self) -> List[Indicator]:
        with self._lock:
            return list(self._indicators)

    @property
    def decision(self) -> SignalDecision:
        with self._lock:
            return self._decision

    @property
    def open_positions(self) -> List[Position]:
        with self._lock:
            return list(self._positions)

    @property
    def trade_history(self) -> List[Position]:
        with self._lock:
            return list(self._history)

    @property
    def account_stats(self) -> AccountStats:
        with self._lock:
            return replace(self._stats)

    @property
    def settings(self) -> TradeSettings:
        with self._lock:
            return copy.deepcopy(self._settings)

    @property
    def price(self) -> float:
        with self._lock:
            return self._price

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            return SessionSnapshot(
                candles=list(self._candles),
                indicators=list(self._indicators),
                decision=self._decision,
                open_positions=list(self._positions),
                trade_history=list(self._history),
                account_stats=replace(self._stats),
                settings=copy.deepcopy(self._settings),
                price=self._price,
            )

    def performance(self) -> PerformanceMetrics:
        with self._lock:
            pnls = [p.profit_loss for p in self._history]
        return compute_metrics(pnls, initial_capital=self.config.initial_balance)

    # --- commands ---

    def update_settings(self, **changes: Any) -> TradeSettings:
        """Apply partial settings. Unknown names raise ValueError."""
        known = {f.name for f in fields(TradeSettings)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        with self._lock:
            auto = changes.pop("auto_trading", None)
            enabled = changes.pop("enabled_indicators", None)
            settings = replace(self._settings, **changes)
            if enabled is not None:
                if isinstance(enabled, dict):
                    enabled = replace(settings.enabled_indicators, **enabled)
                settings = replace(settings, enabled_indicators=enabled)
            self._settings = settings
            if enabled is not None:
                self.refresh_indicators()
            if auto is not None:
                self.set_auto_trading(auto)
            elif "trading_interval" in changes and self._clock and self._clock.is_scheduled(TASK_AUTO_TRADE):
                self._schedule_auto_trade()
            return copy.deepcopy(self._settings)

    def set_auto_trading(self, enabled: bool) -> None:
        """Toggle auto-trading. Disabling cancels the pending evaluation task first."""
        with self._lock:
            if not enabled and self._clock is not None:
                self._clock.cancel(TASK_AUTO_TRADE)
            self._settings = replace(self._settings, auto_trading=enabled)
            if enabled and self._clock is not None:
                self._schedule_auto_trade()
            logger.info("Auto-trading %s", "enabled" if enabled else "disabled")

    def open_position(self, direction: Direction, price: Optional[float] = None) -> OpenResult:
        with self._lock:
            entry = self._price if price is None else price
            result = self.position_manager.open(direction, entry, self._settings, self._balance, self._positions)
            if not result.opened:
                self.notifier.notify("Position not opened", result.reason, logging.WARNING)
                return result
            positions = self._positions + [result.position]
            self._positions = positions
            self._stats = compute_account_stats(self._balance, self._history, positions)
            label = "Buy" if direction == Direction.LONG else "Sell"
            self.notifier.notify(f"{label} order executed", f"Entry price: {format_currency(entry)}")
            return result

    def close_position(self, position_id: str, reason: str = "manual") -> Optional[CloseResult]:
        with self._lock:
            position = next((p for p in self._positions if p.id == position_id), None)
            if position is None:
                logger.warning("close_position: no open position %s", position_id)
                return None
            result = self.position_manager.close(position, self._history, self._balance, self._positions, reason)
            self._positions = [p for p in self._positions if p.id != position_id]
            self._history = result.history
            self._balance = result.balance
            self._stats = result.stats
            self._notify_closed(result.position)
            return result

    def reset(self) -> None:
        """Cancel pending ticks, then restore the initial state and default settings."""
        with self._lock:
            clock = self._clock
            if clock is not None:
                clock.cancel_all()
            self.generator.reseed(self.config.seed)
            self._init_state()
            self.notifier.clear()
            if clock is not None:
                self._register_tasks(clock)
            logger.info("Simulation reset")

    # --- periodic steps ---

    def advance_candles(self) -> Candle:
        with self._lock:
            candles = self.generator.advance(self._candles, self.config.volatility, self.config.trend)
            self._candles = candles
            self._price = candles[-1].close
            return candles[-1]

    def refresh_indicators(self) -> SignalDecision:
        with self._lock:
            indicators = self.indicator_engine.compute(self._candles, self._settings.enabled_indicators)
            decision = self.aggregator.analyze(indicators)
            self._indicators = indicators
            self._decision = decision
            return decision

    def tick_positions(self) -> List[Position]:
        """
        Mark every open position at one sampled price, then evaluate exits on
        the marked state. Returns positions closed this tick.
        """
        with self._lock:
            price = self.generator.next_tick_price(self._price, self.config.tick_volatility)
            settings = self._settings
            marked = [self.position_manager.tick(p, price, settings) for p in self._positions]

            history, balance = self._history, self._balance
            remaining = list(marked)
            closed: List[Position] = []
            for position in marked:
                reason = self.position_manager.exit_reason(position, settings)
                if reason is None:
                    continue
                result = self.position_manager.close(position, history, balance, remaining, reason)
                remaining = [p for p in remaining if p.id != position.id]
                history, balance = result.history, result.balance
                closed.append(result.position)

            self._price = price
            self._positions = remaining
            self._history = history
            self._balance = balance
            self._stats = compute_account_stats(balance, history, remaining)
            for position in closed:
                self._notify_closed(position)
            return closed

    def evaluate_auto_trade(self) -> Optional[OpenResult]:
        """Open a position when auto-trading is on and the decision clears the gates."""
        with self._lock:
            settings = self._settings
            if not settings.auto_trading:
                return None
            decision = self._decision
            if decision.decision == SignalType.NEUTRAL:
                return None
            if decision.confidence < settings.min_signal_strength:
                logger.debug("Auto-trade skipped: confidence %.2f < %.2f", decision.confidence, settings.min_signal_strength)
                return None
            if decision.confirmed_count < settings.confirmation_count:
                logger.debug(
                    "Auto-trade skipped: %d confirmations < %d", decision.confirmed_count, settings.confirmation_count
                )
                return None
            direction = Direction.LONG if decision.decision == SignalType.BUY else Direction.SHORT
            logger.info("Auto-trade %s (confidence %.2f): %s", direction.value, decision.confidence, decision.reason)
            return self.open_position(direction)

    # --- scheduling ---

    def attach(self, clock: SimulationClock) -> None:
        """Register the periodic steps on clock."""
        with self._lock:
            if self._clock is not None and self._clock is not clock:
                self.detach()
            self._clock = clock
            self._register_tasks(clock)

    def detach(self) -> None:
        with self._lock:
            if self._clock is not None:
                for name in (TASK_CANDLES, TASK_INDICATORS, TASK_POSITIONS, TASK_AUTO_TRADE):
                    self._clock.cancel(name)
            self._clock = None

    def _register_tasks(self, clock: SimulationClock) -> None:
        cfg = self.config
        clock.schedule(TASK_CANDLES, interval_seconds(cfg.candle_interval), self.advance_candles)
        clock.schedule(TASK_INDICATORS, interval_seconds(cfg.indicator_interval), self.refresh_indicators)
        clock.schedule(TASK_POSITIONS, interval_seconds(cfg.position_interval), self.tick_positions)
        if self._settings.auto_trading:
            self._schedule_auto_trade()

    def _schedule_auto_trade(self) -> None:
        self._clock.schedule(TASK_AUTO_TRADE, self._settings.trading_interval, self.evaluate_auto_trade)

    # --- broker ---

    async def connect_broker(self, endpoint: Optional[str] = None) -> bool:
        """Connect the bridge. Timeouts and broker errors come back as False."""
        if self.broker is None:
            return False
        try:
            ok = await asyncio.wait_for(
                self.broker.connect(endpoint or self.config.broker_endpoint), self.config.broker_timeout
            )
        except asyncio.TimeoutError:
            logger.warning("Broker connect timed out after %.1fs", self.config.broker_timeout)
            ok, detail = False, "broker timeout"
        except Exception as e:
            logger.exception("Broker connect error: %s", e)
            ok, detail = False, str(e)
        else:
            detail = ""
        with self._lock:
            self._settings = replace(self._settings, broker_enabled=ok)
            if ok:
                self.notifier.notify("Broker connected")
            else:
                self.notifier.notify("Broker connection failed", detail, logging.WARNING)
        return ok

    async def disconnect_broker(self) -> None:
        if self.broker is None:
            return
        try:
            await self.broker.disconnect()
        except Exception as e:
            logger.exception("Broker disconnect error: %s", e)
        finally:
            with self._lock:
                self._settings = replace(self._settings, broker_enabled=False)

    async def execute_broker_trade(self, direction: Direction, price: Optional[float] = None) -> bool:
        """
        Forward an order to the broker bridge. Any failure, rejection or timeout
        returns False and leaves simulated state untouched. No retry.
        """
        if self.broker is None or not self.broker.is_connected():
            return False
        with self._lock:
            settings = self._settings
            entry = self._price if price is None else price
            risk_amount = self._balance * (settings.risk_percentage / 100.0)
            max_trades = settings.effective_max_trades
            if len(self._positions) >= max_trades:
                reason = f"Maximum trades reached ({max_trades} with {settings.risk_percentage:g}% risk per trade)"
                self.notifier.notify("Order not sent", reason, logging.WARNING)
                return False
        volume = broker_volume(risk_amount, entry)
        if volume <= 0:
            logger.warning("Broker order skipped: volume rounds to zero")
            return False
        try:
            result = await asyncio.wait_for(
                self.broker.submit_order(
                    direction,
                    settings.symbol,
                    volume,
                    stop_loss_price(direction, entry, settings),
                    take_profit_price(direction, entry, settings),
                ),
                self.config.broker_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Broker order timed out after %.1fs", self.config.broker_timeout)
            self.notifier.notify("Order execution failed", "broker timeout", logging.WARNING)
            return False
        except Exception as e:
            logger.exception("Broker order error: %s", e)
            self.notifier.notify("Order execution failed", str(e), logging.WARNING)
            return False
        if not result.success:
            self.notifier.notify("Order execution failed", result.message, logging.WARNING)
            return False
        self.notifier.notify("Order executed via broker", f"{settings.symbol} at {format_currency(entry)}")
        return True

    def _notify_closed(self, position: Position) -> None:
        self.notifier.notify(
            "Position closed",
            f"{position.direction.value} {position.id} ({position.exit_reason}) P&L {format_currency(position.profit_loss)}",
        )
