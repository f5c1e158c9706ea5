#!/usr/bin/env python3
"""
Trading simulator CLI: simulate | run
Usage:
  python main.py simulate [--steps 600] [--auto] [--seed 7] [--config config.yaml]
  python main.py run [--duration 120] [--auto] [--config config.yaml]
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from trading_sim.core.config import load_config, Config
from trading_sim.core.logger import setup_logging
from trading_sim.execution.mock_metatrader import MockMetaTraderClient
from trading_sim.simulation.clock import SimulationClock
from trading_sim.simulation.session import TradingSession
from trading_sim.utils.formatting import (
    format_currency,
    format_indicator_value,
    format_percentage,
    format_profit_factor,
)


def _load(config_path: Optional[Path], auto: bool, seed: Optional[int]) -> Config:
    config = load_config(config_path, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file, config.log_json)
    if seed is not None:
        config.seed = seed
    if auto:
        config.trade_settings.auto_trading = True
    return config


def print_report(session: TradingSession) -> None:
    snap = session.snapshot()
    print("\n--- Indicators ---")
    for ind in snap.indicators:
        print(f"{ind.name:<22} {format_indicator_value(ind):>28}  {ind.signal.value:<7} {ind.strength:.2f}")
    d = snap.decision
    print(f"Decision: {d.decision.value} (confidence {d.confidence:.2f}, {d.confirmed_count} confirmations) - {d.reason}")
    s = snap.account_stats
    print("\n--- Account ---")
    print(f"Balance: {format_currency(s.balance)}  Equity: {format_currency(s.equity)}")
    print(f"Open positions: {s.open_positions}  Win rate: {s.win_rate:.1f}%  Profit factor: {format_profit_factor(s.profit_factor)}")
    m = session.performance()
    print("\n--- Performance ---")
    print(f"Total trades: {m.total_trades} (wins: {m.winning_trades}, losses: {m.losing_trades})")
    print(f"Total P&L: {format_currency(m.total_pnl)} ({format_percentage(m.total_return_pct)})")
    print(f"Largest win: {format_currency(m.largest_win)}  Largest loss: {format_currency(m.largest_loss)}")
    print(f"Max drawdown: {m.max_drawdown_pct:.2f}%  Expectancy: {format_currency(m.expectancy)}/trade")


def run_simulate(config_path: Optional[Path], steps: int, auto: bool, seed: Optional[int]) -> int:
    """Fast-forward the clock one second per step, no real waiting."""
    config = _load(config_path, auto, seed)
    session = TradingSession(config)
    clock = SimulationClock()
    session.attach(clock)
    for _ in range(steps):
        clock.advance(1.0)
    print_report(session)
    session.notifier.close()
    return 0


async def _run_live(config: Config, duration: Optional[float]) -> None:
    broker = MockMetaTraderClient() if config.broker_endpoint else None
    session = TradingSession(config, broker=broker)
    if broker is not None:
        await session.connect_broker()
    clock = SimulationClock()
    session.attach(clock)
    try:
        await clock.run(duration)
    finally:
        session.detach()
        if broker is not None:
            await session.disconnect_broker()
    print_report(session)
    session.notifier.close()


def run_realtime(config_path: Optional[Path], duration: Optional[float], auto: bool) -> int:
    """Run the clock against wall time."""
    config = _load(config_path, auto, None)
    logger = logging.getLogger("trading_sim")
    try:
        asyncio.run(_run_live(config, duration))
    except KeyboardInterrupt:
        logger.info("Shutdown by user")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Trading simulator CLI")
    parser.add_argument("mode", choices=["simulate", "run"], help="Fast-forward or real-time simulation")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    parser.add_argument("--steps", type=int, default=600, help="Simulated seconds (simulate mode)")
    parser.add_argument("--duration", type=float, default=None, help="Wall-clock seconds (run mode)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for the price series")
    parser.add_argument("--auto", action="store_true", help="Enable auto-trading")
    args = parser.parse_args()
    if args.mode == "simulate":
        return run_simulate(args.config, args.steps, args.auto, args.seed)
    return run_realtime(args.config, args.duration, args.auto)


if __name__ == "__main__":
    exit(main())
