"""
Load configuration from config.yaml and .env. Telegram credentials only from env.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from trading_sim.core.types import EnabledIndicators, TradeSettings
from trading_sim.signals.aggregator import AggregatorWeights


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    simulation = data.get("simulation", {})
    intervals = data.get("intervals", {})
    trading = data.get("trading", {})
    auto = data.get("auto_trading", {})
    signals = data.get("signals", {})
    broker = data.get("broker", {})
    telegram = data.get("telegram", {})
    logging_cfg = data.get("logging", {})

    max_trades = trading.get("max_trades")
    if os.getenv("MAX_TRADES"):
        max_trades = env_int("MAX_TRADES", max_trades or 0)

    seed = simulation.get("seed")
    if os.getenv("SIM_SEED"):
        seed = env_int("SIM_SEED", seed or 0)

    enabled = auto.get("indicators", {})
    trade_settings = TradeSettings(
        risk_percentage=env_float("RISK_PERCENTAGE", trading.get("risk_percentage", 5.0)),
        stop_loss_percent=env_float("STOP_LOSS_PERCENT", trading.get("stop_loss_percent", 2.0)),
        take_profit_percent=env_float("TAKE_PROFIT_PERCENT", trading.get("take_profit_percent", 4.0)),
        partial_take_percentage=env_float("PARTIAL_TAKE_PERCENTAGE", trading.get("partial_take_percentage", 30.0)),
        max_take_profit=env_int("MAX_TAKE_PROFIT", trading.get("max_take_profit", 3)),
        max_trades=max_trades,
        auto_trading=env_bool("AUTO_TRADING", auto.get("enabled", False)),
        min_signal_strength=env_float("MIN_SIGNAL_STRENGTH", auto.get("min_signal_strength", 0.7)),
        confirmation_count=env_int("CONFIRMATION_COUNT", auto.get("confirmation_count", 3)),
        enabled_indicators=EnabledIndicators(
            sma=enabled.get("sma", True),
            ema=enabled.get("ema", True),
            rsi=enabled.get("rsi", True),
            macd=enabled.get("macd", True),
            bollinger=enabled.get("bollinger", True),
            parabolic_sar=enabled.get("parabolic_sar", True),
        ),
        trading_interval=env_float("TRADING_INTERVAL", auto.get("trading_interval", 30.0)),
        symbol=env("SYMBOL", trading.get("symbol", "EURUSD")).upper(),
        broker_enabled=env_bool("BROKER_ENABLED", broker.get("enabled", False)),
    )

    defaults = AggregatorWeights()
    weights = AggregatorWeights(
        decision_threshold=float(signals.get("decision_threshold", defaults.decision_threshold)),
        max_confidence=float(signals.get("max_confidence", defaults.max_confidence)),
        trend_boost=float(signals.get("trend_boost", defaults.trend_boost)),
        rsi_boost=float(signals.get("rsi_boost", defaults.rsi_boost)),
        macd_boost=float(signals.get("macd_boost", defaults.macd_boost)),
        macd_strength_threshold=float(signals.get("macd_strength_threshold", defaults.macd_strength_threshold)),
        bollinger_boost=float(signals.get("bollinger_boost", defaults.bollinger_boost)),
        bollinger_strength_threshold=float(
            signals.get("bollinger_strength_threshold", defaults.bollinger_strength_threshold)
        ),
        sar_boost=float(signals.get("sar_boost", defaults.sar_boost)),
    )

    return Config(
        initial_balance=env_float("INITIAL_BALANCE", simulation.get("initial_balance", 10000.0)),
        candle_count=env_int("CANDLE_COUNT", simulation.get("candle_count", 100)),
        initial_price=env_float("INITIAL_PRICE", simulation.get("initial_price", 20.0)),
        volatility=env_float("VOLATILITY", simulation.get("volatility", 0.01)),
        trend=env_float("TREND", simulation.get("trend", 0.0)),
        drift_bias=float(simulation.get("drift_bias", 0.02)),
        wick_factor=float(simulation.get("wick_factor", 0.005)),
        tick_volatility=float(simulation.get("tick_volatility", 0.005)),
        seed=seed,
        candle_interval=env("CANDLE_INTERVAL", str(intervals.get("candles", "3s"))),
        indicator_interval=env("INDICATOR_INTERVAL", str(intervals.get("indicators", "15s"))),
        position_interval=env("POSITION_INTERVAL", str(intervals.get("positions", "1s"))),
        trade_settings=trade_settings,
        aggregator_weights=weights,
        # Broker endpoint is a simulated MetaTrader bridge; no real orders
        broker_endpoint=env("BROKER_ENDPOINT", broker.get("endpoint", "")),
        broker_timeout=env_float("BROKER_TIMEOUT", broker.get("timeout", 5.0)),
        # Telegram (env only)
        telegram_bot_token=env("TELEGRAM_BOT_TOKEN", telegram.get("bot_token", "")),
        telegram_chat_id=env("TELEGRAM_CHAT_ID", telegram.get("chat_id", "")),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "trading_sim.log"),
        log_json=env_bool("LOG_JSON", logging_cfg.get("json", False)),
    )


class Config:
    """Unified configuration. Treated as immutable after load."""

    __slots__ = (
        "initial_balance", "candle_count", "initial_price", "volatility", "trend",
        "drift_bias", "wick_factor", "tick_volatility", "seed",
        "candle_interval", "indicator_interval", "position_interval",
        "trade_settings", "aggregator_weights",
        "broker_endpoint", "broker_timeout",
        "telegram_bot_token", "telegram_chat_id",
        "log_level", "log_dir", "log_file", "log_json",
    )

    def __init__(
        self,
        initial_balance: float = 10000.0,
        candle_count: int = 100,
        initial_price: float = 20.0,
        volatility: float = 0.01,
        trend: float = 0.0,
        drift_bias: float = 0.02,
        wick_factor: float = 0.005,
        tick_volatility: float = 0.005,
        seed: Optional[int] = None,
        candle_interval: str = "3s",
        indicator_interval: str = "15s",
        position_interval: str = "1s",
        trade_settings: Optional[TradeSettings] = None,
        aggregator_weights: Optional[AggregatorWeights] = None,
        broker_endpoint: str = "",
        broker_timeout: float = 5.0,
        telegram_bot_token: str = "",
        telegram_chat_id: str = "",
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "trading_sim.log",
        log_json: bool = False,
    ):
        self.initial_balance = initial_balance
        self.candle_count = candle_count
        self.initial_price = initial_price
        self.volatility = volatility
        self.trend = trend
        self.drift_bias = drift_bias
        self.wick_factor = wick_factor
        self.tick_volatility = tick_volatility
        self.seed = seed
        self.candle_interval = candle_interval
        self.indicator_interval = indicator_interval
        self.position_interval = position_interval
        self.trade_settings = trade_settings or TradeSettings()
        self.aggregator_weights = aggregator_weights or AggregatorWeights()
        self.broker_endpoint = broker_endpoint
        self.broker_timeout = broker_timeout
        self.telegram_bot_token = telegram_bot_token
        self.telegram_chat_id = telegram_chat_id
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file
        self.log_json = log_json
