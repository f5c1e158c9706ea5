"""
Logging for the simulator: console plus optional file, plain or JSON lines.
"""

from __future__ import annotations
import json
import logging
import sys
from pathlib import Path
from typing import Optional

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Libraries whose debug output drowns the simulation log
NOISY_LOGGERS = ("urllib3", "asyncio")


class JsonFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message (+ exc_info)."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
    json_logs: bool = False,
) -> logging.Logger:
    """
    Configure the trading_sim logger. Session, clock and broker loggers are
    children of it. Never log Telegram tokens.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    sim_logger = logging.getLogger("trading_sim")
    sim_logger.setLevel(log_level)
    sim_logger.handlers.clear()
    formatter = JsonFormatter() if json_logs else logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    sim_logger.addHandler(console)

    if log_dir and log_file:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_dir / log_file, encoding="utf-8")
        fh.setFormatter(formatter)
        sim_logger.addHandler(fh)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))
    return sim_logger
