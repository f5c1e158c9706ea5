"""User-visible notices: always logged, forwarded to Telegram when configured. Never log token or chat_id."""

from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

import requests

logger = logging.getLogger("trading_sim.utils.telegram")


def send_telegram(text: str, bot_token: str = "", chat_id: str = "") -> bool:
    """Send message to Telegram. Returns True on success. Skips if not configured."""
    if not bot_token or not chat_id:
        logger.debug("Telegram not configured, skipping message (len=%d)", len(text))
        return False
    try:
        url = f"https://api.telegram.org/bot{bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text}
        r = requests.post(url, json=payload, timeout=10)
        if r.status_code != 200:
            logger.warning("Telegram send failed: %s %s", r.status_code, r.text[:200])
            return False
        return True
    except requests.RequestException as e:
        logger.warning("Telegram error: %s", e)
        return False


class Notifier:
    """
    Collects notices for the UI and mirrors them to logs and Telegram.
    notify() only records and queues; the HTTP call runs on one worker thread
    so callers holding the session lock or the event loop never wait on it.
    """

    def __init__(self, bot_token: str = "", chat_id: str = "", keep: int = 50):
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.keep = keep
        self.notices: List[str] = []
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def notify(self, title: str, description: str = "", level: int = logging.INFO) -> None:
        text = f"{title}: {description}" if description else title
        logger.log(level, "%s", text)
        self.notices.append(text)
        if len(self.notices) > self.keep:
            del self.notices[: len(self.notices) - self.keep]
        if self.telegram_enabled:
            self._submit(text)

    def _submit(self, text: str) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="telegram")
        self._executor.submit(send_telegram, text, self.bot_token, self.chat_id)

    def close(self) -> None:
        """Deliver what is queued and stop the worker."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def clear(self) -> None:
        self.notices.clear()
