"""
Simulation clock: named, cancellable periodic tasks on one logical timeline.
tick()/advance() step it deterministically; run() drives it from the asyncio loop.
"""

from __future__ import annotations
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger("trading_sim.clock")


@dataclass
class PeriodicTask:
    name: str
    interval: float
    callback: Callable[[], Any]
    next_due: float
    seq: int = field(default=0)


class SimulationClock:
    """
    Fires due tasks one at a time, earliest first, ties in registration order.
    A callback may cancel or reschedule any task, including itself; the change
    takes effect before the next task is picked.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._tasks: Dict[str, PeriodicTask] = {}
        self._seq = itertools.count()
        self._stopped = False

    @property
    def now(self) -> float:
        return self._now

    def schedule(self, name: str, interval: float, callback: Callable[[], Any], fire_immediately: bool = False) -> None:
        """Register (or replace) a periodic task. First run after one interval unless fire_immediately."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        first = self._now if fire_immediately else self._now + interval
        self._tasks[name] = PeriodicTask(name, interval, callback, first, next(self._seq))
        logger.debug("Scheduled %s every %.2fs", name, interval)

    def cancel(self, name: str) -> bool:
        task = self._tasks.pop(name, None)
        if task is not None:
            logger.debug("Cancelled %s", name)
        return task is not None

    def cancel_all(self) -> None:
        self._tasks.clear()

    def is_scheduled(self, name: str) -> bool:
        return name in self._tasks

    def task_names(self) -> List[str]:
        return list(self._tasks)

    def _next_task(self, until: float) -> Optional[PeriodicTask]:
        due = [t for t in self._tasks.values() if t.next_due <= until]
        if not due:
            return None
        return min(due, key=lambda t: (t.next_due, t.seq))

    def tick(self, now: float) -> List[str]:
        """Fire every task due at or before now. Returns fired task names in order."""
        fired: List[str] = []
        while True:
            task = self._next_task(now)
            if task is None:
                break
            self._now = task.next_due
            task.callback()
            fired.append(task.name)
            if self._tasks.get(task.name) is task:
                task.next_due += task.interval
        self._now = max(self._now, now)
        return fired

    def advance(self, seconds: float) -> List[str]:
        return self.tick(self._now + seconds)

    def stop(self) -> None:
        self._stopped = True

    async def run(self, duration: Optional[float] = None) -> None:
        """Drive the clock in real time until duration elapses or stop() is called."""
        loop = asyncio.get_running_loop()
        started = loop.time()
        offset = self._now
        end = offset + duration if duration is not None else None
        self._stopped = False
        while not self._stopped:
            now = offset + (loop.time() - started)
            if end is not None and now >= end:
                self.tick(end)
                break
            self.tick(now)
            pending = [t.next_due for t in self._tasks.values()]
            wake = min(pending) if pending else now + 1.0
            if end is not None:
                wake = min(wake, end)
            await asyncio.sleep(max(wake - now, 0.0))
