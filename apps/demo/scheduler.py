"""
Cooperative single-threaded scheduler.

Timed one-shot and repeating tasks kept in a heap ordered by due time. Tasks
run one at a time on the caller's thread, each to completion, so no two
callbacks ever overlap. Clock and sleep are injectable; tests drive time
with a fake clock and run_pending() instead of sleeping.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(order=True)
class ScheduledTask:
    """A task due at `due` (scheduler clock seconds)."""

    due: float
    seq: int
    action: Callable[[], None] = field(compare=False)
    interval: float | None = field(default=None, compare=False)
    name: str = field(default="", compare=False)
    cancelled: bool = field(default=False, compare=False)

    def cancel(self) -> None:
        self.cancelled = True


class CooperativeScheduler:
    """
    Explicit timer queue driven by run() or run_pending().

    Args:
        clock: Monotonic clock in seconds.
        sleep: Blocking sleep used by run() while waiting for the next task.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.clock = clock
        self.sleep = sleep
        self._queue: list[ScheduledTask] = []
        self._counter = itertools.count()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._queue if not task.cancelled)

    def call_later(self, delay: float, action: Callable[[], None], name: str = "") -> ScheduledTask:
        """Run action once after delay seconds."""
        task = ScheduledTask(
            due=self.clock() + max(0.0, delay),
            seq=next(self._counter),
            action=action,
            name=name,
        )
        heapq.heappush(self._queue, task)
        return task

    def call_every(
        self, interval: float, action: Callable[[], None], name: str = ""
    ) -> ScheduledTask:
        """Run action every interval seconds, first run one interval from now."""
        if interval <= 0:
            raise ValueError("interval must be positive")
        task = ScheduledTask(
            due=self.clock() + interval,
            seq=next(self._counter),
            action=action,
            interval=interval,
            name=name,
        )
        heapq.heappush(self._queue, task)
        return task

    def cancel_all(self) -> int:
        """Drop every pending task. Returns how many were dropped."""
        dropped = self.pending
        for task in self._queue:
            task.cancel()
        self._queue.clear()
        return dropped

    def run_pending(self) -> int:
        """Run every task that is due now, in due order."""
        ran = 0
        while self._queue:
            task = self._queue[0]
            if task.cancelled:
                heapq.heappop(self._queue)
                continue
            if task.due > self.clock():
                break

            heapq.heappop(self._queue)
            if task.interval is not None:
                # Rescheduled before running so the action can cancel it.
                task.due += task.interval
                task.seq = next(self._counter)
                heapq.heappush(self._queue, task)

            task.action()
            ran += 1
        return ran

    def next_due(self) -> float | None:
        for task in sorted(self._queue):
            if not task.cancelled:
                return task.due
        return None

    def run(self, until: Callable[[], bool] | None = None) -> None:
        """Block, running tasks as they fall due, until the queue drains.

        Args:
            until: Optional predicate checked after each batch; True stops the loop.
        """
        while True:
            self.run_pending()
            if until is not None and until():
                return
            due = self.next_due()
            if due is None:
                return
            self.sleep(max(0.0, due - self.clock()))
