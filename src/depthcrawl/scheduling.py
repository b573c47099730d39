from __future__ import annotations

import heapq
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ScheduledTask(ABC):
    """Handle on a deferred callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Prevent the callback from running if it has not started yet."""

    @property
    @abstractmethod
    def cancelled(self) -> bool:
        raise NotImplementedError


class Scheduler(ABC):
    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        raise NotImplementedError


class _TimerTask(ScheduledTask):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True
        self._timer.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ThreadingScheduler(Scheduler):
    """Real-time scheduler backed by daemon ``threading.Timer`` threads.

    Callbacks run on the timer thread; callers must serialize with their own lock.
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        task = _TimerTask(timer)
        timer.start()
        return task


class _ManualTask(ScheduledTask):
    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler(Scheduler):
    """Deterministic scheduler with an explicit clock, for headless runs and tests.

    Nothing runs until ``advance()`` or ``run_until_idle()`` moves the clock.
    Tasks due at the same time run in scheduling order.
    """

    def __init__(self) -> None:
        self._now = 0.0
        self._seq = itertools.count()
        self._queue: List[Tuple[float, int, _ManualTask]] = []

    @property
    def now(self) -> float:
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled)

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledTask:
        if delay < 0:
            raise ValueError("delay must be >= 0")
        task = _ManualTask(self._now + delay, callback)
        heapq.heappush(self._queue, (task.due, next(self._seq), task))
        return task

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every task that falls due; returns tasks run."""
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            self._now = due
            if task.cancelled:
                continue
            task.callback()
            ran += 1
        self._now = target
        return ran

    def run_until_idle(self, max_tasks: Optional[int] = 10_000) -> int:
        """Run queued tasks (including ones they schedule) until none remain."""
        ran = 0
        while self._queue:
            if max_tasks is not None and ran >= max_tasks:
                logger.warning("ManualScheduler stopped after %d tasks with work still queued", ran)
                break
            due, _, task = heapq.heappop(self._queue)
            self._now = max(self._now, due)
            if task.cancelled:
                continue
            task.callback()
            ran += 1
        return ran
