"""Deferred tasks on the game's single execution context.

Explosion fade-outs and the automatic return to the menu after a clear are
not threads: they are callbacks queued on the same loop that delivers shots.
``ManualScheduler`` drives them from a virtual clock (headless play, tests);
the UI provides a QTimer-backed implementation.
"""

from __future__ import annotations

import heapq
import itertools
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Tuple


class ScheduledTask:
    """Handle for a callback waiting on a scheduler."""

    def __init__(
        self,
        due_ms: int,
        callback: Callable[[], None],
        on_cancel: Optional[Callable[[], None]] = None,
    ) -> None:
        self.due_ms = due_ms
        self._callback = callback
        self._cancelled = False
        self._done = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def done(self) -> bool:
        return self._done

    @property
    def pending(self) -> bool:
        return not (self._cancelled or self._done)

    def cancel(self) -> None:
        if not self.pending:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    def run(self) -> None:
        if not self.pending:
            return
        self._done = True
        self._callback()


class Scheduler(ABC):
    @abstractmethod
    def now_ms(self) -> int:
        """Current time on this scheduler's clock, in milliseconds."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        """Run *callback* once, *delay_ms* from now."""


class ManualScheduler(Scheduler):
    """Scheduler whose clock only moves when :meth:`advance` is called."""

    def __init__(self, start_ms: int = 0) -> None:
        self._now = start_ms
        self._queue: List[Tuple[int, int, ScheduledTask]] = []
        self._seq = itertools.count()
        self._cancelled = 0

    def now_ms(self) -> int:
        return self._now

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        task = ScheduledTask(self._now + max(0, int(delay_ms)), callback, on_cancel=self._on_task_cancelled)
        heapq.heappush(self._queue, (task.due_ms, next(self._seq), task))
        return task

    def pending_count(self) -> int:
        return len(self._queue) - self._cancelled

    def _on_task_cancelled(self) -> None:
        self._cancelled += 1
        # Drop dead entries once they make up half the queue.
        if self._cancelled * 2 >= len(self._queue):
            self._queue = [entry for entry in self._queue if entry[2].pending]
            heapq.heapify(self._queue)
            self._cancelled = 0

    def advance(self, delay_ms: int) -> int:
        """Move the clock forward and run every task that came due, in order.

        Tasks scheduled by a callback run in the same call if they fall due
        before the new time. Returns the number of callbacks executed.
        """
        target = self._now + max(0, int(delay_ms))
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if not task.pending:
                self._cancelled -= 1
                continue
            self._now = due
            task.run()
            ran += 1
        self._now = target
        return ran
