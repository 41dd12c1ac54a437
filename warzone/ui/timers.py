"""Scheduler backed by Qt timers on the GUI thread."""

from __future__ import annotations

from typing import Callable, Set

from PySide6.QtCore import QElapsedTimer, QObject, QTimer

from warzone.core.scheduler import ScheduledTask, Scheduler


class QtScheduler(Scheduler):
    """Runs deferred game tasks as single-shot QTimers owned by *parent*."""

    def __init__(self, parent: QObject) -> None:
        self._parent = parent
        self._clock = QElapsedTimer()
        self._clock.start()
        self._timers: Set[QTimer] = set()

    def now_ms(self) -> int:
        return int(self._clock.elapsed())

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> ScheduledTask:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        self._timers.add(timer)

        def _fire() -> None:
            self._release(timer)
            task.run()

        def _cancel() -> None:
            timer.stop()
            self._release(timer)

        task = ScheduledTask(self.now_ms() + max(0, int(delay_ms)), callback, on_cancel=_cancel)
        timer.timeout.connect(_fire)
        timer.start(max(0, int(delay_ms)))
        return task

    def _release(self, timer: QTimer) -> None:
        if timer in self._timers:
            self._timers.discard(timer)
            timer.deleteLater()
