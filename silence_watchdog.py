"""Silence watchdog: a restartable single-shot timer."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from interfaces import Scheduler, TimerHandle

try:
    from PySide6.QtCore import QTimer
except Exception:  # pragma: no cover
    QTimer = None  # type: ignore

logger = logging.getLogger(__name__)


class ThreadingScheduler:
    """Runs callbacks on daemon ``threading.Timer`` threads."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay_s, callback)
        timer.daemon = True
        timer.start()
        return timer


class QtScheduler:
    """Runs callbacks on the Qt event loop of the calling thread."""

    def __init__(self) -> None:
        if QTimer is None:
            raise RuntimeError("PySide6 is not installed")
        # Keeps the newest timer alive until the next one replaces it.
        self._timer: "QTimer | None" = None

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)
        timer.timeout.connect(callback)
        timer.start(int(delay_s * 1000))
        self._timer = timer
        return _QtTimerHandle(timer)


class _QtTimerHandle:
    def __init__(self, timer: "QTimer") -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


class SilenceWatchdog:
    def __init__(self, scheduler: Optional[Scheduler] = None) -> None:
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.Lock()
        self._handle: Optional[TimerHandle] = None
        self._generation = 0

    @property
    def armed(self) -> bool:
        return self._handle is not None

    def arm(self, duration_ms: int, on_fire: Callable[[], None]) -> None:
        """Cancel any pending timer and schedule ``on_fire`` after ``duration_ms``."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            generation = self._generation
            self._handle = self._scheduler.call_later(
                duration_ms / 1000.0, lambda: self._fire(generation, on_fire)
            )
        logger.debug("silence watchdog armed for %d ms", duration_ms)

    def disarm(self) -> None:
        with self._lock:
            if self._handle is None:
                return
            self._cancel_locked()
        logger.debug("silence watchdog disarmed")

    def _fire(self, generation: int, on_fire: Callable[[], None]) -> None:
        with self._lock:
            # A timer that raced its own cancellation must stay silent.
            if generation != self._generation or self._handle is None:
                return
            self._handle = None
        logger.debug("silence watchdog fired")
        on_fire()

    def _cancel_locked(self) -> None:
        handle = self._handle
        self._handle = None
        self._generation += 1
        if handle is not None:
            handle.cancel()
