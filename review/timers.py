"""
Single-shot timer scheduling.

The highlight coordinator takes a Scheduler so tests can drive time by
hand; production uses threading.Timer.
"""

import threading
from abc import ABC, abstractmethod
from typing import Callable


class TimerHandle(ABC):
    """A pending single-shot callback."""

    @abstractmethod
    def cancel(self) -> None:
        """Cancel the callback. Safe to call after it fired."""
        pass


class Scheduler(ABC):
    """Something that can run a callback once after a delay."""

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        """Schedule `callback` after `delay` seconds."""
        pass


class _ThreadingTimerHandle(TimerHandle):
    def __init__(self, timer: threading.Timer):
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class ThreadingScheduler(Scheduler):
    """Runs callbacks on daemon timer threads."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _ThreadingTimerHandle(timer)
