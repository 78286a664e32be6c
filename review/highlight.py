"""
HighlightCoordinator - transient markers for the finding being inspected.

Two states:

    Idle  --activate(A)-->  Active(A)
    Active(A) --activate(A)--> Idle            (second click cancels)
    Active(A) --activate(B)--> Active(B)       (markers swapped in one step)
    Active(A) --timer(A)-->    Idle            (auto-expiry)

At most one expiry timer is pending. Every activation bumps a generation
counter and the timer carries the generation it was armed for, so a timer
that fires late for an older activation does nothing.
"""

import logging
import threading
from enum import Enum
from typing import Callable, Optional

from config import HIGHLIGHT_DURATION_MS

from .issue_store import IssueStore
from .surface import DocumentSurface
from .timers import Scheduler, ThreadingScheduler, TimerHandle

logger = logging.getLogger(__name__)

Listener = Callable[["HighlightState", Optional[str]], None]


class HighlightState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class HighlightCoordinator:
    """Maps "activate finding N" to markers on the nodes finding N points at."""

    def __init__(
        self,
        store: IssueStore,
        surface: DocumentSurface,
        scheduler: Optional[Scheduler] = None,
        duration: float = HIGHLIGHT_DURATION_MS / 1000.0,
    ):
        self._store = store
        self._surface = surface
        self._scheduler = scheduler or ThreadingScheduler()
        self.duration = duration

        self._lock = threading.RLock()
        self._active_id: Optional[str] = None
        self._generation = 0
        self._timer: Optional[TimerHandle] = None
        self._listeners: list[Listener] = []
        self.last_match_count = 0

    @property
    def state(self) -> HighlightState:
        return HighlightState.ACTIVE if self._active_id is not None else HighlightState.IDLE

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    @property
    def has_pending_timer(self) -> bool:
        return self._timer is not None

    def activate(self, finding_id: str) -> HighlightState:
        """
        Toggle the highlight for a finding.

        Raises NotFound for an unknown id, before touching any state.
        Zero matching nodes is a normal outcome: the node may have been
        edited away.
        """
        with self._lock:
            finding = self._store.get(finding_id)
            self._cancel_timer()

            if self._active_id == finding_id:
                self._surface.clear_highlights()
                self._active_id = None
                self._generation += 1
                logger.debug("[HighlightCoordinator] Toggled off %s", finding_id)
                self._notify()
                return HighlightState.IDLE

            self._surface.clear_highlights()
            self.last_match_count = self._surface.highlight(
                finding.location.selector, finding.highlight_class
            )
            self._active_id = finding_id
            self._generation += 1
            generation = self._generation
            self._timer = self._scheduler.call_later(
                self.duration, lambda: self._expire(generation)
            )
            logger.debug(
                "[HighlightCoordinator] Active %s (%s) on %d node(s)",
                finding_id, finding.severity.value, self.last_match_count,
            )
            self._notify()
            return HighlightState.ACTIVE

    def deactivate(self) -> None:
        """Drop any highlight and pending timer immediately."""
        with self._lock:
            self._cancel_timer()
            self._generation += 1
            if self._active_id is None:
                return
            self._surface.clear_highlights()
            self._active_id = None
            self._notify()

    def on_change(self, listener: Listener) -> None:
        """Register a callback invoked with (state, active_id) after each transition."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _expire(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or self._active_id is None:
                return
            logger.debug("[HighlightCoordinator] Expired %s", self._active_id)
            self._timer = None
            self._surface.clear_highlights()
            self._active_id = None
            self._notify()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _notify(self) -> None:
        state, active = self.state, self._active_id
        for listener in list(self._listeners):
            try:
                listener(state, active)
            except Exception as e:
                logger.error("[HighlightCoordinator] Listener error: %s", e)
