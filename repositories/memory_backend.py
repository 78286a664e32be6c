"""
In-memory backend - for tests and throwaway sessions.
"""

import threading

from models import HistoryEntry
from .base import Repository, HistoryRepository


class MemoryHistoryRepository(HistoryRepository):
    """List-backed history repository."""

    def __init__(self):
        self._lock = threading.RLock()
        self._entries: list[HistoryEntry] = []

    def _write(self, entry: HistoryEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def _remove(self, ids: set[str]) -> int:
        with self._lock:
            before = len(self._entries)
            self._entries = [e for e in self._entries if e.id not in ids]
            return before - len(self._entries)

    def entries(self) -> list[HistoryEntry]:
        with self._lock:
            return list(self._entries)

    def _append_lock(self) -> threading.RLock:
        return self._lock


class MemoryRepository(Repository):
    """In-memory backend implementation."""

    def __init__(self):
        self._history = MemoryHistoryRepository()

    @property
    def history(self) -> HistoryRepository:
        return self._history
