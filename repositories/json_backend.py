"""
JSON file backend - stores history as a JSONL file.

Directory structure:
    {data_dir}/history/
        history.jsonl     - Entries, one per line, in append order
"""

import json
import logging
import threading
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from config import get_settings
from models import HistoryEntry
from .base import Repository, HistoryRepository

logger = logging.getLogger(__name__)


class WriteQueue:
    """Thread-safe write serialization."""

    def __init__(self):
        self._lock = threading.RLock()

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def append_jsonl(self, path: Path, data: dict) -> None:
        """Append to JSONL file."""
        with self._lock:
            with open(path, "a") as f:
                f.write(json.dumps(data, default=str) + "\n")

    def write_jsonl(self, path: Path, rows: list[dict]) -> None:
        """Atomic JSONL rewrite."""
        with self._lock:
            temp = path.with_suffix(".jsonl.tmp")
            with open(temp, "w") as f:
                for row in rows:
                    f.write(json.dumps(row, default=str) + "\n")
            temp.replace(path)


_write_queue = WriteQueue()


class JsonHistoryRepository(HistoryRepository):
    """JSON file implementation of history repository."""

    def __init__(self, base_path: Optional[Path] = None):
        self._base_path = Path(base_path) if base_path else get_settings().history_dir

    @property
    def _history_file(self) -> Path:
        return self._base_path / "history.jsonl"

    def _write(self, entry: HistoryEntry) -> None:
        self._base_path.mkdir(parents=True, exist_ok=True)
        _write_queue.append_jsonl(self._history_file, entry.to_dict())

    def _append_lock(self) -> threading.RLock:
        return _write_queue.lock

    def _remove(self, ids: set[str]) -> int:
        with _write_queue.lock:
            entries = self.entries()
            kept = [e for e in entries if e.id not in ids]
            removed = len(entries) - len(kept)
            if removed:
                _write_queue.write_jsonl(self._history_file, [e.to_dict() for e in kept])
                logger.info("[History] Deleted %d entries", removed)
            return removed

    def entries(self) -> list[HistoryEntry]:
        path = self._history_file
        if not path.exists():
            return []

        entries = []
        with open(path) as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(HistoryEntry.model_validate(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    logger.warning("[History] Corrupt line %d in %s: %s", line_num, path, e)
        return entries


class JsonRepository(Repository):
    """JSON file backend implementation."""

    def __init__(self, base_path: Optional[Path] = None):
        self._history = JsonHistoryRepository(base_path)

    @property
    def history(self) -> HistoryRepository:
        return self._history
