"""
Repository layer - abstracts persistence.

Usage:
    from repositories import get_repository

    repo = get_repository()  # Returns configured backend
    repo.history.append(entry)
    entries = repo.history.query_by_owner("alice")

Backends are swappable via config (LABEL_REVIEW_HISTORY_BACKEND).
"""

from pathlib import Path
from typing import Optional

from config import get_settings
from .base import Repository, HistoryRepository
from .json_backend import JsonRepository
from .memory_backend import MemoryRepository

_backend: Optional[str] = None  # None = use settings
_base_path: Optional[Path] = None
_instance: Optional[Repository] = None


def get_repository() -> Repository:
    """Get the configured repository instance."""
    global _instance

    if _instance is None:
        backend = _backend or get_settings().history_backend
        if backend == "json":
            _instance = JsonRepository(_base_path)
        elif backend == "memory":
            _instance = MemoryRepository()
        else:
            raise ValueError(f"Unknown backend: {backend}")

    return _instance


def configure_backend(backend: str, base_path: Optional[Path] = None) -> None:
    """Configure the repository backend."""
    global _backend, _base_path, _instance
    _backend = backend
    _base_path = base_path
    _instance = None  # Force re-initialization


__all__ = [
    "get_repository",
    "configure_backend",
    "Repository",
    "HistoryRepository",
    "JsonRepository",
    "MemoryRepository",
]
