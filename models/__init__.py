"""
Domain models - single source of truth for all entities.

Design principles:
- Every entity defined once
- Validation at the boundary (backend payloads, log records)
- Backend-agnostic (repository handles persistence)
"""

from .base import PayloadModel, RecordModel
from .findings import (
    Severity,
    FindingKind,
    Location,
    SourceRef,
    Reference,
    Finding,
    SkippedFinding,
    ValidationResult,
    TranslationResult,
)
from .history import ActionType, EntryStatus, HistoryEntry, OwnerStats
from .identity import Identity

__all__ = [
    # Base
    "PayloadModel",
    "RecordModel",
    # Findings
    "Severity",
    "FindingKind",
    "Location",
    "SourceRef",
    "Reference",
    "Finding",
    "SkippedFinding",
    "ValidationResult",
    "TranslationResult",
    # History
    "ActionType",
    "EntryStatus",
    "HistoryEntry",
    "OwnerStats",
    # Identity
    "Identity",
]
