"""
Repository base classes - define the interface.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import ContextManager, Iterable, Optional, Sequence, TypeVar

from errors import InvalidEntry, PermissionDenied
from models import ActionType, EntryStatus, HistoryEntry, OwnerStats
from review.pagination import Page, page_slice

T = TypeVar("T")


class HistoryRepository(ABC):
    """
    Append-only activity log.

    Entries are never updated in place. The only mutation besides append
    is bulk deletion by id. Backends store entries in append order;
    queries hand them back newest first.
    """

    # === Backend primitives ===

    @abstractmethod
    def _write(self, entry: HistoryEntry) -> None:
        """Persist one new entry after validation."""
        pass

    @abstractmethod
    def _remove(self, ids: set[str]) -> int:
        """Remove entries whose id is in `ids`. Returns number removed."""
        pass

    @abstractmethod
    def entries(self) -> list[HistoryEntry]:
        """All entries in append order (oldest first)."""
        pass

    @abstractmethod
    def _append_lock(self) -> ContextManager:
        """Lock held across the duplicate check and the write of one append."""
        pass

    # === Contract ===

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Append an entry. Raises InvalidEntry if its optional fields don't fit its type."""
        entry.check_consistency()
        with self._append_lock():
            if self.exists(entry.id):
                raise InvalidEntry(f"history entry {entry.id} already exists")
            self._write(entry)
        return entry

    def get(self, id: str) -> Optional[HistoryEntry]:
        for entry in self.entries():
            if entry.id == id:
                return entry
        return None

    def exists(self, id: str) -> bool:
        return self.get(id) is not None

    def query_by_owner(self, owner_id: str) -> list[HistoryEntry]:
        """Entries for one owner, most recently appended first."""
        return [e for e in reversed(self.entries()) if e.owner_id == owner_id]

    def query_all(self) -> list[HistoryEntry]:
        """Every entry, most recently appended first (privileged views)."""
        return list(reversed(self.entries()))

    def count(self, owner_id: Optional[str] = None) -> int:
        entries = self.entries()
        if owner_id is None:
            return len(entries)
        return sum(1 for e in entries if e.owner_id == owner_id)

    def delete_by_ids(self, ids: Iterable[str]) -> int:
        """Remove exactly the matching entries. Unknown ids and an empty set are no-ops."""
        ids = set(ids)
        if not ids:
            return 0
        return self._remove(ids)

    def delete_owned(self, owner_id: str, ids: Iterable[str]) -> int:
        """
        Delete entries on behalf of one owner.

        Refuses the whole batch if any matching entry belongs to someone else.
        """
        ids = set(ids)
        if not ids:
            return 0
        foreign = [e.id for e in self.entries() if e.id in ids and e.owner_id != owner_id]
        if foreign:
            raise PermissionDenied(
                f"{owner_id} cannot delete history owned by others: {', '.join(sorted(foreign))}"
            )
        return self._remove(ids)

    def stats_by_owner(self) -> list[OwnerStats]:
        """Totals per owner, owners in order of first appearance."""
        totals: Counter = Counter()
        validations: Counter = Counter()
        translations: Counter = Counter()
        failed: Counter = Counter()

        for e in self.entries():
            totals[e.owner_id] += 1
            if e.action_type == ActionType.VALIDATE:
                validations[e.owner_id] += 1
            else:
                translations[e.owner_id] += 1
            if e.status == EntryStatus.FAILED:
                failed[e.owner_id] += 1

        return [
            OwnerStats(
                owner_id=owner,
                total=total,
                validations=validations[owner],
                translations=translations[owner],
                failed=failed[owner],
            )
            for owner, total in totals.items()
        ]

    @staticmethod
    def paginate(items: Sequence[T], page: int, page_size: int) -> tuple[Page, list[T]]:
        return page_slice(items, page, page_size)


class Repository(ABC):
    """
    Aggregate repository - provides access to all entity repositories.

    This is what consumers use. Backend implementations provide
    concrete versions of each sub-repository.
    """

    @property
    @abstractmethod
    def history(self) -> HistoryRepository:
        """Access history repository."""
        pass
