"""
SelectionSet - ids checked for a bulk action.
"""

from enum import Enum
from typing import Iterable, Optional


class SelectAllPolicy(str, Enum):
    """
    What "select all" covers on a paginated list.

    Each list picks one explicitly:
    - PAGE: only the ids visible on the current page (per-user history)
    - COLLECTION: every id in the collection (admin history)
    """
    PAGE = "page"
    COLLECTION = "collection"


class SelectionSet:
    """Pure set semantics over string ids. No I/O."""

    def __init__(self, policy: SelectAllPolicy = SelectAllPolicy.PAGE):
        self.policy = policy
        self._ids: set[str] = set()

    def toggle(self, id: str) -> bool:
        """Flip membership. Returns True if the id is now selected."""
        if id in self._ids:
            self._ids.discard(id)
            return False
        self._ids.add(id)
        return True

    def set_selected(self, id: str, selected: bool) -> None:
        """Set membership explicitly (checkbox change)."""
        if selected:
            self._ids.add(id)
        else:
            self._ids.discard(id)

    def select_all(
        self,
        ids_in_view: Iterable[str],
        collection_ids: Optional[Iterable[str]] = None,
    ) -> set[str]:
        """
        Select every id in scope, per the policy.

        With COLLECTION policy `collection_ids` is required. If every id in
        scope is already selected, the scope is deselected instead, the way a
        "select all" checkbox behaves. Returns the ids in scope.
        """
        if self.policy == SelectAllPolicy.COLLECTION:
            if collection_ids is None:
                raise ValueError("COLLECTION policy needs collection_ids")
            scope = set(collection_ids)
        else:
            scope = set(ids_in_view)

        if scope and scope <= self._ids:
            self._ids -= scope
        else:
            self._ids |= scope
        return scope

    def all_selected(self, ids: Iterable[str]) -> bool:
        """True if every given id is selected (and there is at least one)."""
        ids = set(ids)
        return bool(ids) and ids <= self._ids

    def clear(self) -> None:
        self._ids.clear()

    def on_page_change(self) -> None:
        """The underlying list moved to another page; selection does not carry over."""
        self.clear()

    def consume(self) -> set[str]:
        """Take the current selection and clear it in one step."""
        taken = self._ids
        self._ids = set()
        return taken

    def discard_missing(self, existing_ids: Iterable[str]) -> None:
        """Drop ids no longer present in the collection."""
        self._ids &= set(existing_ids)

    def is_selected(self, id: str) -> bool:
        return id in self._ids

    def size(self) -> int:
        return len(self._ids)

    def ids(self) -> set[str]:
        return set(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, id: object) -> bool:
        return id in self._ids
