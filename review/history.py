"""
HistoryBrowser - one paginated, filterable, selectable history list.

Two list screens exist and they differ in what "select all" covers:

    HistoryScope.OWNER  - the operator's own history; select all = current page
    HistoryScope.ALL    - privileged overview;       select all = whole collection
"""

from enum import Enum
from typing import Iterable, Optional

from config import get_settings
from errors import PermissionDenied
from models import ActionType, EntryStatus, HistoryEntry, Identity
from repositories.base import HistoryRepository

from .pagination import Page
from .selection import SelectAllPolicy, SelectionSet


class HistoryScope(str, Enum):
    OWNER = "owner"
    ALL = "all"


def filter_entries(
    entries: Iterable[HistoryEntry],
    action_type: Optional[ActionType] = None,
    status: Optional[EntryStatus] = None,
    query: Optional[str] = None,
) -> list[HistoryEntry]:
    """Filter entries, keeping their order. `query` matches file name or owner, case-insensitive."""
    needle = query.strip().lower() if query else ""
    result = []
    for e in entries:
        if action_type is not None and e.action_type != action_type:
            continue
        if status is not None and e.status != status:
            continue
        if needle and needle not in e.file_name.lower() and needle not in e.owner_id.lower():
            continue
        result.append(e)
    return result


class HistoryBrowser:
    """State behind a history list screen."""

    def __init__(
        self,
        repo: HistoryRepository,
        identity: Identity,
        scope: HistoryScope = HistoryScope.OWNER,
        page_size: Optional[int] = None,
        policy: Optional[SelectAllPolicy] = None,
    ):
        if scope == HistoryScope.ALL and not identity.is_privileged:
            raise PermissionDenied(f"{identity.owner_id} may not view all history")

        self.repo = repo
        self.identity = identity
        self.scope = scope
        self.page_size = page_size or get_settings().page_size
        if policy is None:
            policy = SelectAllPolicy.COLLECTION if scope == HistoryScope.ALL else SelectAllPolicy.PAGE
        self.selection = SelectionSet(policy)
        self.current_page = 1

        self.action_type: Optional[ActionType] = None
        self.status: Optional[EntryStatus] = None
        self.query: Optional[str] = None

    def set_filters(
        self,
        action_type: Optional[ActionType] = None,
        status: Optional[EntryStatus] = None,
        query: Optional[str] = None,
    ) -> None:
        """Replace the filters. Resets to page 1 and drops the selection."""
        self.action_type = action_type
        self.status = status
        self.query = query
        self.current_page = 1
        self.selection.clear()

    def entries(self) -> list[HistoryEntry]:
        """Every entry in scope after filtering, newest first."""
        if self.scope == HistoryScope.ALL:
            base = self.repo.query_all()
        else:
            base = self.repo.query_by_owner(self.identity.owner_id)
        return filter_entries(base, self.action_type, self.status, self.query)

    def page(self, requested_page: Optional[int] = None) -> tuple[Page, list[HistoryEntry]]:
        """Entries for a page (the current one if omitted). Changing page drops the selection."""
        window, items = self.repo.paginate(
            self.entries(), requested_page or self.current_page, self.page_size
        )
        if window.page != self.current_page:
            self.selection.on_page_change()
            self.current_page = window.page
        return window, items

    def toggle(self, entry_id: str) -> bool:
        return self.selection.toggle(entry_id)

    def select_all(self) -> set[str]:
        _, items = self.page()
        return self.selection.select_all(
            [e.id for e in items],
            collection_ids=[e.id for e in self.entries()],
        )

    def all_selected(self) -> bool:
        """Checkbox state for the "select all" control."""
        if self.selection.policy == SelectAllPolicy.COLLECTION:
            return self.selection.all_selected(e.id for e in self.entries())
        _, items = self.page()
        return self.selection.all_selected(e.id for e in items)

    def delete_selected(self) -> int:
        """
        Delete the selected entries. The selection is consumed either way.

        Owner-scoped lists refuse the batch if it includes someone else's
        entries (PermissionDenied).
        """
        ids = self.selection.consume()
        if not ids:
            return 0
        if self.scope == HistoryScope.ALL:
            removed = self.repo.delete_by_ids(ids)
        else:
            removed = self.repo.delete_owned(self.identity.owner_id, ids)
        self.page()  # re-clamp if the last page emptied
        return removed
