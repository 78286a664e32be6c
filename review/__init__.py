"""
Review engine - findings, highlighting, the editable document and history lists.

Usage:
    from review import IssueStore, HighlightCoordinator, HtmlDocumentSurface

    store = IssueStore()
    store.load(result.errors)
    surface = HtmlDocumentSurface()
    surface.load(result.source_html)
    highlighter = HighlightCoordinator(store, surface)
    highlighter.activate("0")

Session-level wiring lives in review.session (it depends on repositories,
which depend on this package's leaf modules).
"""

from .pagination import Page, paginate, page_slice
from .selection import SelectAllPolicy, SelectionSet
from .issue_store import IssueStore, LoadReport
from .timers import Scheduler, TimerHandle, ThreadingScheduler
from .surface import DocumentSnapshot, DocumentSurface, HtmlDocumentSurface
from .highlight import HighlightCoordinator, HighlightState

__all__ = [
    "Page",
    "paginate",
    "page_slice",
    "SelectAllPolicy",
    "SelectionSet",
    "IssueStore",
    "LoadReport",
    "Scheduler",
    "TimerHandle",
    "ThreadingScheduler",
    "DocumentSnapshot",
    "DocumentSurface",
    "HtmlDocumentSurface",
    "HighlightCoordinator",
    "HighlightState",
]
