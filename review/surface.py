"""
DocumentSurface - the editable rendering of the label.

Edits stay inside the surface. Nothing pushes the document back out on
every change; callers pull a DocumentSnapshot when they need one (export,
save, validate again).
"""

import hashlib
import html
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)

UNDO_LIMIT = 100

UNDO_SHORTCUTS = {"ctrl+z", "meta+z"}
REDO_SHORTCUTS = {"ctrl+y", "meta+y", "ctrl+shift+z", "meta+shift+z"}


@dataclass(frozen=True)
class DocumentSnapshot:
    """Point-in-time serialization of the surface content."""
    content: str
    captured_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def digest(self) -> str:
        return hashlib.sha256(self.content.encode("utf-8")).hexdigest()

    def __len__(self) -> int:
        return len(self.content)


class DocumentSurface(ABC):
    """
    Capability interface for an embeddable editable document.

    Any editor that can load markup, hand back its current content on
    demand and toggle marker classes on nodes can back a review session.
    """

    editable: bool = False

    @abstractmethod
    def load(self, markup: Union[str, bytes, None]) -> None:
        """Replace the content entirely and make it editable. Never raises."""
        pass

    @abstractmethod
    def capture_snapshot(self) -> DocumentSnapshot:
        """Pull the live content. Does not reset or reload anything."""
        pass

    @abstractmethod
    def highlight(self, selector: str, css_class: str) -> int:
        """Add a marker class to every node matching `selector`. Returns match count."""
        pass

    @abstractmethod
    def clear_highlights(self) -> None:
        """Remove every marker this surface applied."""
        pass


class HtmlDocumentSurface(DocumentSurface):
    """
    HTML surface over a BeautifulSoup tree.

    Holds its own edit history; undo/redo are routed here from the standard
    keyboard shortcuts and are not tracked anywhere else.
    """

    def __init__(self, undo_limit: int = UNDO_LIMIT):
        self._lock = threading.RLock()
        self._soup = BeautifulSoup("", "html.parser")
        self._marked: list[tuple[Tag, str]] = []
        self._active_highlight: Optional[tuple[str, str]] = None
        self._undo: list[str] = []
        self._redo: list[str] = []
        self._undo_limit = undo_limit
        self.editable = False
        self.focused: Optional[str] = None  # Selector of the node holding the caret
        self.degraded = False  # Last load fell back to plain text

    # === Capability interface ===

    def load(self, markup: Union[str, bytes, None]) -> None:
        with self._lock:
            self._marked = []
            self._active_highlight = None
            self._undo.clear()
            self._redo.clear()
            self.focused = None
            self.degraded = False
            self._soup = self._parse(markup)
            self.editable = True

    def capture_snapshot(self) -> DocumentSnapshot:
        with self._lock:
            return DocumentSnapshot(content=self._serialize_clean())

    def highlight(self, selector: str, css_class: str) -> int:
        with self._lock:
            matches = self._select(selector)
            for el in matches:
                classes = list(el.get("class") or [])
                if css_class not in classes:
                    el["class"] = classes + [css_class]
                    self._marked.append((el, css_class))
            self._active_highlight = (selector, css_class)
            return len(matches)

    def clear_highlights(self) -> None:
        with self._lock:
            self._strip_markers()
            self._marked = []
            self._active_highlight = None

    # === Editing (what the operator does inside the surface) ===

    def edit(self, selector: str, text: str, index: int = 0) -> bool:
        """
        Replace the text of the `index`-th node matching `selector`.

        Returns False when nothing matches. The change is recorded in the
        surface's own undo history and the caret moves to the node.
        """
        with self._lock:
            if not self.editable:
                raise RuntimeError("surface has no document loaded")
            matches = self._select(selector)
            if index >= len(matches):
                return False
            self._push_undo()
            matches[index].string = text
            self.focused = selector
            self._reapply_highlight()
            return True

    def undo(self) -> bool:
        with self._lock:
            if not self._undo:
                return False
            self._redo.append(self._serialize_clean())
            self._restore(self._undo.pop())
            return True

    def redo(self) -> bool:
        with self._lock:
            if not self._redo:
                return False
            self._undo.append(self._serialize_clean())
            self._restore(self._redo.pop())
            return True

    def handle_shortcut(self, combo: str) -> bool:
        """Route a keyboard shortcut like 'Ctrl+Z' to the edit history."""
        key = "+".join(part.strip().lower() for part in combo.split("+"))
        if key in UNDO_SHORTCUTS:
            return self.undo()
        if key in REDO_SHORTCUTS:
            return self.redo()
        return False

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    # === Queries ===

    def count(self, selector: str) -> int:
        with self._lock:
            return len(self._select(selector))

    def text_of(self, selector: str, index: int = 0) -> Optional[str]:
        with self._lock:
            matches = self._select(selector)
            if index >= len(matches):
                return None
            return matches[index].get_text()

    def marked(self, css_class: Optional[str] = None) -> list[Tag]:
        """Nodes currently carrying a marker (optionally a specific one)."""
        with self._lock:
            return [el for el, cls in self._marked if css_class is None or cls == css_class]

    # === Internals ===

    def _parse(self, markup: Union[str, bytes, None]) -> BeautifulSoup:
        if markup is None:
            return BeautifulSoup("", "html.parser")
        try:
            if isinstance(markup, bytes):
                markup = markup.decode("utf-8", errors="replace")
            return BeautifulSoup(markup, "html.parser")
        except Exception as e:
            # Render whatever we were given as text rather than failing the caller
            logger.warning("[DocumentSurface] Malformed markup, showing as text: %s", e)
            self.degraded = True
            escaped = html.escape(str(markup))
            return BeautifulSoup(f"<pre>{escaped}</pre>", "html.parser")

    def _select(self, selector: str) -> list[Tag]:
        try:
            return self._soup.select(selector)
        except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
            logger.debug("[DocumentSurface] Selector %r matches nothing: %s", selector, e)
            return []

    def _strip_markers(self) -> None:
        for el, cls in self._marked:
            classes = [c for c in (el.get("class") or []) if c != cls]
            if classes:
                el["class"] = classes
            elif el.has_attr("class"):
                del el["class"]

    def _serialize_clean(self) -> str:
        """Serialize without marker classes, leaving the live markers in place."""
        marked = list(self._marked)
        self._strip_markers()
        try:
            return str(self._soup)
        finally:
            for el, cls in marked:
                el["class"] = list(el.get("class") or []) + [cls]

    def _push_undo(self) -> None:
        self._undo.append(self._serialize_clean())
        if len(self._undo) > self._undo_limit:
            self._undo.pop(0)
        self._redo.clear()

    def _restore(self, content: str) -> None:
        self._soup = BeautifulSoup(content, "html.parser")
        self._marked = []
        self._reapply_highlight()

    def _reapply_highlight(self) -> None:
        """Keep the active marker on the same selector after the tree changes."""
        if self._active_highlight is None:
            return
        selector, css_class = self._active_highlight
        self._strip_markers()
        self._marked = []
        self.highlight(selector, css_class)
