"""
ReviewSession - one operator reviewing one label.

Owns the per-session state (IssueStore, SelectionSet, DocumentSurface,
HighlightCoordinator) and talks to the injected HistoryRepository. The
session is discarded when the operator navigates away or restarts.

Backend calls go through PendingCall tokens:

    call = session.start_call(ActionType.VALIDATE, "label.png")
    ...network...
    session.complete_validation(call, result)   # or session.fail_call(call, error)

Only the most recent call may apply its result. A call that was cancelled
or superseded raises CallCancelled on completion and changes nothing.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Union

from config import ReviewSettings, get_settings
from errors import BackendError, CallCancelled, InvalidResult
from models import ActionType, EntryStatus, HistoryEntry, Identity, Severity, TranslationResult, ValidationResult
from repositories.base import HistoryRepository

from .backend import LabelBackend
from .highlight import HighlightCoordinator, HighlightState
from .issue_store import IssueStore, LoadReport
from .pagination import Page
from .selection import SelectAllPolicy, SelectionSet
from .surface import DocumentSnapshot, DocumentSurface, HtmlDocumentSurface
from .timers import Scheduler

logger = logging.getLogger(__name__)


@dataclass
class PendingCall:
    """An in-flight validate/translate request."""
    token: int
    action_type: ActionType
    file_name: str
    country: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    cancelled: bool = False


@dataclass(frozen=True)
class ExportBundle:
    """What export hands to the download/storage collaborator."""
    file_name: str
    document: DocumentSnapshot


class ReviewSession:
    """Review state for one operator and one document."""

    def __init__(
        self,
        identity: Identity,
        history: HistoryRepository,
        surface: Optional[DocumentSurface] = None,
        scheduler: Optional[Scheduler] = None,
        settings: Optional[ReviewSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.identity = identity
        self.history = history

        self.store = IssueStore()
        self.selection = SelectionSet(SelectAllPolicy.PAGE)
        self.surface = surface or HtmlDocumentSurface()
        self.highlighter = HighlightCoordinator(
            self.store,
            self.surface,
            scheduler=scheduler,
            duration=self.settings.highlight_duration,
        )

        self.result: Optional[ValidationResult] = None
        self.last_report: Optional[LoadReport] = None
        self.mode = ActionType.VALIDATE
        self.country: Optional[str] = None
        self.source_file: Optional[str] = None
        self.findings_page = 1
        self.closed = False

        self._lock = threading.RLock()
        self._call_seq = 0
        self._pending: Optional[PendingCall] = None

    # === Loading results ===

    def load_result(self, result: Union[ValidationResult, dict], markup: Optional[str] = None) -> LoadReport:
        """
        Install a validation result without recording history.

        Used for results that arrive outside a tracked call (e.g. a saved
        result reopened). `markup` defaults to the result's source_html.
        """
        with self._lock:
            result = self._parse_result(result)
            findings, report = IssueStore.parse(result.errors)
            self._install(result, findings, report, markup)
            return report

    def _parse_result(self, result: Union[ValidationResult, dict]) -> ValidationResult:
        if isinstance(result, ValidationResult):
            return result
        return ValidationResult.from_payload(result)

    def _install(self, result: ValidationResult, findings, report: LoadReport, markup: Optional[str]) -> None:
        self.highlighter.deactivate()
        self.store.install(findings)
        self.selection.clear()
        self.findings_page = 1
        markup = markup if markup is not None else result.source_html
        if markup is not None:
            self.surface.load(markup)
        self.result = result
        self.last_report = report
        self.mode = ActionType.VALIDATE
        self.country = None
        if report.skipped:
            logger.warning(
                "[ReviewSession] %s: skipped %d malformed finding(s)",
                self.identity.owner_id, report.skipped_count,
            )

    # === Backend calls ===

    def start_call(self, action_type: ActionType, file_name: str, country: Optional[str] = None) -> PendingCall:
        """Begin a backend call. Supersedes any call still in flight."""
        with self._lock:
            self._ensure_open()
            if self._pending is not None:
                self._pending.cancelled = True
                logger.info("[ReviewSession] Superseded call %d", self._pending.token)
            self._call_seq += 1
            self._pending = PendingCall(
                token=self._call_seq,
                action_type=action_type,
                file_name=file_name,
                country=country.upper() if country else None,
            )
            self.source_file = file_name
            return self._pending

    def cancel_pending(self) -> Optional[PendingCall]:
        """Cancel the in-flight call, if any. Its result will be ignored."""
        with self._lock:
            call, self._pending = self._pending, None
            if call is not None:
                call.cancelled = True
                logger.info("[ReviewSession] Cancelled call %d", call.token)
            return call

    @property
    def pending(self) -> Optional[PendingCall]:
        return self._pending

    def complete_validation(
        self,
        call: PendingCall,
        result: Union[ValidationResult, dict],
        markup: Optional[str] = None,
    ) -> LoadReport:
        """
        Apply a validation result for `call`.

        Everything is checked before anything changes: the result is parsed,
        the history entry is appended (InvalidEntry aborts here), then the
        findings and document are swapped in together.
        """
        with self._lock:
            self._claim(call)
            try:
                result = self._parse_result(result)
            except InvalidResult as e:
                self.fail_call(call, e)
                raise
            self._pending = None
            findings, report = IssueStore.parse(result.errors)

            tally = {s: 0 for s in Severity}
            for f in findings:
                tally[f.severity] += 1
            entry = HistoryEntry.for_validation(
                owner_id=self.identity.owner_id,
                file_name=call.file_name,
                error_count=tally[Severity.ERROR],
                warning_count=tally[Severity.WARNING],
            )
            self.history.append(entry)

            self._install(result, findings, report, markup)
            logger.info(
                "[ReviewSession] %s validated %s: %d finding(s)",
                self.identity.owner_id, call.file_name, report.loaded,
            )
            return report

    def complete_translation(self, call: PendingCall, result: TranslationResult) -> TranslationResult:
        """Apply a translation: the rendered label replaces the document, findings reset."""
        with self._lock:
            self._claim(call)
            self._pending = None
            country = result.target_country or call.country or ""
            entry = HistoryEntry.for_translation(
                owner_id=self.identity.owner_id,
                file_name=call.file_name,
                country=country,
            )
            self.history.append(entry)

            self.highlighter.deactivate()
            self.store.clear()
            self.selection.clear()
            self.findings_page = 1
            self.surface.load(result.html_output)
            self.result = None
            self.last_report = None
            self.mode = ActionType.TRANSLATE
            self.country = entry.country
            logger.info(
                "[ReviewSession] %s translated %s for %s",
                self.identity.owner_id, call.file_name, entry.country,
            )
            return result

    def fail_call(self, call: PendingCall, error: Exception) -> None:
        """
        Record a failed call. Findings and document keep their pre-call state.

        A cancelled or superseded call is dropped silently.
        """
        with self._lock:
            if call is not self._pending or call.cancelled:
                return
            self._pending = None
            if call.action_type == ActionType.VALIDATE:
                entry = HistoryEntry.for_validation(
                    owner_id=self.identity.owner_id,
                    file_name=call.file_name,
                    error_count=0,
                    warning_count=0,
                    status=EntryStatus.FAILED,
                )
            else:
                entry = HistoryEntry.for_translation(
                    owner_id=self.identity.owner_id,
                    file_name=call.file_name,
                    country=call.country or "",
                    status=EntryStatus.FAILED,
                )
            logger.error(
                "[ReviewSession] %s %s failed for %s: %s",
                self.identity.owner_id, call.action_type.value, call.file_name, error,
            )
            self.history.append(entry)

    def validate(self, backend: LabelBackend, file_name: str, content: bytes, country: str) -> LoadReport:
        """Run a validation round trip. Raises BackendError on service failure."""
        call = self.start_call(ActionType.VALIDATE, file_name, country)
        try:
            result = backend.validate(file_name, content, country)
        except (BackendError, InvalidResult) as e:
            self.fail_call(call, e)
            raise
        return self.complete_validation(call, result)

    def translate(self, backend: LabelBackend, file_name: str, content: bytes, country: str) -> TranslationResult:
        """Run a translation round trip. Raises BackendError or InvalidResult on failure."""
        call = self.start_call(ActionType.TRANSLATE, file_name, country)
        try:
            result = backend.translate(file_name, content, country)
        except (BackendError, InvalidResult) as e:
            self.fail_call(call, e)
            raise
        return self.complete_translation(call, result)

    def _claim(self, call: PendingCall) -> None:
        if self.closed or call.cancelled or call is not self._pending:
            raise CallCancelled(f"call {call.token} was cancelled or superseded")

    # === Findings list ===

    def activate(self, finding_id: str) -> HighlightState:
        with self._lock:
            return self.highlighter.activate(finding_id)

    def list_findings(self, requested_page: int = 1) -> tuple[Page, list]:
        """One page of findings. Moving to another page drops the selection."""
        with self._lock:
            window, items = self.store.page(requested_page, self.settings.page_size)
            if window.page != self.findings_page:
                self.selection.on_page_change()
                self.findings_page = window.page
            return window, items

    def toggle_finding(self, finding_id: str) -> bool:
        with self._lock:
            self.store.get(finding_id)
            return self.selection.toggle(finding_id)

    def select_all_findings(self) -> set[str]:
        """Select (or deselect) every finding on the current page."""
        with self._lock:
            _, items = self.store.page(self.findings_page, self.settings.page_size)
            return self.selection.select_all([f.id for f in items])

    def dismiss_selected(self) -> int:
        """Remove the selected findings from the list. Returns number removed."""
        with self._lock:
            ids = self.selection.consume()
            if self.highlighter.active_id in ids:
                self.highlighter.deactivate()
            removed = self.store.remove(ids)
            window, _ = self.store.page(self.findings_page, self.settings.page_size)
            self.findings_page = window.page
            return removed

    # === Editing ===

    def edit(self, selector: str, text: str, index: int = 0) -> bool:
        """Apply one edit in the surface. False if nothing is loaded or nothing matches."""
        with self._lock:
            self._ensure_open()
            if not self.surface.editable:
                return False
            return self.surface.edit(selector, text, index)

    def undo(self) -> bool:
        with self._lock:
            return self.surface.undo()

    def redo(self) -> bool:
        with self._lock:
            return self.surface.redo()

    def shortcut(self, combo: str) -> bool:
        with self._lock:
            return self.surface.handle_shortcut(combo)

    # === Export ===

    @property
    def export_file_name(self) -> str:
        if self.result is not None:
            return self.result.export_file_name
        stem = (self.source_file or "label").rsplit(".", 1)[0]
        return f"{stem}_edited.html"

    def export(self, file_name: Optional[str] = None) -> ExportBundle:
        """
        Capture the document once and log the action.

        If the history entry is rejected (InvalidEntry) the export is
        aborted and no bundle is returned.
        """
        with self._lock:
            self._ensure_open()
            snapshot = self.surface.capture_snapshot()
            bundle = ExportBundle(file_name=file_name or self.export_file_name, document=snapshot)

            if self.mode == ActionType.TRANSLATE:
                entry = HistoryEntry.for_translation(
                    owner_id=self.identity.owner_id,
                    file_name=bundle.file_name,
                    country=self.country or "",
                )
            else:
                counts = self.store.counts()
                entry = HistoryEntry.for_validation(
                    owner_id=self.identity.owner_id,
                    file_name=bundle.file_name,
                    error_count=counts[Severity.ERROR.value],
                    warning_count=counts[Severity.WARNING.value],
                )
            self.history.append(entry)
            logger.info("[ReviewSession] %s exported %s", self.identity.owner_id, bundle.file_name)
            return bundle

    # === Lifecycle ===

    def close(self) -> None:
        """End the session: cancel the call in flight and drop all state."""
        with self._lock:
            self.cancel_pending()
            self.highlighter.deactivate()
            self.store.clear()
            self.selection.clear()
            self.result = None
            self.closed = True

    def _ensure_open(self) -> None:
        if self.closed:
            raise CallCancelled("review session is closed")

    def summary(self) -> dict[str, Any]:
        """Export for API responses."""
        with self._lock:
            return {
                "owner_id": self.identity.owner_id,
                "product_name": self.result.product_name if self.result else None,
                "product_type": self.result.product_type if self.result else None,
                "mode": self.mode.value,
                "country": self.country,
                "findings": len(self.store),
                "counts": self.store.counts(),
                "skipped": self.last_report.skipped_count if self.last_report else 0,
                "highlight": {
                    "state": self.highlighter.state.value,
                    "finding_id": self.highlighter.active_id,
                },
                "selected": sorted(self.selection.ids()),
                "pending": self._pending.action_type.value if self._pending else None,
            }
