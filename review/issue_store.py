"""
IssueStore - the ordered findings of the document under review.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator, Optional

from errors import InvalidFinding, NotFound
from models import Finding, Severity, SkippedFinding

from .pagination import Page, page_slice

logger = logging.getLogger(__name__)


@dataclass
class LoadReport:
    """Outcome of parsing a findings payload."""
    loaded: int = 0
    skipped: list[SkippedFinding] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def to_dict(self) -> dict:
        return {
            "loaded": self.loaded,
            "skipped": [s.model_dump() for s in self.skipped],
        }


class IssueStore:
    """
    Holds findings in load order.

    Order is a display contract: nothing here sorts by severity.
    """

    def __init__(self):
        self._findings: list[Finding] = []
        self._by_id: dict[str, Finding] = {}

    @staticmethod
    def parse(entries: Iterable[Any]) -> tuple[list[Finding], LoadReport]:
        """
        Model `entries` without touching any store.

        Entries may be Finding objects or raw backend dicts. Entries that
        can't be modeled (ambiguous or absent kind, bad severity, duplicate
        id) are excluded and listed in the report.
        """
        findings: list[Finding] = []
        by_id: dict[str, Finding] = {}
        report = LoadReport()

        for index, entry in enumerate(entries):
            try:
                finding = Finding.from_payload(entry, index)
                if finding.id in by_id:
                    raise InvalidFinding(f"duplicate id {finding.id!r}", index)
            except InvalidFinding as e:
                logger.warning("[IssueStore] Skipping finding: %s", e)
                report.skipped.append(SkippedFinding(index=index, reason=e.reason))
                continue
            findings.append(finding)
            by_id[finding.id] = finding

        report.loaded = len(findings)
        return findings, report

    def load(self, entries: Iterable[Any]) -> LoadReport:
        """
        Replace the current findings with `entries` (no merge).

        The store is only swapped once every entry has been examined.
        """
        findings, report = self.parse(entries)
        self.install(findings)

        if report.skipped:
            logger.warning(
                "[IssueStore] Loaded %d findings, skipped %d", report.loaded, report.skipped_count
            )
        else:
            logger.debug("[IssueStore] Loaded %d findings", report.loaded)
        return report

    def install(self, findings: list[Finding]) -> None:
        """Swap in already-parsed findings, keeping their order."""
        self._findings = list(findings)
        self._by_id = {f.id: f for f in findings}

    def get(self, id: str) -> Finding:
        """Get a finding by id. Raises NotFound."""
        try:
            return self._by_id[id]
        except KeyError:
            raise NotFound("Finding", id) from None

    def find(self, id: str) -> Optional[Finding]:
        return self._by_id.get(id)

    def counts(self) -> dict[str, int]:
        """Tally by severity. Always sums to len(self)."""
        tally = {s.value: 0 for s in Severity}
        for finding in self._findings:
            tally[finding.severity.value] += 1
        return tally

    def by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self._findings if f.severity == severity]

    def remove(self, ids: Iterable[str]) -> int:
        """Dismiss findings by id. Unknown ids are ignored. Returns number removed."""
        doomed = set(ids) & self._by_id.keys()
        if not doomed:
            return 0
        self._findings = [f for f in self._findings if f.id not in doomed]
        for id in doomed:
            del self._by_id[id]
        return len(doomed)

    def page(self, requested_page: int, page_size: int) -> tuple[Page, list[Finding]]:
        return page_slice(self._findings, requested_page, page_size)

    def ids(self) -> list[str]:
        return [f.id for f in self._findings]

    def all(self) -> list[Finding]:
        return list(self._findings)

    def clear(self) -> None:
        self._findings = []
        self._by_id = {}

    def __len__(self) -> int:
        return len(self._findings)

    def __iter__(self) -> Iterator[Finding]:
        return iter(list(self._findings))

    def __contains__(self, id: object) -> bool:
        return id in self._by_id
