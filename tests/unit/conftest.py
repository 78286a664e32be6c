"""
Unit test fixtures.

All unit tests should be:
- Fast (< 100ms)
- Isolated (no external dependencies)
- Deterministic (same result every time)
"""

import pytest
from datetime import datetime

from models import Identity
from repositories.memory_backend import MemoryHistoryRepository
from review.timers import Scheduler, TimerHandle


@pytest.fixture
def fixed_time():
    """Fixed datetime for deterministic tests."""
    return datetime(2024, 1, 15, 12, 0, 0)


def missing_payload(selector, severity="error", item="Allergen statement", **extra):
    data = {
        "location": {"selector": selector, "elementType": "p"},
        "missing": {"severity": severity, "item": item, "message": f"{item} is required"},
        "reference": {"regulationId": "21 CFR 101.4", "guidanceText": "Declare it."},
    }
    data.update(extra)
    return data


def incorrect_payload(selector, severity="warning", current="100 g", issue="Wrong unit", **extra):
    data = {
        "location": {"selector": selector},
        "incorrect": {
            "severity": severity,
            "current_value": current,
            "issue": issue,
            "message": issue,
        },
    }
    data.update(extra)
    return data


@pytest.fixture
def finding_payloads():
    """Three well-formed findings in backend shape."""
    return [
        missing_payload(".allergens", id="f1"),
        incorrect_payload(".net-weight", id="f2"),
        missing_payload("#product-name", severity="info", item="Brand", id="f3"),
    ]


@pytest.fixture
def result_payload(finding_payloads, label_html):
    return {
        "product_name": "Choco Bar",
        "product_type": "confectionery",
        "source_html": label_html,
        "total_errors": len(finding_payloads),
        "errors": finding_payloads,
    }


class FakeTimer(TimerHandle):
    def __init__(self, scheduler, due, callback):
        self.scheduler = scheduler
        self.due = due
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler(Scheduler):
    """Manual clock: timers fire only when advance() passes their due time."""

    def __init__(self):
        self.now = 0.0
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer(self, self.now + delay, callback)
        self.timers.append(timer)
        return timer

    def advance(self, seconds):
        self.now += seconds
        for timer in list(self.timers):
            if not timer.cancelled and not timer.fired and timer.due <= self.now:
                timer.fired = True
                timer.callback()

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled and not t.fired]


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def history_repo():
    return MemoryHistoryRepository()


@pytest.fixture
def alice():
    return Identity(owner_id="alice", display_name="Alice")


@pytest.fixture
def admin():
    return Identity(owner_id="root", is_privileged=True)


@pytest.fixture
def make_missing():
    return missing_payload


@pytest.fixture
def make_incorrect():
    return incorrect_payload
