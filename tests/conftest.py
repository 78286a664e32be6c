"""
Root test configuration.

Test organization:
- unit/        Fast, isolated, no I/O, mocked dependencies
- integration/ Component boundaries, real I/O to temp locations

Run specific levels:
    pytest tests/unit -v           # Fast feedback loop
    pytest tests/integration -v    # Before commit
    pytest tests -v                # Everything
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Fast isolated tests")
    config.addinivalue_line("markers", "integration: Component boundary tests")
    config.addinivalue_line("markers", "slow: Tests that take > 1s")


@pytest.fixture(autouse=True)
def _isolated_settings(tmp_path, monkeypatch):
    """Every test gets fresh settings pointing at a throwaway data dir."""
    import config

    monkeypatch.setenv("LABEL_REVIEW_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("LABEL_REVIEW_CONFIG", str(tmp_path / "missing.yaml"))
    config.reset_settings()
    yield
    config.reset_settings()


@pytest.fixture
def label_html():
    """A small rendered label."""
    return (
        "<html><body>"
        "<h1 id='product-name'>Choco Bar</h1>"
        "<p class='ingredients'>Sugar, cocoa</p>"
        "<p class='allergens'>Contains milk</p>"
        "<p class='net-weight'>100 g</p>"
        "</body></html>"
    )


def pytest_terminal_summary(terminalreporter, exitstatus, config):
    """Add timing summary at end of test run."""
    stats = terminalreporter.stats

    # Collect slowest tests
    if 'passed' in stats:
        durations = []
        for report in stats['passed']:
            if hasattr(report, 'duration'):
                durations.append((report.duration, report.nodeid))

        if durations:
            durations.sort(reverse=True)
            terminalreporter.write_sep("=", "slowest 5 tests")
            for duration, nodeid in durations[:5]:
                terminalreporter.write_line(f"  {duration:.2f}s  {nodeid}")
