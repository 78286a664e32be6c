"""Integration test: history CLI against a JSON history file."""

import pytest
from rich.console import Console

import cli
from models import HistoryEntry
from repositories import configure_backend, get_repository


@pytest.fixture
def repo(history_dir, monkeypatch):
    monkeypatch.setattr(cli, "console", Console(width=200))
    configure_backend("json", history_dir)
    repo = get_repository().history
    repo.append(HistoryEntry.for_validation("alice", "choco.png", 2, 1))
    repo.append(HistoryEntry.for_translation("bob", "menu.png", "fr"))
    return repo


class TestCli:

    def test_history_for_owner(self, repo, capsys):
        assert cli.cli(["history", "--owner", "alice"]) == 0
        out = capsys.readouterr().out
        assert "choco.png" in out
        assert "menu.png" not in out

    def test_history_all(self, repo, capsys):
        assert cli.cli(["history", "--all"]) == 0
        out = capsys.readouterr().out
        assert "menu.png" in out

    def test_stats(self, repo, capsys):
        assert cli.cli(["stats"]) == 0
        out = capsys.readouterr().out
        assert "alice" in out and "bob" in out

    def test_purge(self, repo):
        entry_id = repo.query_by_owner("alice")[0].id
        assert cli.cli(["purge", entry_id, "--yes"]) == 0
        assert repo.count() == 1

    def test_purge_foreign_refused(self, repo):
        bob_id = repo.query_by_owner("bob")[0].id
        assert cli.cli(["purge", bob_id, "--owner", "alice", "--yes"]) == 1
        assert repo.count() == 2
