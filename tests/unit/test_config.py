"""Unit tests for settings loading."""

from pathlib import Path

import pytest

import config
from config import ReviewSettings, get_settings, load_settings


class TestLoadSettings:

    def test_defaults(self, tmp_path):
        s = load_settings(tmp_path / "absent.yaml")
        assert s.page_size == 5
        assert s.highlight_duration_ms == 2000
        assert s.highlight_duration == 2.0
        assert s.history_backend == "json"

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "review.yaml"
        path.write_text("page_size: 10\nhistory_backend: memory\nunknown_key: 1\n")

        s = load_settings(path)

        assert s.page_size == 10
        assert s.history_backend == "memory"

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "review.yaml"
        path.write_text("page_size: 10\n")
        monkeypatch.setenv("LABEL_REVIEW_PAGE_SIZE", "3")
        monkeypatch.setenv("LABEL_REVIEW_DEBUG", "true")

        s = load_settings(path)

        assert s.page_size == 3
        assert s.debug is True

    def test_bad_page_size(self, tmp_path, monkeypatch):
        monkeypatch.setenv("LABEL_REVIEW_PAGE_SIZE", "0")
        with pytest.raises(ValueError):
            load_settings(tmp_path / "absent.yaml")

    def test_yaml_must_be_mapping(self, tmp_path):
        path = tmp_path / "review.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_settings(path)

    def test_history_dir(self, tmp_path):
        s = ReviewSettings(data_dir=tmp_path)
        assert s.history_dir == Path(tmp_path) / "history"


class TestCachedSettings:

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()

    def test_reset(self):
        first = get_settings()
        config.reset_settings()
        assert get_settings() is not first
