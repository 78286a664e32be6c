"""
Configuration for the label review engine.

Settings come from three places, later ones winning:
    1. Defaults below
    2. review.yaml (or the file named by LABEL_REVIEW_CONFIG)
    3. Environment variables (.env is loaded first)
"""

import os
import yaml
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, fields
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

DEFAULT_CONFIG_FILE = Path("review.yaml")
DATA_DIR = Path(os.environ.get("LABEL_REVIEW_DATA_DIR", "data"))

HIGHLIGHT_DURATION_MS = 2000
PAGE_SIZE = 5

# Marker classes applied to highlighted nodes, keyed by severity
HIGHLIGHT_CLASSES = {
    "error": "highlight-error",
    "warning": "highlight-warning",
    "info": "highlight-info",
}

# Env var -> settings field
_ENV_KEYS = {
    "LABEL_REVIEW_DATA_DIR": "data_dir",
    "LABEL_REVIEW_HISTORY_BACKEND": "history_backend",
    "LABEL_REVIEW_HIGHLIGHT_MS": "highlight_duration_ms",
    "LABEL_REVIEW_PAGE_SIZE": "page_size",
    "LABEL_API_URL": "label_api_url",
    "LABEL_API_TIMEOUT": "label_api_timeout",
    "LABEL_API_RETRIES": "label_api_retries",
    "LABEL_REVIEW_DEBUG": "debug",
}


@dataclass
class ReviewSettings:
    """Runtime settings shared by the engine, routes and CLI."""
    data_dir: Path = DATA_DIR
    history_backend: str = "json"  # 'json' | 'memory'
    highlight_duration_ms: int = HIGHLIGHT_DURATION_MS
    page_size: int = PAGE_SIZE
    label_api_url: str = "http://localhost:8000"
    label_api_timeout: float = 60.0
    label_api_retries: int = 2
    debug: bool = False

    @property
    def highlight_duration(self) -> float:
        """Highlight lifetime in seconds."""
        return self.highlight_duration_ms / 1000.0

    @property
    def history_dir(self) -> Path:
        return Path(self.data_dir) / "history"

    def update(self, values: dict) -> None:
        """Apply raw values, coercing to each field's declared type."""
        known = {f.name: f for f in fields(self)}
        for key, raw in values.items():
            if key not in known or raw is None:
                continue
            setattr(self, key, _coerce(getattr(self, key), raw))


def _coerce(current, raw):
    """Coerce a raw YAML/env value to the type of the current value."""
    if isinstance(current, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(current, Path):
        return Path(raw)
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return str(raw)


def load_yaml_settings(path: Optional[Path] = None) -> dict:
    """Load the YAML settings file if present."""
    path = path or Path(os.environ.get("LABEL_REVIEW_CONFIG", DEFAULT_CONFIG_FILE))
    if not path.exists():
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(path: Optional[Path] = None) -> ReviewSettings:
    """Build settings from defaults, YAML file, then environment."""
    settings = ReviewSettings()
    settings.update(load_yaml_settings(path))
    settings.update({
        field_name: os.environ[env_key]
        for env_key, field_name in _ENV_KEYS.items()
        if env_key in os.environ
    })
    if settings.page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {settings.page_size}")
    if settings.highlight_duration_ms <= 0:
        raise ValueError(
            f"highlight_duration_ms must be positive, got {settings.highlight_duration_ms}"
        )
    return settings


_settings: Optional[ReviewSettings] = None


def get_settings() -> ReviewSettings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings (tests, config reload)."""
    global _settings
    _settings = None
