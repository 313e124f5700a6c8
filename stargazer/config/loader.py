"""Configuration loading helpers for stargazer."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..errors import ConfigError
from .models import Settings

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
SETTINGS_FILENAME = "settings.yaml"
HOME_ENV = "STARGAZER_HOME"
TOKEN_ENV = "GITHUB_TOKEN"


def read_document(path: Path) -> object:
    """Parse a YAML or JSON file according to its suffix."""

    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(text)
    return json.loads(text)


def _read_mapping(path: Path) -> dict:
    data = read_document(path) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration file must contain a mapping: {path}")
    return data


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path.cwd()).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()

    def settings_path(self) -> Path:
        return self.data_dir / SETTINGS_FILENAME


class ConfigRepository:
    """Load and cache validated settings from the data directory."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._settings_cache: Settings | None = None

    def load_settings(self) -> Settings:
        if self._settings_cache is not None:
            return self._settings_cache
        path = self.locator.settings_path()
        if path.exists():
            try:
                settings = Settings.model_validate(_read_mapping(path))
            except (ValidationError, yaml.YAMLError, json.JSONDecodeError) as exc:
                raise ConfigError(f"Invalid settings file {path}: {exc}") from exc
        else:
            settings = Settings()
        self._settings_cache = settings
        return settings


def resolve_credential(explicit: str | None = None, settings: Settings | None = None) -> str | None:
    """Return the bearer token to use: explicit value, settings, then environment."""

    for candidate in (explicit, settings.token if settings else None, os.environ.get(TOKEN_ENV)):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


__all__ = [
    "CONFIG_EXTENSIONS",
    "ConfigLocator",
    "ConfigRepository",
    "read_document",
    "resolve_credential",
]
