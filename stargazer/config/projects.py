"""Project list loading: YAML/JSON files into ``ProjectRecord`` sequences."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

import yaml

from ..engine.models import ProjectRecord
from ..errors import ProjectListError
from .loader import CONFIG_EXTENSIONS, read_document


def _entry_to_record(entry: Any, category: str | None) -> ProjectRecord:
    if isinstance(entry, str):
        return ProjectRecord(url=entry, category=category)
    if isinstance(entry, dict):
        url = entry.get("url")
        name = entry.get("name")
        return ProjectRecord(
            url=url if isinstance(url, str) else None,
            name=str(name) if name is not None else None,
            category=entry.get("category", category),
        )
    raise ProjectListError(f"Unsupported project entry: {entry!r}")


def _entries(items: Iterable[Any], category: str | None) -> list[ProjectRecord]:
    return [_entry_to_record(item, category) for item in items]


def parse_projects(document: Any) -> list[ProjectRecord]:
    """Flatten a parsed project document into records.

    Accepts a plain list of entries, a ``category -> entries`` mapping, or
    either of these nested under a top-level ``projects`` key. An entry is a
    URL string or a mapping holding ``url`` and an optional ``name``.
    """

    if isinstance(document, dict) and "projects" in document:
        document = document["projects"]
    if document is None:
        return []
    if isinstance(document, list):
        return _entries(document, None)
    if isinstance(document, dict):
        records: list[ProjectRecord] = []
        for category, items in document.items():
            if items is None:
                continue
            if not isinstance(items, list):
                raise ProjectListError(f"Category {category!r} must hold a list of projects")
            records.extend(_entries(items, str(category)))
        return records
    raise ProjectListError(f"Project list must be a list or mapping, got {type(document).__name__}")


def load_projects(path: Path) -> list[ProjectRecord]:
    if not path.exists():
        raise ProjectListError(f"Project list not found: {path}")
    if path.suffix not in CONFIG_EXTENSIONS:
        raise ProjectListError(f"Unsupported project list format: {path.suffix}")
    try:
        document = read_document(path)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ProjectListError(f"Cannot parse project list {path}: {exc}") from exc
    return parse_projects(document)


__all__ = ["load_projects", "parse_projects"]
