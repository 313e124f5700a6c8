"""Exception hierarchy for configuration and input problems.

Per-record fetch problems never raise; they are captured on the record.
"""

from __future__ import annotations


class StargazerError(Exception):
    """Base class for errors that abort a run before any stage starts."""


class ConfigError(StargazerError):
    """Settings file is unreadable or fails validation."""


class ProjectListError(StargazerError):
    """Project list file has an unsupported shape."""


__all__ = ["ConfigError", "ProjectListError", "StargazerError"]
