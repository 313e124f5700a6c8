"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository, resolve_credential
from .models import PipelineOptions, Settings
from .projects import load_projects, parse_projects

__all__ = [
    "ConfigLocator",
    "ConfigRepository",
    "PipelineOptions",
    "Settings",
    "load_projects",
    "parse_projects",
    "resolve_credential",
]
