"""Enrich project lists with GitHub stargazer counts."""

from .engine.models import Failure, ProjectRecord, Success, Unresolved
from .orchestrator import Pipeline, repo_stats

__all__ = ["Failure", "Pipeline", "ProjectRecord", "Success", "Unresolved", "repo_stats"]
