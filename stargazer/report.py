"""Flatten enriched records for display and export."""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable

from rich import box
from rich.markup import escape
from rich.table import Table

from .engine.models import Failure, ProjectRecord, Success

UNCATEGORISED = "uncategorised"


def flatten_record(record: ProjectRecord) -> dict[str, Any]:
    stats = record.stats
    return {
        "url": record.url,
        "name": record.name,
        "category": record.category,
        "status": stats.kind if stats is not None else "pending",
        "stars": stats.stars if isinstance(stats, Success) else None,
        "error": stats.message if isinstance(stats, Failure) else None,
    }


def flatten_results(records: Iterable[ProjectRecord]) -> list[dict[str, Any]]:
    return [flatten_record(record) for record in records]


def summarize(records: Iterable[ProjectRecord]) -> dict[str, int]:
    counts = Counter(row["status"] for row in flatten_results(records))
    return {
        "success": counts.get("success", 0),
        "failure": counts.get("failure", 0),
        "unresolved": counts.get("unresolved", 0),
    }


def group_by_category(records: Iterable[ProjectRecord]) -> dict[str, list[dict[str, Any]]]:
    """Group flattened rows by category, most-starred first."""

    groups: dict[str, list[dict[str, Any]]] = {}
    for row in flatten_results(records):
        groups.setdefault(row["category"] or UNCATEGORISED, []).append(row)
    for rows in groups.values():
        rows.sort(key=lambda row: (row["stars"] is None, -(row["stars"] or 0), row["url"] or ""))
    return groups


def render_table(records: Iterable[ProjectRecord], title: str = "Stargazers") -> Table:
    table = Table(title=title, box=box.SIMPLE_HEAD)
    table.add_column("Category", style="magenta")
    table.add_column("Project", style="cyan", overflow="fold")
    table.add_column("Stars", style="green", justify="right")
    table.add_column("Note", style="dim", overflow="fold")
    for category, rows in group_by_category(records).items():
        for row in rows:
            if row["status"] == "success":
                stars, note = str(row["stars"]), ""
            elif row["status"] == "failure":
                stars, note = "-", row["error"] or ""
            else:
                stars, note = "-", "unresolved"
            project = row["name"] or row["url"] or "-"
            table.add_row(escape(category), escape(project), stars, escape(note))
    return table


__all__ = ["flatten_record", "flatten_results", "group_by_category", "render_table", "summarize"]
