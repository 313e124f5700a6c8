"""Terminal progress rendering for pipeline runs."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ..engine.models import Failure, ProjectRecord, Success


@dataclass
class ProgressState:
    total: int
    success: int = 0
    failed: int = 0
    unresolved: int = 0
    current_url: str | None = None

    @property
    def completed(self) -> int:
        return self.success + self.failed + self.unresolved


class ProgressReporter:
    """Render progress and maintain counters; usable as an ``on_record`` hook."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ProgressState | None = None

    def start(self, total: int) -> None:
        self.state = ProgressState(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console(stderr=True)
        if not self._console.is_terminal:
            # Non-interactive output: keep counters only.
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            TextColumn("[green]★{task.fields[success]:>4}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>3}", justify="right"),
            TextColumn("[yellow]?{task.fields[unresolved]:>3}", justify="right"),
            TextColumn("[dim]{task.fields[current_url]}", justify="left"),
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "stars", total=total, success=0, failed=0, unresolved=0, current_url="waiting..."
        )

    def __call__(self, record: ProjectRecord) -> None:
        self.advance(record)

    def advance(self, record: ProjectRecord) -> None:
        if self.state is None:
            raise RuntimeError("ProgressReporter.start must be called before advance")
        if isinstance(record.stats, Success):
            self.state.success += 1
        elif isinstance(record.stats, Failure):
            self.state.failed += 1
        else:
            self.state.unresolved += 1
        self.state.current_url = record.url
        if self._progress is not None and self._task_id is not None:
            display_url = record.url or ""
            if len(display_url) > 60:
                display_url = display_url[:57] + "..."
            display_url = escape(display_url)
            self._progress.update(
                self._task_id,
                advance=1,
                success=self.state.success,
                failed=self.state.failed,
                unresolved=self.state.unresolved,
                current_url=display_url,
            )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if self.state is None:
            return {"success": 0, "failed": 0, "unresolved": 0}
        return {
            "success": self.state.success,
            "failed": self.state.failed,
            "unresolved": self.state.unresolved,
        }


__all__ = ["ProgressReporter", "ProgressState"]
