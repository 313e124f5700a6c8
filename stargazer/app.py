"""Typer CLI entrypoint for stargazer."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config import ConfigRepository, PipelineOptions, Settings, load_projects, resolve_credential
from .engine import HttpTransport, QuotaTracker, resolve_endpoint
from .errors import StargazerError
from .logging_conf import available_logs, configure_logging, default_log_dir, tail_log
from .orchestrator import Pipeline
from .report import flatten_results, render_table, summarize
from .ui import ProgressReporter

app = typer.Typer(
    help="Enrich project lists with GitHub stargazer counts.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    settings: Settings
    verbose: bool
    pipeline_factory: Callable[[PipelineOptions, Settings], Pipeline]


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    settings = repository.load_settings()
    configure_logging(verbose=verbose)
    return AppState(
        repository=repository,
        settings=settings,
        verbose=verbose,
        pipeline_factory=lambda options, settings: Pipeline(options, settings=settings),
    )


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _fail(message: str) -> None:
    console.print(escape(message), style="red")
    raise typer.Exit(code=1)


def _format_reset(reset_at_ms: int) -> str:
    moment = datetime.fromtimestamp(reset_at_ms / 1000, tz=timezone.utc)
    return moment.isoformat(timespec="seconds")


app.add_typer(log_app, name="log", help="View log files")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging.", is_flag=True),
) -> None:
    try:
        ctx.obj = build_state(verbose)
    except StargazerError as exc:
        _fail(str(exc))


@app.command("run", help="Fetch star counts for every project in PROJECTS_FILE.")
def run(
    ctx: typer.Context,
    projects_file: Path = typer.Argument(..., help="YAML or JSON project list."),
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (defaults to GITHUB_TOKEN)."),
    enforce_quota: Optional[bool] = typer.Option(
        None, "--enforce-quota/--no-enforce-quota", help="Wait for the rate limit to reset when exhausted."
    ),
    resolution_workers: Optional[int] = typer.Option(None, "--resolution-workers", min=1),
    fetch_workers: Optional[int] = typer.Option(None, "--fetch-workers", min=1),
    queue_capacity: Optional[int] = typer.Option(None, "--queue-capacity", min=1),
    as_json: bool = typer.Option(False, "--json", help="Print one JSON object per project.", is_flag=True),
    quiet: bool = typer.Option(False, "--quiet", help="Print the summary only.", is_flag=True),
) -> None:
    state = _get_state(ctx)
    try:
        projects = load_projects(projects_file)
        options = state.settings.pipeline_options(
            credential=resolve_credential(token, state.settings),
            enforce_quota=enforce_quota,
            verbose=state.verbose,
            resolution_workers=resolution_workers,
            fetch_workers=fetch_workers,
            queue_capacity=queue_capacity,
        )
    except (StargazerError, ValidationError) as exc:
        _fail(str(exc))

    progress = ProgressReporter(enabled=not (quiet or as_json))
    progress.start(total=len(projects))
    try:
        with state.pipeline_factory(options, state.settings) as pipeline:
            results = pipeline.run(projects, on_record=progress)
    finally:
        progress.close()

    if as_json:
        for row in flatten_results(results):
            typer.echo(json.dumps(row, ensure_ascii=False))
        return
    counts = summarize(results)
    if not quiet:
        console.print(render_table(results, title=escape(f"{projects_file.name} · {len(results)} projects")))
    console.print(
        f"Done: {counts['success']} fetched, {counts['failure']} failed, {counts['unresolved']} unresolved"
    )


@app.command("resolve", help="Show the API endpoint each repository URL maps to.")
def resolve(
    ctx: typer.Context,
    urls: List[str] = typer.Argument(..., help="Repository URLs."),
) -> None:
    state = _get_state(ctx)
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Endpoint", overflow="fold")
    for url in urls:
        endpoint = resolve_endpoint(url, state.settings.api_base_url)
        table.add_row(escape(url), escape(endpoint) if endpoint else "[yellow]unresolved[/yellow]")
    console.print(table)


@app.command("quota", help="Query the current GitHub rate limit.")
def quota(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(None, "--token", help="GitHub token (defaults to GITHUB_TOKEN)."),
) -> None:
    state = _get_state(ctx)
    settings = state.settings
    with HttpTransport(
        credential=resolve_credential(token, settings),
        api_version=settings.api_version,
        timeout=settings.request_timeout,
    ) as transport:
        tracker = QuotaTracker(
            transport,
            rate_limit_url=settings.rate_limit_url,
            jitter_padding_ms=settings.jitter_padding_ms,
        )
        current = tracker.refresh()
    table = Table(title="Rate limit", box=box.SIMPLE_HEAD, show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green", justify="right")
    table.add_row("limit", str(current.limit))
    table.add_row("used", str(current.used))
    table.add_row("remaining", str(max(current.limit - current.used, 0)))
    table.add_row("reset", _format_reset(current.reset_at_ms))
    console.print(table)


@log_app.command("list", help="List available log files.")
def log_list() -> None:
    logs = list(available_logs())
    if not logs:
        console.print("No log files yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the most recent lines of a log file.")
def log_show(
    name: str = typer.Option("stargazer", "--name", help="Log name without extension."),
    tail: int = typer.Option(100, "--tail", min=1, help="Number of lines to show."),
) -> None:
    lines = tail_log(default_log_dir() / f"{name}.log", tail)
    if not lines:
        console.print("No log entries yet.", style="dim")
        return
    console.print(f"{name}.log · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
