"""Pipeline orchestrator wiring resolution and fetch stages together."""

from __future__ import annotations

from collections.abc import Mapping
from concurrent.futures import Future
from queue import Queue
from threading import Event
from typing import Any, Callable, Iterable, Sequence

from .config import PipelineOptions, Settings, resolve_credential
from .engine import (
    END_OF_STREAM,
    FetchStage,
    HttpTransport,
    ProjectRecord,
    QuotaTracker,
    ResolutionStage,
    ThreadPoolManager,
)
from .engine.quota import Transport
from .logging_conf import configure_logging

# Feeder, resolution dispatcher and collector, fetch closer.
CONTROL_WORKERS = 4

RecordCallback = Callable[[ProjectRecord], None]


def coerce_records(records: Iterable[Any]) -> list[ProjectRecord]:
    """Accept ``ProjectRecord`` objects or mappings with a ``url`` key."""

    if isinstance(records, (str, bytes, Mapping)):
        raise TypeError("records must be a sequence of projects, not a single value")
    coerced: list[ProjectRecord] = []
    for index, item in enumerate(records):
        if isinstance(item, ProjectRecord):
            record = item
        elif isinstance(item, Mapping):
            url = item.get("url")
            record = ProjectRecord(
                url=url if isinstance(url, str) else None,
                name=item.get("name"),
                category=item.get("category"),
            )
        else:
            raise TypeError(f"Project #{index} must be a ProjectRecord or mapping, got {type(item).__name__}")
        if record.stats is not None:
            raise ValueError(f"Project #{index} already carries stats: {record.url!r}")
        coerced.append(record)
    return coerced


def _discard_until_end(stats_queue: Queue) -> None:
    while stats_queue.get() is not END_OF_STREAM:
        pass


class Pipeline:
    """Run records through resolve → fetch and collect the enriched output."""

    def __init__(
        self,
        options: PipelineOptions | None = None,
        settings: Settings | None = None,
        transport: Transport | None = None,
        tracker: QuotaTracker | None = None,
        sleep: Callable[[float], object] | None = None,
    ) -> None:
        self.options = options or PipelineOptions()
        self.settings = settings or Settings()
        self.logger = configure_logging(self.options.verbose).bind(component="pipeline")
        self._owns_transport = transport is None
        self.transport = transport or HttpTransport(
            credential=resolve_credential(self.options.credential, self.settings),
            api_version=self.settings.api_version,
            timeout=self.settings.request_timeout,
        )
        self.tracker = tracker or QuotaTracker(
            self.transport,
            rate_limit_url=self.settings.rate_limit_url,
            jitter_padding_ms=self.settings.jitter_padding_ms,
        )
        self.sleep = sleep

    def run(
        self,
        records: Sequence[ProjectRecord | Mapping[str, Any]],
        on_record: RecordCallback | None = None,
    ) -> list[ProjectRecord]:
        projects = coerce_records(records)
        options = self.options
        capacity = options.queue_capacity
        project_queue: Queue = Queue(maxsize=capacity)
        resolved_queue: Queue = Queue(maxsize=capacity)
        stats_queue: Queue = Queue(maxsize=capacity)

        state = self.tracker.refresh()
        self.logger.info(
            "pipeline_started",
            projects=len(projects),
            resolution_workers=options.resolution_workers,
            fetch_workers=options.fetch_workers,
            queue_capacity=capacity,
            enforce_quota=options.enforce_quota,
            quota_limit=state.limit,
            quota_used=state.used,
        )

        results: list[ProjectRecord] = []
        stop = Event()
        started = drained = False
        pools = ThreadPoolManager(control_workers=CONTROL_WORKERS)
        try:
            control = pools.get()
            futures: list[Future] = [control.submit(self._feed, projects, project_queue, stop)]
            resolution = ResolutionStage(self.settings.api_base_url, capacity=capacity, stop=stop)
            futures += resolution.start(
                project_queue,
                resolved_queue,
                control,
                pools.get("resolve", options.resolution_workers),
            )
            fetch = FetchStage(self.transport, self.tracker, options, sleep=self.sleep, stop=stop)
            futures += fetch.start(
                resolved_queue,
                stats_queue,
                control,
                pools.get("fetch", options.fetch_workers),
            )
            started = True

            while True:
                record = stats_queue.get()
                if record is END_OF_STREAM:
                    break
                results.append(record)
                if on_record is not None:
                    on_record(record)
            drained = True
            for future in futures:
                future.result()
        except BaseException:
            stop.set()
            if started and not drained:
                self.logger.warning("pipeline_aborted", collected=len(results))
                _discard_until_end(stats_queue)
                drained = True
            raise
        finally:
            pools.shutdown(wait=drained)

        self.logger.info("pipeline_finished", projects=len(results), quota_used=self.tracker.state.used)
        return results

    @staticmethod
    def _feed(projects: list[ProjectRecord], project_queue: Queue, stop: Event) -> None:
        try:
            for record in projects:
                if stop.is_set():
                    break
                project_queue.put(record)
        finally:
            project_queue.put(END_OF_STREAM)

    def close(self) -> None:
        if self._owns_transport and isinstance(self.transport, HttpTransport):
            self.transport.close()

    def __enter__(self) -> "Pipeline":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


def repo_stats(
    records: Sequence[ProjectRecord | Mapping[str, Any]],
    options: PipelineOptions | Mapping[str, Any] | None = None,
    **kwargs: Any,
) -> list[ProjectRecord]:
    """Enrich ``records`` with stargazer stats; the synchronous public entry point."""

    if options is None or isinstance(options, Mapping):
        options = PipelineOptions.model_validate(dict(options or {}))
    with Pipeline(options, **kwargs) as pipeline:
        return pipeline.run(records)


__all__ = ["Pipeline", "coerce_records", "repo_stats"]
