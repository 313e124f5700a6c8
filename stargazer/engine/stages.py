"""Pipeline stages connected by bounded queues.

Both stages consume until they see :data:`END_OF_STREAM` and then forward
exactly one marker downstream. Once the shared ``stop`` event is set they
keep consuming but discard items, so blocked producers upstream drain out.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor, wait
from functools import partial
from queue import Queue
from threading import Event
from typing import Callable

import structlog

from ..config.models import DEFAULT_API_BASE_URL, PipelineOptions
from .fetcher import classify_response
from .models import Failure, ProjectRecord, ResolvedRecord, StatsResult, Unresolved
from .quota import QuotaTracker, Transport
from .resolver import resolve_endpoint


class _EndOfStream:
    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = _EndOfStream()


class ResolutionStage:
    """Resolve endpoints in parallel while emitting in input order.

    A dispatcher submits each record to the worker pool and queues the
    future; a collector waits on futures in FIFO order. ``pending`` holds at
    most ``capacity`` futures, and a full ``outbox`` stalls both threads.
    """

    def __init__(
        self,
        api_base_url: str = DEFAULT_API_BASE_URL,
        capacity: int = 20,
        stop: Event | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.resolve = partial(resolve_endpoint, api_base_url=api_base_url)
        self.capacity = capacity
        self.stop = stop or Event()
        self.logger = logger or structlog.get_logger("stargazer.resolution")

    def start(
        self,
        inbox: Queue,
        outbox: Queue,
        control: ThreadPoolExecutor,
        workers: ThreadPoolExecutor,
    ) -> list[Future]:
        pending: Queue = Queue(maxsize=self.capacity)
        return [
            control.submit(self._dispatch, inbox, pending, workers),
            control.submit(self._collect, pending, outbox),
        ]

    def _dispatch(self, inbox: Queue, pending: Queue, workers: ThreadPoolExecutor) -> None:
        try:
            while True:
                record = inbox.get()
                if record is END_OF_STREAM:
                    break
                if self.stop.is_set():
                    continue
                pending.put((record, workers.submit(self.resolve, record.url)))
        finally:
            pending.put(END_OF_STREAM)

    def _collect(self, pending: Queue, outbox: Queue) -> None:
        try:
            while True:
                item = pending.get()
                if item is END_OF_STREAM:
                    break
                record, future = item
                if self.stop.is_set():
                    future.cancel()
                    continue
                try:
                    endpoint = future.result()
                except Exception as exc:  # noqa: BLE001
                    self.logger.error("resolve_error", url=record.url, error=str(exc))
                    endpoint = None
                if endpoint is None:
                    self.logger.info("endpoint_unresolved", url=record.url)
                outbox.put(ResolvedRecord(record, endpoint))
        finally:
            outbox.put(END_OF_STREAM)


class FetchStage:
    """Fetch star counts with a fixed pool of quota-aware workers."""

    def __init__(
        self,
        transport: Transport,
        tracker: QuotaTracker,
        options: PipelineOptions,
        sleep: Callable[[float], object] | None = None,
        stop: Event | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.transport = transport
        self.tracker = tracker
        self.options = options
        self.stop = stop or Event()
        # The default sleep returns early once ``stop`` is set.
        self.sleep = sleep if sleep is not None else self.stop.wait
        self.logger = logger or structlog.get_logger("stargazer.fetch")

    def start(
        self,
        inbox: Queue,
        outbox: Queue,
        control: ThreadPoolExecutor,
        workers: ThreadPoolExecutor,
    ) -> list[Future]:
        loops = [workers.submit(self._work, inbox, outbox) for _ in range(self.options.fetch_workers)]
        closer = control.submit(self._close_when_done, loops, outbox)
        return [*loops, closer]

    def _work(self, inbox: Queue, outbox: Queue) -> None:
        while True:
            item = inbox.get()
            if item is END_OF_STREAM:
                # Leave the marker for sibling workers.
                inbox.put(END_OF_STREAM)
                return
            if self.stop.is_set():
                continue
            try:
                result = self.process(item)
            except Exception as exc:  # noqa: BLE001
                self.logger.error("fetch_error", url=item.record.url, error=str(exc))
                result = item.record.with_stats(Failure(str(exc) or type(exc).__name__))
            if not self.stop.is_set():
                outbox.put(result)

    def _close_when_done(self, loops: list[Future], outbox: Queue) -> None:
        done, _ = wait(loops)
        for future in done:
            if future.exception() is not None:
                self.logger.error("fetch_worker_crashed", error=str(future.exception()))
        outbox.put(END_OF_STREAM)

    def process(self, item: ResolvedRecord) -> ProjectRecord:
        """Run one record through quota check, request, classification."""

        record, endpoint = item.record, item.endpoint
        if endpoint is None:
            return record.with_stats(Unresolved())

        block, wait_ms = self.tracker.should_block(self.options.enforce_quota)
        if block:
            self.logger.info("quota_wait", url=record.url, wait_ms=wait_ms, state=str(self.tracker.state))
            self.sleep(wait_ms / 1000)
            if self.stop.is_set():
                return record.with_stats(Failure("Pipeline stopped"))
            self.tracker.refresh()

        stats: StatsResult
        try:
            stats = classify_response(self.transport.get(endpoint))
        except Exception as exc:  # noqa: BLE001
            stats = Failure(str(exc) or type(exc).__name__)
        finally:
            self.tracker.record_use()

        if isinstance(stats, Failure):
            self.logger.warning("fetch_failed", url=record.url, endpoint=endpoint, message=stats.message)
        else:
            self.logger.debug("fetch_succeeded", url=record.url, stars=stats.stars)
        return record.with_stats(stats)


__all__ = ["END_OF_STREAM", "FetchStage", "ResolutionStage"]
