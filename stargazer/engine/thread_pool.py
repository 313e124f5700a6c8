"""Thread pool abstraction giving each pipeline stage its own executor."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from threading import Lock
from typing import Dict


class ThreadPoolManager:
    """Manage the control pool plus one named pool per stage."""

    def __init__(self, control_workers: int = 4, prefix: str = "stargazer") -> None:
        self.control_workers = control_workers
        self.prefix = prefix
        self._control_executor = ThreadPoolExecutor(
            max_workers=control_workers, thread_name_prefix=f"{prefix}-control"
        )
        self._executors: Dict[str, ThreadPoolExecutor] = {}
        self._lock = Lock()

    def get(self, stage: str | None = None, max_workers: int | None = None) -> ThreadPoolExecutor:
        """Return the control pool, or the pool for ``stage`` (created on first use)."""

        if stage is None:
            return self._control_executor
        with self._lock:
            if stage not in self._executors:
                self._executors[stage] = ThreadPoolExecutor(
                    max_workers=max_workers or self.control_workers,
                    thread_name_prefix=f"{self.prefix}-{stage}",
                )
            return self._executors[stage]

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            executors = list(self._executors.values())
            self._executors.clear()
        for executor in executors:
            executor.shutdown(wait=wait)
        self._control_executor.shutdown(wait=wait)

    def __enter__(self) -> "ThreadPoolManager":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.shutdown()


__all__ = ["ThreadPoolManager"]
