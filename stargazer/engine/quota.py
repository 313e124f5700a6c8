"""Shared rate-limit tracker coordinating fetch workers against one quota."""

from __future__ import annotations

import time
from threading import Lock
from typing import Any, Callable, Protocol

import structlog

from ..config.models import DEFAULT_RATE_LIMIT_URL
from .fetcher import FetchResponse
from .models import QuotaState

# Unauthenticated GitHub core limit, used when the quota endpoint is unusable.
FALLBACK_LIMIT = 60
DEFAULT_JITTER_PADDING_MS = 10_000


class Transport(Protocol):
    def get(self, url: str) -> FetchResponse: ...


def epoch_millis() -> int:
    return int(time.time() * 1000)


class QuotaTracker:
    """Hold ``{limit, used, reset}`` under one lock.

    Workers call :meth:`should_block` before a request and
    :meth:`record_use` after it; :meth:`refresh` replaces the whole state
    from the provider's ``/rate_limit`` endpoint.
    """

    def __init__(
        self,
        transport: Transport,
        rate_limit_url: str = DEFAULT_RATE_LIMIT_URL,
        jitter_padding_ms: int = DEFAULT_JITTER_PADDING_MS,
        clock: Callable[[], int] = epoch_millis,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.transport = transport
        self.rate_limit_url = rate_limit_url
        self.jitter_padding_ms = jitter_padding_ms
        self.clock = clock
        self.logger = logger or structlog.get_logger("stargazer.quota")
        self._lock = Lock()
        self._state = QuotaState(limit=FALLBACK_LIMIT, used=0, reset_at_ms=clock())

    @property
    def state(self) -> QuotaState:
        with self._lock:
            return self._state

    def set_state(self, state: QuotaState) -> None:
        with self._lock:
            self._state = state

    def refresh(self) -> QuotaState:
        try:
            response = self.transport.get(self.rate_limit_url)
        except Exception as exc:  # noqa: BLE001
            response = FetchResponse(url=self.rate_limit_url, status_code=0, error=str(exc))
        state = self._parse(response)
        if state is None:
            state = QuotaState(limit=FALLBACK_LIMIT, used=0, reset_at_ms=self.clock())
            self.logger.warning(
                "quota_refresh_failed",
                status=response.status_code,
                error=response.error,
                fallback_limit=FALLBACK_LIMIT,
            )
        else:
            self.logger.debug(
                "quota_refreshed", limit=state.limit, used=state.used, reset_at_ms=state.reset_at_ms
            )
        self.set_state(state)
        return state

    def record_use(self) -> None:
        with self._lock:
            state = self._state
            self._state = QuotaState(state.limit, state.used + 1, state.reset_at_ms)

    def should_block(self, enforce: bool) -> tuple[bool, int]:
        """Return ``(block, wait_ms)`` for the next request."""

        if not enforce:
            return False, 0
        with self._lock:
            state = self._state
        resume_at = state.reset_at_ms + self.jitter_padding_ms
        now = self.clock()
        if state.exhausted and resume_at > now:
            return True, resume_at - now
        return False, 0

    @staticmethod
    def _parse(response: FetchResponse) -> QuotaState | None:
        if not response.ok:
            return None
        try:
            core: Any = response.json()["resources"]["core"]
            return QuotaState(
                limit=int(core["limit"]),
                used=int(core["used"]),
                reset_at_ms=int(core["reset"]) * 1000,
            )
        except (ValueError, KeyError, TypeError):
            return None


__all__ = ["FALLBACK_LIMIT", "QuotaTracker", "Transport", "epoch_millis"]
