"""Test doubles shared across the suite."""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable

from stargazer.config.models import DEFAULT_RATE_LIMIT_URL
from stargazer.engine import FetchResponse

NOW_MS = 1_700_000_000_000


def json_response(url: str, status: int, payload: Any) -> FetchResponse:
    return FetchResponse(url=url, status_code=status, body=json.dumps(payload).encode("utf-8"))


def rate_limit_payload(limit: int, used: int, reset_seconds: int) -> dict[str, Any]:
    return {
        "resources": {
            "core": {"limit": limit, "used": used, "remaining": limit - used, "reset": reset_seconds}
        }
    }


class FakeTransport:
    """Thread-safe stand-in for ``HttpTransport`` keyed by URL."""

    def __init__(
        self,
        routes: dict[str, FetchResponse | Callable[[str], FetchResponse]] | None = None,
        rate_limit: FetchResponse | Callable[[str], FetchResponse] | None = None,
    ) -> None:
        self.routes = dict(routes or {})
        self.rate_limit = rate_limit or json_response(
            DEFAULT_RATE_LIMIT_URL, 200, rate_limit_payload(5000, 0, NOW_MS // 1000 + 3600)
        )
        self.calls: list[tuple[str, float]] = []
        self._lock = threading.Lock()

    def get(self, url: str) -> FetchResponse:
        with self._lock:
            self.calls.append((url, time.monotonic()))
        if url == DEFAULT_RATE_LIMIT_URL:
            return self.rate_limit(url) if callable(self.rate_limit) else self.rate_limit
        route = self.routes.get(url)
        if route is None:
            return json_response(url, 404, {"message": "Not Found"})
        return route(url) if callable(route) else route

    def urls(self) -> list[str]:
        with self._lock:
            return [url for url, _ in self.calls]

    def repo_calls(self) -> list[str]:
        return [url for url in self.urls() if url != DEFAULT_RATE_LIMIT_URL]


class FakeClock:
    def __init__(self, now_ms: int = NOW_MS) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, millis: int) -> None:
        self.now_ms += millis
