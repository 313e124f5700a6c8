"""Shared fixtures: isolated home directory, fake transport and clock, option builders."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable

import pytest

from stargazer.config import PipelineOptions, Settings
from stargazer.engine import QuotaState, QuotaTracker

from tests.helpers import FakeClock, FakeTransport


@pytest.fixture(scope="session", autouse=True)
def stargazer_home(tmp_path_factory: pytest.TempPathFactory) -> Iterable[Path]:
    home = tmp_path_factory.mktemp("stargazer-home")
    patcher = pytest.MonkeyPatch()
    patcher.setenv("STARGAZER_HOME", str(home))
    patcher.delenv("GITHUB_TOKEN", raising=False)
    yield home
    patcher.undo()


@pytest.fixture
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_tracker(fake_clock: FakeClock) -> Callable[..., QuotaTracker]:
    def _builder(
        transport: Any,
        state: QuotaState | None = None,
        jitter_padding_ms: int = 0,
    ) -> QuotaTracker:
        tracker = QuotaTracker(transport, jitter_padding_ms=jitter_padding_ms, clock=fake_clock)
        if state is not None:
            tracker.set_state(state)
        return tracker

    return _builder


@pytest.fixture
def options() -> Callable[..., PipelineOptions]:
    def _builder(**overrides: Any) -> PipelineOptions:
        base: dict[str, Any] = {"resolution_workers": 2, "fetch_workers": 2, "queue_capacity": 4}
        base.update(overrides)
        return PipelineOptions(**base)

    return _builder


@pytest.fixture
def settings() -> Settings:
    return Settings(jitter_padding_ms=0)
