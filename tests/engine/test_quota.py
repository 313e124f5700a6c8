from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from stargazer.engine import FetchResponse, QuotaState
from stargazer.engine.quota import FALLBACK_LIMIT

from tests.helpers import NOW_MS, FakeTransport, json_response, rate_limit_payload


def test_refresh_reads_core_resources(make_tracker) -> None:
    transport = FakeTransport(
        rate_limit=json_response("rate", 200, rate_limit_payload(5000, 12, 1_700_000_900))
    )
    tracker = make_tracker(transport)
    state = tracker.refresh()
    assert state == QuotaState(limit=5000, used=12, reset_at_ms=1_700_000_900_000)
    assert tracker.state == state


@pytest.mark.parametrize(
    "response",
    [
        FetchResponse(url="rate", status_code=0, error="connection refused"),
        FetchResponse(url="rate", status_code=500, body=b"{}"),
        FetchResponse(url="rate", status_code=200, body=b"<html>"),
        json_response("rate", 200, {"resources": {}}),
        json_response("rate", 200, {"resources": {"core": {"limit": "many"}}}),
        json_response("rate", 200, []),
    ],
)
def test_refresh_falls_back_to_conservative_default(make_tracker, response: FetchResponse) -> None:
    tracker = make_tracker(FakeTransport(rate_limit=response), state=QuotaState(10, 10, 0))
    state = tracker.refresh()
    assert state == QuotaState(limit=FALLBACK_LIMIT, used=0, reset_at_ms=NOW_MS)


def test_refresh_survives_raising_transport(make_tracker) -> None:
    class Exploding:
        def get(self, url: str) -> FetchResponse:
            raise RuntimeError("socket closed")

    state = make_tracker(Exploding()).refresh()
    assert state.limit == FALLBACK_LIMIT
    assert state.used == 0


def test_record_use_has_no_lost_updates(make_tracker, fake_transport) -> None:
    tracker = make_tracker(fake_transport, state=QuotaState(5000, 7, NOW_MS))
    with ThreadPoolExecutor(max_workers=8) as pool:
        for _ in range(2000):
            pool.submit(tracker.record_use)
    assert tracker.state.used == 2007
    assert tracker.state.limit == 5000


def test_should_block_when_exhausted_before_reset(make_tracker, fake_transport) -> None:
    tracker = make_tracker(fake_transport, state=QuotaState(1, 1, NOW_MS + 2000), jitter_padding_ms=500)
    assert tracker.should_block(True) == (True, 2500)


def test_should_block_never_when_not_enforced(make_tracker, fake_transport) -> None:
    tracker = make_tracker(fake_transport, state=QuotaState(1, 5, NOW_MS + 60_000))
    assert tracker.should_block(False) == (False, 0)


def test_should_block_releases_with_quota_left(make_tracker, fake_transport) -> None:
    tracker = make_tracker(fake_transport, state=QuotaState(10, 9, NOW_MS + 60_000))
    assert tracker.should_block(True) == (False, 0)


def test_should_block_respects_jitter_padding(make_tracker, fake_transport, fake_clock) -> None:
    tracker = make_tracker(fake_transport, state=QuotaState(1, 1, NOW_MS - 1000), jitter_padding_ms=3000)
    assert tracker.should_block(True) == (True, 2000)
    fake_clock.advance(2000)
    assert tracker.should_block(True) == (False, 0)


def test_refresh_may_reset_used_downward(make_tracker) -> None:
    transport = FakeTransport(rate_limit=json_response("rate", 200, rate_limit_payload(60, 0, NOW_MS // 1000)))
    tracker = make_tracker(transport, state=QuotaState(60, 60, NOW_MS))
    tracker.record_use()
    assert tracker.state.used == 61
    tracker.refresh()
    assert tracker.state.used == 0
