from __future__ import annotations

import pytest

from stargazer.engine import resolve_endpoint


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://github.com/acme/widget", "https://api.github.com/repos/acme/widget"),
        ("https://github.com/acme/widget/", "https://api.github.com/repos/acme/widget"),
        ("https://github.com/clojure/core.async", "https://api.github.com/repos/clojure/core.async"),
    ],
)
def test_resolves_two_segment_github_urls(url: str, expected: str) -> None:
    assert resolve_endpoint(url) == expected


@pytest.mark.parametrize(
    "url",
    [
        None,
        "",
        "/",
        42,
        b"https://github.com/acme/widget",
        "https://example.com/",
        "https://clojure.org/",
        "http://github.com/acme/widget",
        "https://gitlab.com/acme/widget",
        "https://github.com/acme",
        "https://github.com/acme/",
        "https://github.com/acme/widget/tree/main",
        "https://github.com//widget",
        "https://github.com/acme/widget//",
        "https://github.com.evil.io/acme/widget",
        "not a url",
        "  https://github.com/acme/widget  ",
        "https://github.com/acme/widget\n",
    ],
)
def test_unresolvable_inputs_return_none(url: object) -> None:
    assert resolve_endpoint(url) is None


def test_custom_api_base() -> None:
    endpoint = resolve_endpoint("https://github.com/acme/widget", api_base_url="http://localhost:8080/repos/")
    assert endpoint == "http://localhost:8080/repos/acme/widget"


def test_resolution_is_deterministic() -> None:
    urls = [f"https://github.com/org{i}/repo{i}" for i in range(50)]
    assert [resolve_endpoint(u) for u in urls] == [resolve_endpoint(u) for u in urls]
