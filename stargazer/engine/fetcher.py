"""HTTP transport for the GitHub REST API and response classification."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict

import httpx
import structlog

from ..config.models import DEFAULT_API_VERSION
from .models import Failure, StatsResult, Success


@dataclass(slots=True)
class FetchResponse:
    """Standardised response wrapper; ``error`` carries transport failures."""

    url: str
    status_code: int
    body: bytes = b""
    headers: Dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.body)


class HttpTransport:
    """Issue GET requests with the API headers over one shared client."""

    def __init__(
        self,
        credential: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout: float = 15,
        client: httpx.Client | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.credential = credential
        self.api_version = api_version
        self.logger = logger or structlog.get_logger("stargazer.fetcher")
        self._owns_client = client is None
        self._client = client or httpx.Client(follow_redirects=True, timeout=timeout)

    def headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "X-GitHub-Api-Version": self.api_version,
        }
        if self.credential:
            headers["Authorization"] = f"Bearer {self.credential}"
        return headers

    def get(self, url: str) -> FetchResponse:
        try:
            response = self._client.request("GET", url, headers=self.headers())
        except httpx.HTTPError as exc:
            self.logger.warning("transport_error", url=url, error=str(exc))
            return FetchResponse(url=url, status_code=0, error=str(exc) or type(exc).__name__)
        return FetchResponse(
            url=str(response.url),
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


def _parse_body(response: FetchResponse) -> tuple[Any, str | None]:
    if not response.body:
        return None, "empty body"
    try:
        return response.json(), None
    except (ValueError, UnicodeDecodeError) as exc:
        return None, str(exc)


def classify_response(response: FetchResponse) -> StatsResult:
    """Turn a transport response into ``Success`` or ``Failure``."""

    body, parse_error = _parse_body(response)
    if response.ok:
        if parse_error is not None:
            return Failure(f"Malformed response: {parse_error}")
        stars = body.get("stargazers_count") if isinstance(body, dict) else None
        if isinstance(stars, bool) or not isinstance(stars, int):
            return Failure("Malformed response: missing stargazers_count")
        return Success(stars)
    provider_message = body.get("message") if isinstance(body, dict) else None
    if isinstance(provider_message, str) and provider_message:
        return Failure(provider_message)
    if response.error:
        return Failure(response.error)
    return Failure(f"HTTP {response.status_code}")


__all__ = ["FetchResponse", "HttpTransport", "classify_response"]
