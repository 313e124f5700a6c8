from __future__ import annotations

import httpx
import pytest

from stargazer.engine import Failure, FetchResponse, HttpTransport, Success, classify_response

from tests.helpers import json_response


def _transport(handler, credential: str | None = None) -> HttpTransport:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpTransport(credential=credential, client=client)


def test_transport_sends_api_headers_with_bearer_token() -> None:
    captured: dict[str, httpx.Request] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["request"] = request
        return httpx.Response(200, json={"stargazers_count": 3})

    transport = _transport(handler, credential="s3cret")
    response = transport.get("https://api.github.com/repos/acme/widget")
    transport.close()

    request = captured["request"]
    assert request.method == "GET"
    assert request.headers["Authorization"] == "Bearer s3cret"
    assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"
    assert request.headers["Content-Type"] == "application/json"
    assert response.status_code == 200
    assert response.error is None
    assert response.json() == {"stargazers_count": 3}


def test_transport_omits_authorization_without_credential() -> None:
    transport = HttpTransport(client=httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(204))))
    assert "Authorization" not in transport.headers()


def test_transport_captures_network_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    transport = _transport(handler)
    response = transport.get("https://api.github.com/repos/acme/widget")
    assert response.status_code == 0
    assert response.error == "connection refused"
    assert not response.ok


def test_transport_does_not_close_injected_client() -> None:
    client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    with HttpTransport(client=client):
        pass
    assert not client.is_closed
    client.close()


def test_classify_success() -> None:
    assert classify_response(json_response("u", 200, {"stargazers_count": 42})) == Success(42)


def test_classify_zero_stars_is_success() -> None:
    assert classify_response(json_response("u", 200, {"stargazers_count": 0})) == Success(0)


def test_classify_provider_error_uses_provider_message() -> None:
    assert classify_response(json_response("u", 404, {"message": "Not Found"})) == Failure("Not Found")


def test_classify_transport_error() -> None:
    response = FetchResponse(url="u", status_code=0, error="timed out")
    assert classify_response(response) == Failure("timed out")


def test_classify_non_json_error_body_falls_back_to_status() -> None:
    response = FetchResponse(url="u", status_code=502, body=b"<html>Bad gateway</html>")
    assert classify_response(response) == Failure("HTTP 502")


@pytest.mark.parametrize(
    "body",
    [b"", b"not json", b"[1, 2]", b'{"stargazers_count": "many"}', b'{"stargazers_count": true}', b"{}"],
)
def test_classify_malformed_success_body(body: bytes) -> None:
    result = classify_response(FetchResponse(url="u", status_code=200, body=body))
    assert isinstance(result, Failure)
    assert result.message.startswith("Malformed response")


def test_classify_redirect_status_is_failure() -> None:
    result = classify_response(json_response("u", 301, {"message": "Moved Permanently"}))
    assert result == Failure("Moved Permanently")
