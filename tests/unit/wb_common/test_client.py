"""Tests for the async HTTP client wrapper."""

from __future__ import annotations

import json

import httpx
import pytest

from tests.helpers.bench import run
from wb_common.client import Client, expect_success
from wb_common.errors import RemoteRequestError


pytestmark = pytest.mark.unit_common


def test_url_for_joins_base_url_and_route() -> None:
    client = Client("http://bench.test/api/v1/")
    assert client.url_for("/invocation") == "http://bench.test/api/v1/invocation"
    assert client.url_for("") == "http://bench.test/api/v1"


def test_url_for_without_base_url_uses_route_as_is() -> None:
    client = Client(None)
    assert client.url_for("https://assets.test/movies.json") == "https://assets.test/movies.json"


def test_rejects_non_http_base_url() -> None:
    with pytest.raises(ValueError, match="http"):
        Client("ftp://bench.test")


def test_timeout_none_is_unbounded() -> None:
    client = Client("http://bench.test", timeout_seconds=None)
    timeout = client._http.timeout
    assert timeout.connect is None
    assert timeout.read is None
    assert timeout.pool is None


def test_bearer_and_json_are_sent() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"created": True})

    async def scenario() -> httpx.Response:
        client = Client("http://bench.test/api/v1", "secret", transport=httpx.MockTransport(handler))
        try:
            return await client.put("workload", json={"name": "search"})
        finally:
            await client.aclose()

    response = run(scenario())

    assert response.status_code == 201
    assert seen[0].url == "http://bench.test/api/v1/workload"
    assert seen[0].headers["Authorization"] == "Bearer secret"
    assert json.loads(seen[0].content) == {"name": "search"}


def test_no_authorization_header_without_bearer() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200)

    async def scenario() -> None:
        client = Client("http://bench.test", transport=httpx.MockTransport(handler))
        await client.get("health")
        await client.aclose()

    run(scenario())
    assert "Authorization" not in seen[0].headers


def test_transport_error_becomes_remote_request_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario() -> None:
        client = Client("http://bench.test", transport=httpx.MockTransport(handler))
        try:
            await client.post("indexes")
        finally:
            await client.aclose()

    with pytest.raises(RemoteRequestError) as excinfo:
        run(scenario())
    assert excinfo.value.context == {"method": "POST", "url": "http://bench.test/indexes"}
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_expect_success_raises_with_status_and_body() -> None:
    request = httpx.Request("PUT", "http://bench.test/invocation")
    response = httpx.Response(409, text="conflict", request=request)

    with pytest.raises(RemoteRequestError, match="unexpected status 409") as excinfo:
        expect_success(response, "could not create new invocation")
    assert excinfo.value.context["status"] == 409
    assert excinfo.value.context["body"] == "conflict"


def test_expect_success_returns_response() -> None:
    request = httpx.Request("GET", "http://bench.test/")
    response = httpx.Response(204, request=request)
    assert expect_success(response, "ping") is response
