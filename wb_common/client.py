"""Thin async HTTP client bound to a base URL, a bearer and a timeout."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator
from urllib import parse

import httpx

from wb_common.errors import RemoteRequestError


def _validate_http_url(url: str, label: str) -> str:
    parsed = parse.urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{label} must be an http(s) URL, got: {url}")
    return url


class Client:
    """HTTP client with an optional base URL, bearer credential and timeout.

    ``timeout_seconds=None`` disables every httpx timeout, which is what
    long-lived streams need.
    """

    def __init__(
        self,
        base_url: str | None = None,
        bearer: str | None = None,
        timeout_seconds: float | None = 60.0,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (
            _validate_http_url(base_url.rstrip("/"), "base_url") if base_url else None
        )
        self.timeout_seconds = timeout_seconds
        headers = {"Accept": "application/json"}
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        self._http = httpx.AsyncClient(
            base_url=f"{self.base_url}/" if self.base_url else "",
            headers=headers,
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
        )

    def url_for(self, route: str) -> str:
        if self.base_url is None:
            return route
        route = route.lstrip("/")
        return f"{self.base_url}/{route}" if route else self.base_url

    async def request(
        self,
        method: str,
        route: str,
        *,
        json: Any = None,
        content: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send a request, turning transport failures into ``RemoteRequestError``."""
        url = self.url_for(route)
        try:
            return await self._http.request(
                method, url, json=json, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            raise RemoteRequestError(
                f"{method} {url} failed: {exc}",
                context={"method": method, "url": url},
                cause=exc,
            ) from exc

    async def get(self, route: str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", route, **kwargs)

    async def put(self, route: str, **kwargs: Any) -> httpx.Response:
        return await self.request("PUT", route, **kwargs)

    async def post(self, route: str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", route, **kwargs)

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        route: str,
        *,
        json: Any = None,
    ) -> AsyncIterator[httpx.Response]:
        """Open a streaming response; the body is read by the caller."""
        url = self.url_for(route)
        try:
            async with self._http.stream(method, url, json=json) as response:
                yield response
        except httpx.HTTPError as exc:
            raise RemoteRequestError(
                f"{method} {url} stream failed: {exc}",
                context={"method": method, "url": url},
                cause=exc,
            ) from exc

    async def aclose(self) -> None:
        await self._http.aclose()


def expect_success(response: httpx.Response, action: str) -> httpx.Response:
    """Raise ``RemoteRequestError`` unless the response status is 2xx."""
    if response.is_success:
        return response
    body = response.text
    raise RemoteRequestError(
        f"{action}: unexpected status {response.status_code}: {body}",
        context={
            "status": response.status_code,
            "url": str(response.request.url),
            "body": body,
        },
    )
