# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""HTTP transport used by the session client."""

from __future__ import annotations

import http.cookiejar
import logging
from typing import Any, Mapping, Protocol

import httpx

from .errors import WebLoginConnectionError, WebLoginTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0


class HttpClient(Protocol):
    """What the session client needs from an HTTP transport."""

    async def send(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        content: str | bytes | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response: ...

    async def aclose(self) -> None: ...


class _NoCookiePolicy(http.cookiejar.CookiePolicy):
    """Refuses to store or return any cookie."""

    netscape = True
    rfc2965 = False
    hide_cookie2 = False

    def set_ok(self, cookie: http.cookiejar.Cookie, request: Any) -> bool:
        return False

    def return_ok(self, cookie: http.cookiejar.Cookie, request: Any) -> bool:
        return False

    def domain_return_ok(self, domain: str, request: Any) -> bool:
        return False

    def path_return_ok(self, path: str, request: Any) -> bool:
        return False


class HttpxTransport:
    """Async HTTP transport backed by ``httpx.AsyncClient``.

    The underlying client keeps no cookies of its own; cookie state lives in
    the session's :class:`~weblogin_client.cookies.CookieJar`.
    """

    def __init__(
        self,
        timeout: float | None = DEFAULT_TIMEOUT,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            cookies=http.cookiejar.CookieJar(policy=_NoCookiePolicy()),
        )

    async def send(
        self,
        url: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        content: str | bytes | None = None,
        follow_redirects: bool = True,
    ) -> httpx.Response:
        """Send a request and return the fully read response.

        Raises:
            WebLoginTimeoutError: If the request times out.
            WebLoginConnectionError: If the server cannot be reached.
        """
        logger.debug(f"{method} {url}")
        try:
            return await self._client.request(
                method,
                url,
                headers=dict(headers or {}),
                content=content,
                follow_redirects=follow_redirects,
            )
        except httpx.TimeoutException as e:
            raise WebLoginTimeoutError(f"Timeout sending {method} {url}") from e
        except httpx.TransportError as e:
            raise WebLoginConnectionError(f"Cannot reach {url}: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
