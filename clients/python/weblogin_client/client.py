# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""SessionClient: cookie-carrying requests with automatic login."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Mapping

import httpx

from .connection import DEFAULT_TIMEOUT, HttpClient, HttpxTransport
from .cookies import CookieJar, wall_clock_ms
from .errors import AuthenticationError, MissingCsrfTokenError, WebLoginError
from .protocol import FORM_CONTENT_TYPE, extract_csrf_token, login_form_body
from .session import SessionConfig, SessionState

logger = logging.getLogger(__name__)

MAX_REDIRECTS = 20


class SessionClient:
    """Issues requests as a logged-in user of a cookie-session web app.

    Before each request the client checks for a live session cookie and, if
    there is none, runs the login handshake: GET the login page, pull the
    CSRF token out of the form, POST the credentials. Cookies set by any
    response are kept for later requests.

    Example::

        async with SessionClient(config) as client:
            resp = await client.get("/dashboard/")
            print(resp.text)
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        transport: HttpClient | None = None,
        clock: Callable[[], int] = wall_clock_ms,
        timeout: float | None = DEFAULT_TIMEOUT,
    ) -> None:
        self.config = config
        self._jar = CookieJar(clock)
        self._owns_transport = transport is None
        self._transport: HttpClient = transport or HttpxTransport(timeout=timeout)
        self._login_task: asyncio.Future[bool] | None = None

    @property
    def cookies(self) -> CookieJar:
        return self._jar

    @property
    def state(self) -> SessionState:
        if self._login_task is not None and not self._login_task.done():
            return SessionState.AUTHENTICATING
        if self._jar.has_active(self.config.sessionid_cookie_name):
            return SessionState.AUTHENTICATED
        return SessionState.UNAUTHENTICATED

    async def request(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: Mapping[str, str] | None = None,
        content: str | bytes | None = None,
        follow_redirects: bool = True,
        skip_auth: bool = False,
    ) -> httpx.Response:
        """Send a request with the session cookies, logging in first if needed.

        Redirects are followed here rather than by the transport, so every
        hop carries the jar's current cookies, including ones set by the
        previous hop.

        Args:
            path: Appended verbatim to the configured base URL.
            method: HTTP method.
            headers: Extra request headers. Any ``cookie`` header is replaced.
            content: Request body.
            follow_redirects: Whether to follow 3xx responses.
            skip_auth: Send without checking for a session cookie.

        Returns:
            The final response. Earlier hops are in ``response.history``.

        Raises:
            MalformedCookieError: If a response carries an unparseable
                Set-Cookie header.
            WebLoginError: If a redirect chain exceeds ``MAX_REDIRECTS``.
        """
        if not skip_auth and not self._jar.has_active(self.config.sessionid_cookie_name):
            await self._authenticate()

        request_headers = {k: v for k, v in (headers or {}).items() if k.lower() != "cookie"}
        url = self.config.url(path)
        history: list[httpx.Response] = []
        while True:
            request_headers["cookie"] = self._jar.header_value()
            response = await self._transport.send(
                url,
                method=method,
                headers=request_headers,
                content=content,
                follow_redirects=False,
            )
            set_cookies = response.headers.get_list("set-cookie")
            if set_cookies:
                logger.debug(f"Merging {len(set_cookies)} cookie(s) from {method} {url}")
                self._jar.merge(set_cookies)

            location = response.headers.get("location")
            if not follow_redirects or not response.is_redirect or location is None:
                break
            if len(history) >= MAX_REDIRECTS:
                raise WebLoginError(f"Exceeded {MAX_REDIRECTS} redirects from {path}")
            history.append(response)
            url = str(httpx.URL(url).join(location))
            if response.status_code == 303 or (
                response.status_code in (301, 302) and method == "POST"
            ):
                method = "GET"
                content = None
                request_headers = {
                    k: v for k, v in request_headers.items() if k.lower() != "content-type"
                }

        if history:
            response.history = history
        return response

    async def get(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request(path, method="GET", **kwargs)

    async def post(self, path: str, **kwargs: Any) -> httpx.Response:
        return await self.request(path, method="POST", **kwargs)

    async def login(self) -> bool:
        """Run the login handshake, or join the one already in flight.

        Returns:
            True if the session cookie is set afterwards.

        Raises:
            MissingCsrfTokenError: In strict mode, if the login page has no
                CSRF token.
            AuthenticationError: In strict mode, if the server did not set
                the session cookie.
        """
        return await self._authenticate()

    async def _login(self) -> bool:
        config = self.config
        csrf_field = config.middlewaretoken_name or None
        token = ""
        if csrf_field is not None:
            page = await self.request(config.login_path, skip_auth=True)
            await page.aread()
            found = extract_csrf_token(page.text, csrf_field)
            if found is not None:
                token = found
            elif config.strict:
                raise MissingCsrfTokenError(
                    f"No {csrf_field!r} field on {config.login_path}"
                )
            else:
                logger.warning(
                    f"No {csrf_field!r} field on {config.login_path}, "
                    "posting an empty token"
                )

        logger.info(f"Logging in to {config.base_url}")
        await self.request(
            config.login_path,
            method="POST",
            headers={"content-type": FORM_CONTENT_TYPE},
            content=login_form_body(
                config.username,
                config.password,
                csrf_field=csrf_field,
                token=token,
            ),
            follow_redirects=False,
            skip_auth=True,
        )

        if self._jar.has_active(config.sessionid_cookie_name):
            logger.info(f"Logged in to {config.base_url}")
            return True
        if config.strict:
            raise AuthenticationError(
                f"Login to {config.base_url} did not set {config.sessionid_cookie_name!r}"
            )
        logger.warning(
            f"Login to {config.base_url} did not set {config.sessionid_cookie_name!r}"
        )
        return False

    async def _authenticate(self) -> bool:
        # Concurrent callers share one in-flight login.
        task = self._login_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._login())
            self._login_task = task
            task.add_done_callback(self._release_login)
        return await asyncio.shield(task)

    def _release_login(self, task: asyncio.Future[bool]) -> None:
        if self._login_task is task:
            self._login_task = None
        if not task.cancelled():
            # Mark the error as retrieved even if every waiter was cancelled.
            task.exception()

    async def aclose(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            await self._transport.aclose()

    async def __aenter__(self) -> SessionClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"SessionClient({self.config!r}, state={self.state.value})"
