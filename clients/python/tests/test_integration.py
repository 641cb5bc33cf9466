# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""Integration tests against a local fixture login site.

Starts a threaded ``http.server`` that behaves like a small Django app
(CSRF-protected login form, ``sessionid`` cookie, login redirect) and drives
it through the real httpx transport.

Run with: pytest tests/test_integration.py -m integration
"""

from __future__ import annotations

import http.server
import secrets
import threading
import time
from contextlib import asynccontextmanager
from email.utils import formatdate
from typing import Any, AsyncIterator, Iterator
from urllib.parse import parse_qs

import httpx
import pytest

from weblogin_client import HttpxTransport, SessionClient, SessionConfig, SessionState

USERNAME = "alice"
PASSWORD = "s3cret"

pytestmark = pytest.mark.integration


def _expires(seconds: float) -> str:
    return formatdate(time.time() + seconds, usegmt=True)


class LoginSiteHandler(http.server.BaseHTTPRequestHandler):
    sessions: set[str] = set()
    tokens: set[str] = set()
    login_posts: int = 0
    session_ttl: float = 3600
    quote: str = '"'

    def _cookies(self) -> dict[str, str]:
        cookies: dict[str, str] = {}
        for part in self.headers.get("cookie", "").split(";"):
            name, _, value = part.strip().partition("=")
            if name:
                cookies[name] = value
        return cookies

    def _send(self, status: int, body: str = "", headers: list[tuple[str, str]] | None = None) -> None:
        payload = body.encode()
        self.send_response(status)
        for key, value in headers or []:
            self.send_header(key, value)
        self.send_header("Content-Type", "text/html")
        self.send_header("Content-Length", str(len(payload)))
        self.end_headers()
        self.wfile.write(payload)

    def do_GET(self) -> None:
        path = self.path.split("?", 1)[0]
        if path == "/accounts/login/":
            token = secrets.token_hex(16)
            self.tokens.add(token)
            q = self.quote
            form = (
                f"<form method={q}post{q}>"
                f"<input type={q}hidden{q} name={q}csrfmiddlewaretoken{q} value={q}{token}{q}>"
                f"<input name={q}username{q}><input name={q}password{q}></form>"
            )
            self._send(200, form, [("Set-Cookie", f"csrftoken={token}; expires={_expires(86400)}; Path=/")])
        elif path == "/dashboard":
            self._send(301, headers=[("Location", "/dashboard/")])
        elif path == "/dashboard/":
            if self._cookies().get("sessionid") in self.sessions:
                self._send(200, f"<h1>Welcome {USERNAME}</h1>")
            else:
                self._send(302, headers=[("Location", "/accounts/login/?next=/dashboard/")])
        else:
            self._send(404)

    def do_POST(self) -> None:
        length = int(self.headers.get("Content-Length", "0"))
        form = parse_qs(self.rfile.read(length).decode())
        if self.path != "/accounts/login/":
            self._send(404)
            return
        type(self).login_posts += 1
        token = form.get("csrfmiddlewaretoken", [""])[0]
        if (
            token in self.tokens
            and self._cookies().get("csrftoken") == token
            and form.get("username") == [USERNAME]
            and form.get("password") == [PASSWORD]
        ):
            session = secrets.token_hex(16)
            self.sessions.add(session)
            self._send(
                302,
                headers=[
                    ("Location", "/dashboard/"),
                    ("Set-Cookie", f"sessionid={session}; expires={_expires(self.session_ttl)}; HttpOnly; Path=/"),
                ],
            )
        else:
            self._send(200, "<p>Please enter a correct username and password.</p>")

    def log_message(self, format: str, *args: Any) -> None:
        pass  # Suppress logs


@pytest.fixture
def site() -> Iterator[Any]:
    handler = type(
        "Handler",
        (LoginSiteHandler,),
        {"sessions": set(), "tokens": set(), "login_posts": 0},
    )
    server = http.server.ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    server.handler = handler  # type: ignore[attr-defined]
    try:
        yield server
    finally:
        server.shutdown()
        server.server_close()


def _config(server: Any, **overrides: Any) -> SessionConfig:
    params: dict[str, Any] = {
        "base_url": f"http://127.0.0.1:{server.server_address[1]}",
        "login_path": "/accounts/login/",
        "username": USERNAME,
        "password": PASSWORD,
        "sessionid_cookie_name": "sessionid",
        "middlewaretoken_name": "csrfmiddlewaretoken",
    }
    params.update(overrides)
    return SessionConfig(**params)


@asynccontextmanager
async def _session(server: Any, **overrides: Any) -> AsyncIterator[SessionClient]:
    # An explicit transport keeps proxy environment variables out of the way.
    async with HttpxTransport(transport=httpx.AsyncHTTPTransport()) as transport:
        yield SessionClient(_config(server, **overrides), transport=transport)


@pytest.mark.asyncio
async def test_login_and_fetch(site: Any) -> None:
    """First request logs in, later requests reuse the session."""
    async with _session(site) as client:
        first = await client.get("/dashboard/")
        second = await client.get("/dashboard/")

        assert first.status_code == 200
        assert "Welcome alice" in first.text
        assert second.status_code == 200
        assert client.state is SessionState.AUTHENTICATED
        assert site.handler.login_posts == 1


@pytest.mark.asyncio
async def test_redirect_carries_session(site: Any) -> None:
    """A redirect after login still sends the session cookie."""
    async with _session(site) as client:
        resp = await client.get("/dashboard")

        assert resp.status_code == 200
        assert "Welcome alice" in resp.text
        assert [r.status_code for r in resp.history] == [301]
        assert site.handler.login_posts == 1


@pytest.mark.asyncio
async def test_single_quoted_form(site: Any) -> None:
    """Login works when the form uses single-quoted attributes."""
    site.handler.quote = "'"
    async with _session(site) as client:
        resp = await client.get("/dashboard/")
        assert "Welcome alice" in resp.text


@pytest.mark.asyncio
async def test_wrong_password(site: Any) -> None:
    """A rejected login is retried on every request, and the login page is returned."""
    async with _session(site, password="wrong") as client:
        resp = await client.get("/dashboard/")
        assert resp.status_code == 200
        assert "csrfmiddlewaretoken" in resp.text
        assert client.state is SessionState.UNAUTHENTICATED

        await client.get("/dashboard/")
        assert site.handler.login_posts == 2


@pytest.mark.asyncio
async def test_missing_csrf_token_is_rejected(site: Any) -> None:
    """Without the CSRF field the site rejects the login."""
    async with _session(site, middlewaretoken_name=None) as client:
        assert await client.login() is False
