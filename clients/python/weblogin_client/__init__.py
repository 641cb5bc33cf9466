# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""WebLogin Client — Authenticated HTTP sessions for cookie/CSRF login sites."""

from __future__ import annotations

from .client import SessionClient
from .connection import DEFAULT_TIMEOUT, HttpClient, HttpxTransport
from .cookies import Cookie, CookieJar
from .errors import (
    AuthenticationError,
    MalformedCookieError,
    MissingCsrfTokenError,
    WebLoginConfigError,
    WebLoginConnectionError,
    WebLoginError,
    WebLoginTimeoutError,
)
from .session import SessionConfig, SessionState
from . import protocol

__version__ = "0.1.0"

__all__ = [
    # Top-level functions
    "login",
    # Classes
    "SessionClient",
    "SessionConfig",
    "SessionState",
    "Cookie",
    "CookieJar",
    "HttpClient",
    "HttpxTransport",
    "DEFAULT_TIMEOUT",
    "protocol",
    # Errors
    "WebLoginError",
    "WebLoginConfigError",
    "WebLoginConnectionError",
    "WebLoginTimeoutError",
    "MalformedCookieError",
    "MissingCsrfTokenError",
    "AuthenticationError",
]


async def login(
    config: SessionConfig,
    *,
    transport: HttpClient | None = None,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> SessionClient:
    """Create a client and log it in straight away.

    Args:
        config: Login settings.
        transport: HTTP transport to use instead of a new httpx client.
        timeout: Request timeout for the default transport, in seconds.

    Returns:
        A SessionClient; check ``client.state`` to see whether the login
        produced a session cookie.

    Example::

        client = await weblogin_client.login(SessionConfig.from_env())
        resp = await client.get("/dashboard/")
    """
    client = SessionClient(config, transport=transport, timeout=timeout)
    try:
        await client.login()
    except BaseException:
        await client.aclose()
        raise
    return client
