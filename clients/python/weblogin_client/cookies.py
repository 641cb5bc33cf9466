# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""In-memory cookie store with expiry semantics."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator

from .protocol import parse_set_cookie


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass
class Cookie:
    """A named cookie and the moment it stops being sent."""

    name: str
    value: str
    expires_at_ms: int

    def is_expired(self, now_ms: int) -> bool:
        return self.expires_at_ms <= now_ms or self.value == ""


class CookieJar:
    """Cookies received from one web application.

    Expired cookies are evicted whenever the active set is read, there is no
    background sweep. Only name, value and expiry are kept.
    """

    def __init__(self, clock: Callable[[], int] = wall_clock_ms) -> None:
        self._clock = clock
        self._cookies: dict[str, Cookie] = {}

    def _active(self) -> list[Cookie]:
        now = self._clock()
        for cookie in self._cookies.values():
            if cookie.expires_at_ms <= now:
                cookie.value = ""
        self._cookies = {
            name: cookie
            for name, cookie in self._cookies.items()
            if not cookie.is_expired(now)
        }
        return list(self._cookies.values())

    def header_value(self) -> str:
        """Return the ``Cookie`` request header for the active cookies."""
        return "; ".join(f"{c.name}={c.value}" for c in self._active())

    def has_active(self, name: str) -> bool:
        """Whether an unexpired cookie called ``name`` is stored."""
        return any(c.name == name for c in self._active())

    def merge(self, raw_headers: Iterable[str]) -> None:
        """Store the cookies from ``Set-Cookie`` response header values.

        An existing cookie with the same name has its value and expiry
        replaced in place.

        Raises:
            MalformedCookieError: On the first header that cannot be parsed.
                Headers before it have already been stored.
        """
        for raw in raw_headers:
            name, value, expires_at_ms = parse_set_cookie(raw)
            existing = self._cookies.get(name)
            if existing is not None:
                existing.value = value
                existing.expires_at_ms = expires_at_ms
            else:
                self._cookies[name] = Cookie(name, value, expires_at_ms)

    def get(self, name: str) -> Cookie | None:
        for cookie in self._active():
            if cookie.name == name:
                return cookie
        return None

    def clear(self) -> None:
        self._cookies.clear()

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has_active(name)

    def __iter__(self) -> Iterator[Cookie]:
        return iter(self._active())

    def __len__(self) -> int:
        return len(self._active())

    def __repr__(self) -> str:
        return f"CookieJar(names={list(self._cookies)!r})"
