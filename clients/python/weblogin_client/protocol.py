# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""Wire-format helpers: Set-Cookie parsing, CSRF extraction, login form body."""

from __future__ import annotations

import re
from http.cookiejar import http2time
from urllib.parse import urlencode

from .errors import MalformedCookieError

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

_EXPIRES_RE = re.compile(r"(?:^|;)\s*expires=([^;]*)", re.IGNORECASE)


def parse_set_cookie(raw: str) -> tuple[str, str, int]:
    """Parse one ``Set-Cookie`` header value.

    The name is everything before the first ``=``, the value everything
    between that ``=`` and the next ``;``. The ``expires`` attribute is
    mandatory.

    Args:
        raw: Header value, e.g. ``"sessionid=abc; expires=Wed, 21 Oct 2026
            07:28:00 GMT; Path=/"``.

    Returns:
        ``(name, value, expires_at_ms)`` with the expiry in epoch milliseconds.

    Raises:
        MalformedCookieError: If the name, the ``expires`` attribute or its
            date cannot be read.
    """
    name, sep, rest = raw.partition("=")
    name = name.strip()
    if not sep or not name:
        raise MalformedCookieError(f"Set-Cookie header has no name=value pair: {raw!r}")
    value, _, attributes = rest.partition(";")
    value = value.strip()

    match = _EXPIRES_RE.search(";" + attributes)
    if match is None:
        raise MalformedCookieError(f"Set-Cookie header for {name!r} has no expires attribute")
    expires = http2time(match.group(1).strip())
    if expires is None:
        raise MalformedCookieError(
            f"Set-Cookie header for {name!r} has an unparseable expiry: {match.group(1).strip()!r}"
        )
    return name, value, int(expires * 1000)


def csrf_token_pattern(field_name: str) -> re.Pattern[str]:
    """Build the pattern that finds a CSRF token in a login form.

    Matches ``name="<field>" value="<token>"`` and the single-quoted form
    ``name='<field>' value='<token>'``, capturing the token's word characters.
    """
    return re.compile(re.escape(field_name) + r"""["']\s+value=["'](\w+)""")


def extract_csrf_token(html: str, field_name: str) -> str | None:
    """Return the first CSRF token for ``field_name`` in ``html``, if any."""
    match = csrf_token_pattern(field_name).search(html)
    return match.group(1) if match else None


def login_form_body(
    username: str,
    password: str,
    *,
    csrf_field: str | None = None,
    token: str = "",
) -> str:
    """Build the urlencoded login POST body."""
    fields: list[tuple[str, str]] = []
    if csrf_field is not None:
        fields.append((csrf_field, token))
    fields.append(("username", username))
    fields.append(("password", password))
    return urlencode(fields)
