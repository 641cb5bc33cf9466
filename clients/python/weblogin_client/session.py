# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""Session configuration and state."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from typing import Mapping

from .errors import WebLoginConfigError

ENV_PREFIX = "WEBLOGIN_"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class SessionState(enum.Enum):
    """Where a session is in its login lifecycle."""

    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class SessionConfig:
    """Login settings for one user against one web application.

    Example::

        config = SessionConfig(
            base_url="https://example.com",
            login_path="/accounts/login/",
            username="me",
            password="pw",
            sessionid_cookie_name="sessionid",
            middlewaretoken_name="csrfmiddlewaretoken",
        )

    Leave ``middlewaretoken_name`` unset for login forms without a CSRF
    field. With ``strict`` set, a missing CSRF token or a login that yields
    no session cookie raises instead of being logged.
    """

    base_url: str
    login_path: str
    username: str
    password: str
    sessionid_cookie_name: str
    middlewaretoken_name: str | None = None
    strict: bool = False

    def __post_init__(self) -> None:
        for name in ("base_url", "login_path", "username", "sessionid_cookie_name"):
            if not getattr(self, name):
                raise WebLoginConfigError(f"{name} must not be empty")

    @classmethod
    def from_env(
        cls,
        prefix: str = ENV_PREFIX,
        environ: Mapping[str, str] | None = None,
    ) -> SessionConfig:
        """Read a config from ``<prefix>BASE_URL``, ``<prefix>LOGIN_PATH`` etc.

        Raises:
            WebLoginConfigError: If a required variable is missing.
        """
        env = os.environ if environ is None else environ
        required = ("BASE_URL", "LOGIN_PATH", "USERNAME", "PASSWORD", "SESSIONID_COOKIE_NAME")
        missing = [prefix + key for key in required if (prefix + key) not in env]
        if missing:
            raise WebLoginConfigError(f"Missing environment variables: {', '.join(missing)}")
        return cls(
            base_url=env[prefix + "BASE_URL"],
            login_path=env[prefix + "LOGIN_PATH"],
            username=env[prefix + "USERNAME"],
            password=env[prefix + "PASSWORD"],
            sessionid_cookie_name=env[prefix + "SESSIONID_COOKIE_NAME"],
            middlewaretoken_name=env.get(prefix + "MIDDLEWARETOKEN_NAME") or None,
            strict=env.get(prefix + "STRICT", "").strip().lower() in _TRUE_VALUES,
        )

    def url(self, path: str) -> str:
        """Join ``path`` to the base URL verbatim."""
        return self.base_url + path

    def __repr__(self) -> str:
        csrf = f", csrf={self.middlewaretoken_name!r}" if self.middlewaretoken_name else ""
        return (
            f"SessionConfig(base_url={self.base_url!r}, user={self.username!r}, "
            f"password='***', session_cookie={self.sessionid_cookie_name!r}{csrf})"
        )
