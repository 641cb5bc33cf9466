# Copyright 2026 WebLogin Contributors
# SPDX-License-Identifier: Apache-2.0
"""Exception types for the WebLogin client."""


class WebLoginError(Exception):
    """Base exception for all WebLogin errors."""


class WebLoginConfigError(WebLoginError):
    """Session configuration is incomplete or invalid."""


class WebLoginConnectionError(WebLoginError):
    """Cannot reach the web application."""


class WebLoginTimeoutError(WebLoginConnectionError):
    """Request timed out."""


class MalformedCookieError(WebLoginError):
    """A Set-Cookie header could not be parsed."""


class MissingCsrfTokenError(WebLoginError):
    """The login page did not contain the configured CSRF field."""


class AuthenticationError(WebLoginError):
    """The login POST did not produce a session cookie."""
