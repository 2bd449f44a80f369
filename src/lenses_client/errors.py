# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for the Lenses client.

All errors raised by the library derive from LensesError so that callers
(and the CLI) can catch a single base class.

Components:
    LensesError: Root of the hierarchy.
    CredentialsMissingError: HTTP 401 or logout without a token.
    ResourceError: Non-OK HTTP status returned by the box.
    RequiredError: A mandatory argument was empty.
    AuthenticationError: Basic or Kerberos login failed.
    ConfigError: Configuration file or context problems.
    StreamError: Malformed Server-Sent-Events framing.
    LiveError: WebSocket connection or protocol failures.
    SecretsError: Secret provider failures.

Example:
    ::

        try:
            await client.do("GET", "api/topics/missing")
        except ResourceError as e:
            if e.code == 404:
                ...
"""

from __future__ import annotations

from urllib.parse import unquote_plus


class LensesError(Exception):
    """Base class for every error raised by lenses_client."""

    pass


class CredentialsMissingError(LensesError):
    """Raised when the box answers 401 or a token is required but absent."""

    def __init__(self, message: str = "credentials missing or invalid"):
        super().__init__(message)


class ResourceError(LensesError):
    """Raised when the box answers with a status that is not OK for the method.

    Attributes:
        status_code: HTTP status code of the response.
        method: HTTP method of the failed request.
        uri: Request URI, query-unescaped.
        body: Error message from the response body.
    """

    def __init__(self, status_code: int, method: str, uri: str, body: str):
        self.status_code = status_code
        self.method = method
        self.uri = unquote_plus(uri)
        self.body = body
        super().__init__(self._format_body(body))

    @staticmethod
    def _format_body(body: str) -> str:
        """Normalize a vendor message: lowercase first letter, drop final punctuation."""
        if len(body) <= 1:
            return body.lower()
        if body[0].isalpha() and body[1].isalpha() and body[1].islower():
            body = body[0].lower() + body[1:]
        if len(body) > 2 and body[-1] in ".!":
            body = body[:-1]
        return body

    @property
    def code(self) -> int:
        """HTTP status code of the failed request."""
        return self.status_code

    @property
    def detail(self) -> str:
        """Full description including method, URI and status code."""
        return (
            f"client: [{self.method}: {self.uri}] failed with status code "
            f"[{self.status_code}]:\n[{self.body}]"
        )


class RequiredError(LensesError, ValueError):
    """Raised when a mandatory argument is empty."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"client: {field} is required")


class AuthenticationError(LensesError):
    """Raised when basic or Kerberos authentication fails."""

    pass


class ConfigError(LensesError):
    """Raised for unreadable configuration files, unknown contexts or invalid settings."""

    pass


class StreamError(LensesError):
    """Raised when an SSE line violates the framing (missing prefix, unknown event)."""

    pass


class LiveError(LensesError):
    """Raised for WebSocket connect, login and read failures."""

    pass


class SecretsError(LensesError):
    """Raised when a secret provider or output writer fails."""

    pass


__all__ = [
    "AuthenticationError",
    "ConfigError",
    "CredentialsMissingError",
    "LensesError",
    "LiveError",
    "RequiredError",
    "ResourceError",
    "SecretsError",
    "StreamError",
]
