# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""HTTP client for the Lenses box.

LensesClient wraps an httpx.AsyncClient and applies the box conventions
to every call: token header, gzip, status checks and error decoding.
Endpoint classes build on the three primitives do(), read_json() and
stream().

Components:
    LensesClient: Authenticated client bound to one box.
    open_connection: Validate a ClientConfig, log in and return a client.
    schema_api_option: Request option asking for schema-registry JSON.
    ExecutionMode: SQL execution modes reported by the box config.

Example:
    ::

        config = ClientConfig(
            host="http://localhost:3030",
            authentication=BasicAuthentication("admin", "admin"),
        )
        async with await open_connection(config) as client:
            topics = await client.read_json("GET", "api/topics")

Note:
    Pass ``transport=httpx.MockTransport(handler)`` (or ASGITransport)
    to run the client against an in-process fake box.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any

import httpx

from .auth import TOKEN_HEADER, User
from .client_config import ClientConfig
from .errors import (
    AuthenticationError,
    ConfigError,
    CredentialsMissingError,
    LensesError,
    ResourceError,
)

logger = logging.getLogger(__name__)

CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_SCHEMA_JSON = "application/vnd.schemaregistry.v1+json"
CONTENT_TYPE_TEXT = "text/plain"

RequestOption = Callable[[httpx.Request], None]


class ExecutionMode(str, Enum):
    """SQL execution mode of the box (``lenses.sql.execution.mode``)."""

    IN_PROC = "IN_PROC"
    CONNECT = "CONNECT"
    KUBERNETES = "KUBERNETES"
    INVALID = "INVALID"

    @classmethod
    def parse(cls, value: str) -> ExecutionMode:
        try:
            return cls(value.upper())
        except ValueError:
            return cls.INVALID


def schema_api_option(request: httpx.Request) -> None:
    """Ask for schema-registry JSON responses."""
    request.headers["Accept"] = CONTENT_TYPE_SCHEMA_JSON


def accept_option(value: str) -> RequestOption:
    """Build an option that sets the Accept header."""

    def option(request: httpx.Request) -> None:
        request.headers["Accept"] = value

    return option


def _is_ok(method: str, status_code: int) -> bool:
    if status_code in (200, 201, 202):
        return True
    if status_code == 204:
        return method in ("DELETE", "POST")
    if status_code == 400:
        return method == "GET"
    return False


def _error_body(response: httpx.Response) -> str:
    body = ""
    content_type = response.headers.get("Content-Type", "")
    if CONTENT_TYPE_JSON in content_type or CONTENT_TYPE_SCHEMA_JSON in content_type:
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            body = str(data.get("message") or "")
    if not body:
        body = response.text
    return body


class LensesClient:
    """Authenticated HTTP client for one Lenses box.

    Attributes:
        config: Connection settings; ``config.token`` is updated on login.
        user: Logged-in user (empty when connected with a bare token).
        request_modifier: Applied to every request before per-call options
            (Kerberos installs its SPNEGO header here).
    """

    def __init__(self, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config
        self.user = User()
        self.request_modifier: RequestOption | None = None
        self._http = httpx.AsyncClient(
            timeout=config.timeout_seconds,
            verify=not config.insecure,
            transport=transport,
        )

    async def __aenter__(self) -> LensesClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    @property
    def access_token(self) -> str:
        return self.config.token

    # -------------------------------------------------------------------------
    # Request primitives
    # -------------------------------------------------------------------------

    def build_request(
        self,
        method: str,
        path: str,
        content_type: str = "",
        send: Any = None,
        *options: RequestOption,
    ) -> httpx.Request:
        """Build a request following the box conventions.

        Args:
            method: HTTP method.
            path: Path relative to the host; a leading slash is ignored.
            content_type: Content-Type header, omitted when empty.
            send: Body. bytes/str are sent as-is, other values as JSON.
            *options: Callables mutating the request after the defaults.
        """
        if path.startswith("/"):
            path = path[1:]
        uri = f"{self.config.host}/{path}"

        if send is None:
            content = None
        elif isinstance(send, (bytes, str)):
            content = send
        else:
            content = json.dumps(send)

        headers = {"Accept-Encoding": "gzip"}
        if self.config.token:
            headers[TOKEN_HEADER] = self.config.token
        if content_type:
            headers["Content-Type"] = content_type

        request = self._http.build_request(method, uri, content=content, headers=headers)

        if self.request_modifier is not None:
            self.request_modifier(request)
        for option in options:
            option(request)

        logger.debug("%s %s send=%r headers=%s", method, uri, content, dict(request.headers))
        return request

    async def _check_response(self, request: httpx.Request, response: httpx.Response) -> None:
        if response.status_code == 401:
            raise CredentialsMissingError()
        if _is_ok(request.method, response.status_code):
            return
        await response.aread()
        raise ResourceError(response.status_code, request.method, str(request.url), _error_body(response))

    async def do(
        self,
        method: str,
        path: str,
        content_type: str = "",
        send: Any = None,
        *options: RequestOption,
    ) -> httpx.Response:
        """Send a request and return the fully read response.

        Raises:
            CredentialsMissingError: On HTTP 401.
            ResourceError: On any status that is not OK for the method.
        """
        request = self.build_request(method, path, content_type, send, *options)
        try:
            response = await self._http.send(request)
        except httpx.HTTPError as e:
            raise LensesError(f"client: {method} {request.url}: {e}") from e
        await self._check_response(request, response)
        return response

    async def read_json(
        self,
        method: str,
        path: str,
        content_type: str = "",
        send: Any = None,
        *options: RequestOption,
    ) -> Any:
        """Send a request and decode the JSON response (None for an empty body)."""
        response = await self.do(method, path, content_type, send, *options)
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise LensesError(f"client: unable to decode response of {method} {path}: {e}") from e

    @asynccontextmanager
    async def stream(
        self,
        method: str,
        path: str,
        content_type: str = "",
        send: Any = None,
        *options: RequestOption,
    ) -> AsyncIterator[httpx.Response]:
        """Send a request and yield the open response for line iteration.

        Used by the Server-Sent-Events calls; the response is closed when
        the context exits.
        """
        request = self.build_request(method, path, content_type, send, *options)
        try:
            response = await self._http.send(request, stream=True)
        except httpx.HTTPError as e:
            raise LensesError(f"client: {method} {request.url}: {e}") from e
        try:
            await self._check_response(request, response)
            yield response
        finally:
            await response.aclose()

    # -------------------------------------------------------------------------
    # Session
    # -------------------------------------------------------------------------

    async def fetch_user(self) -> User:
        """Return the user bound to the current token (``GET /api/auth``)."""
        data = await self.read_json("GET", "/api/auth")
        self.user = User.from_dict(data or {})
        return self.user

    async def logout(self) -> None:
        """Invalidate the current token.

        Raises:
            CredentialsMissingError: If there is no token.
        """
        token = self.config.token
        if not token:
            raise CredentialsMissingError()
        await self.do("GET", f"api/logout?token={token}")
        self.config.token = ""

    # -------------------------------------------------------------------------
    # Box configuration
    # -------------------------------------------------------------------------

    async def get_config(self) -> dict[str, Any]:
        """Return the box configuration (``GET /api/config``)."""
        return await self.read_json(
            "GET", "/api/config", "", None, accept_option("application/json, text/plain")
        ) or {}

    async def get_config_entry(self, *keys: str) -> Any:
        """Return the first of keys found in the box configuration.

        Empty strings, lists and objects are returned as None.

        Raises:
            LensesError: If none of the keys exists.
        """
        config = await self.get_config()
        for index, key in enumerate(keys):
            if key not in config:
                if index == len(keys) - 1:
                    raise LensesError(f"{key}: couldn't find the corresponding key from config")
                continue
            value = config[key]
            if value in ("", [], {}):
                return None
            return value
        return None

    async def get_execution_mode(self) -> ExecutionMode:
        value = await self.get_config_entry("lenses.sql.execution.mode")
        return ExecutionMode.parse(value or "")

    async def get_connect_clusters(self) -> list[dict[str, Any]]:
        """Return the Kafka Connect clusters configured on the box."""
        return await self.get_config_entry("lenses.connect.clusters") or []


async def open_connection(
    config: ClientConfig,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LensesClient:
    """Create a client for config and authenticate it.

    A config with a token skips login; otherwise its authentication
    backend runs.

    Raises:
        ConfigError: If the config has neither host nor credentials.
        AuthenticationError: If login fails.
    """
    if not config.is_valid():
        raise ConfigError("invalid configuration: Token or Authentication missing")

    client = LensesClient(config, transport=transport)
    if config.token:
        return client

    if config.authentication is None:
        await client.aclose()
        raise AuthenticationError("client: auth failure: authenticator missing")

    try:
        await config.authentication.authenticate(client)
    except AuthenticationError as e:
        await client.aclose()
        raise AuthenticationError(f"client: auth failure: {e}") from e
    except BaseException:
        await client.aclose()
        raise

    if not client.config.token:
        await client.aclose()
        raise AuthenticationError("client: login failure: token is undefined")

    logger.debug("Connected to %s as %s", config.host, client.user.name or "<token>")
    return client


__all__ = [
    "CONTENT_TYPE_JSON",
    "CONTENT_TYPE_SCHEMA_JSON",
    "CONTENT_TYPE_TEXT",
    "ExecutionMode",
    "LensesClient",
    "RequestOption",
    "accept_option",
    "open_connection",
    "schema_api_option",
]
