# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Long-lived WebSocket pub/sub client for the Lenses box.

The box exposes ``/api/kafka/ws/<client_id>``. After connecting, the
client sends a LOGIN request (correlation id 1); the SUCCESS response for
that correlation id carries the auth token that every later request must
include. Responses are dispatched to listeners registered per response
type.

Components:
    RequestType / ResponseType: Message type enums.
    LiveRequest / LiveResponse: Wire messages.
    LiveConfiguration: Host, credentials and client id.
    LiveConnection: Connection with listener registry, read loop and
        error queue.
    open_live_connection: Connect, start the read loop and log in.

Example:
    ::

        config = LiveConfiguration(host="http://localhost:3030", user="admin", password="admin")
        async with await open_live_connection(config) as live:
            live.on_kafka_message(lambda conn, resp: print(resp.content))
            await live.subscribe(["SELECT * FROM payments"])
            await live.wait()

Note:
    Listeners receive (connection, response) and may be plain functions
    or coroutine functions. Errors raised by listeners are put on the
    ``errors`` queue and do not stop the read loop.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed

from .errors import LiveError

logger = logging.getLogger(__name__)

LOGIN_CORRELATION_ID = 1
SUBSCRIBE_CORRELATION_ID = 2
DEFAULT_HANDSHAKE_TIMEOUT = 45.0


class RequestType(str, Enum):
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    PUBLISH = "PUBLISH"
    COMMIT = "COMMIT"
    LOGIN = "LOGIN"


class ResponseType(str, Enum):
    WILDCARD = "*"
    ERROR = "ERROR"
    INVALID_REQUEST = "INVALIDREQUEST"
    KAFKA_MESSAGE = "KAFKAMSG"
    HEARTBEAT = "HEARTBEAT"
    SUCCESS = "SUCCESS"


CONCRETE_RESPONSE_TYPES = (
    ResponseType.ERROR,
    ResponseType.INVALID_REQUEST,
    ResponseType.KAFKA_MESSAGE,
    ResponseType.HEARTBEAT,
    ResponseType.SUCCESS,
)


@dataclass
class LiveRequest:
    """Message sent to the box. Content is always a string."""

    type: RequestType
    correlation_id: int
    content: str = ""
    auth_token: str = ""

    def to_json(self) -> str:
        return json.dumps(
            {
                "type": RequestType(self.type).value,
                "correlationId": self.correlation_id,
                "content": self.content,
                "authToken": self.auth_token,
            }
        )


@dataclass
class LiveResponse:
    """Message received from the box. Content is decoded JSON."""

    type: str
    correlation_id: int = 0
    content: Any = None

    @classmethod
    def from_json(cls, raw: str | bytes) -> LiveResponse:
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("response is not a JSON object")
        return cls(
            type=str(data.get("type") or ""),
            correlation_id=int(data.get("correlationId") or 0),
            content=data.get("content"),
        )


@dataclass
class LiveConfiguration:
    """Settings for a live connection.

    Attributes:
        host: Box address (http/https, converted to ws/wss).
        user: Username sent with LOGIN.
        password: Password sent with LOGIN.
        client_id: Connection identifier, a random UUID when empty.
        debug: Enable debug logging.
        handshake_timeout: Seconds allowed for the opening handshake.
    """

    host: str = ""
    user: str = ""
    password: str = ""
    client_id: str = ""
    debug: bool = False
    handshake_timeout: float = DEFAULT_HANDSHAKE_TIMEOUT

    @property
    def ws_host(self) -> str:
        return self.host.replace("https://", "wss://", 1).replace("http://", "ws://", 1)

    @property
    def endpoint(self) -> str:
        return f"{self.ws_host.rstrip('/')}/api/kafka/ws/{self.client_id}"


LiveListener = Callable[["LiveConnection", LiveResponse], Any]


class LiveConnection:
    """An open WebSocket connection to the box.

    Attributes:
        config: Connection settings.
        auth_token: Token received after LOGIN.
        errors: Queue of read, decode and listener errors.
    """

    def __init__(self, config: LiveConfiguration):
        if not config.client_id:
            config.client_id = str(uuid.uuid4())
        if not config.handshake_timeout:
            config.handshake_timeout = DEFAULT_HANDSHAKE_TIMEOUT
        self.config = config
        self.auth_token = ""
        self.errors: asyncio.Queue[Exception] = asyncio.Queue()
        self._listeners: dict[str, list[LiveListener]] = {}
        self._ws: Any = None
        self._reader: asyncio.Task | None = None
        self._closed = False
        self._closing = False

    @property
    def endpoint(self) -> str:
        return self.config.endpoint

    @property
    def closed(self) -> bool:
        return self._closed

    async def __aenter__(self) -> LiveConnection:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Connect, register the login listener, start reading and log in.

        Raises:
            LiveError: If the connection or the login request fails.
        """
        try:
            self._ws = await websockets.connect(
                self.endpoint, open_timeout=self.config.handshake_timeout
            )
        except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
            raise LiveError(f"connect failure for '{self.config.host}': {e}") from e

        self.on_success(self._store_auth_token)
        self._reader = asyncio.create_task(self._read_loop())

        try:
            await self._login()
        except (ConnectionClosed, OSError) as e:
            await self.close()
            raise LiveError(f"login failure: {e}") from e

    def _store_auth_token(self, _: LiveConnection, response: LiveResponse) -> None:
        if response.correlation_id != LOGIN_CORRELATION_ID:
            return
        if not isinstance(response.content, str):
            raise LiveError(f"login failure: unexpected token {response.content!r}")
        self.auth_token = response.content
        logger.debug("Live login succeeded, auth token: %s", self.auth_token)

    async def _login(self) -> None:
        content = json.dumps({"user": self.config.user, "password": self.config.password})
        request = LiveRequest(RequestType.LOGIN, LOGIN_CORRELATION_ID, content)
        await self._ws.send(request.to_json())

    async def _read_loop(self) -> None:
        try:
            async for raw in self._ws:
                try:
                    response = LiveResponse.from_json(raw)
                except ValueError as e:
                    self._send_error(LiveError(f"live: read json: {e}"))
                    continue
                logger.debug("Live read: %r", response)
                await self._dispatch(response)
        except ConnectionClosed as e:
            if not self._closed:
                logger.debug("Live connection closed by peer: %s", e)
        finally:
            self._closed = True

    async def _dispatch(self, response: LiveResponse) -> None:
        for listener in list(self._listeners.get(response.type, [])):
            try:
                result = listener(self, response)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                self._send_error(e)

    def _send_error(self, error: Exception) -> None:
        logger.debug("Live error: %s", error)
        self.errors.put_nowait(error)

    async def wait(self, stop: asyncio.Event | None = None) -> None:
        """Block until stop is set or the read loop ends, then close."""
        waiters: list[asyncio.Future] = []
        if self._reader is not None:
            waiters.append(asyncio.ensure_future(asyncio.shield(self._reader)))
        if stop is not None:
            waiters.append(asyncio.ensure_future(stop.wait()))
        if waiters:
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    waiter.cancel()
        await self.close()

    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closing:
            return
        self._closing = True
        self._closed = True
        logger.debug("Terminating websocket connection to %s", self.endpoint)
        if self._ws is not None:
            await self._ws.close()
        reader, self._reader = self._reader, None
        if reader is not None and reader is not asyncio.current_task():
            await asyncio.gather(reader, return_exceptions=True)

    # -------------------------------------------------------------------------
    # Publishing
    # -------------------------------------------------------------------------

    async def publish(self, type: RequestType | str, correlation_id: int, content: str) -> None:
        """Send a request carrying the auth token."""
        if self._ws is None:
            raise LiveError("live: connection is not open")
        request = LiveRequest(RequestType(type), correlation_id, content, self.auth_token)
        logger.debug("Live publish: %r", request)
        try:
            await self._ws.send(request.to_json())
        except ConnectionClosed as e:
            raise LiveError(f"live: publish failed: {e}") from e

    async def subscribe(self, sqls: list[str], correlation_id: int = SUBSCRIBE_CORRELATION_ID) -> None:
        """Subscribe to the results of one or more LSQL queries."""
        await self.publish(RequestType.SUBSCRIBE, correlation_id, json.dumps({"sqls": sqls}))

    async def unsubscribe(self, topic: str, correlation_id: int = SUBSCRIBE_CORRELATION_ID) -> None:
        await self.publish(RequestType.UNSUBSCRIBE, correlation_id, json.dumps({"topic": topic}))

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def on(self, type: ResponseType | str, listener: LiveListener) -> None:
        """Register listener for a response type; "*" registers it for all."""
        key = ResponseType(type).value
        if key == ResponseType.WILDCARD.value:
            for concrete in CONCRETE_RESPONSE_TYPES:
                self.on(concrete, listener)
            return
        self._listeners.setdefault(key, []).append(listener)

    def on_error(self, listener: LiveListener) -> None:
        self.on(ResponseType.ERROR, listener)

    def on_invalid_request(self, listener: LiveListener) -> None:
        self.on(ResponseType.INVALID_REQUEST, listener)

    def on_kafka_message(self, listener: LiveListener) -> None:
        self.on(ResponseType.KAFKA_MESSAGE, listener)

    def on_heartbeat(self, listener: LiveListener) -> None:
        self.on(ResponseType.HEARTBEAT, listener)

    def on_success(self, listener: LiveListener) -> None:
        self.on(ResponseType.SUCCESS, listener)


async def open_live_connection(config: LiveConfiguration) -> LiveConnection:
    """Open a live connection and log in.

    Raises:
        LiveError: If connecting or logging in fails.
    """
    if config.debug:
        logging.getLogger("lenses_client").setLevel(logging.DEBUG)
    connection = LiveConnection(config)
    await connection.start()
    return connection


__all__ = [
    "LiveConfiguration",
    "LiveConnection",
    "LiveListener",
    "LiveRequest",
    "LiveResponse",
    "RequestType",
    "ResponseType",
    "open_live_connection",
]
