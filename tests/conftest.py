# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: an in-process fake Lenses box and connected clients.

FakeBox is an httpx.MockTransport handler with canned responses keyed by
(method, path). Every request is recorded so tests can assert on the
method, URL, headers and body the library sent.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from lenses_client import config_io
from lenses_client.client import LensesClient
from lenses_client.client_config import ClientConfig
from lenses_client.interface import cli_context
from lenses_client.lenses_base import LensesBase

HOST = "http://lenses:3030"
TOKEN = "test-token"

Responder = Callable[[httpx.Request], httpx.Response]


class FakeBox:
    """Canned responses by (method, path) plus a log of received requests."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], Responder] = {}

    def route(
        self,
        method: str,
        path: str,
        status: int = 200,
        json_body: Any = None,
        text: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Register the response for a method and path."""

        def respond(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status, text=text, headers=headers)
            if json_body is not None:
                return httpx.Response(status, json=json_body, headers=headers)
            return httpx.Response(status, headers=headers)

        self.routes[(method, path)] = respond

    def on(self, method: str, path: str, responder: Responder) -> None:
        """Register a custom responder."""
        self.routes[(method, path)] = responder

    def sse(self, path: str, lines: list[str]) -> None:
        """Register a GET returning Server-Sent-Events lines."""
        self.route("GET", path, text="\n".join(lines) + "\n", headers={"Content-Type": "text/event-stream"})

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}."})
        return responder(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> Any:
        return json.loads(self.last.content)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep LENSES_* variables and real configuration files out of the tests."""
    for name in (
        "LENSES_HOST",
        "LENSES_USER",
        "LENSES_PASSWORD",
        "LENSES_TOKEN",
        "LENSES_TIMEOUT",
        "LENSES_INSECURE",
        "LENSES_DEBUG",
        "LENSES_CLI_CONTEXT",
        "LENSES_ENCRYPTION_KEY",
    ):
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home" / ".lenses"
    monkeypatch.setattr(config_io, "search_dirs", lambda: [home])
    monkeypatch.setattr(cli_context, "DEFAULT_CONFIG_FILE", home / "lenses-cli.yml")


@pytest.fixture
def box():
    """Empty fake box."""
    return FakeBox()


@pytest.fixture
def client_config():
    """Config of a client that already holds a token."""
    return ClientConfig(host=HOST, token=TOKEN)


@pytest.fixture
async def client(box, client_config):
    """LensesClient talking to the fake box."""
    async with LensesClient(client_config, transport=box.transport()) as c:
        yield c


@pytest.fixture
async def lenses(box, client_config):
    """Connected LensesBase; entity tests reach endpoints through it."""
    base = LensesBase(client_config, transport=box.transport())
    await base.connect()
    yield base
    await base.close()
