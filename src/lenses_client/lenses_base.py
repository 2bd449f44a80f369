# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Application object for the Lenses client: configuration, connection, endpoints, CLI.

This module defines LensesBase, the object the library and the CLI are
built around.

LensesBase provides:
1. Configuration: multi-context Config at self.config
2. Connection: LensesClient at self.client once connected
3. Endpoints: EndpointManager at self.endpoints with autodiscovered Endpoint classes
4. CLI: CliManager at self.cli (creates Click group lazily)

Usage:
    # From LENSES_* environment variables:
    lenses = LensesBase.from_env()

    # Explicit configuration:
    lenses = LensesBase(ClientConfig(
        host="http://localhost:3030",
        authentication=BasicAuthentication("admin", "admin"),
    ))

    async with lenses.session():
        topics = await lenses.endpoint("topics").names()
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import httpx

from .client import LensesClient, open_connection
from .client_config import DEFAULT_CONTEXT_KEY, ClientConfig, Config, config_from_env
from .errors import ConfigError
from .interface.cli_base import CliManager
from .interface.endpoint_base import EndpointManager

if TYPE_CHECKING:
    from .interface.cli_context import CliContext
    from .interface.endpoint_base import BaseEndpoint

logger = logging.getLogger(__name__)


class LensesBase:
    """Foundation layer: config, connection, endpoints, CLI.

    Attributes:
        config: Config with the contexts; the current one is used to connect.
        client: Connected LensesClient, None until connect().
        endpoints: EndpointManager with autodiscovered Endpoint instances.
        cli: CliManager (creates Click group lazily).
        cli_context: CliContext of the running CLI invocation, if any.

    Class Attributes (override in subclass):
        entity_packages: List of package names to scan for entities
    """

    # Override in subclass to specify entity discovery packages
    entity_packages: list[str] = ["lenses_client.entities"]

    def __init__(
        self,
        config: Config | ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize with a configuration and all managers.

        Args:
            config: Multi-context Config, or a single ClientConfig used as
                the default context.
            transport: httpx transport for every connection (tests use
                MockTransport or ASGITransport).
        """
        if isinstance(config, ClientConfig):
            config = Config(current_context=DEFAULT_CONTEXT_KEY, contexts={DEFAULT_CONTEXT_KEY: config})
        self.config = config or Config()
        self.transport = transport
        self.client: LensesClient | None = None
        self.cli_context: CliContext | None = None

        self.endpoints = EndpointManager(parent=self)
        self.endpoints.discover(*self.entity_packages)

        self.cli = CliManager(parent=self)

    @classmethod
    def from_env(cls, *, transport: httpx.AsyncBaseTransport | None = None) -> LensesBase:
        """Build from LENSES_HOST, LENSES_USER, LENSES_PASSWORD, LENSES_TOKEN..."""
        return cls(config_from_env(), transport=transport)

    def endpoint(self, name: str) -> BaseEndpoint:
        """Endpoint instance by name (e.g. "topics")."""
        return self.endpoints[name]

    async def connect(self, transport: httpx.AsyncBaseTransport | None = None) -> LensesClient:
        """Open (or return the cached) connection for the current context.

        Raises:
            ConfigError: Unknown current context or invalid configuration.
            AuthenticationError: If login fails.
        """
        if self.client is not None:
            return self.client

        name = self.config.current_context
        if name and not self.config.current_context_exists():
            raise ConfigError(
                f"unknown context [{name}] given, please use the `configure --context={name} --reset`"
            )

        cfg = self.config.get_current()
        self.client = await open_connection(cfg, transport=transport or self.transport)
        logger.debug("Connected context %s to %s", self.config.current_context, cfg.host)
        return self.client

    async def close(self) -> None:
        """Close the connection, if any."""
        if self.client is None:
            return
        await self.client.aclose()
        self.client = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[LensesClient]:
        """Connect for the duration of the block.

        An already open connection is reused and left open.
        """
        if self.client is not None:
            yield self.client
            return

        client = await self.connect()
        try:
            yield client
        finally:
            await self.close()


__all__ = ["LensesBase"]
