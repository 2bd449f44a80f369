# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Interface layer of the Lenses client.

This package provides the pieces the CLI is built from:

- endpoint_base: BaseEndpoint for REST areas with introspection
- cli_base: Click CLI command generation
- cli_context: configuration file, context and flag resolution

Example:
    ::

        from lenses_client.interface import BaseEndpoint, register_endpoint

        class LogsEndpoint(BaseEndpoint):
            name = "logs"

            async def info(self) -> list[dict]:
                return await self.client.read_json("GET", "api/logs/INFO")
"""

from .cli_base import CliManager, console, register_endpoint
from .cli_context import CliContext, auth_from_flags
from .endpoint_base import BaseEndpoint, EndpointManager

__all__ = [
    # CLI
    "CliContext",
    "CliManager",
    "auth_from_flags",
    "console",
    "register_endpoint",
    # Endpoints
    "BaseEndpoint",
    "EndpointManager",
]
