# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Quotas endpoint: Kafka quotas for users, clients and user clients.

The scope picks the route:

    users                        /api/quotas/users                      all users
    users + name                 /api/quotas/users/<user>               one user
    users + name + client "*"    /api/quotas/users/<user>/clients       all clients of a user
    users + name + client        /api/quotas/users/<user>/clients/<id>  one client of a user
    clients                      /api/quotas/clients                    all clients
    clients + name               /api/quotas/clients/<id>               one client

Example:
    CLI commands auto-generated::

        lenses-cli quotas list
        lenses-cli quotas set users --name bob --producer-byte-rate 100000
        lenses-cli quotas delete clients --name app-1 --properties '["producer_byte_rate"]'
"""

from __future__ import annotations

from typing import Literal

from ...client import CONTENT_TYPE_JSON
from ...interface.endpoint_base import BaseEndpoint

QUOTAS_PATH = "/api/quotas"

QuotaScope = Literal["users", "clients"]

QUOTA_PROPERTIES = ("producer_byte_rate", "consumer_byte_rate", "request_percentage")


def quota_path(scope: str, name: str = "", client: str = "") -> str:
    """Return the quota route for a scope, entity name and client id.

    Raises:
        ValueError: Unknown scope, or a client without a user name.
    """
    if scope == "users":
        path = f"{QUOTAS_PATH}/users"
        if not name:
            if client:
                raise ValueError("quotas: a user name is required to set a client quota of a user")
            return path
        path = f"{path}/{name}"
        if not client:
            return path
        if client == "*":
            return f"{path}/clients"
        return f"{path}/clients/{client}"

    if scope == "clients":
        path = f"{QUOTAS_PATH}/clients"
        return f"{path}/{name}" if name else path

    raise ValueError(f"quotas: invalid scope '{scope}', valid scopes are: 'users' or 'clients'")


class QuotasEndpoint(BaseEndpoint):
    """Kafka quotas: producer/consumer byte rates and request percentage."""

    name = "quotas"

    async def list(self) -> list[dict]:
        """List all the quotas."""
        return await self.client.read_json("GET", QUOTAS_PATH) or []

    async def set(
        self,
        scope: QuotaScope,
        name: str = "",
        client: str = "",
        producer_byte_rate: str = "",
        consumer_byte_rate: str = "",
        request_percentage: str = "",
    ) -> dict:
        """Create or update a quota.

        Args:
            scope: "users" or "clients".
            name: User name (users scope) or client id (clients scope).
            client: Client id of the user, "*" for all of its clients.
            producer_byte_rate: Producer bytes per second.
            consumer_byte_rate: Consumer bytes per second.
            request_percentage: Share of request handler time.
        """
        path = quota_path(scope, name, client)
        limits = {
            "producer_byte_rate": producer_byte_rate,
            "consumer_byte_rate": consumer_byte_rate,
            "request_percentage": request_percentage,
        }
        config = {key: value for key, value in limits.items() if value}
        await self.client.do("PUT", path, CONTENT_TYPE_JSON, config)
        return {"ok": True, "path": path}

    async def delete(
        self,
        scope: QuotaScope,
        name: str = "",
        client: str = "",
        properties: list[str] | None = None,
    ) -> dict:
        """Delete a quota, or only some of its properties.

        Args:
            properties: Property names to remove, e.g. ["producer_byte_rate"].
                Empty names are dropped; all of them when none is left.
        """
        path = quota_path(scope, name, client)
        to_remove = [prop for prop in properties or [] if prop] or list(QUOTA_PROPERTIES)
        await self.client.do("DELETE", path, CONTENT_TYPE_JSON, to_remove)
        return {"ok": True, "path": path}


__all__ = ["QUOTA_PROPERTIES", "QuotasEndpoint", "quota_path"]
