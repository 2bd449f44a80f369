# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Box endpoint: license, configuration and the logged-in user.

Example:
    CLI commands auto-generated::

        lenses-cli box license
        lenses-cli box config
        lenses-cli box config-entry lenses.sql.execution.mode
        lenses-cli box whoami
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from ...interface.endpoint_base import BaseEndpoint

logger = logging.getLogger(__name__)


def with_license_expiry(license: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """Add the derived expiry fields to a license payload.

    ``expiry`` is in milliseconds. Only the largest unit is kept: a license
    expiring in years has zero months and days, one expiring in months has
    zero days.

    Args:
        license: Payload of ``GET /api/license``.
        now: Reference time, defaults to the current UTC time.

    Returns:
        A copy of license with expiresAt, daysToExpire, monthsToExpire
        and yearsToExpire.
    """
    now = now or datetime.now(timezone.utc)
    result = dict(license)

    expires_at = datetime.fromtimestamp(int(license.get("expiry") or 0) // 1000, tz=timezone.utc)
    hours = (expires_at - now).total_seconds() / 3600
    days = int(hours / 24)
    months = int(days / 30)
    years = int(months / 12)

    if years > 0:
        days = 0
        months = 0
    elif months > 0:
        days = 0

    result["expiresAt"] = expires_at.isoformat()
    result["daysToExpire"] = days
    result["monthsToExpire"] = months
    result["yearsToExpire"] = years
    return result


class BoxEndpoint(BaseEndpoint):
    """Lenses box information: license, configuration, current user."""

    name = "box"

    async def license(self) -> dict:
        """Show the license of the box and how long until it expires."""
        data = await self.client.read_json("GET", "/api/license")
        return with_license_expiry(data or {})

    async def config(self) -> dict:
        """Show the box configuration."""
        return await self.client.get_config()

    async def config_entry(self, key: str) -> Any:
        """Show a single key of the box configuration."""
        return await self.client.get_config_entry(key)

    async def execution_mode(self) -> str:
        """Show the SQL execution mode (IN_PROC, CONNECT or KUBERNETES)."""
        mode = await self.client.get_execution_mode()
        return mode.value

    async def connect_clusters(self) -> list[dict]:
        """List the Kafka Connect clusters known to the box."""
        return await self.client.get_connect_clusters()

    async def whoami(self) -> dict:
        """Show the logged-in user and its roles."""
        user = self.client.user
        if not user.name:
            user = await self.client.fetch_user()
        return {
            "user": user.name,
            "roles": user.roles,
            "schemaRegistryDelete": user.schema_registry_delete,
        }

    async def logout(self) -> dict:
        """Invalidate the token of the current session."""
        await self.client.logout()
        logger.debug("Logged out")
        return {"ok": True}


__all__ = ["BoxEndpoint", "with_license_expiry"]
