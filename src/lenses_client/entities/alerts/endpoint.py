# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Alerts endpoint: raised alerts, alert settings and live alerts.

Alert settings come in two categories: infrastructure settings, which
can only be toggled, and consumer group settings, which carry
user-defined conditions.

Example:
    CLI commands auto-generated::

        lenses-cli alerts list
        lenses-cli alerts settings
        lenses-cli alerts set-condition 2000 "lag >= 100000 on group g1 and topic t1"
        lenses-cli alerts live
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from ...client import CONTENT_TYPE_JSON, CONTENT_TYPE_TEXT, accept_option
from ...errors import RequiredError
from ...interface.endpoint_base import BaseEndpoint
from ...sse import iter_data_messages
from ..sql.endpoint import EVENT_STREAM_ACCEPT

ALERTS_PATH = "/api/alerts"
ALERT_SETTINGS_PATH = f"{ALERTS_PATH}/settings"
ALERTS_SSE_PATH = "/api/sse/alerts"


class AlertsEndpoint(BaseEndpoint):
    """Alerts raised by the box and the settings that trigger them."""

    name = "alerts"

    async def list(self) -> list[dict]:
        """List the raised alerts."""
        return await self.client.read_json("GET", ALERTS_PATH) or []

    async def register(
        self,
        severity: str,
        summary: str = "",
        category: str = "",
        instance: str = "",
        source: str = "",
        docs: str = "",
        alert_id: int = 0,
        starts_at: str = "",
        ends_at: str = "",
        generator_url: str = "",
    ) -> dict:
        """Raise an alert.

        Args:
            severity: INFO, MEDIUM, HIGH... (upper-cased before sending).
            summary: Human readable description.
            category: Alert category label.
            instance: Instance label.
            source: Source annotation.
            docs: Docs annotation.
            alert_id: Numeric alert id.
            starts_at: Start time (RFC 3339).
            ends_at: End time (RFC 3339).
            generator_url: Link back to the generator.
        """
        if not severity:
            raise RequiredError("Labels.Severity")

        labels = {"severity": severity.upper()}
        if category:
            labels["category"] = category
        if instance:
            labels["instance"] = instance

        annotations = {"summary": summary}
        if source:
            annotations["source"] = source
        if docs:
            annotations["docs"] = docs

        alert = {
            "alertId": alert_id,
            "startsAt": starts_at,
            "endsAt": ends_at,
            "labels": labels,
            "annotations": annotations,
            "generatorURL": generator_url,
        }
        await self.client.do("POST", ALERTS_PATH, CONTENT_TYPE_JSON, alert)
        return {"ok": True, **alert}

    async def settings(self) -> dict:
        """List the alert settings by category."""
        return await self.client.read_json("GET", ALERT_SETTINGS_PATH) or {}

    async def setting(self, id: int) -> dict:
        """Show an alert setting."""
        return await self.client.read_json("GET", f"{ALERT_SETTINGS_PATH}/{id}")

    async def enable(self, id: int, enable: bool = True) -> dict:
        """Enable or disable an alert setting."""
        await self.client.do("PUT", f"{ALERT_SETTINGS_PATH}/{id}", "", "true" if enable else "false")
        return {"ok": True, "id": id, "enabled": enable}

    async def conditions(self, id: int) -> dict[str, str]:
        """Show the conditions of an alert setting, keyed by UUID."""
        return await self.client.read_json("GET", f"{ALERT_SETTINGS_PATH}/{id}/condition") or {}

    async def set_condition(self, id: int, condition: str) -> dict:
        """Add a condition to an alert setting."""
        if not condition:
            raise RequiredError("condition")
        await self.client.do(
            "POST", f"{ALERT_SETTINGS_PATH}/{id}/condition", CONTENT_TYPE_TEXT, condition
        )
        return {"ok": True, "id": id, "condition": condition}

    async def delete_condition(self, id: int, uuid: str) -> dict:
        """Delete a condition of an alert setting."""
        if not uuid:
            raise RequiredError("uuid")
        await self.client.do("DELETE", f"{ALERT_SETTINGS_PATH}/{id}/condition/{uuid}")
        return {"ok": True, "id": id, "uuid": uuid}

    async def live(self) -> AsyncIterator[dict]:
        """Follow the alerts as they are raised."""
        async with self.client.stream(
            "GET", ALERTS_SSE_PATH, CONTENT_TYPE_JSON, None, accept_option(EVENT_STREAM_ACCEPT)
        ) as response:
            async for alert in iter_data_messages(response.aiter_lines()):
                yield alert


__all__ = ["AlertsEndpoint"]
