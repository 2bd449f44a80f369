# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Audit endpoint: the audit log of changes made through the box."""

from __future__ import annotations

from collections.abc import AsyncIterator

from ...client import CONTENT_TYPE_JSON, accept_option
from ...interface.endpoint_base import BaseEndpoint
from ...sse import iter_data_messages

AUDIT_PATH = "api/audit"
AUDIT_SSE_PATH = "api/sse/audit"
AUDIT_STREAM_ACCEPT = "application/json, text/event-stream"


class AuditEndpoint(BaseEndpoint):
    """Audit entries: who changed what (topics, schemas, processors...) and when."""

    name = "audit"

    async def list(self) -> list[dict]:
        """List the audit entries."""
        return await self.client.read_json("GET", AUDIT_PATH) or []

    async def live(self) -> AsyncIterator[dict]:
        """Follow the audit entries as they are written."""
        async with self.client.stream(
            "GET", AUDIT_SSE_PATH, CONTENT_TYPE_JSON, None, accept_option(AUDIT_STREAM_ACCEPT)
        ) as response:
            async for entry in iter_data_messages(response.aiter_lines()):
                yield entry


__all__ = ["AuditEndpoint"]
