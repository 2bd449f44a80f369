# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logs endpoint: the latest INFO and METRICS log lines of the box."""

from __future__ import annotations

from ...interface.endpoint_base import BaseEndpoint

LOGS_PATH = "api/logs"


class LogsEndpoint(BaseEndpoint):
    """Box logs."""

    name = "logs"

    async def info(self) -> list[dict]:
        """Show the latest INFO log lines."""
        return await self.client.read_json("GET", f"{LOGS_PATH}/INFO") or []

    async def metrics(self) -> list[dict]:
        """Show the latest METRICS log lines."""
        return await self.client.read_json("GET", f"{LOGS_PATH}/METRICS") or []


__all__ = ["LogsEndpoint"]
