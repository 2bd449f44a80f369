# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQL endpoint: validate and run LSQL queries over Server-Sent Events.

``run`` is an async generator: records, stats (when requested) and the
final stop event are yielded as they arrive, an error event is raised
as LSQLError.

Example:
    Library usage::

        async with lenses.session():
            sql = lenses.endpoints["sql"]
            async for event in sql.run("SELECT * FROM payments LIMIT 10"):
                if isinstance(event, LSQLRecord):
                    print(event.value)

    CLI commands auto-generated::

        lenses-cli sql validate "SELECT * FROM payments"
        lenses-cli sql run "SELECT * FROM payments LIMIT 10" --stats 2
        lenses-cli sql running
        lenses-cli sql cancel 42
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from urllib.parse import quote_plus

from ...client import CONTENT_TYPE_JSON, CONTENT_TYPE_SCHEMA_JSON, accept_option
from ...errors import RequiredError
from ...interface.endpoint_base import BaseEndpoint
from ...sse import LSQLError, LSQLEvent, LSQLRecord, LSQLStats, LSQLStop, iter_lsql_events

logger = logging.getLogger(__name__)

EVENT_STREAM_ACCEPT = f"application/json, text/event-stream, {CONTENT_TYPE_SCHEMA_JSON}"


def lsql_path(sql: str, offsets: bool = False, stats: int = 0) -> str:
    """Build the path of the LSQL data call."""
    path = f"api/sql/data?sql={quote_plus(sql)}"
    if offsets:
        path += "&offsets=true"
    if stats > 1:
        path += f"&stats={stats}"
    return path


class SqlEndpoint(BaseEndpoint):
    """LSQL queries: validation, streaming execution, running queries."""

    name = "sql"

    async def validate(self, sql: str) -> dict:
        """Validate an LSQL statement without running it.

        Raises:
            RequiredError: If sql is empty.
        """
        if not sql:
            raise RequiredError("sql", "client: sql is empty")
        return await self.client.read_json(
            "GET", f"api/sql/validation?sql={quote_plus(sql)}", CONTENT_TYPE_JSON
        )

    async def run(self, sql: str, offsets: bool = False, stats: int = 0) -> AsyncIterator[LSQLEvent]:
        """Run an LSQL query and stream its records.

        Args:
            sql: The LSQL statement.
            offsets: Ask the box for the partition offsets in the stop event.
            stats: Stats interval; stats events are sent only when > 1.

        Yields:
            LSQLRecord, LSQLStats and finally LSQLStop.

        Raises:
            RequiredError: If sql is empty.
            LSQLError: When the box reports an error event.
        """
        if not sql:
            raise RequiredError("sql", "client: sql is empty")

        path = lsql_path(sql, offsets, stats)
        async with self.client.stream(
            "GET", path, CONTENT_TYPE_JSON, None, accept_option(EVENT_STREAM_ACCEPT)
        ) as response:
            async for event in iter_lsql_events(response.aiter_lines(), with_stats=stats > 1):
                if isinstance(event, LSQLError):
                    raise event
                yield event

    async def wait(self, sql: str, offsets: bool = False, stats: int = 0) -> dict:
        """Run an LSQL query and return all of its records at once.

        Returns:
            Dict with ``records``, the last ``stats`` (or None) and ``stop``.
        """
        records: list[LSQLRecord] = []
        last_stats: LSQLStats | None = None
        stop: LSQLStop | None = None

        async for event in self.run(sql, offsets, stats):
            if isinstance(event, LSQLRecord):
                records.append(event)
            elif isinstance(event, LSQLStats):
                last_stats = event
            elif isinstance(event, LSQLStop):
                stop = event

        logger.debug("LSQL query returned %d records", len(records))
        return {"records": records, "stats": last_stats, "stop": stop}

    async def running(self) -> list[dict]:
        """List the queries currently running on the box."""
        return await self.client.read_json("GET", "api/sql/queries") or []

    async def cancel(self, id: int) -> bool:
        """Cancel a running query.

        Returns:
            True if the box cancelled it.
        """
        return bool(await self.client.read_json("DELETE", f"api/sql/queries/{id}"))


__all__ = ["SqlEndpoint", "lsql_path"]
