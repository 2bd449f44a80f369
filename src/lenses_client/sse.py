# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Server-Sent-Events line protocol used by the Lenses box.

The box streams one event per line, always prefixed by ``data:``. Three
flavours exist:

LSQL query results: the character right after ``data:`` is the event
type and the JSON payload follows it::

    data:0                    heartbeat, ignored
    data:1{"topic": ...}      record
    data:2{"totalRecords":..} stop, ends the stream
    data:3{"error": ...}      error, ends the stream
    data:4{"totalBytes": ..}  stats

Data messages (alerts, audit): the whole text after ``data:`` is a JSON
document.

Processor logs: the text after ``data:`` is either a JSON log entry or a
plain log line.

Components:
    LSQLRecord, LSQLStop, LSQLOffset, LSQLStats: LSQL event payloads.
    LSQLError: Error event, raised as an exception by callers.
    parse_lsql_line: Decode one LSQL line.
    iter_lsql_events: Async generator over LSQL events until stop/error.
    iter_data_messages: Async generator over JSON data messages.
    format_processor_log / iter_processor_logs: Processor log lines.
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .errors import LensesError, StreamError

logger = logging.getLogger(__name__)

DATA_PREFIX = "data"
# "data:" plus the event type character
SHIFT_N = len(DATA_PREFIX) + 1

HEARTBEAT_EVENT = "0"
RECORD_EVENT = "1"
STOP_EVENT = "2"
ERROR_EVENT = "3"
STATS_EVENT = "4"


@dataclass
class LSQLRecord:
    """A record returned by an LSQL query."""

    timestamp: int = 0
    partition: int = 0
    key: Any = None
    offset: int = 0
    topic: str = ""
    value: Any = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LSQLRecord:
        return cls(
            timestamp=int(data.get("timestamp") or 0),
            partition=int(data.get("partition") or 0),
            key=data.get("key"),
            offset=int(data.get("offset") or 0),
            topic=data.get("topic") or "",
            value=data.get("value"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "partition": self.partition,
            "key": self.key,
            "offset": self.offset,
            "topic": self.topic,
            "value": self.value,
        }


@dataclass
class LSQLOffset:
    partition: int = 0
    min: int = 0
    max: int = 0


@dataclass
class LSQLStop:
    """Final event of an LSQL query.

    Attributes:
        is_time_remaining: False when ``max.time`` was reached.
        is_topic_end: True when the topic had no more data.
        is_stopped: True when the query was cancelled by an admin.
        total_records: Records read from Kafka.
        skipped_records: Records not matching the filter.
        records_limit: Max records to pull (LIMIT or box default).
        total_size_read: Bytes read from Kafka.
        size: Kafka size in bytes of the returned records.
        offsets: Per-partition offsets, only with ``offsets=true``.
    """

    is_time_remaining: bool = False
    is_topic_end: bool = False
    is_stopped: bool = False
    total_records: int = 0
    skipped_records: int = 0
    records_limit: int = 0
    total_size_read: int = 0
    size: int = 0
    offsets: list[LSQLOffset] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LSQLStop:
        return cls(
            is_time_remaining=bool(data.get("isTimeRemaining", False)),
            is_topic_end=bool(data.get("isTopicEnd", False)),
            is_stopped=bool(data.get("isStopped", False)),
            total_records=int(data.get("totalRecords") or 0),
            skipped_records=int(data.get("skippedRecords") or 0),
            records_limit=int(data.get("recordsLimit") or 0),
            total_size_read=int(data.get("totalSizeRead") or 0),
            size=int(data.get("size") or 0),
            offsets=[
                LSQLOffset(
                    partition=int(o.get("partition") or 0),
                    min=int(o.get("min") or 0),
                    max=int(o.get("max") or 0),
                )
                for o in data.get("offsets") or []
            ],
        )


@dataclass
class LSQLStats:
    """Periodic progress of a running LSQL query."""

    total_records: int = 0
    records_skipped: int = 0
    records_limit: int = 0
    total_bytes: int = 0
    max_size: int = 0
    current_size: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LSQLStats:
        return cls(
            total_records=int(data.get("totalRecords") or 0),
            records_skipped=int(data.get("recordsSkipped") or 0),
            records_limit=int(data.get("recordsLimit") or 0),
            total_bytes=int(data.get("totalBytes") or 0),
            max_size=int(data.get("maxSize") or 0),
            current_size=int(data.get("currentSize") or 0),
        )


class LSQLError(LensesError):
    """Error event of an LSQL query, with the position of the faulty SQL."""

    def __init__(
        self,
        message: str,
        from_line: int = 0,
        to_line: int = 0,
        from_column: int = 0,
        to_column: int = 0,
    ):
        super().__init__(message)
        self.message = message
        self.from_line = from_line
        self.to_line = to_line
        self.from_column = from_column
        self.to_column = to_column

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LSQLError:
        return cls(
            data.get("error") or "",
            from_line=int(data.get("fromLine") or 0),
            to_line=int(data.get("toLine") or 0),
            from_column=int(data.get("fromColumn") or 0),
            to_column=int(data.get("toColumn") or 0),
        )


LSQLEvent = LSQLRecord | LSQLStop | LSQLError | LSQLStats


def _loads(payload: str) -> Any:
    try:
        return json.loads(payload)
    except json.JSONDecodeError as e:
        raise StreamError(f"client: sse: invalid event payload: {e}") from e


def parse_lsql_line(line: str) -> LSQLEvent | None:
    """Decode one LSQL SSE line.

    Returns:
        The event, or None for heartbeats and lines too short to carry one.

    Raises:
        StreamError: Missing ``data`` prefix, unknown event type or bad JSON.
    """
    line = line.rstrip("\r\n")
    if len(line) < SHIFT_N + 1:
        return None
    if not line.startswith(DATA_PREFIX):
        raise StreamError(
            "client: see: fail to read the event, the incoming message has no data prefix"
        )

    event_type = line[SHIFT_N]
    payload = line[SHIFT_N + 1 :]

    if event_type == HEARTBEAT_EVENT:
        return None
    if event_type == RECORD_EVENT:
        return LSQLRecord.from_dict(_loads(payload))
    if event_type == STOP_EVENT:
        return LSQLStop.from_dict(_loads(payload))
    if event_type == ERROR_EVENT:
        return LSQLError.from_dict(_loads(payload))
    if event_type == STATS_EVENT:
        return LSQLStats.from_dict(_loads(payload))
    raise StreamError(f"client: sse: unknown event received: {line}")


async def iter_lsql_events(
    lines: AsyncIterable[str], with_stats: bool = False
) -> AsyncIterator[LSQLEvent]:
    """Yield LSQL events from a line stream.

    Iteration ends after a stop or error event. Stats events are only
    yielded when with_stats is true.
    """
    async for line in lines:
        event = parse_lsql_line(line)
        if event is None:
            continue
        if isinstance(event, LSQLStats) and not with_stats:
            continue
        logger.debug("LSQL event: %r", event)
        yield event
        if isinstance(event, (LSQLStop, LSQLError)):
            return


def parse_data_message(line: str) -> Any | None:
    """Decode one data-message line (alerts, audit).

    Returns:
        The decoded JSON, or None when the line carries no message.

    Raises:
        StreamError: Missing ``data`` prefix or bad JSON.
    """
    line = line.rstrip("\r\n")
    if len(line) < SHIFT_N + 1:
        return None
    if not line.startswith(DATA_PREFIX):
        raise StreamError(
            f"client: see: fail to read the event, the incoming message has no [{DATA_PREFIX}] prefix"
        )
    message = line[SHIFT_N:]
    if len(message) < 2:
        return None
    return _loads(message)


async def iter_data_messages(lines: AsyncIterable[str]) -> AsyncIterator[Any]:
    """Yield decoded JSON messages, skipping empty ones, until the stream ends."""
    async for line in lines:
        message = parse_data_message(line)
        if message is not None:
            yield message


def format_processor_log(line: str) -> tuple[str, str] | None:
    """Decode one processor log line into (level, text).

    JSON entries give their level and ``"YYYY-MM-DD HH:MM:SS message"``;
    undecodable JSON gives ``("info", raw)``; plain lines give ``("", raw)``.
    Lines without the ``data`` prefix or without a message give None.
    """
    line = line.rstrip("\r\n")
    if len(line) < SHIFT_N + 1 or not line.startswith(DATA_PREFIX):
        return None
    message = line[SHIFT_N:]
    if len(message) < 2:
        return None

    if not message.startswith("{"):
        return "", message

    try:
        entry = json.loads(message)
    except json.JSONDecodeError:
        return "info", message
    if not isinstance(entry, dict):
        return "info", message

    timestamp = str(entry.get("@timestamp") or "")
    try:
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        pass
    else:
        timestamp = parsed.strftime("%Y-%m-%d %H:%M:%S")
    return str(entry.get("level") or ""), f"{timestamp} {entry.get('message') or ''}"


async def iter_processor_logs(lines: AsyncIterable[str]) -> AsyncIterator[tuple[str, str]]:
    async for line in lines:
        entry = format_processor_log(line)
        if entry is not None:
            yield entry


__all__ = [
    "LSQLError",
    "LSQLEvent",
    "LSQLOffset",
    "LSQLRecord",
    "LSQLStats",
    "LSQLStop",
    "format_processor_log",
    "iter_data_messages",
    "iter_lsql_events",
    "iter_processor_logs",
    "parse_data_message",
    "parse_lsql_line",
]
