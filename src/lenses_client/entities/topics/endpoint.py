# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Topics endpoint: create, inspect, configure and delete Kafka topics.

Example:
    CLI commands auto-generated::

        lenses-cli topics list
        lenses-cli topics names
        lenses-cli topics create payments --partitions 3 --replication 1
        lenses-cli topics update payments '{"cleanup.policy": "compact"}'
        lenses-cli topics delete-records payments 0 100
        lenses-cli topics metadata payments
"""

from __future__ import annotations

from typing import Any

from ...client import CONTENT_TYPE_JSON
from ...errors import RequiredError
from ...interface.endpoint_base import BaseEndpoint

TOPICS_PATH = "api/topics"
TOPICS_METADATA_PATH = "/api/system/topics/metadata"


def _require_name(name: str) -> None:
    if not name:
        raise RequiredError("topicName")


class TopicsEndpoint(BaseEndpoint):
    """Kafka topics and the metadata (key/value types) Lenses keeps for them.

    Attributes:
        name: Endpoint name used for the CLI group ("topics").
    """

    name = "topics"

    async def list(self) -> list[dict]:
        """List all topics with their details."""
        return await self.client.read_json("GET", TOPICS_PATH) or []

    async def names(self) -> list[str]:
        """List the topic names only."""
        topics = await self.list()
        return [topic["topicName"] for topic in topics if topic.get("topicName")]

    async def get(self, name: str) -> dict:
        """Show a single topic."""
        _require_name(name)
        return await self.client.read_json("GET", f"{TOPICS_PATH}/{name}")

    async def create(
        self,
        name: str,
        replication: int = 1,
        partitions: int = 1,
        configs: dict[str, str] | None = None,
    ) -> dict:
        """Create a topic.

        Args:
            name: Topic name.
            replication: Replication factor.
            partitions: Number of partitions.
            configs: Topic configs, e.g. {"cleanup.policy": "compact"}.
        """
        _require_name(name)
        payload = {
            "topicName": name,
            "replication": replication,
            "partitions": partitions,
            "configs": configs or {},
        }
        await self.client.do("POST", TOPICS_PATH, CONTENT_TYPE_JSON, payload)
        return {"ok": True, "topicName": name}

    async def delete(self, name: str) -> dict:
        """Delete a topic."""
        _require_name(name)
        await self.client.do("DELETE", f"{TOPICS_PATH}/{name}")
        return {"ok": True, "topicName": name}

    async def delete_records(self, name: str, partition: int, offset: int) -> dict:
        """Delete the records of a partition up to an offset.

        Raises:
            ValueError: If partition or offset is negative.
        """
        _require_name(name)
        if partition < 0:
            raise ValueError("partition: must be zero or a positive number")
        if offset < 0:
            raise ValueError("offset: must be zero or a positive number")
        await self.client.do("DELETE", f"{TOPICS_PATH}/{name}/{partition}/{offset}")
        return {"ok": True, "topicName": name, "partition": partition, "offset": offset}

    async def update(self, name: str, configs: dict[str, str]) -> dict:
        """Update the configs of a topic.

        Args:
            name: Topic name.
            configs: Configs to set, e.g. {"retention.ms": "3600000"}.
        """
        _require_name(name)
        payload = {"configs": [{"key": key, "value": str(value)} for key, value in configs.items()]}
        await self.client.do("PUT", f"{TOPICS_PATH}/config/{name}", CONTENT_TYPE_JSON, payload)
        return {"ok": True, "topicName": name}

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    async def metadata_list(self) -> list[dict]:
        """List the metadata of all topics."""
        return await self.client.read_json("GET", TOPICS_METADATA_PATH) or []

    async def metadata(self, name: str) -> dict:
        """Show the metadata of a topic."""
        _require_name(name)
        return await self.client.read_json("GET", f"{TOPICS_METADATA_PATH}/{name}")

    async def set_metadata(self, metadata: dict[str, Any]) -> dict:
        """Create or update the metadata of a topic.

        Args:
            metadata: Payload with at least ``topicName``, plus keyType,
                valueType, keySchema, valueSchema...
        """
        name = metadata.get("topicName") or ""
        _require_name(name)
        await self.client.do("POST", TOPICS_METADATA_PATH, CONTENT_TYPE_JSON, metadata)
        return {"ok": True, "topicName": name}

    async def delete_metadata(self, name: str) -> dict:
        """Delete the metadata of a topic."""
        _require_name(name)
        await self.client.do("DELETE", f"{TOPICS_METADATA_PATH}/{name}")
        return {"ok": True, "topicName": name}


__all__ = ["TopicsEndpoint"]
