# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Connectors endpoint: Kafka Connect REST API proxied by the Lenses box.

Every call is scoped to a Connect cluster (see ``connectors clusters``).

Example:
    CLI commands auto-generated::

        lenses-cli connectors clusters
        lenses-cli connectors list dev
        lenses-cli connectors create dev file-source --config '{"connector.class": "..."}'
        lenses-cli connectors status dev file-source
        lenses-cli connectors restart-task dev file-source 0
"""

from __future__ import annotations

from typing import Any

from ...client import CONTENT_TYPE_JSON
from ...errors import RequiredError
from ...interface.endpoint_base import BaseEndpoint

CONNECT_PATH = "/api/proxy-connect"


def apply_and_validate_name(name: str, config: dict[str, Any] | None) -> tuple[str, dict[str, Any] | None]:
    """Reconcile the connector name with ``config["name"]``.

    When the config has a name it must be a string matching name (if given)
    and fills an empty name. Otherwise name is required and is copied into
    the config. A None config is returned untouched.

    Returns:
        The (name, config) pair to send.

    Raises:
        ValueError: Non-string or mismatching config name, or no name at all.
    """
    if config is None:
        return name, config

    config = dict(config)
    if "name" in config:
        config_name = config["name"]
        if not isinstance(config_name, str):
            raise ValueError('config["name"] is not type of string')
        if name and config_name != name:
            raise ValueError(f"config[\"name\"] '{config_name}' and name '{name}' do not match")
        return name or config_name, config

    if not name:
        raise ValueError("name is required")
    config["name"] = name
    return name, config


def _require(cluster: str, name: str | None = None) -> None:
    if not cluster:
        raise RequiredError("clusterName")
    if name is not None and not name:
        raise RequiredError("name")


class ConnectorsEndpoint(BaseEndpoint):
    """Kafka Connect connectors, their tasks and the installed plugins.

    Attributes:
        name: Endpoint name used for the CLI group ("connectors").
    """

    name = "connectors"

    def _path(self, cluster: str, connector: str = "") -> str:
        path = f"{CONNECT_PATH}/{cluster}/connectors"
        return f"{path}/{connector}" if connector else path

    async def clusters(self) -> list[dict]:
        """List the Connect clusters configured on the box."""
        return await self.client.get_connect_clusters()

    async def list(self, cluster: str) -> list[str]:
        """List the connector names of a cluster."""
        _require(cluster)
        return await self.client.read_json("GET", self._path(cluster)) or []

    async def create(self, cluster: str, name: str = "", config: dict[str, Any] | None = None) -> dict:
        """Create a connector.

        Args:
            cluster: Connect cluster name.
            name: Connector name, may come from config["name"] instead.
            config: Connector configuration, all values as strings.

        Returns:
            The created connector.
        """
        name, config = apply_and_validate_name(name, config or {})
        _require(cluster, name)
        payload = {"name": name, "config": config}
        return await self.client.read_json("POST", self._path(cluster), CONTENT_TYPE_JSON, payload)

    async def update(self, cluster: str, name: str = "", config: dict[str, Any] | None = None) -> dict:
        """Set the configuration of a connector, creating it if missing.

        Returns:
            The connector after the change.
        """
        name, config = apply_and_validate_name(name, config or {})
        _require(cluster, name)
        return await self.client.read_json(
            "PUT", f"{self._path(cluster, name)}/config", CONTENT_TYPE_JSON, config
        )

    async def get(self, cluster: str, name: str) -> dict:
        """Show a connector: name, config and tasks."""
        _require(cluster, name)
        return await self.client.read_json("GET", self._path(cluster, name))

    async def config(self, cluster: str, name: str) -> dict:
        """Show the configuration of a connector."""
        connector = await self.get(cluster, name)
        return (connector or {}).get("config") or {}

    async def status(self, cluster: str, name: str) -> dict:
        """Show the status of a connector and of its tasks."""
        _require(cluster, name)
        return await self.client.read_json("GET", f"{self._path(cluster, name)}/status")

    async def pause(self, cluster: str, name: str) -> dict:
        """Pause a connector and its tasks."""
        _require(cluster, name)
        await self.client.do("PUT", f"{self._path(cluster, name)}/pause")
        return {"ok": True, "name": name}

    async def resume(self, cluster: str, name: str) -> dict:
        """Resume a paused connector."""
        _require(cluster, name)
        await self.client.do("PUT", f"{self._path(cluster, name)}/resume")
        return {"ok": True, "name": name}

    async def restart(self, cluster: str, name: str) -> dict:
        """Restart a connector."""
        _require(cluster, name)
        await self.client.do("POST", f"{self._path(cluster, name)}/restart")
        return {"ok": True, "name": name}

    async def delete(self, cluster: str, name: str) -> dict:
        """Delete a connector, halting its tasks."""
        _require(cluster, name)
        await self.client.do("DELETE", self._path(cluster, name))
        return {"ok": True, "name": name}

    async def tasks(self, cluster: str, name: str) -> list[dict]:
        """List the tasks of a connector."""
        _require(cluster, name)
        return await self.client.read_json("GET", f"{self._path(cluster, name)}/tasks") or []

    async def task_status(self, cluster: str, name: str, task_id: int) -> dict:
        """Show the status of a connector task."""
        _require(cluster, name)
        return await self.client.read_json("GET", f"{self._path(cluster, name)}/tasks/{task_id}/status")

    async def restart_task(self, cluster: str, name: str, task_id: int) -> dict:
        """Restart a connector task."""
        _require(cluster, name)
        await self.client.do("POST", f"{self._path(cluster, name)}/tasks/{task_id}/restart")
        return {"ok": True, "name": name, "task_id": task_id}

    async def plugins(self, cluster: str) -> list[dict]:
        """List the connector plugins installed on a cluster."""
        _require(cluster)
        return await self.client.read_json("GET", f"{CONNECT_PATH}/{cluster}/connector-plugins") or []


__all__ = ["ConnectorsEndpoint", "apply_and_validate_name"]
