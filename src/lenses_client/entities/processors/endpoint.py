# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Processors endpoint: deploy and operate LSQL streaming processors.

A processor is addressed differently depending on the execution mode of
the box. In CONNECT and IN_PROC mode the id is used, looked up by name
when only the name is known. In KUBERNETES mode the identifier is
``cluster.namespace.name``. Every operation accepts either form and goes
through identifier().

Example:
    CLI commands auto-generated::

        lenses-cli processors list
        lenses-cli processors create cc-payments "INSERT INTO ... SELECT ..." --runners 2
        lenses-cli processors pause --name cc-payments
        lenses-cli processors scale 3 --id lsql_8f1a
        lenses-cli processors logs k8s-cluster ns pod-1 --follow
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator

from ...client import CONTENT_TYPE_JSON, ExecutionMode, accept_option
from ...errors import LensesError, RequiredError
from ...interface.endpoint_base import BaseEndpoint
from ...sse import iter_processor_logs

logger = logging.getLogger(__name__)

PROCESSORS_PATH = "api/streams"
PROCESSORS_LOGS_PATH = "api/sse/k8/logs"
DEFAULT_LOG_LINES = 100
IN_PROC_CLUSTER = "IN_PROC"


class ProcessorsEndpoint(BaseEndpoint):
    """LSQL processors: create, pause, resume, scale, delete and logs."""

    name = "processors"

    async def list(self) -> dict:
        """List the processors (``streams``) and deployment ``targets``."""
        data = await self.client.read_json("GET", PROCESSORS_PATH) or {}
        return {"targets": data.get("targets") or [], "streams": data.get("streams") or []}

    async def create(
        self,
        name: str,
        sql: str,
        runners: int = 1,
        cluster_name: str = "",
        namespace: str = "",
        pipeline: str = "",
    ) -> dict:
        """Create a processor.

        Args:
            name: Processor name.
            sql: LSQL statement run by the processor.
            runners: Number of runners, at least 1.
            cluster_name: Target cluster (KUBERNETES mode).
            namespace: Target namespace (KUBERNETES mode).
            pipeline: Pipeline label, defaults to the name.
        """
        if not name:
            raise RequiredError("name")
        if not sql:
            raise RequiredError("sql")

        payload = {
            "name": name,
            "sql": sql,
            "runners": runners if runners > 0 else 1,
            "clusterName": cluster_name,
            "namespace": namespace,
            "pipeline": pipeline or name,
        }
        await self.client.do("POST", PROCESSORS_PATH, CONTENT_TYPE_JSON, payload)
        return {"ok": True, "name": name}

    async def identifier(
        self, id: str = "", name: str = "", cluster_name: str = "", namespace: str = ""
    ) -> str:
        """Resolve the identifier the processor calls expect.

        In CONNECT mode a name is looked up together with its Connect
        cluster; IN_PROC processors all belong to the "IN_PROC" cluster.

        Raises:
            ValueError: If neither name nor id is given, or if in KUBERNETES
                mode without id one of name, cluster_name, namespace is missing.
        """
        if not name and not id:
            raise ValueError("processors: name or id are missing")

        mode = await self.client.get_execution_mode()
        if mode == ExecutionMode.IN_PROC:
            cluster_name = IN_PROC_CLUSTER

        if mode in (ExecutionMode.CONNECT, ExecutionMode.IN_PROC):
            if id:
                return id
            result = await self.list()
            for stream in result["streams"]:
                if stream.get("name") == name and stream.get("clusterName", "") == cluster_name:
                    return stream.get("id") or name
            return name

        if mode == ExecutionMode.KUBERNETES:
            if id:
                return id
            if not cluster_name or not namespace or not name:
                raise ValueError(
                    "processors: KUBERNETES: (name or cluster_name or namespace) or id arguments are missing"
                )
            return f"{cluster_name}.{namespace}.{name}"

        return name

    async def pause(
        self, id: str = "", name: str = "", cluster_name: str = "", namespace: str = ""
    ) -> dict:
        """Pause a processor."""
        processor_id = await self.identifier(id, name, cluster_name, namespace)
        await self.client.do("PUT", f"{PROCESSORS_PATH}/{processor_id}/pause")
        return {"ok": True, "id": processor_id}

    async def resume(
        self, id: str = "", name: str = "", cluster_name: str = "", namespace: str = ""
    ) -> dict:
        """Resume a paused processor."""
        processor_id = await self.identifier(id, name, cluster_name, namespace)
        await self.client.do("PUT", f"{PROCESSORS_PATH}/{processor_id}/resume")
        return {"ok": True, "id": processor_id}

    async def scale(
        self,
        runners: int,
        id: str = "",
        name: str = "",
        cluster_name: str = "",
        namespace: str = "",
    ) -> dict:
        """Change the number of runners of a processor (at least 1)."""
        processor_id = await self.identifier(id, name, cluster_name, namespace)
        if runners <= 0:
            runners = 1
        await self.client.do("PUT", f"{PROCESSORS_PATH}/{processor_id}/scale/{runners}")
        return {"ok": True, "id": processor_id, "runners": runners}

    async def delete(
        self, id: str = "", name: str = "", cluster_name: str = "", namespace: str = ""
    ) -> dict:
        """Delete a processor."""
        processor_id = await self.identifier(id, name, cluster_name, namespace)
        await self.client.do("DELETE", f"{PROCESSORS_PATH}/{processor_id}")
        return {"ok": True, "id": processor_id}

    async def logs(
        self,
        cluster_name: str,
        namespace: str,
        pod: str,
        follow: bool = False,
        lines: int = DEFAULT_LOG_LINES,
    ) -> AsyncIterator[dict]:
        """Stream the logs of a processor pod (KUBERNETES mode only).

        Args:
            cluster_name: Kubernetes cluster of the processor.
            namespace: Namespace of the processor.
            pod: Runner pod name.
            follow: Keep the stream open for new lines.
            lines: Lines to send back when following (default 100).

        Yields:
            Dicts with ``level`` and ``message``.

        Raises:
            LensesError: If the box is not in KUBERNETES mode.
        """
        mode = await self.client.get_execution_mode()
        if mode != ExecutionMode.KUBERNETES:
            raise LensesError("unable to retrieve logs, execution mode is not KUBERNETES")

        path = f"{PROCESSORS_LOGS_PATH}/{cluster_name}/{namespace}/{pod}"
        if follow:
            if lines <= 0:
                lines = DEFAULT_LOG_LINES
            path += f"?follow=true&lines={lines}"

        async with self.client.stream(
            "GET", path, CONTENT_TYPE_JSON, None, accept_option("application/json, text/event-stream")
        ) as response:
            async for level, log in iter_processor_logs(response.aiter_lines()):
                yield {"level": level, "message": log}


__all__ = ["ProcessorsEndpoint"]
