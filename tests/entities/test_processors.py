# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for ProcessorsEndpoint and the identifier resolution per execution mode."""

import pytest

from lenses_client.errors import LensesError, RequiredError

STREAMS = {
    "targets": [{"cluster": "k8s", "namespaces": ["ns"]}],
    "streams": [{"id": "lsql_1", "name": "cc-payments", "clusterName": "IN_PROC"}],
}


@pytest.fixture
def processors(lenses):
    return lenses.endpoint("processors")


def _mode(box, mode: str) -> None:
    box.route("GET", "/api/config", json_body={"lenses.sql.execution.mode": mode})


class TestListAndCreate:
    """Tests for list and create."""

    async def test_list(self, processors, box):
        box.route("GET", "/api/streams", json_body=STREAMS)
        assert await processors.list() == STREAMS

    async def test_list_empty(self, processors, box):
        box.route("GET", "/api/streams", json_body={})
        assert await processors.list() == {"targets": [], "streams": []}

    async def test_create(self, processors, box):
        box.route("POST", "/api/streams", status=201)
        await processors.create("cc-payments", "INSERT INTO a SELECT * FROM b", runners=0)
        assert box.last_json() == {
            "name": "cc-payments",
            "sql": "INSERT INTO a SELECT * FROM b",
            "runners": 1,
            "clusterName": "",
            "namespace": "",
            "pipeline": "cc-payments",
        }

    async def test_create_requires_sql(self, processors):
        with pytest.raises(RequiredError, match="sql"):
            await processors.create("p", "")


class TestIdentifier:
    """Tests for identifier resolution."""

    async def test_missing_name_and_id(self, processors):
        with pytest.raises(ValueError, match="processors: name or id are missing"):
            await processors.identifier()

    async def test_in_proc_looks_up_name(self, processors, box):
        _mode(box, "IN_PROC")
        box.route("GET", "/api/streams", json_body=STREAMS)
        assert await processors.identifier(name="cc-payments") == "lsql_1"

    async def test_in_proc_ignores_given_cluster(self, processors, box):
        _mode(box, "IN_PROC")
        box.route("GET", "/api/streams", json_body=STREAMS)
        assert await processors.identifier(name="cc-payments", cluster_name="dev") == "lsql_1"

    async def test_connect_matches_cluster(self, processors, box):
        """Same-named processors on different Connect clusters are told apart."""
        _mode(box, "CONNECT")
        streams = [
            {"id": "lsql_dev", "name": "cc-payments", "clusterName": "dev"},
            {"id": "lsql_prod", "name": "cc-payments", "clusterName": "prod"},
        ]
        box.route("GET", "/api/streams", json_body={"streams": streams})
        assert await processors.identifier(name="cc-payments", cluster_name="prod") == "lsql_prod"
        assert await processors.identifier(name="cc-payments", cluster_name="dev") == "lsql_dev"

    async def test_connect_name_on_other_cluster(self, processors, box):
        _mode(box, "CONNECT")
        box.route("GET", "/api/streams", json_body=STREAMS)
        assert await processors.identifier(name="cc-payments", cluster_name="dev") == "cc-payments"

    async def test_delete_by_name_and_cluster(self, processors, box):
        _mode(box, "CONNECT")
        streams = [
            {"id": "lsql_dev", "name": "cc-payments", "clusterName": "dev"},
            {"id": "lsql_prod", "name": "cc-payments", "clusterName": "prod"},
        ]
        box.route("GET", "/api/streams", json_body={"streams": streams})
        box.route("DELETE", "/api/streams/lsql_prod", status=204)
        assert (await processors.delete(name="cc-payments", cluster_name="prod"))["id"] == "lsql_prod"

    async def test_connect_unknown_name_falls_back(self, processors, box):
        _mode(box, "CONNECT")
        box.route("GET", "/api/streams", json_body=STREAMS)
        assert await processors.identifier(name="other") == "other"

    async def test_connect_prefers_id(self, processors, box):
        _mode(box, "CONNECT")
        assert await processors.identifier(id="lsql_9", name="x") == "lsql_9"

    async def test_kubernetes_composite(self, processors, box):
        _mode(box, "KUBERNETES")
        result = await processors.identifier(name="p", cluster_name="k8s", namespace="ns")
        assert result == "k8s.ns.p"

    async def test_kubernetes_missing_parts(self, processors, box):
        _mode(box, "KUBERNETES")
        with pytest.raises(ValueError, match="KUBERNETES"):
            await processors.identifier(name="p", cluster_name="k8s")


class TestOperations:
    """Tests for pause, resume, scale and delete."""

    @pytest.mark.parametrize("operation", ["pause", "resume"])
    async def test_pause_resume(self, processors, box, operation):
        _mode(box, "CONNECT")
        box.route("PUT", f"/api/streams/lsql_1/{operation}", status=200)
        result = await getattr(processors, operation)(id="lsql_1")
        assert result == {"ok": True, "id": "lsql_1"}

    async def test_scale(self, processors, box):
        _mode(box, "KUBERNETES")
        box.route("PUT", "/api/streams/k8s.ns.p/scale/3", status=200)
        result = await processors.scale(3, name="p", cluster_name="k8s", namespace="ns")
        assert result["runners"] == 3

    async def test_scale_minimum_one(self, processors, box):
        _mode(box, "CONNECT")
        box.route("PUT", "/api/streams/lsql_1/scale/1", status=200)
        assert (await processors.scale(0, id="lsql_1"))["runners"] == 1

    async def test_delete(self, processors, box):
        _mode(box, "CONNECT")
        box.route("DELETE", "/api/streams/lsql_1", status=204)
        assert (await processors.delete(id="lsql_1"))["ok"] is True


class TestLogs:
    """Tests for the processor log stream."""

    async def test_requires_kubernetes(self, processors, box):
        _mode(box, "IN_PROC")
        with pytest.raises(LensesError, match="execution mode is not KUBERNETES"):
            async for _ in processors.logs("k8s", "ns", "pod-1"):
                pass

    async def test_follow(self, processors, box):
        _mode(box, "KUBERNETES")
        box.sse(
            "/api/sse/k8/logs/k8s/ns/pod-1",
            [
                'data:{"@timestamp": "2024-03-01T10:20:30Z", "level": "INFO", "message": "started"}',
                "data:plain line",
            ],
        )
        entries = [entry async for entry in processors.logs("k8s", "ns", "pod-1", follow=True, lines=0)]
        assert entries == [
            {"level": "INFO", "message": "2024-03-01 10:20:30 started"},
            {"level": "", "message": "plain line"},
        ]
        assert box.last.url.params["follow"] == "true"
        assert box.last.url.params["lines"] == "100"
