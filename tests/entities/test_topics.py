# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for TopicsEndpoint requests and validation."""

import pytest

from lenses_client.errors import RequiredError

TOPICS = [
    {"topicName": "payments", "partitions": 3},
    {"topicName": "orders", "partitions": 1},
]


@pytest.fixture
def topics(lenses):
    return lenses.endpoint("topics")


class TestRead:
    """Tests for listing and reading topics."""

    async def test_list(self, topics, box):
        box.route("GET", "/api/topics", json_body=TOPICS)
        assert await topics.list() == TOPICS

    async def test_names(self, topics, box):
        box.route("GET", "/api/topics", json_body=TOPICS)
        assert await topics.names() == ["payments", "orders"]

    async def test_get(self, topics, box):
        box.route("GET", "/api/topics/payments", json_body=TOPICS[0])
        assert await topics.get("payments") == TOPICS[0]

    async def test_get_requires_name(self, topics):
        with pytest.raises(RequiredError, match="topicName"):
            await topics.get("")


class TestWrite:
    """Tests for creating, updating and deleting topics."""

    async def test_create(self, topics, box):
        box.route("POST", "/api/topics", status=201)
        result = await topics.create("payments", replication=2, partitions=3, configs={"cleanup.policy": "compact"})
        assert result == {"ok": True, "topicName": "payments"}
        assert box.last.headers["Content-Type"] == "application/json"
        assert box.last_json() == {
            "topicName": "payments",
            "replication": 2,
            "partitions": 3,
            "configs": {"cleanup.policy": "compact"},
        }

    async def test_create_default_configs(self, topics, box):
        box.route("POST", "/api/topics", status=201)
        await topics.create("t")
        assert box.last_json()["configs"] == {}

    async def test_delete(self, topics, box):
        box.route("DELETE", "/api/topics/payments", status=204)
        assert await topics.delete("payments") == {"ok": True, "topicName": "payments"}

    async def test_delete_records(self, topics, box):
        box.route("DELETE", "/api/topics/payments/1/100", status=204)
        result = await topics.delete_records("payments", 1, 100)
        assert result["offset"] == 100

    @pytest.mark.parametrize("partition,offset,message", [(-1, 0, "partition"), (0, -1, "offset")])
    async def test_delete_records_negative(self, topics, partition, offset, message):
        with pytest.raises(ValueError, match=message):
            await topics.delete_records("payments", partition, offset)

    async def test_update(self, topics, box):
        box.route("PUT", "/api/topics/config/payments", status=200)
        await topics.update("payments", {"retention.ms": 3600000})
        assert box.last_json() == {"configs": [{"key": "retention.ms", "value": "3600000"}]}


class TestMetadata:
    """Tests for topic metadata."""

    async def test_list(self, topics, box):
        box.route("GET", "/api/system/topics/metadata", json_body=[{"topicName": "payments"}])
        assert await topics.metadata_list() == [{"topicName": "payments"}]

    async def test_get(self, topics, box):
        box.route("GET", "/api/system/topics/metadata/payments", json_body={"keyType": "STRING"})
        assert await topics.metadata("payments") == {"keyType": "STRING"}

    async def test_set_posts_to_collection(self, topics, box):
        box.route("POST", "/api/system/topics/metadata", status=200)
        metadata = {"topicName": "payments", "keyType": "STRING", "valueType": "AVRO"}
        assert await topics.set_metadata(metadata) == {"ok": True, "topicName": "payments"}
        assert box.last_json() == metadata

    async def test_set_requires_topic_name(self, topics):
        with pytest.raises(RequiredError, match="topicName"):
            await topics.set_metadata({"keyType": "STRING"})

    async def test_delete(self, topics, box):
        box.route("DELETE", "/api/system/topics/metadata/payments", status=204)
        assert (await topics.delete_metadata("payments"))["ok"] is True
