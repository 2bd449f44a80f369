# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for AclsEndpoint and ACL validation."""

import pytest

from lenses_client.entities.acls import ACL


class TestAclValidate:
    """Tests for ACL.validate."""

    def test_normalizes_case_and_host(self):
        acl = ACL("topic", "transactions", "User:bob", "allow", "read")
        acl.validate()
        assert (acl.resource_type, acl.permission_type, acl.operation) == ("Topic", "Allow", "Read")
        assert acl.host == "*"

    def test_only_first_letter_changes(self):
        acl = ACL("topic", "t", "User:bob", "allow", "describeConfigs")
        acl.validate()
        assert acl.operation == "DescribeConfigs"

    def test_unknown_resource_type(self):
        with pytest.raises(ValueError, match="invalid resource type"):
            ACL("queue", "t", "User:bob", "Allow", "Read").validate()

    def test_operation_not_valid_for_type(self):
        with pytest.raises(ValueError, match=r"The valid operations for this type are: \[Read Describe All\]"):
            ACL("group", "g", "User:bob", "Allow", "Write").validate()

    def test_to_dict(self):
        acl = ACL("Cluster", "kafka-cluster", "User:ops", "Deny", "Alter", "10.0.0.1")
        assert acl.to_dict() == {
            "resourceType": "Cluster",
            "resourceName": "kafka-cluster",
            "principal": "User:ops",
            "permissionType": "Deny",
            "host": "10.0.0.1",
            "operation": "Alter",
        }


class TestAclsEndpoint:
    """Tests for the ACL calls."""

    async def test_list(self, lenses, box):
        box.route("GET", "/api/acl", json_body=[{"principal": "User:bob"}])
        assert await lenses.endpoint("acls").list() == [{"principal": "User:bob"}]

    async def test_set(self, lenses, box):
        box.route("PUT", "/api/acl", status=201)
        result = await lenses.endpoint("acls").set("topic", "transactions", "User:bob", "allow", "write")
        assert result["ok"] is True
        assert box.last_json() == {
            "resourceType": "Topic",
            "resourceName": "transactions",
            "principal": "User:bob",
            "permissionType": "Allow",
            "host": "*",
            "operation": "Write",
        }

    async def test_delete_sends_body(self, lenses, box):
        box.route("DELETE", "/api/acl", status=204)
        await lenses.endpoint("acls").delete("Topic", "t", "User:bob", "Allow", "Read", host="10.0.0.1")
        assert box.last.method == "DELETE"
        assert box.last_json()["host"] == "10.0.0.1"

    async def test_invalid_acl_not_sent(self, lenses, box):
        with pytest.raises(ValueError):
            await lenses.endpoint("acls").set("Topic", "t", "User:bob", "Allow", "ClusterAction")
        assert box.requests == []
