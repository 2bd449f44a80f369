# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ACLs endpoint: list, set and delete Kafka Access Control Lists.

Example:
    CLI commands auto-generated::

        lenses-cli acls list
        lenses-cli acls set topic transactions User:bob allow read
        lenses-cli acls delete topic transactions User:bob allow read --host 10.0.0.1
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ...client import CONTENT_TYPE_JSON
from ...interface.endpoint_base import BaseEndpoint

ACL_PATH = "/api/acl"

ACL_OPERATIONS: dict[str, list[str]] = {
    "Topic": ["Read", "Write", "Describe", "Delete", "DescribeConfigs", "AlterConfigs", "All"],
    "Group": ["Read", "Describe", "All"],
    "Cluster": [
        "Create",
        "ClusterAction",
        "DescribeConfigs",
        "AlterConfigs",
        "IdempotentWrite",
        "Alter",
        "Describe",
        "All",
    ],
    "TransactionalId": ["Describe", "Write", "All"],
}


def _title(value: str) -> str:
    return value[:1].upper() + value[1:]


@dataclass
class ACL:
    """A single Kafka ACL as sent to the box."""

    resource_type: str
    resource_name: str
    principal: str
    permission_type: str
    operation: str
    host: str = ""

    def validate(self) -> None:
        """Normalize the names and check the operation against the resource type.

        The first letter of resource type, permission type and operation is
        upper-cased; an empty host becomes ``*``.

        Raises:
            ValueError: Unknown resource type, or operation not valid for it.
        """
        self.resource_type = _title(self.resource_type)
        self.permission_type = _title(self.permission_type)
        self.operation = _title(self.operation)

        valid_operations = ACL_OPERATIONS.get(self.resource_type)
        if valid_operations is None:
            raise ValueError(
                "invalid resource type. Valid resource types are: "
                "'Topic', 'Group', 'Cluster' or 'TransactionalId'"
            )
        if self.operation not in valid_operations:
            raise ValueError(
                f"invalid operation for resource type: '{self.resource_type}'. "
                f"The valid operations for this type are: [{' '.join(valid_operations)}]"
            )

        if not self.host:
            self.host = "*"

    def to_dict(self) -> dict[str, Any]:
        return {
            "resourceType": self.resource_type,
            "resourceName": self.resource_name,
            "principal": self.principal,
            "permissionType": self.permission_type,
            "host": self.host,
            "operation": self.operation,
        }


class AclsEndpoint(BaseEndpoint):
    """Kafka Access Control Lists.

    Resource types: Topic, Group, Cluster, TransactionalId.
    Permission types: Allow, Deny.
    """

    name = "acls"

    async def list(self) -> list[dict]:
        """List all the ACLs."""
        return await self.client.read_json("GET", ACL_PATH) or []

    async def set(
        self,
        resource_type: str,
        resource_name: str,
        principal: str,
        permission_type: str,
        operation: str,
        host: str = "",
    ) -> dict:
        """Create or update an ACL.

        Args:
            resource_type: Topic, Group, Cluster or TransactionalId.
            resource_name: Name of the resource, e.g. the topic.
            principal: Principal, e.g. "User:bob".
            permission_type: Allow or Deny.
            operation: Operation valid for the resource type, e.g. Read.
            host: IP address the ACL applies to, defaults to "*".
        """
        acl = ACL(resource_type, resource_name, principal, permission_type, operation, host)
        acl.validate()
        await self.client.do("PUT", ACL_PATH, CONTENT_TYPE_JSON, acl.to_dict())
        return {"ok": True, **acl.to_dict()}

    async def delete(
        self,
        resource_type: str,
        resource_name: str,
        principal: str,
        permission_type: str,
        operation: str,
        host: str = "",
    ) -> dict:
        """Delete an ACL."""
        acl = ACL(resource_type, resource_name, principal, permission_type, operation, host)
        acl.validate()
        await self.client.do("DELETE", ACL_PATH, CONTENT_TYPE_JSON, acl.to_dict())
        return {"ok": True, **acl.to_dict()}


__all__ = ["ACL", "ACL_OPERATIONS", "AclsEndpoint"]
