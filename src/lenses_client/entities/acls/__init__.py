# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""ACLs entity: Apache Kafka Access Control Lists."""

from .endpoint import ACL, ACL_OPERATIONS, AclsEndpoint

__all__ = ["ACL", "ACL_OPERATIONS", "AclsEndpoint"]
