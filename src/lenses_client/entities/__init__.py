# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Lenses entities, one endpoint per REST area of the box."""

from .acls import AclsEndpoint
from .alerts import AlertsEndpoint
from .audit import AuditEndpoint
from .box import BoxEndpoint
from .connectors import ConnectorsEndpoint
from .logs import LogsEndpoint
from .processors import ProcessorsEndpoint
from .quotas import QuotasEndpoint
from .schemas import SchemasEndpoint
from .sql import SqlEndpoint
from .topics import TopicsEndpoint

__all__ = [
    "AclsEndpoint",
    "AlertsEndpoint",
    "AuditEndpoint",
    "BoxEndpoint",
    "ConnectorsEndpoint",
    "LogsEndpoint",
    "ProcessorsEndpoint",
    "QuotasEndpoint",
    "SchemasEndpoint",
    "SqlEndpoint",
    "TopicsEndpoint",
]
