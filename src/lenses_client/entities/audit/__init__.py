# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Audit entity: audit log entries."""

from .endpoint import AuditEndpoint

__all__ = ["AuditEndpoint"]
