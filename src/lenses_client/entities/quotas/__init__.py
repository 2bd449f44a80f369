# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Quotas entity: Kafka user and client quotas."""

from .endpoint import QuotasEndpoint, quota_path

__all__ = ["QuotasEndpoint", "quota_path"]
