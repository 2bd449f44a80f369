# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Alerts entity: alerts, alert settings and their conditions."""

from .endpoint import AlertsEndpoint

__all__ = ["AlertsEndpoint"]
