# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logs entity: box logs."""

from .endpoint import LogsEndpoint

__all__ = ["LogsEndpoint"]
