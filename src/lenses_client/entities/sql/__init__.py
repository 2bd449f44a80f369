# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQL entity: LSQL validation, streaming execution and running queries."""

from .endpoint import SqlEndpoint

__all__ = ["SqlEndpoint"]
