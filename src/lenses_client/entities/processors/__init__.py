# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Processors entity: LSQL streaming processors."""

from .endpoint import ProcessorsEndpoint

__all__ = ["ProcessorsEndpoint"]
