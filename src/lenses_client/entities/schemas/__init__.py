# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Schemas entity: Schema Registry subjects, versions and compatibility."""

from .endpoint import COMPATIBILITY_LEVELS, SchemasEndpoint, check_schema_version

__all__ = ["COMPATIBILITY_LEVELS", "SchemasEndpoint", "check_schema_version"]
