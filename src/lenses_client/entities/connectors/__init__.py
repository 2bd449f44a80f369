# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Connectors entity: Kafka Connect connectors through the Lenses proxy."""

from .endpoint import ConnectorsEndpoint, apply_and_validate_name

__all__ = ["ConnectorsEndpoint", "apply_and_validate_name"]
