# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Topics entity: Kafka topics and their metadata."""

from .endpoint import TopicsEndpoint

__all__ = ["TopicsEndpoint"]
