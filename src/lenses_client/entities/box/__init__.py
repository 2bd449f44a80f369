# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Box entity: license, configuration and session of the Lenses box."""

from .endpoint import BoxEndpoint, with_license_expiry

__all__ = ["BoxEndpoint", "with_license_expiry"]
