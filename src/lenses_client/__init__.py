# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""lenses-client: client library and CLI for the Lenses REST, WebSocket and SSE API."""

from .auth import (
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
    User,
)
from .client import ExecutionMode, LensesClient, open_connection
from .client_config import ClientConfig, Config, config_from_env
from .errors import (
    AuthenticationError,
    ConfigError,
    CredentialsMissingError,
    LensesError,
    LiveError,
    RequiredError,
    ResourceError,
    SecretsError,
    StreamError,
)
from .lenses_base import LensesBase
from .live import LiveConfiguration, LiveConnection, open_live_connection

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "BasicAuthentication",
    "ClientConfig",
    "Config",
    "ConfigError",
    "CredentialsMissingError",
    "ExecutionMode",
    "KerberosAuthentication",
    "KerberosFromCCache",
    "KerberosWithKeytab",
    "KerberosWithPassword",
    "LensesBase",
    "LensesClient",
    "LensesError",
    "LiveConfiguration",
    "LiveConnection",
    "LiveError",
    "RequiredError",
    "ResourceError",
    "SecretsError",
    "StreamError",
    "User",
    "__version__",
    "config_from_env",
    "open_connection",
    "open_live_connection",
]
