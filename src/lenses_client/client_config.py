# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Connection configuration dataclasses for the Lenses client.

A ClientConfig describes how to reach one Lenses box (host, credentials,
timeout). A Config holds several named ClientConfig entries (contexts)
and remembers which one is current.

Components:
    ClientConfig: Settings for a single box.
    Config: Named contexts plus the current context name.
    DEFAULT_CONTEXT_KEY: Name used when no context is given ("master").
    parse_duration: Convert "1m30s" style durations to seconds.
    config_from_env: Build a ClientConfig from LENSES_* environment variables.

Example:
    ::

        config = Config()
        current = config.get_current()
        current.fill(ClientConfig(host="localhost:3030", token="abc"))
        assert current.host == "http://localhost:3030"
"""

from __future__ import annotations

import copy
import os
import re
from dataclasses import dataclass, field

from .auth import Authentication, BasicAuthentication, KerberosAuthentication

DEFAULT_CONTEXT_KEY = "master"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")


def parse_duration(value: str) -> float | None:
    """Parse a duration string such as "300ms", "5s" or "2h45m".

    Args:
        value: Duration string. A bare number is read as seconds.

    Returns:
        Duration in seconds, or None when value is empty.

    Raises:
        ValueError: If value is not a valid duration.
    """
    value = value.strip()
    if not value:
        return None
    if re.fullmatch(r"\d+(\.\d+)?", value):
        return float(value)

    sign = 1.0
    if value[0] in "+-":
        sign = -1.0 if value[0] == "-" else 1.0
        value = value[1:]

    pos = 0
    total = 0.0
    for match in _DURATION_PART.finditer(value):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(value) or pos == 0:
        raise ValueError(f"invalid duration '{value}'")
    return sign * total


@dataclass
class ClientConfig:
    """Connection settings for one Lenses box.

    Attributes:
        host: Box address. Scheme and port are inferred by format_host().
        authentication: BasicAuthentication or KerberosAuthentication.
        token: Access token; when set, login is skipped.
        timeout: Request timeout as a duration string ("30s"). Empty means none.
        insecure: Skip TLS certificate verification.
        debug: Log requests and responses.
    """

    host: str = ""
    """Box address, e.g. "https://lenses.example.com:443"."""

    authentication: Authentication | None = None
    """Login backend used when no token is present."""

    token: str = ""
    """Access token returned by a previous login."""

    timeout: str = ""
    """Request timeout as a duration string."""

    insecure: bool = False
    """Skip TLS certificate verification."""

    debug: bool = False
    """Enable debug logging."""

    def format_host(self) -> None:
        """Normalize host: drop trailing slash, add scheme and port when missing."""
        if not self.host:
            return

        if self.host.endswith("/"):
            self.host = self.host[:-1]

        port_idx = self.host.rfind(":")
        schema_idx = self.host.find("://")
        has_schema = schema_idx >= 0
        has_port = port_idx > schema_idx + 1

        port = self.host[port_idx + 1 :] if has_port else "80"

        if not has_schema:
            self.host = ("https://" if port == "443" else "http://") + self.host
        elif not has_port and self.host.startswith("https://"):
            port = "443"

        if not has_port:
            self.host += f":{port}"

    def is_valid(self) -> bool:
        """True when host is set and either a token or an authentication exists."""
        if not self.host:
            return False
        self.format_host()
        return bool(self.host) and (bool(self.token) or self.authentication is not None)

    def fill(self, other: ClientConfig) -> bool:
        """Copy non-empty fields of other into this config.

        Debug and insecure are copied only when true.

        Returns:
            Whether the resulting config is valid.
        """
        if other.host and other.host != self.host:
            self.host = other.host
        if other.authentication is not None:
            self.authentication = other.authentication
        if other.token and other.token != self.token:
            self.token = other.token
        if other.timeout and other.timeout != self.timeout:
            self.timeout = other.timeout
        if other.debug:
            self.debug = True
        if other.insecure:
            self.insecure = True
        return self.is_valid()

    @property
    def timeout_seconds(self) -> float | None:
        """Timeout in seconds, None when no timeout is configured."""
        return parse_duration(self.timeout)

    @property
    def basic_auth(self) -> BasicAuthentication | None:
        auth = self.authentication
        return auth if isinstance(auth, BasicAuthentication) else None

    @property
    def kerberos_auth(self) -> KerberosAuthentication | None:
        auth = self.authentication
        return auth if isinstance(auth, KerberosAuthentication) else None


@dataclass
class Config:
    """Multi-context configuration.

    Attributes:
        current_context: Name of the active context.
        contexts: Mapping of context name to ClientConfig.
    """

    current_context: str = ""
    contexts: dict[str, ClientConfig] = field(default_factory=dict)

    def is_valid(self) -> bool:
        """True when at least one context exists and every context is valid."""
        if not self.contexts:
            return False
        return all(cfg.is_valid() for cfg in self.contexts.values())

    def get_current(self) -> ClientConfig:
        """Return the current context, creating an empty one if missing."""
        cfg = self.contexts.get(self.current_context)
        if cfg is not None:
            return cfg
        if not self.current_context:
            self.current_context = DEFAULT_CONTEXT_KEY
        cfg = ClientConfig()
        self.contexts[self.current_context] = cfg
        return cfg

    def set_current(self, name: str) -> None:
        self.current_context = name

    def current_context_exists(self) -> bool:
        return self.current_context in self.contexts

    def remove_tokens(self) -> None:
        """Clear the token of every context."""
        for cfg in self.contexts.values():
            cfg.token = ""

    def remove_context(self, name: str) -> bool:
        """Delete a context.

        Removing the current context first switches to the first other
        valid context; when none exists nothing is removed.

        Returns:
            True if the context was removed.
        """
        if name not in self.contexts:
            return False

        if self.current_context == name:
            replacement = next(
                (key for key, cfg in self.contexts.items() if key != name and cfg.is_valid()),
                None,
            )
            if replacement is None:
                return False
            self.set_current(replacement)

        del self.contexts[name]
        return True

    def clone(self) -> Config:
        """Deep copy of this configuration."""
        return copy.deepcopy(self)

    def fill_current(self, cfg: ClientConfig) -> None:
        """Add cfg as the current context when missing (if valid), otherwise fill it."""
        existing = self.contexts.get(self.current_context)
        if existing is None:
            if cfg.is_valid():
                self.contexts[self.current_context] = cfg
        else:
            existing.fill(cfg)


def _env_bool(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes", "on")


def config_from_env() -> ClientConfig:
    """Build a ClientConfig from LENSES_* environment variables.

    Reads LENSES_HOST, LENSES_USER, LENSES_PASSWORD, LENSES_TOKEN,
    LENSES_TIMEOUT, LENSES_INSECURE and LENSES_DEBUG. Unset variables
    leave the corresponding field empty, so the result can be used with
    ClientConfig.fill() on top of a file-based context.
    """
    user = os.environ.get("LENSES_USER", "")
    password = os.environ.get("LENSES_PASSWORD", "")
    auth = BasicAuthentication(username=user, password=password) if user and password else None
    return ClientConfig(
        host=os.environ.get("LENSES_HOST", ""),
        authentication=auth,
        token=os.environ.get("LENSES_TOKEN", ""),
        timeout=os.environ.get("LENSES_TIMEOUT", ""),
        insecure=_env_bool("LENSES_INSECURE"),
        debug=_env_bool("LENSES_DEBUG"),
    )


__all__ = [
    "ClientConfig",
    "Config",
    "DEFAULT_CONTEXT_KEY",
    "config_from_env",
    "parse_duration",
]
