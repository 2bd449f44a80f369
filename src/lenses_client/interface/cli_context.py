# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI context management: configuration file, context and flag resolution.

The CLI works on a multi-context Config loaded from a JSON or YAML file.
Global flags (--host, --user, --pass, --token, Kerberos flags...) are
layered on top of the selected context.

Default configuration:
    - Config file: ~/.lenses/lenses-cli.yml (written 0600, dir 0750)
    - Env var: LENSES_CLI_CONTEXT

Resolution order for the configuration file:
    1. --config flag (must parse when it exists)
    2. lenses.yml / .lenses.yml / lenses-cli.yml ... in the cwd
    3. the same names next to the executable
    4. the same names in ~/.lenses/

Resolution order for the context:
    1. --context flag (saved as the new current context when a file was loaded)
    2. LENSES_CLI_CONTEXT environment variable
    3. CurrentContext of the file
    4. "master"

Example:
    ::

        from lenses_client.interface.cli_context import CliContext

        ctx = CliContext(context="dev", host="http://localhost:3030")
        config = ctx.require_config()
        cfg = config.get_current()
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ..auth import (
    Authentication,
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
)
from ..client_config import DEFAULT_CONTEXT_KEY, ClientConfig, Config, config_from_env
from ..config_io import DEFAULT_CONFIG_FILE, find_config, read_config_file, write_config_file
from ..encryption import decrypt_credentials, encrypt_credentials
from ..errors import ConfigError

logger = logging.getLogger(__name__)

# Default configuration
_DEFAULT_ENV_CONTEXT = "LENSES_CLI_CONTEXT"
_DEFAULT_CLI_NAME = "lenses-cli"


def auth_from_flags(
    user: str = "",
    password: str = "",
    kerberos_conf: str = "",
    kerberos_realm: str = "",
    kerberos_keytab: str = "",
    kerberos_ccache: str = "",
) -> Authentication | None:
    """Build an authentication from CLI flags.

    Kerberos is selected by --kerberos-conf: with user and password and
    neither keytab nor ccache it authenticates with password, otherwise
    with the keytab, otherwise from the ccache. Without --kerberos-conf,
    user and password select basic authentication.

    Returns:
        The authentication, or None when the flags do not describe one.
    """
    if kerberos_conf:
        if not kerberos_keytab and not kerberos_ccache and user and password:
            method = KerberosWithPassword(username=user, password=password, realm=kerberos_realm)
        elif kerberos_keytab:
            method = KerberosWithKeytab(username=user, realm=kerberos_realm, keytab_file=kerberos_keytab)
        elif kerberos_ccache:
            method = KerberosFromCCache(ccache_file=kerberos_ccache)
        else:
            return None
        return KerberosAuthentication(conf_file=kerberos_conf, method=method)

    if user and password:
        return BasicAuthentication(username=user, password=password)
    return None


class CliContext:
    """Configuration and flag state of one CLI invocation.

    Attributes:
        config_file: Explicit --config path, empty to search the defaults.
        context: Explicit --context name.
        flags: ClientConfig built from --host/--token/--timeout/--insecure/--debug.
        authentication: Authentication built from the auth flags, or None.
        output: Output format ("table", "json" or "yaml").
        config: Loaded configuration (empty until load()).
        config_path: File the configuration was read from, None if none.
    """

    def __init__(
        self,
        config_file: str | Path | None = None,
        context: str | None = None,
        host: str = "",
        user: str = "",
        password: str = "",
        token: str = "",
        timeout: str = "",
        insecure: bool = False,
        debug: bool = False,
        kerberos_conf: str = "",
        kerberos_realm: str = "",
        kerberos_keytab: str = "",
        kerberos_ccache: str = "",
        output: str = "table",
        env_context: str | None = None,
        cli_name: str | None = None,
    ):
        """Initialize CLI context from the global flags.

        Args:
            config_file: Configuration file to load (and save to).
            context: Context to use instead of the file's current one.
            env_context: Env var naming the context. Default: LENSES_CLI_CONTEXT
            cli_name: CLI name for messages. Default: lenses-cli
        """
        self.config_file = Path(config_file) if config_file else None
        self.context = context or ""
        self.flags = ClientConfig(
            host=host, token=token, timeout=timeout, insecure=insecure, debug=debug
        )
        self.authentication = auth_from_flags(
            user, password, kerberos_conf, kerberos_realm, kerberos_keytab, kerberos_ccache
        )
        self.output = output
        self.debug = debug
        self.env_context = env_context or _DEFAULT_ENV_CONTEXT
        self.cli_name = cli_name or _DEFAULT_CLI_NAME

        self.config = Config()
        self.config_path: Path | None = None
        self._loaded = False

    @property
    def found(self) -> bool:
        """True when the configuration was read from a file."""
        return self.config_path is not None

    @property
    def save_path(self) -> Path:
        """Where save() writes: the loaded/explicit file or the default one."""
        return self.config_path or self.config_file or DEFAULT_CONFIG_FILE

    def read(self) -> bool:
        """Read the configuration file and decrypt its passwords.

        Returns:
            True if a file was found.

        Raises:
            ConfigError: If the --config file exists and cannot be read.
        """
        if self.config_file is not None:
            if not self.config_file.exists():
                logger.debug("Configuration file %s does not exist yet", self.config_file)
                return False
            self.config = read_config_file(self.config_file)
            self.config_path = self.config_file
        else:
            located = find_config()
            if located is None:
                logger.debug("No configuration file found")
                return False
            self.config, self.config_path = located

        for cfg in self.config.contexts.values():
            decrypt_credentials(cfg)
        logger.debug("Configuration loaded from %s", self.config_path)
        return True

    def resolve_context(self) -> tuple[str, bool]:
        """Resolve the active context name.

        Returns:
            (name, changed) where changed is True when --context selected
            a context different from the file's current one.
        """
        current = self.config.current_context
        if self.context and self.context != current:
            return self.context, True
        env_context = os.environ.get(self.env_context, "").strip()
        if env_context and not self.context:
            return env_context, False
        return current or DEFAULT_CONTEXT_KEY, False

    def load(self, strict: bool = True) -> Config:
        """Load the configuration and apply context and flags.

        Auth flags replace the authentication of the current context;
        LENSES_* variables and then the other flags fill it. When --context
        switched the current context of a loaded file, the file is saved.

        Args:
            strict: Raise when the selected context does not exist.

        Returns:
            The resolved configuration.

        Raises:
            ConfigError: Unreadable --config file or unknown context.
        """
        if self._loaded:
            if strict:
                self._check_context()
            return self.config

        found = self.read()
        name, changed = self.resolve_context()
        self.config.set_current(name)

        if self.authentication is not None or not found:
            current = self.config.get_current()
            if self.authentication is not None:
                current.authentication = self.authentication
            current.fill(config_from_env())
            current.fill(self.flags)
        elif self.config.current_context_exists():
            current = self.config.get_current()
            current.fill(config_from_env())
            current.fill(self.flags)

        if found and changed and self.config.current_context_exists():
            self.save()

        self._loaded = True
        if strict:
            self._check_context()
        return self.config

    def _check_context(self) -> None:
        name = self.config.current_context
        if name and not self.config.current_context_exists():
            raise ConfigError(
                f"unknown context [{name}] given, please use the "
                f"`configure --context={name} --reset`"
            )

    def require_config(self) -> Config:
        """Load the configuration and require a usable current context.

        Raises:
            ConfigError: Unknown context, or no host/credentials available.
        """
        config = self.load(strict=True)
        if not config.get_current().is_valid():
            raise ConfigError(
                f"cannot retrieve credentials, please configure them with '{self.cli_name} configure'"
            )
        return config

    def save(self, path: str | Path | None = None) -> Path:
        """Write the configuration with encrypted passwords.

        The in-memory configuration keeps its plain passwords.

        Returns:
            Path of the written file.
        """
        copy = self.config.clone()
        for cfg in copy.contexts.values():
            cfg.format_host()
            encrypt_credentials(cfg)
        target = write_config_file(copy, path or self.save_path)
        self.config_path = Path(target)
        logger.debug("Configuration saved to %s", target)
        return Path(target)


__all__ = ["CliContext", "auth_from_flags"]
