# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Reading and writing multi-context configuration files.

Two on-disk formats are supported and share the same model (Config):

JSON (camelCase keys)::

    {"currentContext": "master",
     "contexts": {"master": {"host": "http://localhost:3030",
                             "basic": {"username": "admin", "password": "admin"}}}}

YAML (PascalCase keys)::

    CurrentContext: master
    Contexts:
      master:
        Host: http://localhost:3030
        Basic:
          Username: admin
          Password: admin

Components:
    config_to_json / config_from_json: JSON codec.
    config_to_yaml / config_from_yaml: YAML codec.
    read_config_file: Try JSON then YAML.
    lookup_config: Search the well-known filenames in a directory.
    find_config: Search cwd, executable dir and ~/.lenses in order.
    write_config_file: Save YAML with restrictive permissions.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from functools import partial
from pathlib import Path
from typing import Any

import yaml

from .auth import (
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
)
from .client_config import DEFAULT_CONTEXT_KEY, ClientConfig, Config
from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".lenses"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "lenses-cli.yml"

CONFIG_FILENAMES = (
    "lenses.yml",
    "lenses.yaml",
    "lenses.json",
    ".lenses.yml",
    ".lenses.yaml",
    ".lenses.json",
    "lenses-cli.yml",
    "lenses-cli.yaml",
    "lenses-cli.json",
    ".lenses-cli.yml",
    ".lenses-cli.yaml",
    ".lenses-cli.json",
)

# Key names per format: (json, yaml)
_KEYS = {
    "current_context": ("currentContext", "CurrentContext"),
    "contexts": ("contexts", "Contexts"),
    "host": ("host", "Host"),
    "token": ("token", "Token"),
    "timeout": ("timeout", "Timeout"),
    "insecure": ("insecure", "Insecure"),
    "debug": ("debug", "Debug"),
    "basic": ("basic", "Basic"),
    "kerberos": ("kerberos", "Kerberos"),
    "conf_file": ("confFile", "ConfFile"),
    "with_password": ("withPassword", "WithPassword"),
    "with_keytab": ("withKeytab", "WithKeytab"),
    "from_ccache": ("fromCCache", "FromCCache"),
    "username": ("username", "Username"),
    "password": ("password", "Password"),
    "realm": ("realm", "Realm"),
    "keytab_file": ("keytabFile", "KeytabFile"),
    "ccache_file": ("ccacheFile", "CCacheFile"),
    "legacy_user": ("user", "User"),
}


def _key(name: str, fmt: str) -> str:
    return _KEYS[name][0 if fmt == "json" else 1]


# -----------------------------------------------------------------------------
# Encoding
# -----------------------------------------------------------------------------


def _kerberos_to_dict(auth: KerberosAuthentication, fmt: str) -> dict[str, Any]:
    k = partial(_key, fmt=fmt)
    method = auth.method
    if method is None:
        raise ConfigError(f"{fmt} write: kerberos authentication: method missing")

    result: dict[str, Any] = {k("conf_file"): auth.conf_file}
    if isinstance(method, KerberosWithPassword):
        result[k("with_password")] = {
            k("username"): method.username,
            k("password"): method.password,
            k("realm"): method.realm,
        }
    elif isinstance(method, KerberosWithKeytab):
        result[k("with_keytab")] = {
            k("username"): method.username,
            k("realm"): method.realm,
            k("keytab_file"): method.keytab_file,
        }
    else:
        result[k("from_ccache")] = {k("ccache_file"): method.ccache_file}
    return result


def client_config_to_dict(cfg: ClientConfig, fmt: str = "yaml") -> dict[str, Any]:
    """Convert a ClientConfig to a plain dict using the key style of fmt."""
    k = partial(_key, fmt=fmt)
    result: dict[str, Any] = {k("host"): cfg.host}
    if cfg.token:
        result[k("token")] = cfg.token
    if cfg.timeout:
        result[k("timeout")] = cfg.timeout
    if cfg.insecure:
        result[k("insecure")] = True
    if cfg.debug:
        result[k("debug")] = True

    auth = cfg.authentication
    if isinstance(auth, BasicAuthentication):
        basic: dict[str, Any] = {k("username"): auth.username}
        if auth.password or fmt == "yaml":
            basic[k("password")] = auth.password
        result[k("basic")] = basic
    elif isinstance(auth, KerberosAuthentication):
        result[k("kerberos")] = _kerberos_to_dict(auth, fmt)
    return result


def config_to_dict(config: Config, fmt: str = "yaml") -> dict[str, Any]:
    """Convert a Config to a plain dict.

    Raises:
        ConfigError: If there are no contexts.
    """
    if not config.contexts:
        raise ConfigError(f"{fmt} write: contexts can not be empty")
    return {
        _key("current_context", fmt): config.current_context or DEFAULT_CONTEXT_KEY,
        _key("contexts", fmt): {
            name: client_config_to_dict(cfg, fmt) for name, cfg in config.contexts.items()
        },
    }


def config_to_json(config: Config) -> str:
    return json.dumps(config_to_dict(config, "json"))


def config_to_yaml(config: Config) -> str:
    return yaml.safe_dump(
        config_to_dict(config, "yaml"),
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
    )


# -----------------------------------------------------------------------------
# Decoding
# -----------------------------------------------------------------------------


def _kerberos_from_dict(data: dict[str, Any], fmt: str) -> KerberosAuthentication:
    k = partial(_key, fmt=fmt)
    auth = KerberosAuthentication(conf_file=data.get(k("conf_file")) or "")
    for key, value in data.items():
        if key == k("conf_file"):
            continue
        value = value or {}
        if key == k("with_password"):
            auth.method = KerberosWithPassword(
                username=value.get(k("username")) or "",
                password=value.get(k("password")) or "",
                realm=value.get(k("realm")) or "",
            )
        elif key == k("with_keytab"):
            auth.method = KerberosWithKeytab(
                username=value.get(k("username")) or "",
                realm=value.get(k("realm")) or "",
                keytab_file=value.get(k("keytab_file")) or "",
            )
        elif key == k("from_ccache"):
            auth.method = KerberosFromCCache(ccache_file=value.get(k("ccache_file")) or "")
        else:
            raise ConfigError(f"{fmt}: unexpected key: {key}")

    if auth.method is None:
        raise ConfigError(f"{fmt}: kerberos: no authentication method found inside")
    return auth


def client_config_from_dict(data: dict[str, Any], fmt: str = "yaml", name: str = "") -> ClientConfig:
    """Build a ClientConfig from a dict using the key style of fmt.

    The legacy flat user/password fields map to BasicAuthentication.

    Raises:
        ConfigError: If no authentication key is found.
    """
    if not isinstance(data, dict):
        raise ConfigError(f"{fmt}: context '{name}' must be a mapping")

    k = partial(_key, fmt=fmt)
    cfg = ClientConfig(
        host=data.get(k("host")) or "",
        token=data.get(k("token")) or "",
        timeout=str(data.get(k("timeout")) or ""),
        insecure=bool(data.get(k("insecure"), False)),
        debug=bool(data.get(k("debug"), False)),
    )

    basic = data.get(k("basic"))
    kerberos = data.get(k("kerberos"))
    if basic is not None:
        cfg.authentication = BasicAuthentication(
            username=basic.get(k("username")) or "",
            password=basic.get(k("password")) or "",
        )
    elif kerberos is not None:
        cfg.authentication = _kerberos_from_dict(kerberos, fmt)
    elif data.get(k("legacy_user")) and data.get(k("password")):
        cfg.authentication = BasicAuthentication(
            username=data[k("legacy_user")],
            password=data[k("password")],
        )
    else:
        suffix = f" for context '{name}'" if name else ""
        raise ConfigError(f"{fmt}: unknown or missing authentication key{suffix}")
    return cfg


def config_from_dict(data: dict[str, Any], fmt: str = "yaml") -> Config:
    if not isinstance(data, dict):
        raise ConfigError(f"{fmt}: configuration must be a mapping")

    config = Config(current_context=data.get(_key("current_context", fmt)) or "")
    contexts = data.get(_key("contexts", fmt))
    if not contexts:
        raise ConfigError(f"{fmt}: contexts can not be empty")
    for name, value in contexts.items():
        config.contexts[name] = client_config_from_dict(value, fmt, name)
    return config


def config_from_json(text: str) -> Config:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"json: {e}") from e
    return config_from_dict(data, "json")


def config_from_yaml(text: str) -> Config:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"yaml: {e}") from e
    return config_from_dict(data, "yaml")


# -----------------------------------------------------------------------------
# Files
# -----------------------------------------------------------------------------


def read_config_file(path: str | Path) -> Config:
    """Read a configuration file, trying JSON first and then YAML.

    Raises:
        ConfigError: If the file is missing or neither decoder accepts it.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError:
        text = None

    if text is not None:
        for decoder in (config_from_json, config_from_yaml):
            try:
                return decoder(text)
            except ConfigError as e:
                logger.debug("Decoding %s failed: %s", path, e)

    raise ConfigError(
        f"configuration file '{path}' does not exist or it is not formatted "
        "to a compatible document: JSON, YAML"
    )


def lookup_config(directory: str | Path) -> tuple[Config, Path] | None:
    """Return the first readable configuration in directory, if any."""
    directory = Path(directory)
    for filename in CONFIG_FILENAMES:
        candidate = directory / filename
        if not candidate.is_file():
            continue
        try:
            return read_config_file(candidate), candidate
        except ConfigError as e:
            logger.debug("Skipping %s: %s", candidate, e)
    return None


def search_dirs() -> list[Path]:
    """Directories searched for a configuration: cwd, executable dir, ~/.lenses."""
    return [Path.cwd(), Path(sys.argv[0]).resolve().parent, DEFAULT_CONFIG_DIR]


def find_config() -> tuple[Config, Path] | None:
    """Search the well-known locations for a configuration file."""
    for directory in search_dirs():
        found = lookup_config(directory)
        if found is not None:
            logger.debug("Loaded configuration from %s", found[1])
            return found
    return None


def write_config_file(config: Config, path: str | Path | None = None) -> Path:
    """Write config as YAML (directory 0750, file 0600).

    Returns:
        The path written to.
    """
    path = Path(path) if path else DEFAULT_CONFIG_FILE
    content = config_to_yaml(config)
    path.parent.mkdir(mode=0o750, parents=True, exist_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    os.chmod(path, 0o600)
    return path


__all__ = [
    "CONFIG_FILENAMES",
    "DEFAULT_CONFIG_DIR",
    "DEFAULT_CONFIG_FILE",
    "client_config_from_dict",
    "client_config_to_dict",
    "config_from_dict",
    "config_from_json",
    "config_from_yaml",
    "config_to_dict",
    "config_to_json",
    "config_to_yaml",
    "find_config",
    "lookup_config",
    "read_config_file",
    "search_dirs",
    "write_config_file",
]
