# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Secret retrieval for applications and Kafka Connect workers.

Secrets are declared as ``SECRET_<NAME>=<value>`` entries, read from the
environment or from a file with one entry per line. Kafka Connect worker
secrets use ``WORKER_CONNECT_SECRET_<NAME>=<value>`` and end up in the
worker file instead of the secrets file. The meaning of the
value depends on the provider:

- Vault: the path of the secret; the key inside it is ``<name>`` in
  lowercase with "_" replaced by "-".
- Azure Key Vault: ignored; the secret name is ``<name>`` in lowercase
  with "_" replaced by "-".
- Environment (KUBERNETES): the secret itself.

Retrieved secrets are keyed by ``<name>`` in lowercase with "_" replaced
by "." and written as an application file (env, json, yaml) or as Kafka
Connect property files.

Components:
    SecretProvider: VAULT, AZURE_KV, KUBERNETES.
    load_secret_vars / retrieve_vars: Collect declared variables.
    VaultSecrets: HashiCorp Vault AppRole client (HTTP API).
    AzureKeyVaultSecrets: Azure Key Vault client (HTTP API).
    env_secrets: Secrets given directly as values.
    write_app_file / write_connect_files: Output writers.
"""

from __future__ import annotations

import json
import logging
import os
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
import yaml

from .errors import SecretsError

logger = logging.getLogger(__name__)

SECRET_PREFIX = "SECRET_"
WORKER_SECRET_PREFIX = "WORKER_CONNECT_SECRET_"
CONNECTOR_PREFIX = "CONNECTOR_"
CONNECT_PREFIX = "CONNECT_"

AZURE_RESOURCE = "https://vault.azure.net"
AZURE_LOGIN_URL = "https://login.microsoftonline.com/{tenant}/oauth2/token"
AZURE_KEY_VAULT_DNS_SUFFIX = "vault.azure.net"
AZURE_API_VERSION = "2016-10-01"

FILE_CONFIG_PROVIDER = "org.apache.kafka.common.config.provider.FileConfigProvider"


class SecretProvider(str, Enum):
    VAULT = "VAULT"
    AZURE_KV = "AZURE_KV"
    KUBERNETES = "KUBERNETES"


def secret_name(key: str) -> str:
    """Name of the secret in the store: lowercase, "_" replaced by "-"."""
    return key.replace("_", "-").lower()


def property_key(key: str) -> str:
    """Key of the secret in output files: lowercase, "_" replaced by "."."""
    return key.replace("_", ".").lower()


def _source_lines(from_file: str | None) -> list[str]:
    if from_file:
        try:
            return Path(from_file).read_text(encoding="utf-8").splitlines()
        except OSError as e:
            raise SecretsError(f"unable to read variables file '{from_file}': {e}") from e
    return [f"{key}={value}" for key, value in os.environ.items()]


def _secret_prefix(line: str) -> str | None:
    for prefix in (SECRET_PREFIX, WORKER_SECRET_PREFIX):
        if line.startswith(prefix):
            return prefix
    return None


def load_secret_vars(from_file: str | None = None) -> list[tuple[str, str]]:
    """Collect SECRET_ and WORKER_CONNECT_SECRET_ entries as (key, value) pairs.

    The matched prefix is removed from the key.

    Args:
        from_file: File with KEY=value lines; the environment is used when empty.
    """
    source = f"file [{from_file}]" if from_file else "environment"
    logger.info("Looking for secret variables in %s", source)

    result = []
    for line in _source_lines(from_file):
        prefix = _secret_prefix(line)
        if prefix is None:
            continue
        key, _, value = line[len(prefix) :].partition("=")
        logger.info("Found secret variable [%s]", key)
        result.append((key, value))

    if not result:
        logger.warning("No variables prefixed with [%s] found in %s", SECRET_PREFIX, source)
    return result


def retrieve_vars(from_file: str | None, prefix: str) -> list[str]:
    """Collect prefixed entries as property lines.

    The prefix is removed, and the rest is lowercased with "_" replaced
    by "." (``CONNECT_GROUP_ID=x`` gives ``group.id=x``).
    """
    result = []
    for line in _source_lines(from_file):
        if line.startswith(prefix):
            result.append(property_key(line[len(prefix) :]))

    if not result:
        logger.warning("No variables prefixed with [%s] found", prefix)
    return result


def worker_secret_keys(from_file: str | None = None) -> set[str]:
    """Property keys of the WORKER_CONNECT_SECRET_ entries."""
    return {
        property_key(line[len(WORKER_SECRET_PREFIX) :].partition("=")[0])
        for line in _source_lines(from_file)
        if line.startswith(WORKER_SECRET_PREFIX)
    }


# -----------------------------------------------------------------------------
# Providers
# -----------------------------------------------------------------------------


class VaultSecrets:
    """HashiCorp Vault client using the AppRole auth method.

    VAULT_ADDR and VAULT_TOKEN take precedence over the constructor
    arguments.

    Attributes:
        address: Vault server address.
        token: Token allowed to read the AppRole ids.
        role: AppRole name.
    """

    def __init__(
        self,
        address: str = "",
        token: str = "",
        role: str = "",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.address = (os.environ.get("VAULT_ADDR") or address).rstrip("/")
        self.token = os.environ.get("VAULT_TOKEN") or token
        self.role = role
        self._transport = transport

    async def _call(self, http: httpx.AsyncClient, method: str, path: str, body: Any = None) -> dict:
        url = f"{self.address}/v1/{path.lstrip('/')}"
        response = await http.request(method, url, json=body, headers={"X-Vault-Token": self.token})
        if response.status_code >= 400:
            raise SecretsError(f"vault: {method} {path} failed with status code {response.status_code}")
        if not response.content:
            return {}
        return response.json()

    async def _login(self, http: httpx.AsyncClient) -> None:
        role_id = await self._call(http, "GET", f"auth/approle/role/{self.role}/role-id")
        secret_id = await self._call(http, "POST", f"auth/approle/role/{self.role}/secret-id", {})
        login = await self._call(
            http,
            "POST",
            "auth/approle/login",
            {
                "role_id": role_id.get("data", {}).get("role_id"),
                "secret_id": secret_id.get("data", {}).get("secret_id"),
            },
        )
        self.token = (login.get("auth") or {}).get("client_token") or self.token

    async def fetch(self, secret_vars: list[tuple[str, str]]) -> dict[str, str]:
        """Read every declared secret; failed reads are logged and skipped.

        Raises:
            SecretsError: If the server is missing or the AppRole login fails.
        """
        if not self.address:
            raise SecretsError("vault: server address is required (--vault-addr or VAULT_ADDR)")

        secrets: dict[str, str] = {}
        async with httpx.AsyncClient(transport=self._transport) as http:
            try:
                await self._login(http)
            except (httpx.HTTPError, ValueError) as e:
                raise SecretsError(f"vault: approle login failed: {e}") from e

            for key, path in secret_vars:
                name = secret_name(key)
                logger.info("Retrieving secret from [%s]. Path: [%s], Key: [%s]", self.address, path, name)
                try:
                    secret = await self._call(http, "GET", path)
                except (SecretsError, httpx.HTTPError, ValueError) as e:
                    logger.error("Failed to retrieve secret for path [%s] and key [%s]: %s", path, name, e)
                    continue

                data = (secret.get("data") or {}).get("data")
                if not isinstance(data, dict):
                    logger.error("No secret data returned for path [%s]. Possible bad path", path)
                    continue
                value = data.get(name)
                if value is None:
                    logger.error("Key [%s] not found at path [%s]", name, path)
                    continue
                secrets[property_key(key)] = str(value)
        return secrets


class AzureKeyVaultSecrets:
    """Azure Key Vault client using client-credentials authentication.

    AZURE_CLIENT_ID, AZURE_CLIENT_SECRET, AZURE_TENANT_ID, AZURE_KEY_VAULT
    and AZURE_KEY_VAULT_DNS take precedence over the constructor arguments.
    """

    def __init__(
        self,
        vault_name: str = "",
        client_id: str = "",
        client_secret: str = "",
        tenant_id: str = "",
        dns_suffix: str = "",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = os.environ.get("AZURE_CLIENT_ID") or client_id
        self.client_secret = os.environ.get("AZURE_CLIENT_SECRET") or client_secret
        self.tenant_id = os.environ.get("AZURE_TENANT_ID") or tenant_id
        self.vault_name = os.environ.get("AZURE_KEY_VAULT") or vault_name
        self.dns_suffix = (
            os.environ.get("AZURE_KEY_VAULT_DNS") or dns_suffix or AZURE_KEY_VAULT_DNS_SUFFIX
        )
        self._transport = transport

        for value, flag, env in (
            (self.client_id, "client-id", "AZURE_CLIENT_ID"),
            (self.client_secret, "client-secret", "AZURE_CLIENT_SECRET"),
            (self.tenant_id, "tenant-id", "AZURE_TENANT_ID"),
            (self.vault_name, "vault-name", "AZURE_KEY_VAULT"),
        ):
            if not value:
                raise SecretsError(f'Required flag "{flag}" not set and no {env} environment variable found')

    @property
    def vault_url(self) -> str:
        return f"https://{self.vault_name}.{self.dns_suffix}"

    async def _access_token(self, http: httpx.AsyncClient) -> str:
        response = await http.post(
            AZURE_LOGIN_URL.format(tenant=self.tenant_id),
            data={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "resource": AZURE_RESOURCE,
            },
        )
        if response.status_code >= 400:
            raise SecretsError(f"azure: authentication failed with status code {response.status_code}")
        token = response.json().get("access_token")
        if not token:
            raise SecretsError("azure: authentication returned no access token")
        return token

    async def fetch(self, secret_vars: list[tuple[str, str]]) -> dict[str, str]:
        """Read every declared secret; failed reads are logged and skipped."""
        secrets: dict[str, str] = {}
        async with httpx.AsyncClient(transport=self._transport) as http:
            try:
                token = await self._access_token(http)
            except (httpx.HTTPError, ValueError) as e:
                raise SecretsError(f"azure: authentication failed: {e}") from e

            for key, _ in secret_vars:
                name = secret_name(key)
                logger.info("Retrieving secret from vault [%s]. Key: [%s]", self.vault_url, name)
                try:
                    response = await http.get(
                        f"{self.vault_url}/secrets/{name}",
                        params={"api-version": AZURE_API_VERSION},
                        headers={"Authorization": f"Bearer {token}"},
                    )
                    response.raise_for_status()
                    value = response.json().get("value") or ""
                except (httpx.HTTPError, ValueError) as e:
                    logger.error("Failed to retrieve secret [%s] from vault [%s]: %s", name, self.vault_url, e)
                    continue
                if value:
                    secrets[property_key(key)] = value
        return secrets


def env_secrets(secret_vars: list[tuple[str, str]]) -> dict[str, str]:
    """Secrets whose declared value is the secret itself."""
    return {property_key(key): value for key, value in secret_vars}


# -----------------------------------------------------------------------------
# Output
# -----------------------------------------------------------------------------


def _write_lines(path: str | Path, lines: list[str]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")


def write_app_file(secrets: dict[str, str], path: str | Path, output: str = "env") -> None:
    """Write secrets for an application.

    Args:
        secrets: Property-keyed secrets.
        path: Destination file.
        output: "env" (``export KEY=value`` lines), "json" or "yaml".

    Raises:
        SecretsError: For any other output.
    """
    output_type = output.upper()
    if output_type == "ENV":
        logger.info("Writing file [%s] for sourcing as environment variables", path)
        _write_lines(
            path,
            [f"export {key.replace('.', '_').upper()}={value}" for key, value in secrets.items()],
        )
        return

    if output_type in ("JSON", "YAML"):
        if output_type == "JSON":
            content = json.dumps(secrets)
        else:
            content = yaml.safe_dump(secrets, default_flow_style=False, allow_unicode=True)
        logger.info("Writing file [%s]", path)
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        Path(path).write_text(content, encoding="utf-8")
        return

    logger.error("Unsupported output [%s]. Supported types are ENV, JSON and YAML", output)
    raise SecretsError("Unsupported output type. Supported types are ENV, JSON and YAML")


def write_connect_files(
    secrets: dict[str, str],
    secrets_file: str | Path = "secrets.props",
    connector_file: str | Path = "connector.props",
    worker_file: str | Path = "worker.props",
    from_file: str | None = None,
) -> None:
    """Write Kafka Connect property files.

    The connector file gets CONNECTOR_ variables plus a FileConfigProvider
    reference for each secret; the worker file gets CONNECT_ variables,
    the provider registration and the WORKER_CONNECT_SECRET_ values; the
    secrets file gets the other values.
    """
    connector_vars = retrieve_vars(from_file, CONNECTOR_PREFIX)
    worker_vars = retrieve_vars(from_file, CONNECT_PREFIX)
    worker_keys = worker_secret_keys(from_file)

    connector_vars += [f"{key}=${{file:{secrets_file}:{key}}}" for key in secrets]

    if connector_vars:
        logger.info("Writing connector props to [%s]", connector_file)
        _write_lines(connector_file, connector_vars)

    if worker_vars:
        logger.info("Writing connect worker props to [%s]", worker_file)
        worker_vars += [
            "# External secrets",
            "config.providers=file",
            f"config.providers.file.class={FILE_CONFIG_PROVIDER}",
        ]
        worker_vars += [f"{key}={value}" for key, value in secrets.items() if key in worker_keys]
        _write_lines(worker_file, worker_vars)

    secret_data = [f"{key}={value}" for key, value in secrets.items() if key not in worker_keys]
    if secret_data:
        logger.info("Writing connector secrets props to [%s]", secrets_file)
        _write_lines(secrets_file, secret_data)


__all__ = [
    "AzureKeyVaultSecrets",
    "SecretProvider",
    "VaultSecrets",
    "env_secrets",
    "load_secret_vars",
    "property_key",
    "retrieve_vars",
    "secret_name",
    "worker_secret_keys",
    "write_app_file",
    "write_connect_files",
]
