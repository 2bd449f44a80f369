# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Authentication backends for the Lenses box.

A backend is any object with an ``async authenticate(client)`` method.
On success it leaves the client with a token (``client.config.token``) and
the logged-in ``User``; on failure it raises AuthenticationError.

Components:
    User: Account returned by ``GET /api/auth``.
    BasicAuthentication: Username/password login (BASIC and LDAP setups).
    KerberosAuthentication: SPNEGO login through a krb5 configuration.
    KerberosWithPassword: Kerberos method using username, password, realm.
    KerberosWithKeytab: Kerberos method using a keytab file.
    KerberosFromCCache: Kerberos method using an existing credentials cache.

Example:
    ::

        auth = BasicAuthentication(username="admin", password="admin")
        config = ClientConfig(host="http://localhost:3030", authentication=auth)
        client = await open_connection(config)

Note:
    Kerberos support needs the optional ``kerberos`` extra (pyspnego).
"""

from __future__ import annotations

import base64
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from .errors import AuthenticationError, LensesError

if TYPE_CHECKING:
    from .client import LensesClient

logger = logging.getLogger(__name__)

TOKEN_HEADER = "X-Kafka-Lenses-Token"


@dataclass
class User:
    """Logged-in account as reported by the box."""

    token: str = ""
    name: str = ""
    schema_registry_delete: bool = False
    roles: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            token=data.get("token") or "",
            name=data.get("user") or "",
            schema_registry_delete=bool(data.get("schemaRegistryDelete", False)),
            roles=list(data.get("roles") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "user": self.name,
            "schemaRegistryDelete": self.schema_registry_delete,
            "roles": self.roles,
        }


async def _fetch_user(client: LensesClient, *options: Any) -> User:
    data = await client.read_json("GET", "/api/auth", "", None, *options)
    return User.from_dict(data or {})


@dataclass
class BasicAuthentication:
    """Username and password authentication.

    Use it when the box is set up with BASIC or LDAP authentication.
    """

    username: str = ""
    password: str = ""

    async def authenticate(self, client: LensesClient) -> None:
        """Log in, store the token and fetch the user.

        Raises:
            AuthenticationError: Missing fields, rejected login or empty token.
        """
        if not self.username or not self.password:
            raise AuthenticationError("basic failure: 'Username' and 'Password' are both required")

        try:
            response = await client.do(
                "POST",
                "api/login",
                "application/json",
                {"user": self.username, "password": self.password},
            )
        except LensesError as e:
            raise AuthenticationError(f"{e} or kerberos authentication is required") from e

        token = response.text
        if not token:
            raise AuthenticationError("basic failure: retrieved an empty token")

        def with_token(request: httpx.Request) -> None:
            request.headers[TOKEN_HEADER] = token

        try:
            user = await _fetch_user(client, with_token)
        except LensesError as e:
            raise AuthenticationError(f"basic failure: {e}") from e

        client.user = user
        client.config.token = user.token
        logger.debug("Basic login succeeded for user %s", user.name)


# -----------------------------------------------------------------------------
# Kerberos
# -----------------------------------------------------------------------------


@contextmanager
def _scoped_environ(values: dict[str, str]) -> Iterator[None]:
    """Set environment variables for the duration of the block, then restore them."""
    previous = {key: os.environ.get(key) for key in values}
    os.environ.update(values)
    try:
        yield
    finally:
        for key, value in previous.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value


@dataclass
class KerberosWithPassword:
    """Kerberos principal authenticated by password.

    Realm is optional; the default realm of the krb5 configuration applies
    when empty.
    """

    username: str = ""
    password: str = ""
    realm: str = ""

    def principal(self) -> str | None:
        if not self.username:
            return None
        return f"{self.username}@{self.realm}" if self.realm else self.username

    def secret(self) -> str | None:
        return self.password

    def environment(self) -> dict[str, str]:
        return {}


@dataclass
class KerberosWithKeytab:
    """Kerberos principal authenticated by a keytab file."""

    username: str = ""
    realm: str = ""
    keytab_file: str = ""

    def principal(self) -> str | None:
        if not self.username:
            return None
        return f"{self.username}@{self.realm}" if self.realm else self.username

    def secret(self) -> str | None:
        return None

    def environment(self) -> dict[str, str]:
        if not self.keytab_file or not Path(self.keytab_file).exists():
            raise AuthenticationError(f"kerberos failure: unable to read keytab file '{self.keytab_file}'")
        return {"KRB5_CLIENT_KTNAME": str(Path(self.keytab_file).resolve())}


@dataclass
class KerberosFromCCache:
    """Kerberos credentials loaded from a ccache file."""

    ccache_file: str = ""

    def principal(self) -> str | None:
        return None

    def secret(self) -> str | None:
        return None

    def environment(self) -> dict[str, str]:
        if not self.ccache_file:
            raise AuthenticationError("kerberos failure: ccache file is required")
        return {"KRB5CCNAME": f"FILE:{Path(self.ccache_file).resolve()}"}


KerberosMethod = KerberosWithPassword | KerberosWithKeytab | KerberosFromCCache


@dataclass
class KerberosAuthentication:
    """SPNEGO authentication for a Kerberos-protected box.

    Attributes:
        conf_file: Path to the krb5.conf file.
        method: One of KerberosWithPassword, KerberosWithKeytab, KerberosFromCCache.
    """

    conf_file: str = ""
    method: KerberosMethod | None = None

    @property
    def with_password(self) -> KerberosWithPassword | None:
        return self.method if isinstance(self.method, KerberosWithPassword) else None

    @property
    def with_keytab(self) -> KerberosWithKeytab | None:
        return self.method if isinstance(self.method, KerberosWithKeytab) else None

    @property
    def from_ccache(self) -> KerberosFromCCache | None:
        return self.method if isinstance(self.method, KerberosFromCCache) else None

    def _environment(self) -> dict[str, str]:
        """Variables the GSSAPI library reads: conf file plus method credentials."""
        return {"KRB5_CONFIG": str(Path(self.conf_file).resolve()), **self.method.environment()}

    def _negotiate_token(self, hostname: str) -> str:
        """Produce the base64 SPNEGO token for ``HTTP@hostname``."""
        try:
            import spnego
        except ImportError as e:
            raise AuthenticationError(
                "kerberos failure: Kerberos requires 'pyspnego'. "
                "Install with: pip install lenses-client[kerberos]"
            ) from e

        if self.method is None:
            raise AuthenticationError("kerberos failure: authentication method is nil")
        environment = self._environment()
        try:
            with _scoped_environ(environment):
                context = spnego.client(
                    self.method.principal(),
                    self.method.secret(),
                    hostname=hostname,
                    service="HTTP",
                    protocol="kerberos",
                )
                out_token = context.step()
        except Exception as e:
            raise AuthenticationError(f"kerberos failure: login: {e}") from e
        if not out_token:
            raise AuthenticationError("kerberos failure: login: empty SPNEGO token")
        return base64.b64encode(out_token).decode("ascii")

    def _set_spnego_header(self, request: httpx.Request) -> None:
        token = self._negotiate_token(request.url.host)
        request.headers["Authorization"] = f"Negotiate {token}"

    async def authenticate(self, client: LensesClient) -> None:
        """Install the SPNEGO request modifier and fetch the user.

        Raises:
            AuthenticationError: Missing method, missing conf file or failed negotiation.
        """
        if self.method is None:
            raise AuthenticationError("kerberos failure: authentication method is nil")

        conf_path = Path(self.conf_file).resolve()
        if not conf_path.is_file():
            raise AuthenticationError(f"kerberos failure: unable to find conf file '{conf_path}'")

        self._environment()

        client.request_modifier = self._set_spnego_header

        try:
            user = await _fetch_user(client)
        except LensesError as e:
            raise AuthenticationError(f"kerberos failure: unable to send SPNEGO header: {e}") from e

        client.user = user
        client.config.token = user.token
        logger.debug("Kerberos login succeeded for user %s", user.name)


Authentication = BasicAuthentication | KerberosAuthentication


__all__ = [
    "Authentication",
    "BasicAuthentication",
    "KerberosAuthentication",
    "KerberosFromCCache",
    "KerberosMethod",
    "KerberosWithKeytab",
    "KerberosWithPassword",
    "TOKEN_HEADER",
    "User",
]
