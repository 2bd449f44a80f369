# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Service commands of lenses-cli that are not generated from endpoints.

Commands:
    configure: Create or update a context, interactively or from flags
    context: List, switch, delete and view the configured contexts
    live sql: Subscribe to LSQL queries over the WebSocket API
    secrets: Write application or Kafka Connect files from secret stores
    version: Show version info

Example:
    ::

        lenses-cli configure
        lenses-cli --context dev --host http://dev:3030 --user admin --pass admin configure
        lenses-cli context use dev
        lenses-cli live sql "SELECT * FROM payments"
        lenses-cli secrets connect vault --vault-role lenses --vault-token XYZ
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from typing import TYPE_CHECKING, Any

import click
from rich.console import Console
from rich.table import Table

from .auth import (
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
)
from .config_io import client_config_to_dict
from .errors import LensesError
from .interface.cli_base import console
from .interface.cli_context import CliContext
from .live import LiveConfiguration, LiveConnection, LiveResponse, open_live_connection
from .secrets import (
    AzureKeyVaultSecrets,
    VaultSecrets,
    env_secrets,
    load_secret_vars,
    write_app_file,
    write_connect_files,
)

if TYPE_CHECKING:
    from .client_config import ClientConfig

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)

BASIC_AUTH = "basic"
KERBEROS_AUTH = "kerberos"
KERBEROS_METHODS = ("password", "keytab", "ccache")
SECRETS_META_KEY = "lenses.secrets"


def _cli_context(ctx: click.Context) -> CliContext:
    cli_ctx = ctx.find_object(CliContext)
    if cli_ctx is None:
        cli_ctx = CliContext()
        ctx.obj = cli_ctx
    return cli_ctx


def _masked(cfg: ClientConfig) -> dict[str, Any]:
    """Context as a dict with its passwords hidden."""
    cfg = copy.deepcopy(cfg)
    auth = cfg.authentication
    if isinstance(auth, BasicAuthentication) and auth.password:
        auth.password = "****"
    elif isinstance(auth, KerberosAuthentication) and isinstance(auth.method, KerberosWithPassword):
        if auth.method.password:
            auth.method.password = "****"
    return client_config_to_dict(cfg, "json")


# =============================================================================
# configure
# =============================================================================


def _prompt_authentication(cfg: ClientConfig) -> None:
    """Ask for basic or Kerberos credentials, defaulting to the current ones."""
    auth = cfg.authentication
    default_user = ""
    if isinstance(auth, BasicAuthentication):
        default_user = auth.username
    elif isinstance(auth, KerberosAuthentication) and isinstance(
        auth.method, (KerberosWithPassword, KerberosWithKeytab)
    ):
        default_user = auth.method.username

    kind = click.prompt(
        "How would you like to be authenticated?",
        type=click.Choice([BASIC_AUTH, KERBEROS_AUTH]),
        default=KERBEROS_AUTH if isinstance(auth, KerberosAuthentication) else BASIC_AUTH,
    )

    if kind == BASIC_AUTH:
        username = click.prompt("Username", default=default_user or None)
        password = click.prompt("Password", hide_input=True)
        cfg.authentication = BasicAuthentication(username=username, password=password)
        return

    current = auth if isinstance(auth, KerberosAuthentication) else KerberosAuthentication()
    conf_file = click.prompt("krb5.conf file location", default=current.conf_file or None)
    method_name = click.prompt(
        "Kerberos authentication method", type=click.Choice(KERBEROS_METHODS), default="password"
    )
    realm_default = getattr(current.method, "realm", "") or ""

    if method_name == "password":
        method: Any = KerberosWithPassword(
            username=click.prompt("Username", default=default_user or None),
            password=click.prompt("Password", hide_input=True),
            realm=click.prompt("Realm", default=realm_default, show_default=bool(realm_default)),
        )
    elif method_name == "keytab":
        method = KerberosWithKeytab(
            username=click.prompt("Username", default=default_user or None),
            realm=click.prompt("Realm", default=realm_default, show_default=bool(realm_default)),
            keytab_file=click.prompt("Keytab file location"),
        )
    else:
        method = KerberosFromCCache(ccache_file=click.prompt("ccache file location"))

    cfg.authentication = KerberosAuthentication(conf_file=conf_file, method=method)


def _configure(cli_ctx: CliContext, reset: bool) -> None:
    config = cli_ctx.load(strict=False)
    name = cli_ctx.context or config.current_context
    flags = cli_ctx.flags
    from_flags = bool(flags.host) and (cli_ctx.authentication is not None or bool(flags.token))

    if from_flags:
        config.set_current(name)
        cfg = config.get_current()
        if cli_ctx.authentication is not None:
            cfg.authentication = cli_ctx.authentication
        cfg.fill(flags)
    elif reset or not config.is_valid():
        config.set_current(name)
        cfg = config.get_current()
        cfg.debug = click.confirm("Enable debug mode?", default=cfg.debug)
        cfg.insecure = click.confirm("Enable insecure https connections?", default=cfg.insecure)
        cfg.host = click.prompt("Host", default=cfg.host or None)
        _prompt_authentication(cfg)
    else:
        raise click.ClickException("configuration already exists, try 'configure --reset' instead")

    cfg.format_host()
    path = cli_ctx.save_path
    if not from_flags:
        path = click.prompt("Save configuration to", default=str(path))

    saved = cli_ctx.save(path)
    console.print(f"Context [{config.current_context}] saved to {saved}", style="green", markup=False)


# =============================================================================
# live
# =============================================================================


async def _live_sql(cfg: ClientConfig, queries: list[str]) -> int:
    """Subscribe to queries and print record values until an error or disconnection.

    Returns:
        Exit code: 1 when the box reported ERROR or INVALIDREQUEST.
    """
    auth = cfg.basic_auth
    if auth is None:
        raise LensesError("live: basic authentication (user and password) is required")

    live_config = LiveConfiguration(
        host=cfg.host, user=auth.username, password=auth.password, debug=cfg.debug
    )
    stop = asyncio.Event()
    exit_code = 0

    def print_records(_: LiveConnection, response: LiveResponse) -> None:
        records = response.content if isinstance(response.content, list) else [response.content]
        for record in records:
            value = record.get("value") if isinstance(record, dict) else record
            console.print(
                value if isinstance(value, str) else json.dumps(value),
                markup=False,
                highlight=False,
                soft_wrap=True,
            )

    def report_error(_: LiveConnection, response: LiveResponse) -> None:
        nonlocal exit_code
        err_console.print(f"{response.type}: {response.content}", markup=False, highlight=False)
        exit_code = 1
        stop.set()

    async with await open_live_connection(live_config) as live:

        async def print_errors() -> None:
            while True:
                error = await live.errors.get()
                err_console.print(str(error), markup=False, highlight=False)

        live.on_error(report_error)
        live.on_invalid_request(report_error)
        live.on_kafka_message(print_records)

        reporter = asyncio.create_task(print_errors())
        try:
            await live.subscribe(queries)
            await live.wait(stop)
        finally:
            reporter.cancel()
            await asyncio.gather(reporter, return_exceptions=True)

    return exit_code


def _read_queries(queries: tuple[str, ...]) -> list[str]:
    """Queries from the arguments, or ';'-separated from a piped stdin."""
    result = [query for query in queries if query.strip()]
    if result:
        return result

    stdin = click.get_text_stream("stdin")
    if stdin.isatty():
        raise click.UsageError('sql query is missing, the correct form is: live sql "query here"')
    result = [query.strip() for query in stdin.read().split(";") if query.strip()]
    if not result:
        raise click.UsageError("query should not be empty")
    return result


# =============================================================================
# secrets
# =============================================================================


def _write_secrets(ctx: click.Context, secrets: dict[str, str]) -> None:
    target = ctx.meta[SECRETS_META_KEY]
    if target["kind"] == "connect":
        write_connect_files(
            secrets,
            secrets_file=target["secret_file"],
            connector_file=target["connector_file"],
            worker_file=target["worker_file"],
            from_file=target["from_file"],
        )
    else:
        write_app_file(secrets, target["secret_file"], target["output"])


def _add_provider_commands(group: click.Group) -> None:
    """Add the vault, azure and env provider commands to a secrets target group."""

    @group.command("vault")
    @click.option("--vault-addr", default="", help="Vault server address")
    @click.option("--vault-role", default="", help="Vault appRole name")
    @click.option("--vault-token", default="", help="Vault token")
    @click.pass_context
    def vault_cmd(ctx: click.Context, vault_addr: str, vault_role: str, vault_token: str) -> None:
        """Get secrets from HashiCorp Vault (AppRole)."""
        target = ctx.meta[SECRETS_META_KEY]
        try:
            provider = VaultSecrets(vault_addr, vault_token, vault_role)
            secrets = asyncio.run(provider.fetch(load_secret_vars(target["from_file"])))
            _write_secrets(ctx, secrets)
        except LensesError as e:
            raise click.ClickException(str(e)) from e

    @group.command("azure")
    @click.option("--vault-name", default="", help="Azure key vault name")
    @click.option("--client-id", default="", help="Azure client id")
    @click.option("--client-secret", default="", help="Azure client secret")
    @click.option("--tenant-id", default="", help="Azure tenant id")
    @click.option("--dns-suffix", default="", help="Azure key vault dns suffix")
    @click.pass_context
    def azure_cmd(
        ctx: click.Context,
        vault_name: str,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        dns_suffix: str,
    ) -> None:
        """Get secrets from Azure Key Vault."""
        target = ctx.meta[SECRETS_META_KEY]
        try:
            provider = AzureKeyVaultSecrets(vault_name, client_id, client_secret, tenant_id, dns_suffix)
            secrets = asyncio.run(provider.fetch(load_secret_vars(target["from_file"])))
            _write_secrets(ctx, secrets)
        except LensesError as e:
            raise click.ClickException(str(e)) from e

    @group.command("env")
    @click.pass_context
    def env_cmd(ctx: click.Context) -> None:
        """Get secrets from SECRET_ and WORKER_CONNECT_SECRET_ variables."""
        target = ctx.meta[SECRETS_META_KEY]
        try:
            _write_secrets(ctx, env_secrets(load_secret_vars(target["from_file"])))
        except LensesError as e:
            raise click.ClickException(str(e)) from e


# =============================================================================
# Registration
# =============================================================================


def register_service_commands(cli: click.Group, lenses: Any = None) -> None:
    """Add configure, context, live, secrets and version to the root group."""

    @cli.command("configure")
    @click.option("--reset", is_flag=True, help="Reset the current context configuration")
    @click.pass_context
    def configure_cmd(ctx: click.Context, reset: bool) -> None:
        """Create and save the CLI configuration and client credentials."""
        cli_ctx = _cli_context(ctx)
        try:
            _configure(cli_ctx, reset)
        except LensesError as e:
            raise click.ClickException(str(e)) from e

    @cli.group("context")
    def context_group() -> None:
        """List, switch, delete and view configuration contexts."""
        pass

    @context_group.command("list")
    @click.pass_context
    def context_list_cmd(ctx: click.Context) -> None:
        """List all the configured contexts."""
        config = _cli_context(ctx).load(strict=False)
        if not config.contexts:
            console.print("[dim]No contexts configured, use 'lenses-cli configure'[/dim]")
            return

        table = Table(title="Contexts")
        table.add_column("Name", style="cyan")
        table.add_column("Host")
        table.add_column("Current")
        table.add_column("Valid")
        for name, cfg in sorted(config.contexts.items()):
            table.add_row(
                name,
                cfg.host,
                "[green]*[/green]" if name == config.current_context else "",
                "yes" if cfg.is_valid() else "[red]no[/red]",
            )
        console.print(table)

    @context_group.command("use")
    @click.argument("name")
    @click.pass_context
    def context_use_cmd(ctx: click.Context, name: str) -> None:
        """Set the current context."""
        cli_ctx = _cli_context(ctx)
        config = cli_ctx.load(strict=False)
        if name not in config.contexts:
            raise click.ClickException(f"context [{name}] not found")
        config.set_current(name)
        cli_ctx.save()
        console.print(f"Current context set to [{name}]", markup=False)

    @context_group.command("delete")
    @click.argument("name")
    @click.pass_context
    def context_delete_cmd(ctx: click.Context, name: str) -> None:
        """Delete a context."""
        cli_ctx = _cli_context(ctx)
        config = cli_ctx.load(strict=False)
        was_current = config.current_context == name
        if not config.remove_context(name):
            raise click.ClickException(
                f"unable to delete context [{name}], at least one more valid context should be present"
            )
        cli_ctx.save()
        message = f"[{name}] context deleted"
        if was_current:
            message = f"{message}, current context set to [{config.current_context}]"
        console.print(message, markup=False)

    @context_group.command("view")
    @click.argument("name", required=False)
    @click.pass_context
    def context_view_cmd(ctx: click.Context, name: str | None) -> None:
        """Show a context (the current one by default), passwords hidden."""
        cli_ctx = _cli_context(ctx)
        config = cli_ctx.load(strict=False)
        name = name or config.current_context
        cfg = config.contexts.get(name)
        if cfg is None:
            raise click.ClickException(
                f"context [{name}] does not exist, please use the `configure` command first"
            )
        console.print_json(data={name: _masked(cfg)})

    @cli.group("live")
    def live_group() -> None:
        """Real-time queries over the WebSocket API."""
        pass

    @live_group.command("sql")
    @click.argument("queries", nargs=-1)
    @click.pass_context
    def live_sql_cmd(ctx: click.Context, queries: tuple[str, ...]) -> None:
        """Subscribe to one or more LSQL queries and print the record values.

        Queries can also be piped through stdin, separated by ';'.
        """
        cli_ctx = _cli_context(ctx)
        sqls = _read_queries(queries)
        try:
            cfg = cli_ctx.require_config().get_current()
            exit_code = asyncio.run(_live_sql(cfg, sqls))
        except LensesError as e:
            if cli_ctx.debug:
                raise
            raise click.ClickException(str(e)) from e
        ctx.exit(exit_code)

    @cli.group("secrets")
    def secrets_group() -> None:
        """Create secret files from HashiCorp Vault, Azure Key Vault or the environment."""
        pass

    @secrets_group.group("app")
    @click.option("--output", "output", type=click.Choice(["env", "json", "yaml"]), default="env",
                  show_default=True, help="env for a file to source, json or yaml")
    @click.option("--from-file", default=None, help="Load the SECRET_ variables from a file")
    @click.option("--secret-file", default="secrets", show_default=True, help="File to write the secrets to")
    @click.pass_context
    def secrets_app_group(ctx: click.Context, output: str, from_file: str | None, secret_file: str) -> None:
        """Write an application config file, or a file to source, from secrets."""
        ctx.meta[SECRETS_META_KEY] = {
            "kind": "app",
            "output": output,
            "from_file": from_file,
            "secret_file": secret_file,
        }

    @secrets_group.group("connect")
    @click.option("--from-file", default=None, help="Load the SECRET_/CONNECT_/CONNECTOR_ variables from a file")
    @click.option("--secret-file", default="secrets.props", show_default=True, help="Secrets properties file")
    @click.option("--connector-file", default="connector.props", show_default=True, help="Connector properties file")
    @click.option("--worker-file", default="worker.props", show_default=True, help="Connect worker properties file")
    @click.pass_context
    def secrets_connect_group(
        ctx: click.Context, from_file: str | None, secret_file: str, connector_file: str, worker_file: str
    ) -> None:
        """Write Kafka Connect connector, worker and secrets files."""
        ctx.meta[SECRETS_META_KEY] = {
            "kind": "connect",
            "from_file": from_file,
            "secret_file": secret_file,
            "connector_file": connector_file,
            "worker_file": worker_file,
        }

    _add_provider_commands(secrets_app_group)
    _add_provider_commands(secrets_connect_group)

    @cli.command("version")
    def version_cmd() -> None:
        """Show version information."""
        from . import __version__

        console.print(f"lenses-cli {__version__}")


__all__ = ["register_service_commands"]
