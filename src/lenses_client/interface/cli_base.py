# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Click command generation from endpoint classes via introspection.

This module generates CLI commands automatically from endpoint classes
by introspecting method signatures and creating Click commands.

Components:
    register_endpoint: Register endpoint methods as Click commands.
    CliManager: Root group with the global connection flags.

Example:
    Register endpoint commands::

        import click
        from lenses_client.interface import register_endpoint
        from lenses_client.entities.topics import TopicsEndpoint

        @click.group()
        def cli():
            pass

        endpoint = TopicsEndpoint(lenses)
        register_endpoint(cli, endpoint)
        # Creates: cli topics list, cli topics get, cli topics create ...

    Generated commands::

        lenses-cli topics list
        lenses-cli topics get payments
        lenses-cli topics create payments --partitions 3 --configs '{"cleanup.policy": "compact"}'
        lenses-cli --output json schemas latest payments-value

Note:
    - Required params become positional arguments
    - Optional params become --options
    - Boolean params become --flag/--no-flag toggles
    - dict and list params are read as JSON strings
    - Async-generator methods stream their items as they arrive
    - Method underscores become dashes (delete_records → delete-records)
"""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import inspect
import json
import logging
import types
from collections.abc import Callable
from typing import Any, Literal, Union, get_args, get_origin, get_type_hints

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..errors import LensesError
from .cli_context import CliContext

console = Console()

OUTPUT_FORMATS = ("table", "json", "yaml")


def setup_debug_logging() -> None:
    """Send DEBUG logs to stderr through rich, with rich tracebacks."""
    handler = RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False)
    logging.basicConfig(level=logging.DEBUG, format="%(message)s", handlers=[handler], force=True)
    logging.getLogger("lenses_client").setLevel(logging.DEBUG)


def _to_plain(value: Any) -> Any:
    """Convert dataclass results (records, users) to plain JSON values."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    if isinstance(value, tuple):
        return [_to_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_plain(item) for key, item in value.items()}
    return value


def _print_result(result: Any, output: str = "table") -> None:
    """Print command result with rich formatting."""
    result = _to_plain(result)

    if output == "json":
        console.print_json(data=result, default=str)
        return
    if output == "yaml":
        text = yaml.safe_dump(result, default_flow_style=False, allow_unicode=True, sort_keys=False)
        console.print(text.rstrip("\n"), markup=False, highlight=False, soft_wrap=True)
        return

    if isinstance(result, list) and result and isinstance(result[0], dict):
        # List of dicts → table
        table = Table(show_header=True, header_style="bold cyan")
        keys = list(result[0].keys())
        for key in keys:
            table.add_column(key)
        for row in result:
            table.add_row(*[str(row.get(k, "")) for k in keys])
        console.print(table)
    elif isinstance(result, dict):
        # Single dict → key: value pairs
        for key, value in result.items():
            console.print(f"[bold]{key}:[/bold] {value}")
    elif isinstance(result, list):
        # Simple list
        for item in result:
            console.print(f"  • {item}")
    else:
        console.print(result)


def _print_item(item: Any, output: str = "table") -> None:
    """Print one item of a streaming command on its own line."""
    item = _to_plain(item)
    if output == "yaml":
        text = yaml.safe_dump(item, default_flow_style=False, allow_unicode=True, sort_keys=False)
        console.print(f"---\n{text.rstrip()}", markup=False, highlight=False, soft_wrap=True)
    elif isinstance(item, str) and output != "json":
        console.print(item, markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(json.dumps(item, default=str), markup=False, highlight=False, soft_wrap=True)


def _annotation_to_click_type(annotation: Any) -> type | click.Choice:
    """Convert Python type annotation to Click type.

    Args:
        annotation: Python type annotation.

    Returns:
        Click-compatible type (int, str, bool, float, or click.Choice).
    """
    if annotation is inspect.Parameter.empty or annotation is Any:
        return str

    if annotation is type(None):
        return str

    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        non_none = [a for a in get_args(annotation) if a is not type(None)]
        if non_none:
            annotation = non_none[0]

    if get_origin(annotation) is Literal:
        choices = get_args(annotation)
        return click.Choice(choices)

    if annotation is int:
        return int
    if annotation is bool:
        return bool
    if annotation is float:
        return float

    return str


def _is_complex_type(annotation: Any) -> bool:
    """True for dict/list annotations, including Optional ones."""
    if annotation in (list, dict):
        return True
    origin = get_origin(annotation)
    if origin in (list, dict):
        return True
    if origin is Union or origin is types.UnionType:
        return any(_is_complex_type(a) for a in get_args(annotation) if a is not type(None))
    return False


def _resolve_hints(method: Callable) -> dict[str, Any]:
    try:
        return get_type_hints(method)
    except (NameError, TypeError):
        return {}


async def _run_command(endpoint: Any, method_name: str, params: dict[str, Any], output: str) -> Any:
    """Open the parent's session, invoke the method and print streamed items."""
    parent = getattr(endpoint, "parent", None)
    session = getattr(parent, "session", None)
    scope = session() if session is not None else contextlib.nullcontext()

    async with scope:
        result = await endpoint.invoke(method_name, params)
        if inspect.isasyncgenfunction(getattr(endpoint, method_name)):
            async for item in result:
                _print_item(item, output)
            return None
        return result


def _create_click_command(
    endpoint: Any, method_name: str, run_async: Callable
) -> click.Command:
    """Create a Click command from an endpoint method.

    Args:
        endpoint: Endpoint instance with the method.
        method_name: Name of the method to wrap.
        run_async: Function to run async code (e.g., asyncio.run).

    Returns:
        Click command ready to be added to a group.

    Note:
        Uses endpoint.invoke() for unified Pydantic validation.
        Errors of the library become click.ClickException unless --debug.
    """
    method = getattr(endpoint, method_name)
    sig = inspect.signature(method)
    hints = _resolve_hints(method)
    doc = method.__doc__ or f"{method_name} operation"

    options = []
    arguments = []
    json_params = set()

    for param_name, param in sig.parameters.items():
        if param_name == "self":
            continue

        annotation = hints.get(param_name, param.annotation)
        click_type = _annotation_to_click_type(annotation)
        has_default = param.default is not inspect.Parameter.empty
        is_bool = click_type is bool

        if _is_complex_type(annotation):
            json_params.add(param_name)
            click_type = str

        cli_name = param_name.replace("_", "-")

        if is_bool:
            options.append(
                click.option(
                    f"--{cli_name}/--no-{cli_name}",
                    default=param.default if has_default else False,
                    help=f"Enable/disable {param_name}",
                )
            )
        elif has_default:
            default = param.default
            if param_name in json_params and default is not None:
                default = json.dumps(default)
            options.append(
                click.option(
                    f"--{cli_name}",
                    param_name,
                    type=click_type,
                    default=default,
                    show_default=default is not None,
                    help=f"{param_name} parameter" + (" (JSON)" if param_name in json_params else ""),
                )
            )
        else:
            arguments.append(click.argument(param_name, type=click_type))

    def cmd_func(**kwargs: Any) -> None:
        ctx = click.get_current_context()
        cli_ctx = ctx.find_object(CliContext)
        output = cli_ctx.output if cli_ctx is not None else "table"
        debug = cli_ctx.debug if cli_ctx is not None else False

        py_kwargs = {k.replace("-", "_"): v for k, v in kwargs.items()}
        for name in json_params:
            value = py_kwargs.get(name)
            if isinstance(value, str):
                try:
                    py_kwargs[name] = json.loads(value)
                except json.JSONDecodeError as e:
                    raise click.BadParameter(f"invalid JSON: {e}", param_hint=f"'{name}'") from e

        try:
            parent = getattr(endpoint, "parent", None)
            if cli_ctx is not None and parent is not None:
                parent.config = cli_ctx.require_config()
                if parent.config.get_current().debug and not debug:
                    setup_debug_logging()
            result = run_async(_run_command(endpoint, method_name, py_kwargs, output))
        except (LensesError, ValidationError, ValueError) as e:
            if debug:
                raise
            raise click.ClickException(str(e)) from e

        if result is not None:
            _print_result(result, output)

    cmd: click.Command = click.command(help=doc)(cmd_func)
    for opt in reversed(options):
        cmd = opt(cmd)
    for arg in reversed(arguments):
        cmd = arg(cmd)

    return cmd


def register_endpoint(
    group: click.Group, endpoint: Any, run_async: Callable | None = None
) -> click.Group:
    """Register all methods of an endpoint as Click commands.

    Creates a subgroup named after the endpoint and adds commands
    for each public coroutine or async-generator method.

    Args:
        group: Click group to add commands to.
        endpoint: Endpoint instance with async methods.
        run_async: Function to run async code. Defaults to asyncio.run.

    Returns:
        The created Click subgroup with all endpoint commands.

    Example:
        ::

            @click.group()
            def cli():
                pass

            endpoint = ConnectorsEndpoint(lenses)
            register_endpoint(cli, endpoint)

            # Now available:
            # cli connectors list <cluster>
            # cli connectors create <cluster> <name> --config '{...}'
            # cli connectors delete <cluster> <name>
    """
    if run_async is None:
        run_async = asyncio.run

    name = getattr(endpoint, "name", endpoint.__class__.__name__.lower())

    @group.group(name=name)
    def endpoint_group() -> None:
        """Endpoint commands."""
        pass

    endpoint_group.help = (endpoint.__class__.__doc__ or f"Manage {name}.").strip().splitlines()[0]

    if hasattr(endpoint, "get_methods"):
        method_names = [method_name for method_name, _ in endpoint.get_methods()]
    else:
        method_names = []
        for method_name in dir(endpoint):
            if method_name.startswith("_") or method_name == "invoke":
                continue
            method = getattr(endpoint, method_name)
            if inspect.iscoroutinefunction(method) or inspect.isasyncgenfunction(method):
                method_names.append(method_name)

    for method_name in method_names:
        cmd = _create_click_command(endpoint, method_name, run_async)
        cmd.name = method_name.replace("_", "-")
        endpoint_group.add_command(cmd)

    return endpoint_group


class CliManager:
    """Manager for Click CLI application. Creates CLI lazily on first access."""

    def __init__(self, parent: Any):
        self.lenses = parent
        self._cli: click.Group | None = None

    @property
    def cli(self) -> click.Group:
        """Lazy-create Click CLI group."""
        if self._cli is None:
            self._cli = self._create_cli()
        return self._cli

    def _create_cli(self) -> click.Group:
        """Build Click CLI: global flags + endpoint commands + service commands."""
        from .. import __version__
        from ..cli import register_service_commands

        lenses = self.lenses

        @click.group()
        @click.version_option(__version__, prog_name="lenses-cli")
        @click.option("--config", "config_file", type=click.Path(dir_okay=False), default=None,
                      help="Load or save the configuration from or to a file (yaml or json)")
        @click.option("--context", default=None, help="Use a specific context of the configuration")
        @click.option("--host", default="", help="Lenses host")
        @click.option("--user", default="", help="User")
        @click.option("--pass", "password", default="", help="Password")
        @click.option("--token", default="", help="Lenses auth token")
        @click.option("--timeout", default="", help="Timeout for the connection establishment, e.g. 30s")
        @click.option("--insecure", is_flag=True, help="Skip TLS certificate verification")
        @click.option("--debug", is_flag=True, help="Print debug information")
        @click.option("--kerberos-conf", default="", help="krb5.conf")
        @click.option("--kerberos-realm", default="", help="Kerberos realm")
        @click.option("--kerberos-keytab", default="", help="Kerberos keytab file")
        @click.option("--kerberos-ccache", default="", help="Kerberos ccache file")
        @click.option("--output", "-o", type=click.Choice(OUTPUT_FORMATS), default="table",
                      show_default=True, help="Output format")
        @click.pass_context
        def cli(ctx: click.Context, config_file: str | None, context: str | None, **flags: Any) -> None:
            """Command line client for the Lenses REST, WebSocket and SSE API."""
            if flags["debug"]:
                setup_debug_logging()
            ctx.obj = CliContext(config_file=config_file, context=context, **flags)
            lenses.cli_context = ctx.obj

        # Register endpoint-based commands
        for endpoint in lenses.endpoints.values():
            register_endpoint(cli, endpoint)

        register_service_commands(cli, lenses)
        return cli


__all__ = ["CliManager", "console", "register_endpoint", "setup_debug_logging"]
