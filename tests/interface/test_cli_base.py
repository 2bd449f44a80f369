# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for CLI command generation from endpoints."""

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Literal
from unittest.mock import MagicMock, patch

import click
from click.testing import CliRunner

from lenses_client.errors import ResourceError
from lenses_client.interface.cli_base import (
    CliManager,
    _annotation_to_click_type,
    _create_click_command,
    _print_item,
    _print_result,
    register_endpoint,
)


class FakeEndpoint:
    """Endpoint stand-in whose invoke calls the method directly."""

    name = "test"

    async def invoke(self, method_name, params):
        result = getattr(self, method_name)(**params)
        if inspect.isawaitable(result):
            return await result
        return result


def _group_with(endpoint) -> click.Group:
    @click.group()
    def cli():
        pass

    register_endpoint(cli, endpoint)
    return cli


class TestAnnotationToClickType:
    """Tests for _annotation_to_click_type function."""

    def test_empty_annotation_returns_str(self):
        """Empty annotation defaults to str."""
        assert _annotation_to_click_type(inspect.Parameter.empty) is str

    def test_any_annotation_returns_str(self):
        assert _annotation_to_click_type(Any) is str

    def test_scalars(self):
        """int, bool and float map to themselves."""
        assert _annotation_to_click_type(int) is int
        assert _annotation_to_click_type(bool) is bool
        assert _annotation_to_click_type(float) is float
        assert _annotation_to_click_type(str) is str

    def test_optional_int_returns_int(self):
        assert _annotation_to_click_type(int | None) is int

    def test_literal_returns_choice(self):
        """Literal returns click.Choice."""
        result = _annotation_to_click_type(Literal["users", "clients"])
        assert isinstance(result, click.Choice)
        assert list(result.choices) == ["users", "clients"]

    def test_none_type_returns_str(self):
        assert _annotation_to_click_type(type(None)) is str


class TestPrintResult:
    """Tests for _print_result function."""

    def test_print_dict(self):
        """Print dict as key-value pairs."""
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result({"ok": True, "name": "payments"})
            assert mock_console.print.call_count == 2

    def test_print_list_of_dicts(self):
        """Print list of dicts as a single table."""
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result([{"topicName": "payments", "partitions": 3}])
            mock_console.print.assert_called_once()

    def test_print_simple_list(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result(["payments", "orders"])
            assert mock_console.print.call_count == 2

    def test_print_string(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result("hello")
            mock_console.print.assert_called_once_with("hello")

    def test_print_empty_list(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result([])
            mock_console.print.assert_not_called()

    def test_json_output(self):
        """json output goes through print_json."""
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result({"name": "payments"}, "json")
            mock_console.print_json.assert_called_once_with(data={"name": "payments"}, default=str)

    def test_yaml_output(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result({"name": "payments"}, "yaml")
            assert mock_console.print.call_args.args[0] == "name: payments"

    def test_dataclasses_become_dicts(self):
        """Dataclass results are converted before printing."""

        @dataclass
        class Record:
            key: str
            value: int

        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_result([Record("k", 1)], "json")
            mock_console.print_json.assert_called_once_with(data=[{"key": "k", "value": 1}], default=str)


class TestPrintItem:
    """Tests for _print_item function."""

    def test_string_item(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_item("INFO 2025-01-01 started")
            assert mock_console.print.call_args.args[0] == "INFO 2025-01-01 started"

    def test_dict_item_is_one_json_line(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_item({"alertId": 1000})
            assert mock_console.print.call_args.args[0] == '{"alertId": 1000}'

    def test_yaml_item_is_a_document(self):
        with patch("lenses_client.interface.cli_base.console") as mock_console:
            _print_item({"alertId": 1000}, "yaml")
            assert mock_console.print.call_args.args[0] == "---\nalertId: 1000"


class TestCreateClickCommand:
    """Tests for _create_click_command function."""

    def test_creates_command_for_simple_method(self):
        """Create command for method with no parameters."""

        class TestEndpoint(FakeEndpoint):
            async def simple(self):
                """Simple method."""
                return {"ok": True}

        cmd = _create_click_command(TestEndpoint(), "simple", asyncio.run)

        assert isinstance(cmd, click.Command)
        assert cmd.help == "Simple method."

    def test_required_params_become_arguments(self):
        class TestEndpoint(FakeEndpoint):
            async def get(self, cluster: str, name: str):
                """Get a connector."""
                return {}

        cmd = _create_click_command(TestEndpoint(), "get", asyncio.run)

        assert [type(p) for p in cmd.params] == [click.Argument, click.Argument]

    def test_optional_params_become_options(self):
        class TestEndpoint(FakeEndpoint):
            async def list(self, partitions: int = 1):
                """List."""
                return []

        cmd = _create_click_command(TestEndpoint(), "list", asyncio.run)

        assert isinstance(cmd.params[0], click.Option)
        assert cmd.params[0].default == 1
        assert cmd.params[0].opts == ["--partitions"]

    def test_bool_becomes_flag_pair(self):
        """bool params become --flag/--no-flag."""

        class TestEndpoint(FakeEndpoint):
            async def enable(self, enable: bool = True):
                """Enable."""
                return {}

        cmd = _create_click_command(TestEndpoint(), "enable", asyncio.run)

        option = cmd.params[0]
        assert option.opts == ["--enable"]
        assert option.secondary_opts == ["--no-enable"]
        assert option.default is True

    def test_json_params_default_serialized(self):
        class TestEndpoint(FakeEndpoint):
            async def create(self, configs: dict | None = None, tags: list[str] = ["a"]):  # noqa: B006
                """Create."""
                return {}

        cmd = _create_click_command(TestEndpoint(), "create", asyncio.run)

        defaults = {p.name: p.default for p in cmd.params}
        assert defaults == {"configs": None, "tags": '["a"]'}


class TestRegisterEndpoint:
    """Tests for register_endpoint function."""

    def test_registers_endpoint_as_group(self):
        class TestEndpoint(FakeEndpoint):
            name = "myendpoint"

            async def list(self):
                """List items."""
                return []

        assert "myendpoint" in _group_with(TestEndpoint()).commands

    def test_registers_async_methods_only(self):
        """Coroutines and async generators are commands, sync methods are not."""

        class TestEndpoint(FakeEndpoint):
            name = "items"

            async def list(self):
                return []

            async def live(self):
                yield 1

            def sync_method(self):
                pass

        group = _group_with(TestEndpoint()).commands["items"]
        assert set(group.commands) == {"list", "live"}

    def test_group_help_from_class_doc(self):
        class TestEndpoint(FakeEndpoint):
            """Kafka topics.

            More details.
            """

            async def list(self):
                return []

        assert _group_with(TestEndpoint()).commands["test"].help == "Kafka topics."

    def test_uses_class_name_if_no_name_attr(self):
        class MyCustomEndpoint:
            async def test(self):
                return {}

        assert "mycustomendpoint" in _group_with(MyCustomEndpoint()).commands

    def test_replaces_underscores_with_dashes(self):
        class TestEndpoint(FakeEndpoint):
            async def delete_records(self):
                return {}

        group = _group_with(TestEndpoint()).commands["test"]
        assert "delete-records" in group.commands


class TestCliIntegration:
    """Integration tests using CliRunner."""

    def test_command_with_options(self):
        class TestEndpoint(FakeEndpoint):
            async def hello(self, name: str = "World"):
                """Say hello."""
                return {"message": f"Hello, {name}!"}

        result = CliRunner().invoke(_group_with(TestEndpoint()), ["test", "hello", "--name", "Lenses"])

        assert result.exit_code == 0
        assert "Hello, Lenses!" in result.output

    def test_json_parameter_parsed(self):
        received = {}

        class TestEndpoint(FakeEndpoint):
            async def create(self, name: str, configs: dict | None = None):
                received.update(configs or {})
                return {"ok": True}

        result = CliRunner().invoke(
            _group_with(TestEndpoint()),
            ["test", "create", "payments", "--configs", '{"cleanup.policy": "compact"}'],
        )

        assert result.exit_code == 0
        assert received == {"cleanup.policy": "compact"}

    def test_invalid_json_parameter(self):
        class TestEndpoint(FakeEndpoint):
            async def create(self, configs: dict | None = None):
                return {}

        result = CliRunner().invoke(_group_with(TestEndpoint()), ["test", "create", "--configs", "{oops"])

        assert result.exit_code == 2
        assert "invalid JSON" in result.output

    def test_streaming_command_prints_items(self):
        class TestEndpoint(FakeEndpoint):
            async def live(self):
                yield {"n": 1}
                yield {"n": 2}

        result = CliRunner().invoke(_group_with(TestEndpoint()), ["test", "live"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ['{"n": 1}', '{"n": 2}']

    def test_library_error_becomes_click_error(self):
        class TestEndpoint(FakeEndpoint):
            async def get(self, name: str):
                raise ResourceError(404, "GET", "http://lenses/api/topics/x", "Topic not found.")

        result = CliRunner().invoke(_group_with(TestEndpoint()), ["test", "get", "x"])

        assert result.exit_code == 1
        assert "Error: topic not found" in result.output


class TestCliManager:
    """Tests for CliManager class."""

    def _parent(self):
        parent = MagicMock()
        parent.endpoints = {}
        return parent

    def test_init_stores_parent(self):
        parent = self._parent()
        manager = CliManager(parent)
        assert manager.lenses is parent
        assert manager._cli is None

    def test_cli_property_creates_lazily(self):
        manager = CliManager(self._parent())
        cli = manager.cli
        assert manager._cli is cli
        assert manager.cli is cli

    def test_service_commands(self):
        cli = CliManager(self._parent()).cli
        assert {"configure", "context", "live", "secrets", "version"} <= set(cli.commands)

    def test_root_sets_cli_context(self):
        """The root group stores a CliContext built from the global flags."""
        parent = self._parent()
        cli = CliManager(parent).cli

        result = CliRunner().invoke(cli, ["--host", "lenses:3030", "-o", "yaml", "version"])

        assert result.exit_code == 0
        assert parent.cli_context.flags.host == "lenses:3030"
        assert parent.cli_context.output == "yaml"
