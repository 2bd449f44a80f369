# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for CLI context management."""

import pytest
from conftest import HOST, TOKEN

from lenses_client.auth import (
    BasicAuthentication,
    KerberosAuthentication,
    KerberosFromCCache,
    KerberosWithKeytab,
    KerberosWithPassword,
)
from lenses_client.client_config import ClientConfig, Config
from lenses_client.config_io import read_config_file, write_config_file
from lenses_client.encryption import is_encrypted
from lenses_client.errors import ConfigError
from lenses_client.interface import cli_context
from lenses_client.interface.cli_context import CliContext, auth_from_flags


@pytest.fixture
def config_path(tmp_path):
    """Configuration file with master (basic auth) and dev (token) contexts."""
    path = tmp_path / "lenses.yml"
    config = Config(
        current_context="master",
        contexts={
            "master": ClientConfig(
                host=HOST, authentication=BasicAuthentication(username="admin", password="secret")
            ),
            "dev": ClientConfig(host="http://dev:3030", token=TOKEN),
        },
    )
    write_config_file(config, path)
    return path


class TestAuthFromFlags:
    """Tests for auth_from_flags."""

    def test_basic(self):
        assert auth_from_flags("admin", "secret") == BasicAuthentication(username="admin", password="secret")

    def test_user_without_password(self):
        """A user alone does not describe an authentication."""
        assert auth_from_flags("admin") is None

    def test_kerberos_password(self):
        auth = auth_from_flags("bob", "pw", kerberos_conf="/etc/krb5.conf", kerberos_realm="EXAMPLE.COM")
        assert isinstance(auth, KerberosAuthentication)
        assert auth.conf_file == "/etc/krb5.conf"
        assert auth.method == KerberosWithPassword(username="bob", password="pw", realm="EXAMPLE.COM")

    def test_kerberos_keytab_wins_over_password(self):
        auth = auth_from_flags("bob", "pw", kerberos_conf="/etc/krb5.conf", kerberos_keytab="/bob.keytab")
        assert isinstance(auth.method, KerberosWithKeytab)
        assert auth.method.keytab_file == "/bob.keytab"

    def test_kerberos_ccache(self):
        auth = auth_from_flags(kerberos_conf="/etc/krb5.conf", kerberos_ccache="/tmp/krb5cc")
        assert auth.method == KerberosFromCCache(ccache_file="/tmp/krb5cc")

    def test_kerberos_conf_alone(self):
        assert auth_from_flags(kerberos_conf="/etc/krb5.conf") is None


class TestCliContextInit:
    """Tests for the flag state of a CliContext."""

    def test_flags(self):
        ctx = CliContext(host="lenses:3030", token=TOKEN, timeout="30s", insecure=True, output="json")
        assert ctx.flags.host == "lenses:3030"
        assert ctx.flags.token == TOKEN
        assert ctx.flags.insecure is True
        assert ctx.output == "json"
        assert ctx.authentication is None

    def test_save_path_default(self):
        assert CliContext().save_path == cli_context.DEFAULT_CONFIG_FILE

    def test_save_path_explicit(self, tmp_path):
        assert CliContext(config_file=tmp_path / "x.yml").save_path == tmp_path / "x.yml"


class TestRead:
    """Tests for reading the configuration file."""

    def test_missing_explicit_file(self, tmp_path):
        """A --config file that does not exist yet is not an error."""
        ctx = CliContext(config_file=tmp_path / "new.yml")
        assert ctx.read() is False
        assert ctx.found is False

    def test_explicit_file(self, config_path):
        ctx = CliContext(config_file=config_path)
        assert ctx.read() is True
        assert ctx.config_path == config_path
        assert set(ctx.config.contexts) == {"master", "dev"}

    def test_unreadable_explicit_file(self, tmp_path):
        path = tmp_path / "broken.yml"
        path.write_text("CurrentContext: [unterminated\n")
        with pytest.raises(ConfigError):
            CliContext(config_file=path).read()

    def test_default_location(self, tmp_path):
        home = tmp_path / "home" / ".lenses"
        write_config_file(Config(current_context="master", contexts={"master": ClientConfig(host=HOST)}),
                          home / "lenses-cli.yml")
        ctx = CliContext()
        assert ctx.read() is True
        assert ctx.config_path == home / "lenses-cli.yml"

    def test_passwords_decrypted(self, config_path):
        """Encrypted passwords on disk are plain in memory."""
        ctx = CliContext(config_file=config_path)
        ctx.load()
        ctx.save()
        assert is_encrypted(read_config_file(config_path).contexts["master"].authentication.password)

        reread = CliContext(config_file=config_path)
        reread.read()
        assert reread.config.contexts["master"].authentication.password == "secret"


class TestResolveContext:
    """Tests for resolve_context."""

    def test_flag_wins(self, config_path, monkeypatch):
        monkeypatch.setenv("LENSES_CLI_CONTEXT", "other")
        ctx = CliContext(config_file=config_path, context="dev")
        ctx.read()
        assert ctx.resolve_context() == ("dev", True)

    def test_flag_equal_to_current(self, config_path):
        ctx = CliContext(config_file=config_path, context="master")
        ctx.read()
        assert ctx.resolve_context() == ("master", False)

    def test_env_variable(self, config_path, monkeypatch):
        monkeypatch.setenv("LENSES_CLI_CONTEXT", "dev")
        ctx = CliContext(config_file=config_path)
        ctx.read()
        assert ctx.resolve_context() == ("dev", False)

    def test_file_current(self, config_path):
        ctx = CliContext(config_file=config_path)
        ctx.read()
        assert ctx.resolve_context() == ("master", False)

    def test_default(self):
        assert CliContext().resolve_context() == ("master", False)


class TestLoad:
    """Tests for load and require_config."""

    def test_flags_without_file(self):
        config = CliContext(host=HOST, token=TOKEN).require_config()
        assert config.current_context == "master"
        assert config.get_current().token == TOKEN

    def test_environment_without_file(self, monkeypatch):
        monkeypatch.setenv("LENSES_HOST", HOST)
        monkeypatch.setenv("LENSES_USER", "admin")
        monkeypatch.setenv("LENSES_PASSWORD", "admin")
        cfg = CliContext().require_config().get_current()
        assert cfg.host == HOST
        assert cfg.basic_auth.username == "admin"

    def test_flags_override_environment(self, monkeypatch):
        monkeypatch.setenv("LENSES_HOST", "http://env:3030")
        cfg = CliContext(host="http://flag:3030", token=TOKEN).require_config().get_current()
        assert cfg.host == "http://flag:3030"

    def test_auth_flags_replace_file_authentication(self, config_path):
        ctx = CliContext(config_file=config_path, user="ops", password="ops")
        cfg = ctx.load().get_current()
        assert cfg.authentication == BasicAuthentication(username="ops", password="ops")

    def test_environment_fills_file_context(self, config_path, monkeypatch):
        monkeypatch.setenv("LENSES_TIMEOUT", "30s")
        cfg = CliContext(config_file=config_path).load().get_current()
        assert cfg.timeout == "30s"
        assert cfg.host == HOST

    def test_context_flag_saves_current(self, config_path):
        config = CliContext(config_file=config_path, context="dev").load()
        assert config.current_context == "dev"
        assert read_config_file(config_path).current_context == "dev"

    def test_unknown_context(self, config_path):
        with pytest.raises(ConfigError, match=r"unknown context \[prod\]"):
            CliContext(config_file=config_path, context="prod").load()
        assert read_config_file(config_path).current_context == "master"

    def test_not_strict_unknown_context(self, config_path):
        config = CliContext(config_file=config_path, context="prod").load(strict=False)
        assert config.current_context == "prod"

    def test_require_config_without_credentials(self):
        with pytest.raises(ConfigError, match="cannot retrieve credentials"):
            CliContext(host=HOST).require_config()

    def test_load_cached(self, config_path):
        ctx = CliContext(config_file=config_path)
        assert ctx.load() is ctx.load()


class TestSave:
    """Tests for save."""

    def test_save_encrypts_on_disk_only(self, tmp_path):
        path = tmp_path / "saved.yml"
        ctx = CliContext(config_file=path, host="lenses:3030", user="admin", password="secret")
        ctx.load()
        written = ctx.save()

        assert written == path
        assert ctx.found is True
        assert ctx.config.get_current().authentication.password == "secret"
        on_disk = read_config_file(path).get_current()
        assert on_disk.host == "http://lenses:3030"
        assert is_encrypted(on_disk.authentication.password)

    def test_save_to_other_path(self, config_path, tmp_path):
        ctx = CliContext(config_file=config_path)
        ctx.load()
        other = tmp_path / "copy.yml"
        assert ctx.save(other) == other
        assert set(read_config_file(other).contexts) == {"master", "dev"}
