"""Tests for the openclaw-container CLI commands."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from openclaw_container.commands.configure import check_required_secrets
from openclaw_container.commands.configure import run_configure
from openclaw_container.commands.env import inventory
from openclaw_container.console import console
from openclaw_container.errors import ConfigParseError
from openclaw_container.errors import MissingRequiredSecretError
from openclaw_container.errors import ProviderConfigError
from openclaw_container.main import cli
from openclaw_container.paths import ContainerPaths

FAKE_HASH = "$2a$14$abcdefghijklmnopqrstuv"


@pytest.fixture
def paths(tmp_path):
    return ContainerPaths(
        state_dir=tmp_path / "state",
        workspace_dir=tmp_path / "workspace",
        config_file=tmp_path / "state" / "openclaw.json",
        custom_config=tmp_path / "config" / "openclaw.json",
        caddy_dir=tmp_path / "caddy.d",
    )


@pytest.fixture
def cli_env(tmp_path, base_env):
    return dict(
        base_env,
        OPENCLAW_STATE_DIR=str(tmp_path / "state"),
        OPENCLAW_WORKSPACE_DIR=str(tmp_path / "workspace"),
        OPENCLAW_CUSTOM_CONFIG=str(tmp_path / "config" / "openclaw.json"),
        OPENCLAW_CADDY_DIR=str(tmp_path / "caddy.d"),
        COLUMNS="250",
    )


@pytest.fixture(autouse=True)
def fake_hasher():
    with patch("openclaw_container.commands.configure.caddy_hash_password", return_value=FAKE_HASH) as hasher:
        yield hasher


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep table cells and paths on one line."""
    monkeypatch.setattr(console, "width", 250)


class TestRunConfigure:
    def test_writes_config_and_routes(self, paths, base_env):
        outcome = run_configure(paths, base_env)

        written = json.loads(paths.config_file.read_text())
        assert written == outcome.config
        assert written["gateway"]["auth"]["token"] == base_env["OPENCLAW_GATEWAY_TOKEN"]
        assert "basicauth" in paths.routes_file.read_text()

    def test_missing_secret_checked_before_loading(self, paths, base_env):
        paths.custom_config.parent.mkdir(parents=True)
        paths.custom_config.write_text("{broken")
        env = dict(base_env)
        del env["AUTH_PASSWORD"]

        with pytest.raises(MissingRequiredSecretError) as exc_info:
            run_configure(paths, env)
        assert exc_info.value.variable == "AUTH_PASSWORD"

    def test_parse_error_writes_nothing(self, paths, base_env):
        paths.custom_config.parent.mkdir(parents=True)
        paths.custom_config.write_text("{broken")

        with pytest.raises(ConfigParseError):
            run_configure(paths, base_env)
        assert not paths.config_file.exists()
        assert not paths.routes_file.exists()

    def test_provider_error_writes_nothing(self, paths, base_env):
        with pytest.raises(ProviderConfigError):
            run_configure(paths, dict(base_env, LITELLM_API_KEY="sk-litellm"))
        assert not paths.config_file.exists()
        assert not paths.routes_file.exists()

    def test_dry_run_writes_nothing(self, paths, base_env):
        outcome = run_configure(paths, base_env, dry_run=True)
        assert outcome.config["gateway"]["port"] == 18789
        assert not paths.config_file.exists()
        assert not paths.routes_file.exists()

    def test_hooks_bypass_reaches_routes(self, paths, base_env):
        env = dict(base_env, HOOKS_ENABLED="true", HOOKS_PATH="/hooks")
        outcome = run_configure(paths, env)
        assert [rule.path for rule in outcome.routing.bypass_rules] == ["/hooks"]
        assert "@route_0 path /hooks /hooks/*" in paths.routes_file.read_text()

    def test_fix_channels_runs_doctor(self, paths, base_env):
        with patch("openclaw_container.commands.configure.run_doctor_fix", return_value=True) as doctor:
            outcome = run_configure(paths, base_env, fix_channels=True)
        doctor.assert_called_once_with("openclaw")
        assert outcome.doctor_ok is True

    def test_second_run_is_stable(self, paths, base_env):
        first = run_configure(paths, base_env).config
        second = run_configure(paths, base_env).config
        assert first == second
        assert paths.config_file.with_name("openclaw.json.backup").exists()

    def test_yaml_custom_with_numeric_group_is_stable(self, paths, base_env):
        paths.custom_config = paths.custom_config.with_suffix(".yaml")
        paths.custom_config.parent.mkdir(parents=True)
        paths.custom_config.write_text(
            "channels:\n  telegram:\n    groups:\n      -100123:\n        requireMention: true\n"
        )
        env = dict(base_env, TELEGRAM_BOT_TOKEN="123:abc")

        first = run_configure(paths, env).config
        second = run_configure(paths, env).config

        assert list(second["channels"]["telegram"]["groups"]) == ["-100123"]
        assert second == first
        assert json.loads(paths.config_file.read_text()) == first

    def test_check_required_secrets_blank_counts_as_unset(self):
        with pytest.raises(MissingRequiredSecretError) as exc_info:
            check_required_secrets({"OPENCLAW_GATEWAY_TOKEN": "  ", "AUTH_PASSWORD": "pw"})
        assert exc_info.value.variable == "OPENCLAW_GATEWAY_TOKEN"


class TestConfigureCommand:
    def test_success(self, tmp_path, cli_env):
        runner = CliRunner()
        result = runner.invoke(cli, ["configure"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Runtime config written" in result.output
        assert (tmp_path / "state" / "openclaw.json").exists()
        assert (tmp_path / "caddy.d" / "routes.caddyfile").exists()
        assert (tmp_path / "state" / "logs" / "configure.log.jsonl").exists()

    def test_missing_secret_exits_1(self, cli_env):
        env = dict(cli_env, AUTH_PASSWORD=None)
        runner = CliRunner()
        result = runner.invoke(cli, ["configure"], env=env)

        assert result.exit_code == 1
        assert "Missing Secret" in result.output
        assert "AUTH_PASSWORD" in result.output

    def test_no_provider_exits_1(self, cli_env):
        env = dict(cli_env, ANTHROPIC_API_KEY=None)
        runner = CliRunner()
        result = runner.invoke(cli, ["configure"], env=env)

        assert result.exit_code == 1
        assert "No AI Provider" in result.output

    def test_dry_run_redacts_secrets(self, tmp_path, cli_env):
        runner = CliRunner()
        result = runner.invoke(cli, ["configure", "--dry-run"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "Dry run" in result.output
        assert cli_env["OPENCLAW_GATEWAY_TOKEN"] not in result.output
        assert not (tmp_path / "state" / "openclaw.json").exists()

    def test_dry_run_redacts_document_secrets(self, tmp_path, cli_env):
        custom = tmp_path / "config" / "openclaw.json"
        custom.parent.mkdir(parents=True)
        custom.write_text(json.dumps({"channels": {"discord": {"token": "discord-doc-token"}}}))

        runner = CliRunner()
        result = runner.invoke(cli, ["configure", "--dry-run"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "discord-doc-token" not in result.output

    def test_log_file_never_contains_secrets(self, tmp_path, cli_env):
        runner = CliRunner()
        runner.invoke(cli, ["configure"], env=cli_env)

        log_text = (tmp_path / "state" / "logs" / "configure.log.jsonl").read_text()
        assert cli_env["OPENCLAW_GATEWAY_TOKEN"] not in log_text
        assert cli_env["AUTH_PASSWORD"] not in log_text


class TestEnvCommand:
    def test_inventory_covers_groups(self):
        variables = {row[1] for row in inventory()}
        for name in ("OPENCLAW_GATEWAY_PORT", "TELEGRAM_BOT_TOKEN", "WHATSAPP_ENABLED", "LITELLM_BASE_URL", "HOOKS_PATH"):
            assert name in variables

    def test_json_only_variables_listed_as_rejected(self):
        rejected = {row[1] for row in inventory() if row[0] == "rejected"}
        assert rejected == {"TELEGRAM_GROUPS", "DISCORD_GUILDS", "SLACK_CHANNELS", "OPENCLAW_BINDINGS"}

    def test_group_filter(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["env", "--group", "hooks"], env={"COLUMNS": "250"})
        assert result.exit_code == 0
        assert "HOOKS_PATH" in result.output
        assert "TELEGRAM_BOT_TOKEN" not in result.output

    def test_unknown_group(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["env", "--group", "nope"])
        assert result.exit_code == 0
        assert "No matching variables" in result.output


class TestRoutesCommand:
    def test_shows_bypass_from_runtime_config(self, tmp_path):
        config = tmp_path / "openclaw.json"
        config.write_text(json.dumps({"hooks": {"enabled": True, "path": "/hooks"}}))

        runner = CliRunner()
        result = runner.invoke(cli, ["routes", "--config", str(config)], env={"COLUMNS": "250"})

        assert result.exit_code == 0
        assert "/hooks/*" in result.output
        assert "bypass" in result.output

    def test_disabled_hooks_show_no_bypass(self, tmp_path):
        config = tmp_path / "openclaw.json"
        config.write_text(json.dumps({"hooks": {"enabled": False, "path": "/hooks"}}))

        runner = CliRunner()
        result = runner.invoke(cli, ["routes", "--config", str(config)], env={"COLUMNS": "250"})

        assert result.exit_code == 0
        assert "none (bypass)" not in result.output

    def test_malformed_config_exits_1(self, tmp_path):
        config = tmp_path / "openclaw.json"
        config.write_text("{nope")

        runner = CliRunner()
        result = runner.invoke(cli, ["routes", "--config", str(config)])
        assert result.exit_code == 1
