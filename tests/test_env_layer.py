"""Tests for building the env layer document."""

import logging

import pytest

from openclaw_container.env_layer import auto_type
from openclaw_container.env_layer import build_convention_overrides
from openclaw_container.env_layer import build_env_document
from openclaw_container.env_layer import parse_bool
from openclaw_container.env_layer import parse_value
from openclaw_container.errors import ConfigValueError


class TestParseValue:
    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy(self, raw):
        assert parse_bool("X", raw) is True

    @pytest.mark.parametrize("raw", ["0", "False", "no", "OFF"])
    def test_falsy(self, raw):
        assert parse_bool("X", raw) is False

    def test_bad_bool_names_variable(self):
        with pytest.raises(ConfigValueError) as exc_info:
            parse_bool("HOOKS_ENABLED", "maybe")
        assert exc_info.value.variable == "HOOKS_ENABLED"
        assert "HOOKS_ENABLED" in str(exc_info.value)

    def test_bad_int_names_variable(self):
        with pytest.raises(ConfigValueError) as exc_info:
            parse_value("OPENCLAW_GATEWAY_PORT", "eighty", "int")
        assert exc_info.value.variable == "OPENCLAW_GATEWAY_PORT"

    def test_csv_drops_blanks(self):
        assert parse_value("X", " a, ,b ,", "csv") == ["a", "b"]

    def test_csv_smart_coerces_numeric_ids(self):
        assert parse_value("X", "12345, @alice, 678", "csv_smart") == [12345, "@alice", 678]


class TestAutoType:
    def test_detects_types(self):
        assert auto_type("true") is True
        assert auto_type("42") == 42
        assert auto_type("0.5") == 0.5
        assert auto_type('["a", "b"]') == ["a", "b"]
        assert auto_type('{"k": 1}') == {"k": 1}
        assert auto_type("plain") == "plain"

    def test_malformed_json_stays_string(self):
        assert auto_type("[not json") == "[not json"

    @pytest.mark.parametrize("raw", ["nan", "NaN", "inf", "-Infinity", "1e999", "1_000", "007"])
    def test_non_plain_numbers_stay_strings(self, raw):
        assert auto_type(raw) == raw

    def test_json_with_non_finite_constant_stays_string(self):
        assert auto_type("[NaN, 1]") == "[NaN, 1]"

    def test_negative_and_exponent_literals(self):
        assert auto_type("-3") == -3
        assert auto_type("1.5e3") == 1500.0


class TestBuildEnvDocument:
    def test_empty_environment_contributes_nothing(self):
        assert build_env_document({}) == {}

    def test_blank_values_are_unset(self):
        assert build_env_document({"OPENCLAW_GATEWAY_PORT": "  ", "TELEGRAM_BOT_TOKEN": ""}) == {}

    def test_gateway_fields_and_token(self):
        doc = build_env_document({"OPENCLAW_GATEWAY_PORT": "9000", "OPENCLAW_GATEWAY_TOKEN": "tok-abcdef"})
        assert doc["gateway"] == {"port": 9000, "auth": {"mode": "token", "token": "tok-abcdef"}}

    def test_primary_model(self):
        doc = build_env_document({"OPENCLAW_PRIMARY_MODEL": "openai/gpt-5.2"})
        assert doc["agents"]["defaults"]["model"]["primary"] == "openai/gpt-5.2"

    def test_open_channel_gate_emits_enabled_and_fields(self):
        doc = build_env_document(
            {
                "TELEGRAM_BOT_TOKEN": "123:abc",
                "TELEGRAM_DM_POLICY": "pairing",
                "TELEGRAM_ALLOW_FROM": "111,222",
                "TELEGRAM_ACTIONS_STICKER": "yes",
            }
        )
        assert doc["channels"]["telegram"] == {
            "enabled": True,
            "botToken": "123:abc",
            "dmPolicy": "pairing",
            "allowFrom": [111, 222],
            "actions": {"sticker": True},
        }

    def test_slack_needs_both_tokens(self):
        assert build_env_document({"SLACK_BOT_TOKEN": "xoxb-1"}) == {}
        doc = build_env_document({"SLACK_BOT_TOKEN": "xoxb-1", "SLACK_APP_TOKEN": "xapp-1"})
        assert doc["channels"]["slack"]["botToken"] == "xoxb-1"
        assert doc["channels"]["slack"]["appToken"] == "xapp-1"

    def test_channel_tokens_are_stripped(self):
        env = {"TELEGRAM_BOT_TOKEN": "123:abc\n", "SLACK_BOT_TOKEN": " xoxb-1", "SLACK_APP_TOKEN": "xapp-1 "}
        doc = build_env_document(env)
        assert doc["channels"]["telegram"]["botToken"] == "123:abc"
        assert doc["channels"]["slack"]["botToken"] == "xoxb-1"
        assert doc["channels"]["slack"]["appToken"] == "xapp-1"

    def test_closed_gate_ignores_fields_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            doc = build_env_document({"DISCORD_DM_POLICY": "open"})
        assert doc == {}
        assert "DISCORD_DM_POLICY ignored" in caplog.text

    def test_whatsapp_bool_gate(self):
        doc = build_env_document({"WHATSAPP_ENABLED": "true", "WHATSAPP_DM_POLICY": "allowlist"})
        assert doc["channels"]["whatsapp"] == {"enabled": True, "dmPolicy": "allowlist"}
        assert build_env_document({"WHATSAPP_ENABLED": "false"}) == {}

    def test_whatsapp_bad_gate_value_is_error(self):
        with pytest.raises(ConfigValueError) as exc_info:
            build_env_document({"WHATSAPP_ENABLED": "sure"})
        assert exc_info.value.variable == "WHATSAPP_ENABLED"

    def test_deepgram_sets_audio_domain(self):
        doc = build_env_document({"DEEPGRAM_API_KEY": "dg-key-123"})
        assert doc["tools"]["media"]["audio"] == {
            "enabled": True,
            "models": [{"provider": "deepgram", "model": "nova-3"}],
        }

    def test_browser_gate(self):
        doc = build_env_document({"BROWSER_CDP_URL": "http://chrome:9222", "BROWSER_EVALUATE_ENABLED": "0"})
        assert doc["browser"] == {"cdpUrl": "http://chrome:9222", "evaluateEnabled": False}

    def test_hooks_enabled(self):
        doc = build_env_document({"HOOKS_ENABLED": "true", "HOOKS_PATH": "/hooks", "HOOKS_TOKEN": "hook-secret"})
        assert doc["hooks"] == {"enabled": True, "path": "/hooks", "token": "hook-secret"}

    def test_hooks_disabled_emits_only_enabled_false(self):
        doc = build_env_document({"HOOKS_ENABLED": "false", "HOOKS_PATH": "/hooks"})
        assert doc["hooks"] == {"enabled": False}

    def test_custom_provider_from_env(self):
        doc = build_env_document({"VENICE_API_KEY": "venice-key"})
        entry = doc["models"]["providers"]["venice"]
        assert entry["api"] == "openai-completions"
        assert entry["baseUrl"] == "https://api.venice.ai/api/v1"
        assert entry["apiKey"] == "venice-key"
        assert entry["models"][0]["id"] == "llama-3.3-70b"

    def test_builtin_provider_key_adds_no_models_entry(self):
        assert build_env_document({"ANTHROPIC_API_KEY": "sk-ant"}) == {}


class TestJsonOnlyGuard:
    @pytest.mark.parametrize("variable", ["TELEGRAM_GROUPS", "DISCORD_GUILDS", "SLACK_CHANNELS", "OPENCLAW_BINDINGS"])
    def test_json_only_variables_rejected(self, variable):
        with pytest.raises(ConfigValueError) as exc_info:
            build_env_document({variable: '{"x": 1}'})
        assert exc_info.value.variable == variable

    def test_convention_override_into_json_only_domain_rejected(self):
        variable = "OPENCLAW_JSON__channels__telegram__groups"
        with pytest.raises(ConfigValueError) as exc_info:
            build_env_document({variable: '{"-100": {}}'})
        assert exc_info.value.variable == variable

    def test_convention_override_at_json_only_parent_rejected(self):
        with pytest.raises(ConfigValueError):
            build_env_document({"OPENCLAW_JSON__bindings": "[]"})


class TestConventionOverrides:
    def test_sets_typed_values(self):
        doc = build_env_document(
            {
                "OPENCLAW_JSON__agents__defaults__maxConcurrent": "4",
                "OPENCLAW_JSON__logging__level": "debug",
            }
        )
        assert doc["agents"]["defaults"]["maxConcurrent"] == 4
        assert doc["logging"]["level"] == "debug"

    def test_applied_after_schema_fields(self):
        doc = build_env_document(
            {"OPENCLAW_GATEWAY_PORT": "9000", "OPENCLAW_JSON__gateway__port": "9100"}
        )
        assert doc["gateway"]["port"] == 9100

    def test_sorted_order(self):
        overrides = build_convention_overrides(
            {"OPENCLAW_JSON__b__x": "1", "OPENCLAW_JSON__a__x": "2", "UNRELATED": "3"}
        )
        assert [path for _, path, _ in overrides] == ["a.x", "b.x"]

    def test_empty_segment_rejected(self):
        with pytest.raises(ConfigValueError):
            build_convention_overrides({"OPENCLAW_JSON__gateway____port": "1"})

    def test_secret_override_not_logged(self, caplog):
        with caplog.at_level(logging.INFO):
            build_convention_overrides({"OPENCLAW_JSON__gateway__auth__token": "super-secret-token"})
        assert "super-secret-token" not in caplog.text
