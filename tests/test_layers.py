"""Tests for layer loading."""

import pytest

from openclaw_container.config_store import ConfigStore
from openclaw_container.errors import ConfigParseError
from openclaw_container.layers import LayerLoader
from openclaw_container.layers import read_custom_document


class TestReadCustomDocument:
    def test_absent_is_empty(self, tmp_path):
        assert read_custom_document(tmp_path / "missing.json") == {}

    def test_json(self, tmp_path):
        path = tmp_path / "openclaw.json"
        path.write_text('{"channels": {"telegram": {"groups": {"-100": {}}}}}')
        assert read_custom_document(path) == {"channels": {"telegram": {"groups": {"-100": {}}}}}

    def test_yaml(self, tmp_path):
        path = tmp_path / "openclaw.yaml"
        path.write_text("gateway:\n  bind: lan\nbindings:\n  - agentId: main\n")
        assert read_custom_document(path) == {"gateway": {"bind": "lan"}, "bindings": [{"agentId": "main"}]}

    def test_yaml_numeric_keys_become_strings(self, tmp_path):
        path = tmp_path / "openclaw.yaml"
        path.write_text("channels:\n  telegram:\n    groups:\n      -100123:\n        requireMention: true\n")
        groups = read_custom_document(path)["channels"]["telegram"]["groups"]
        assert groups == {"-100123": {"requireMention": True}}

    def test_yaml_date_value_is_fatal(self, tmp_path):
        path = tmp_path / "openclaw.yaml"
        path.write_text("meta:\n  since: 2024-01-01\n")
        with pytest.raises(ConfigParseError) as exc_info:
            read_custom_document(path)
        assert "JSON" in str(exc_info.value)

    def test_yaml_nan_is_fatal(self, tmp_path):
        path = tmp_path / "openclaw.yaml"
        path.write_text("gateway:\n  ratio: .nan\n")
        with pytest.raises(ConfigParseError):
            read_custom_document(path)

    def test_empty_yaml_is_empty(self, tmp_path):
        path = tmp_path / "openclaw.yml"
        path.write_text("# nothing yet\n")
        assert read_custom_document(path) == {}

    def test_malformed_json_is_fatal(self, tmp_path):
        path = tmp_path / "openclaw.json"
        path.write_text('{"gateway": ')
        with pytest.raises(ConfigParseError) as exc_info:
            read_custom_document(path)
        assert exc_info.value.path == path

    def test_malformed_yaml_is_fatal(self, tmp_path):
        path = tmp_path / "openclaw.yaml"
        path.write_text("gateway: [unclosed\n")
        with pytest.raises(ConfigParseError):
            read_custom_document(path)

    def test_scalar_top_level_is_fatal(self, tmp_path):
        path = tmp_path / "openclaw.json"
        path.write_text('"just a string"')
        with pytest.raises(ConfigParseError):
            read_custom_document(path)


class TestLayerLoader:
    def test_loads_all_three_layers(self, tmp_path):
        custom_path = tmp_path / "custom.json"
        custom_path.write_text('{"gateway": {"bind": "lan"}}')
        store = ConfigStore(tmp_path / "openclaw.json")
        store.write({"gateway": {"port": 1234}})

        layers = LayerLoader(custom_path, store, {"OPENCLAW_GATEWAY_PORT": "9000"}).load()

        assert layers.custom == {"gateway": {"bind": "lan"}}
        assert layers.persisted == {"gateway": {"port": 1234}}
        assert layers.env == {"gateway": {"port": 9000}}

    def test_first_run_has_empty_documents(self, tmp_path):
        layers = LayerLoader(tmp_path / "none.json", ConfigStore(tmp_path / "openclaw.json"), {}).load()
        assert layers.custom == {}
        assert layers.persisted == {}
        assert layers.env == {}
