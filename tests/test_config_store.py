"""
Tests for ConfigStore.

Focus on runtime invariants: atomic replacement, backups, permissions and
fatal handling of malformed persisted documents.
"""

import json
import stat

import pytest

from openclaw_container.config_store import ConfigStore
from openclaw_container.errors import ConfigParseError


class TestConfigStore:
    @pytest.fixture
    def store(self, tmp_path):
        return ConfigStore(tmp_path / "state" / "openclaw.json")

    def test_absent_file_reads_empty(self, store):
        assert store.exists() is False
        assert store.read() == {}

    def test_empty_file_reads_empty(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("  \n")
        assert store.read() == {}

    def test_write_read_roundtrip(self, store):
        document = {"gateway": {"port": 18789}, "bindings": [{"agentId": "main"}]}
        store.write(document)
        assert store.read() == document

    def test_write_is_indented_json_with_newline(self, store):
        store.write({"a": 1})
        text = store.path.read_text()
        assert text == '{\n  "a": 1\n}\n'

    def test_write_sets_owner_only_mode(self, store):
        store.write({"a": 1})
        mode = stat.S_IMODE(store.path.stat().st_mode)
        assert mode == 0o600

    def test_write_keeps_backup_of_previous(self, store):
        store.write({"version": 1})
        store.write({"version": 2})
        assert json.loads(store.backup_path.read_text()) == {"version": 1}
        assert store.read() == {"version": 2}

    def test_no_temp_files_left_behind(self, store):
        store.write({"a": 1})
        leftovers = [p.name for p in store.path.parent.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_malformed_json_is_fatal(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("{not json")
        with pytest.raises(ConfigParseError) as exc_info:
            store.read()
        assert exc_info.value.path == store.path

    def test_non_object_is_fatal(self, store):
        store.path.parent.mkdir(parents=True)
        store.path.write_text("[1, 2]")
        with pytest.raises(ConfigParseError, match="must be an object"):
            store.read()
