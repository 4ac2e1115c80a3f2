"""
Tests for core/config_store.py (watch list + options persistence)
"""
import json

import pytest
import yaml

from core.config_store import ConfigStore
from core.errors import ConfigError


@pytest.mark.unit
class TestConfigLoad:
    """Loading and defaults"""

    def test_missing_file_creates_defaults(self, config_path):
        store = ConfigStore.load(config_path)

        assert store.streamers == []
        assert store.record_streams is False
        assert config_path.exists()
        assert json.loads(config_path.read_text()) == {
            "streamers": [],
            "options": {"record_streams": False},
        }

    def test_empty_file_is_default_state(self, config_path):
        config_path.write_text("")
        store = ConfigStore.load(config_path)
        assert store.streamers == []
        assert store.record_streams is False

    def test_loads_existing_file(self, config_path):
        config_path.write_text(json.dumps({
            "streamers": ["Alice", "bob"],
            "options": {"record_streams": True},
        }))
        store = ConfigStore.load(config_path)
        assert store.streamers == ["Alice", "bob"]
        assert store.record_streams is True

    def test_duplicates_in_file_collapse(self, config_path):
        config_path.write_text(json.dumps({"streamers": ["Alice", "ALICE", "bob"]}))
        store = ConfigStore.load(config_path)
        assert store.streamers == ["Alice", "bob"]

    def test_malformed_json_raises(self, config_path):
        config_path.write_text("{not json")
        with pytest.raises(ConfigError):
            ConfigStore.load(config_path)

    def test_wrong_shape_raises(self, config_path):
        config_path.write_text(json.dumps({"streamers": "alice"}))
        with pytest.raises(ConfigError):
            ConfigStore.load(config_path)

    @pytest.mark.parametrize("value", ["false", "true", 0, 1, None])
    def test_non_bool_record_streams_raises(self, config_path, value):
        config_path.write_text(json.dumps({"streamers": [], "options": {"record_streams": value}}))
        with pytest.raises(ConfigError, match="record_streams"):
            ConfigStore.load(config_path)
        assert json.loads(config_path.read_text())["options"]["record_streams"] == value

    def test_quoted_yaml_record_streams_raises(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("streamers: []\noptions:\n  record_streams: \"false\"\n")
        with pytest.raises(ConfigError):
            ConfigStore.load(path)

    def test_yaml_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("streamers:\n  - alice\noptions:\n  record_streams: true\n")
        store = ConfigStore.load(path)
        assert store.streamers == ["alice"]
        assert store.record_streams is True

        store.add_streamer("bob")
        store.save()
        assert yaml.safe_load(path.read_text())["streamers"] == ["alice", "bob"]


@pytest.mark.unit
class TestWatchList:
    """add/remove/toggle semantics"""

    def test_add_is_case_insensitive_idempotent(self, config):
        assert config.add_streamer("Foo") is True
        assert config.add_streamer("foo") is False
        assert config.streamers == ["Foo"]

    def test_add_empty_name_is_noop(self, config):
        assert config.add_streamer("   ") is False
        assert config.streamers == []

    def test_add_keeps_insertion_order(self, config):
        for name in ["charlie", "Alice", "bob"]:
            config.add_streamer(name)
        assert config.streamers == ["charlie", "Alice", "bob"]

    def test_remove_matches_case_insensitively(self, config):
        config.streamers = ["Alice", "bob", "ALICE"]
        assert config.remove_streamer("alice") == 2
        assert config.streamers == ["bob"]

    def test_remove_unknown_returns_zero(self, config):
        config.add_streamer("bob")
        assert config.remove_streamer("alice") == 0
        assert config.streamers == ["bob"]

    def test_toggle_twice_restores_flag(self, config, config_path):
        original = config.record_streams

        config.toggle_record_streams()
        config.save()
        assert json.loads(config_path.read_text())["options"]["record_streams"] is (not original)

        config.toggle_record_streams()
        config.save()
        assert json.loads(config_path.read_text())["options"]["record_streams"] is original

    def test_save_is_pretty_printed(self, config, config_path):
        config.add_streamer("alice")
        config.save()
        text = config_path.read_text()
        assert '\n  "streamers": [\n    "alice"\n  ]' in text

    def test_save_failure_raises_config_error(self, tmp_path):
        # Parent path is a file: the write cannot succeed
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        store = ConfigStore(blocker / "config.json", streamers=["alice"])
        with pytest.raises(ConfigError):
            store.save()
        assert store.streamers == ["alice"]
