"""Tests for watch_queue.config."""

import json

import pytest

from watch_queue.config import DEFAULT_CONFIG_NAME, STARTER_CONFIG, ConfigManager
from watch_queue.errors import ConfigError


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_default_path(self, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)
        assert ConfigManager().config_file == temp_dir / DEFAULT_CONFIG_NAME

    def test_load(self, config_file):
        config = ConfigManager(config_file).load()
        assert [p.name for p in config.plugins] == ["rspec", "eslint"]

    def test_missing_file(self, temp_dir):
        with pytest.raises(ConfigError, match="No configuration file"):
            ConfigManager(temp_dir / "missing.json").load()

    def test_invalid_json(self, temp_dir):
        path = temp_dir / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            ConfigManager(path).load()

    def test_validation_error(self, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text(json.dumps({"plugins": [{"name": "x", "watch": ["  "]}]}))
        with pytest.raises(ConfigError, match="Invalid configuration"):
            ConfigManager(path).load()

    def test_evaluate_group_order(self, config_file):
        groups, plugins = ConfigManager(config_file).evaluate()

        assert [g.name for g in groups] == ["default", "backend", "frontend"]
        assert [p.name for p in plugins] == ["rspec", "eslint"]
        assert plugins[0].cwd == config_file.parent

    def test_evaluate_creates_undeclared_group(self, temp_dir):
        path = temp_dir / DEFAULT_CONFIG_NAME
        path.write_text(json.dumps({
            "plugins": [{"name": "lint", "group": "style", "watch": ["*.py"]}]
        }))

        groups, _ = ConfigManager(path).evaluate()

        assert [g.name for g in groups] == ["default", "style"]

    def test_evaluate_bad_pattern(self, temp_dir):
        path = temp_dir / DEFAULT_CONFIG_NAME
        path.write_text(json.dumps({
            "plugins": [{"name": "broken", "watch": ["re:("]}]
        }))

        with pytest.raises(ConfigError, match="broken"):
            ConfigManager(path).evaluate()

    def test_evaluate_no_plugins_logs_error(self, temp_dir, caplog):
        path = temp_dir / DEFAULT_CONFIG_NAME
        path.write_text(json.dumps({"plugins": []}))

        _, plugins = ConfigManager(path).evaluate()

        assert plugins == []
        assert "No plugins found" in caplog.text

    def test_reload_picks_up_changes(self, config_file):
        manager = ConfigManager(config_file)
        manager.evaluate()

        data = json.loads(config_file.read_text())
        data["plugins"].pop()
        config_file.write_text(json.dumps(data))

        _, plugins = manager.reload()
        assert [p.name for p in plugins] == ["rspec"]


class TestWriteDefault:
    """Tests for the starter configuration."""

    def test_writes_starter(self, temp_dir):
        path = temp_dir / DEFAULT_CONFIG_NAME
        ConfigManager(path).write_default()

        assert json.loads(path.read_text()) == STARTER_CONFIG
        _, plugins = ConfigManager(path).evaluate()
        assert [p.name for p in plugins] == ["tests"]

    def test_refuses_to_overwrite(self, config_file):
        with pytest.raises(ConfigError, match="already exists"):
            ConfigManager(config_file).write_default()

    def test_force_overwrites(self, config_file):
        ConfigManager(config_file).write_default(force=True)
        assert json.loads(config_file.read_text()) == STARTER_CONFIG
