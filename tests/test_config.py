"""Configuration file, environment overrides and change listeners."""

from __future__ import annotations

import json

from pathlib import Path

import pytest

from cast_mcp.config import ConfigChangeListener, ConfigManager
from cast_mcp.mcp_utils.debug_logger import DebugLogger

pytestmark = pytest.mark.unit


class RecordingListener(ConfigChangeListener):
    def __init__(self):
        self.events: list[tuple[str, str, object, object]] = []

    def on_config_changed(self, category, name, old_value, new_value):
        self.events.append((category, name, old_value, new_value))


class TestDefaults:
    def test_defaults(self):
        config = ConfigManager()
        assert config.get_server_port() == 8080
        assert config.get_server_host() == "127.0.0.1"
        assert config.is_debug_mode() is False
        assert config.get_engine_kind() == "auto"
        assert config.get_cast_command() == "cast"
        assert config.get_engine_timeout_seconds() == 120

    def test_validation(self):
        config = ConfigManager()
        with pytest.raises(ValueError, match="Port must be between"):
            config.set_server_port(0)
        with pytest.raises(ValueError, match="Host cannot be empty"):
            config.set_server_host("  ")
        with pytest.raises(ValueError, match="Engine must be one of: auto, text, cli"):
            config.set_engine_kind("roslyn")
        with pytest.raises(ValueError, match="Timeout must be positive"):
            config.set_engine_timeout_seconds(0)

    def test_engine_kind_is_normalized(self):
        config = ConfigManager()
        config.set_engine_kind(" Text ")
        assert config.get_engine_kind() == "text"


class TestConfigFile:
    def test_round_trip(self, tmp_path: Path):
        path = tmp_path / "conf" / "cast-mcp.json"
        config = ConfigManager(path)
        config.set_server_port(9001)
        config.set_cast_command("dotnet cast")

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["Server Options"]["Server Port"] == 9001
        assert saved["Engine Options"]["Cast Command"] == "dotnet cast"

        reloaded = ConfigManager(path)
        assert reloaded.get_server_port() == 9001
        assert reloaded.get_cast_command() == "dotnet cast"

    def test_debug_mode_from_file(self, tmp_path: Path):
        path = tmp_path / "cast-mcp.json"
        path.write_text(json.dumps({"Server Options": {"Debug Mode": True}}), encoding="utf-8")
        assert ConfigManager(path).is_debug_mode() is True
        assert DebugLogger.is_debug_enabled() is True

    @pytest.mark.parametrize("content", ["{not json", "[1, 2]", '{"Server Options": 3}'])
    def test_unusable_file_falls_back_to_defaults(self, tmp_path: Path, content: str):
        path = tmp_path / "cast-mcp.json"
        path.write_text(content, encoding="utf-8")
        assert ConfigManager(path).get_server_port() == 8080

    def test_overrides_are_not_saved(self, tmp_path: Path):
        path = tmp_path / "cast-mcp.json"
        config = ConfigManager(path)
        config.set_server_port(9100, persist=False)
        config.set_server_host("0.0.0.0")

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert "Server Port" not in saved["Server Options"]
        assert saved["Server Options"]["Server Host"] == "0.0.0.0"
        assert config.get_server_port() == 9100
        assert config.get_all_options()["Server Options"]["Server Port"] == 9100

    def test_persisted_value_replaces_override(self, tmp_path: Path):
        config = ConfigManager(tmp_path / "cast-mcp.json")
        config.set_server_port(9100, persist=False)
        config.set_server_port(9200)
        assert config.get_server_port() == 9200

    def test_reset_to_defaults(self, tmp_path: Path):
        path = tmp_path / "cast-mcp.json"
        config = ConfigManager(path)
        config.set_server_port(9001)
        config.set_debug_mode(True)
        config.reset_to_defaults()
        assert config.get_server_port() == 8080
        assert DebugLogger.is_debug_enabled() is False
        assert json.loads(path.read_text(encoding="utf-8")) == {"Server Options": {}, "Engine Options": {}}


class TestEnvironment:
    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        monkeypatch.setenv("CAST_MCP_PORT", "9300")
        monkeypatch.setenv("CAST_MCP_HOST", "0.0.0.0")
        monkeypatch.setenv("CAST_MCP_DEBUG", "yes")
        monkeypatch.setenv("CAST_MCP_ENGINE", "cli")
        monkeypatch.setenv("CAST_MCP_CAST_COMMAND", "/opt/cast/cast")
        monkeypatch.setenv("CAST_MCP_ENGINE_TIMEOUT", "30")
        path = tmp_path / "cast-mcp.json"

        config = ConfigManager(path)
        assert config.get_server_port() == 9300
        assert config.get_server_host() == "0.0.0.0"
        assert config.is_debug_mode() is True
        assert config.get_engine_kind() == "cli"
        assert config.get_cast_command() == "/opt/cast/cast"
        assert config.get_engine_timeout_seconds() == 30
        assert not path.exists()

    def test_env_beats_file(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        path = tmp_path / "cast-mcp.json"
        path.write_text(json.dumps({"Server Options": {"Server Port": 9001}}), encoding="utf-8")
        monkeypatch.setenv("CAST_MCP_PORT", "9400")
        assert ConfigManager(path).get_server_port() == 9400

    @pytest.mark.parametrize(
        ("env_name", "value"),
        [("CAST_MCP_PORT", "eighty"), ("CAST_MCP_PORT", "70000"), ("CAST_MCP_ENGINE", "roslyn"), ("CAST_MCP_ENGINE_TIMEOUT", "-1")],
    )
    def test_invalid_env_values_are_ignored(self, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture, env_name: str, value: str):
        monkeypatch.setenv(env_name, value)
        config = ConfigManager()
        assert config.get_server_port() == 8080
        assert config.get_engine_kind() == "auto"
        assert config.get_engine_timeout_seconds() == 120
        assert f"Invalid {env_name} value" in caplog.text


class TestListeners:
    def test_listeners_are_notified(self):
        config = ConfigManager()
        listener = RecordingListener()
        config.add_change_listener(listener)
        config.set_server_port(9001)
        config.set_engine_kind("text", persist=False)
        assert listener.events == [
            ("Server Options", "Server Port", None, 9001),
            ("Engine Options", "Engine", None, "text"),
        ]

        config.remove_change_listener(listener)
        config.set_server_port(9002)
        assert len(listener.events) == 2

    def test_failing_listener_does_not_block_change(self):
        class Broken(ConfigChangeListener):
            def on_config_changed(self, category, name, old_value, new_value):
                raise RuntimeError("listener failed")

        config = ConfigManager()
        config.add_change_listener(Broken())
        config.set_server_port(9001)
        assert config.get_server_port() == 9001
