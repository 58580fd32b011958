"""Configuration manager for the cast MCP server.

Options live in a JSON file grouped by category.  Environment variables
override file values for the lifetime of the process without being saved.
"""

from __future__ import annotations

import json
import logging
import os

from pathlib import Path
from typing import Any

from cast_mcp.engine import ENGINE_KINDS
from cast_mcp.mcp_utils.debug_logger import DebugLogger

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes", "on")


class ConfigChangeListener:
    """Interface for configuration change listeners."""

    def on_config_changed(self, category: str, name: str, old_value: Any, new_value: Any) -> None:
        """Called when a configuration value changes."""


class ConfigManager:
    """Configuration manager for cast-mcp."""

    # Configuration option categories
    SERVER_OPTIONS = "Server Options"
    ENGINE_OPTIONS = "Engine Options"

    # Option names
    SERVER_PORT = "Server Port"
    SERVER_HOST = "Server Host"
    DEBUG_MODE = "Debug Mode"
    ENGINE_KIND = "Engine"
    CAST_COMMAND = "Cast Command"
    ENGINE_TIMEOUT_SECONDS = "Engine Timeout Seconds"

    # Default values
    DEFAULT_PORT = 8080
    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_DEBUG_MODE = False
    DEFAULT_ENGINE_KIND = "auto"
    DEFAULT_CAST_COMMAND = "cast"
    DEFAULT_ENGINE_TIMEOUT_SECONDS = 120

    def __init__(self, config_file: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_file: Optional path to a JSON configuration file
        """
        self.config_file = config_file
        self._config: dict[str, dict[str, Any]] = {}
        self._overrides: dict[str, dict[str, Any]] = {}
        self._change_listeners: set[ConfigChangeListener] = set()

        self._load_config()
        self._apply_env_overrides()

    def _load_config(self) -> None:
        """Load configuration from file if available."""
        if self.config_file and self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    self._config = json.load(f)
                DebugLogger.debug(self, f"Loaded configuration from {self.config_file}")
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to load config file {self.config_file}: {e}")
                self._config = {}
        else:
            self._config = {}

        if not isinstance(self._config, dict):
            logger.warning(f"Ignoring config file {self.config_file}: top level is not an object")
            self._config = {}

        for category in (self.SERVER_OPTIONS, self.ENGINE_OPTIONS):
            if not isinstance(self._config.get(category), dict):
                self._config[category] = {}

        DebugLogger.set_debug_enabled(self.is_debug_mode())

    def _apply_env_overrides(self) -> None:
        """Apply CAST_MCP_* environment variable overrides."""
        overrides = (
            ("CAST_MCP_PORT", lambda v: self.set_server_port(int(v), persist=False)),
            ("CAST_MCP_HOST", lambda v: self.set_server_host(v, persist=False)),
            ("CAST_MCP_DEBUG", lambda v: self.set_debug_mode(v.strip().lower() in _TRUTHY, persist=False)),
            ("CAST_MCP_ENGINE", lambda v: self.set_engine_kind(v, persist=False)),
            ("CAST_MCP_CAST_COMMAND", lambda v: self.set_cast_command(v, persist=False)),
            ("CAST_MCP_ENGINE_TIMEOUT", lambda v: self.set_engine_timeout_seconds(int(v), persist=False)),
        )
        for env_name, apply in overrides:
            if env_name not in os.environ:
                continue
            try:
                apply(os.environ[env_name])
            except ValueError as e:
                logger.warning(f"Invalid {env_name} value: {e}")

    def save_config(self) -> None:
        """Save configuration to file."""
        if self.config_file:
            try:
                self.config_file.parent.mkdir(parents=True, exist_ok=True)
                with open(self.config_file, "w", encoding="utf-8") as f:
                    json.dump(self._config, f, indent=2)
                DebugLogger.debug(self, f"Saved configuration to {self.config_file}")
            except OSError as e:
                logger.error(f"Failed to save config file {self.config_file}: {e}")

    def add_change_listener(self, listener: ConfigChangeListener) -> None:
        """Add a configuration change listener."""
        self._change_listeners.add(listener)

    def remove_change_listener(self, listener: ConfigChangeListener) -> None:
        """Remove a configuration change listener."""
        self._change_listeners.discard(listener)

    def _notify_change_listeners(self, category: str, name: str, old_value: Any, new_value: Any) -> None:
        for listener in self._change_listeners:
            try:
                listener.on_config_changed(category, name, old_value, new_value)
            except Exception as e:
                logger.error(f"Error notifying config change listener: {e}")

    def _get_option(self, category: str, name: str, default_value: Any = None) -> Any:
        overrides = self._overrides.get(category, {})
        if name in overrides:
            return overrides[name]
        return self._config.get(category, {}).get(name, default_value)

    def _set_option(self, category: str, name: str, value: Any, persist: bool = True) -> None:
        """Set an option.

        Non-persistent values (environment and command-line overrides) live
        beside the file-backed options and are never written by ``save_config``.
        """
        old_value = self._get_option(category, name)
        if persist:
            self._config.setdefault(category, {})[name] = value
            self._overrides.get(category, {}).pop(name, None)
        else:
            self._overrides.setdefault(category, {})[name] = value

        self._notify_change_listeners(category, name, old_value, value)

        if persist and self.config_file:
            self.save_config()

    # Server configuration methods
    def get_server_port(self) -> int:
        return self._get_option(self.SERVER_OPTIONS, self.SERVER_PORT, self.DEFAULT_PORT)

    def set_server_port(self, port: int, persist: bool = True) -> None:
        if port < 1 or port > 65535:
            raise ValueError("Port must be between 1 and 65535")
        self._set_option(self.SERVER_OPTIONS, self.SERVER_PORT, port, persist)

    def get_server_host(self) -> str:
        return self._get_option(self.SERVER_OPTIONS, self.SERVER_HOST, self.DEFAULT_HOST)

    def set_server_host(self, host: str, persist: bool = True) -> None:
        if not host or not host.strip():
            raise ValueError("Host cannot be empty")
        self._set_option(self.SERVER_OPTIONS, self.SERVER_HOST, host.strip(), persist)

    # Debug configuration methods
    def is_debug_mode(self) -> bool:
        return bool(self._get_option(self.SERVER_OPTIONS, self.DEBUG_MODE, self.DEFAULT_DEBUG_MODE))

    def set_debug_mode(self, enabled: bool, persist: bool = True) -> None:
        self._set_option(self.SERVER_OPTIONS, self.DEBUG_MODE, bool(enabled), persist)
        DebugLogger.set_debug_enabled(bool(enabled))

    # Engine configuration methods
    def get_engine_kind(self) -> str:
        """Get the engine selection: auto, text or cli."""
        return self._get_option(self.ENGINE_OPTIONS, self.ENGINE_KIND, self.DEFAULT_ENGINE_KIND)

    def set_engine_kind(self, kind: str, persist: bool = True) -> None:
        normalized = (kind or "").strip().lower()
        if normalized not in ENGINE_KINDS:
            raise ValueError(f"Engine must be one of: {', '.join(ENGINE_KINDS)}")
        self._set_option(self.ENGINE_OPTIONS, self.ENGINE_KIND, normalized, persist)

    def get_cast_command(self) -> str:
        """Get the command used to run the external cast tool."""
        return self._get_option(self.ENGINE_OPTIONS, self.CAST_COMMAND, self.DEFAULT_CAST_COMMAND)

    def set_cast_command(self, command: str, persist: bool = True) -> None:
        if not command or not command.strip():
            raise ValueError("Cast command cannot be empty")
        self._set_option(self.ENGINE_OPTIONS, self.CAST_COMMAND, command.strip(), persist)

    def get_engine_timeout_seconds(self) -> int:
        return self._get_option(self.ENGINE_OPTIONS, self.ENGINE_TIMEOUT_SECONDS, self.DEFAULT_ENGINE_TIMEOUT_SECONDS)

    def set_engine_timeout_seconds(self, timeout: int, persist: bool = True) -> None:
        if timeout < 1:
            raise ValueError("Timeout must be positive")
        self._set_option(self.ENGINE_OPTIONS, self.ENGINE_TIMEOUT_SECONDS, timeout, persist)

    def get_all_options(self) -> dict[str, dict[str, Any]]:
        """Get all configuration options, overrides included."""
        merged = {category: dict(options) for category, options in self._config.items()}
        for category, options in self._overrides.items():
            merged.setdefault(category, {}).update(options)
        return merged

    def reset_to_defaults(self) -> None:
        """Reset all options to defaults."""
        old_config = self.get_all_options()
        self._config = {self.SERVER_OPTIONS: {}, self.ENGINE_OPTIONS: {}}
        self._overrides = {}
        DebugLogger.set_debug_enabled(self.DEFAULT_DEBUG_MODE)
        self._notify_change_listeners(self.SERVER_OPTIONS, "*", old_config, self._config)

        if self.config_file:
            self.save_config()

    def __str__(self) -> str:
        return f"ConfigManager(config_file={self.config_file}, options={len(self._config)})"
