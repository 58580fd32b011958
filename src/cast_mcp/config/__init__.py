"""Configuration management for cast-mcp."""

from .config_manager import ConfigChangeListener, ConfigManager

__all__ = [
    "ConfigChangeListener",
    "ConfigManager",
]
