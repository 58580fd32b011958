"""Shared utilities for the MCP server: schema building, debug logging, diffs."""

from .debug_logger import DebugLogger
from .diff_util import unified_diff
from .schema_util import SchemaBuilder, SchemaUtil

__all__ = [
    "DebugLogger",
    "SchemaBuilder",
    "SchemaUtil",
    "unified_diff",
]
