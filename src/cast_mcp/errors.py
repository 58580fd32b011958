"""Error types shared across cast-mcp.

Expected failures (unknown tool, missing argument, missing file) are carried
as ``ErrorKind`` values on dispatch results.  Exceptions are reserved for
engine failures, which are caught at the dispatcher boundary, and for registry
construction failures, which abort startup.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed invocation."""

    UNKNOWN_CAPABILITY = "unknown_capability"
    MISSING_REQUIRED_ARGUMENT = "missing_required_argument"
    TARGET_NOT_FOUND = "target_not_found"
    ENGINE_FAILURE = "engine_failure"


class CastMcpError(Exception):
    """Base class for cast-mcp errors."""


class RegistryBuildError(CastMcpError):
    """Raised when the operation catalog cannot be enumerated at startup."""


class EngineError(CastMcpError):
    """Raised by a refactoring engine when an operation cannot be completed."""
