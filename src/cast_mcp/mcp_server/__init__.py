"""MCP server: protocol adapter, dispatcher and transports."""

from .dispatcher import Dispatcher, DispatchResult
from .server import CastMcpServer, ServerConfig
from .tool_providers import CastToolProvider

__all__ = [
    "CastMcpServer",
    "CastToolProvider",
    "DispatchResult",
    "Dispatcher",
    "ServerConfig",
]
