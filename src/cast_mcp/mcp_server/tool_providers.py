"""Protocol adapter between MCP tool requests and the dispatcher.

Flow:
  1. MCP server -> CastToolProvider.call_tool(wire_name, arguments)
  2. Wire name -> tool name -> registry lookup (unknown names are an error result)
  3. Dispatcher.invoke() validates, runs the engine, commits or previews
  4. The DispatchResult becomes a ``CallToolResult``

``call_tool`` always returns; nothing raised below it reaches the MCP session.
"""

from __future__ import annotations

import logging

from typing import Any, Mapping

from mcp import types

from cast_mcp.errors import ErrorKind
from cast_mcp.mcp_server.dispatcher import Dispatcher, DispatchResult, sanitize_message
from cast_mcp.registry import CapabilityRegistry, from_wire_name

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Response helpers
# ---------------------------------------------------------------------------


def create_success_response(text: str) -> types.CallToolResult:
    """Create a successful MCP tool result carrying ``text``."""
    return types.CallToolResult(content=[types.TextContent(type="text", text=text)], isError=False)


def create_error_response(error: str | Exception) -> types.CallToolResult:
    """Create an MCP tool result flagged as an error."""
    msg = f"Error: {sanitize_message(error)}" if isinstance(error, Exception) else error
    return types.CallToolResult(content=[types.TextContent(type="text", text=msg)], isError=True)


def to_call_tool_result(result: DispatchResult) -> types.CallToolResult:
    if result.is_error:
        return create_error_response(result.text)
    return create_success_response(result.text)


# ---------------------------------------------------------------------------
# CastToolProvider
# ---------------------------------------------------------------------------


class CastToolProvider:
    """Lists registry entries as MCP tools and routes calls to the dispatcher.

    Holds no per-request state, so concurrent calls are independent.
    """

    def __init__(self, registry: CapabilityRegistry, dispatcher: Dispatcher) -> None:
        self.registry: CapabilityRegistry = registry
        self.dispatcher: Dispatcher = dispatcher

    def list_tools(self) -> list[types.Tool]:
        return [
            types.Tool(
                name=descriptor.wire_name,
                description=descriptor.description,
                inputSchema=descriptor.input_schema,
            )
            for descriptor in self.registry.list_all()
        ]

    async def dispatch(self, name: str, arguments: Mapping[str, Any] | None) -> DispatchResult:
        """Resolve ``name`` and invoke it, returning the typed result."""
        try:
            tool_name, recognized = from_wire_name(name or "")
            descriptor = self.registry.resolve(tool_name) if recognized else None
            if descriptor is None:
                logger.info(f"Unknown tool requested: {name}")
                return DispatchResult.error(ErrorKind.UNKNOWN_CAPABILITY, f"Unknown command: {name}")
            if not isinstance(arguments, Mapping):
                arguments = {}
            return await self.dispatcher.invoke(descriptor, arguments)
        except Exception as e:
            logger.error(f"Tool {name} error: {e.__class__.__name__}: {e}")
            return DispatchResult.error(ErrorKind.ENGINE_FAILURE, sanitize_message(e))

    async def call_tool(self, name: str, arguments: Mapping[str, Any] | None) -> types.CallToolResult:
        logger.info(f"Handling call tool request for: {name}")
        return to_call_tool_result(await self.dispatch(name, arguments))


__all__ = [
    "CastToolProvider",
    "create_error_response",
    "create_success_response",
    "to_call_tool_result",
]
