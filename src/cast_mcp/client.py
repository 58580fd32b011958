"""MCP client for a running cast-mcp server.

Async client that connects via the streamable HTTP transport at /mcp/message.

Usage:
    async with CastMcpClient(host="127.0.0.1", port=8080) as client:
        tools = await client.list_tools()
        response = await client.call_tool("cast_rename", {"file_path": "...", "old_name": "Foo", "new_name": "Bar"})
"""

from __future__ import annotations

import asyncio
import contextlib

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from anyio import BrokenResourceError, ClosedResourceError

if TYPE_CHECKING:
    from mcp.types import CallToolResult

MCP_PATH = "/mcp/message"

_CONNECTION_MARKERS = ("ConnectError", "connection", "ConnectionRefused", "All connection attempts failed")


class ClientError(Exception):
    """Custom exception for client errors."""


class ServerNotRunningError(ClientError):
    """Raised when the cast-mcp server is not running or unreachable."""


@dataclass(frozen=True)
class ToolResponse:
    """Text of a tool result and whether the server flagged it as an error."""

    text: str
    is_error: bool = False


def normalize_server_url(url: str) -> str:
    """Accept ``host:port``, ``http://host:port`` or a full MCP endpoint URL."""
    url = url.strip().rstrip("/")
    if "://" not in url:
        url = f"http://{url}"
    if not url.endswith(MCP_PATH):
        url = f"{url}{MCP_PATH}"
    return url


def _is_connection_error(e: BaseException) -> bool:
    if isinstance(e, (asyncio.TimeoutError, ConnectionError, OSError, BrokenResourceError, ClosedResourceError)):
        return True
    if any(marker in str(e) for marker in _CONNECTION_MARKERS):
        return True
    # anyio task groups wrap transport failures in exception groups
    return any(_is_connection_error(sub) for sub in getattr(e, "exceptions", ()))


class CastMcpClient:
    """MCP client for the cast-mcp server."""

    def __init__(
        self,
        host: str = "127.0.0.1",
        port: int = 8080,
        url: str | None = None,
        timeout: float = 5.0,
    ):
        if url and url.strip():
            self._url = normalize_server_url(url)
        else:
            self._url = normalize_server_url(f"http://{host}:{port}")
        self._timeout = timeout
        self._session: Any = None
        self._exit_stack: contextlib.AsyncExitStack | None = None
        self._connected: bool = False

    @property
    def url(self) -> str:
        return self._url

    async def __aenter__(self) -> CastMcpClient:
        await self._connect_internal()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self._close_internal()

    async def _connect_internal(self) -> None:
        """Establish connection to the cast-mcp server."""
        from mcp.client.session import ClientSession
        from mcp.client.streamable_http import streamablehttp_client

        self._exit_stack = contextlib.AsyncExitStack()
        await self._exit_stack.__aenter__()

        try:
            read, write, _ = await self._exit_stack.enter_async_context(
                streamablehttp_client(self._url, timeout=self._timeout),
            )
            self._session = await self._exit_stack.enter_async_context(
                ClientSession(read, write),
            )
            await self._session.initialize()
            self._connected = True
        except BaseException as e:
            await self._close_internal()
            if _is_connection_error(e):
                raise ServerNotRunningError(
                    f"Cannot connect to cast-mcp server at {self._url}\n\nStart one with: cast-mcp --transport streamable-http",
                ) from e
            if isinstance(e, Exception):
                raise ServerNotRunningError(f"Cannot connect to cast-mcp server at {self._url}: {e}") from e
            raise

    async def _close_internal(self) -> None:
        self._connected = False
        self._session = None
        if self._exit_stack is not None:
            stack, self._exit_stack = self._exit_stack, None
            with contextlib.suppress(Exception):
                await stack.__aexit__(None, None, None)

    @staticmethod
    def _extract_result(result: CallToolResult) -> ToolResponse:
        texts = [block.text for block in result.content if getattr(block, "type", None) == "text"]
        return ToolResponse(text="\n".join(texts), is_error=bool(result.isError))

    async def list_tools(self) -> list[Any]:
        """List tools offered by the server."""
        if not self._connected or self._session is None:
            raise ClientError("Not connected")
        result = await self._session.list_tools()
        return list(result.tools) if result and result.tools else []

    async def call_tool(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResponse:
        """Call a tool by its wire name; error results are returned, not raised."""
        if not self._connected or self._session is None:
            raise ClientError("Not connected")
        result = await self._session.call_tool(name, arguments or {})
        return self._extract_result(result)


__all__ = ["CastMcpClient", "ClientError", "ServerNotRunningError", "ToolResponse", "normalize_server_url"]
