"""MCP server exposing the cast refactoring tools.

Two transports are supported: stdio (one client, the usual way MCP hosts
launch servers) and streamable HTTP served by FastAPI/uvicorn.
"""

from __future__ import annotations

import asyncio
import logging

from typing import Any

from fastapi import FastAPI
from mcp import types
from mcp.server import Server as MCPServer
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from pydantic import BaseModel

from cast_mcp import __version__
from cast_mcp.engine.base import RefactoringEngine
from cast_mcp.mcp_server.dispatcher import Dispatcher
from cast_mcp.mcp_server.tool_providers import CastToolProvider
from cast_mcp.mcp_utils.debug_logger import DebugLogger
from cast_mcp.registry import CapabilityRegistry, build_registry

logger = logging.getLogger(__name__)


class ServerConfig(BaseModel):
    """Configuration for the MCP server."""

    name: str = "cast-mcp"
    version: str = __version__
    host: str = "127.0.0.1"
    port: int = 8080


class CastMcpServer:
    """MCP server over a refactoring engine.

    The registry is built in the constructor, so an engine that cannot be
    enumerated raises ``RegistryBuildError`` before anything is served.
    """

    def __init__(
        self,
        engine: RefactoringEngine,
        config: ServerConfig | None = None,
    ) -> None:
        self.config: ServerConfig = ServerConfig() if config is None else config
        self.engine: RefactoringEngine = engine

        self.registry: CapabilityRegistry = build_registry(engine)
        self.dispatcher: Dispatcher = Dispatcher(engine)
        self.tool_provider: CastToolProvider = CastToolProvider(self.registry, self.dispatcher)

        self.mcp_server: MCPServer = self._create_mcp_server()

        self._running: bool = False
        self._session_manager: StreamableHTTPSessionManager | None = None
        self._session_manager_cm = None
        self._app: FastAPI | None = None

    def _create_mcp_server(self) -> MCPServer:
        """Create the MCP server instance."""
        server = MCPServer(name=self.config.name, version=self.config.version)

        @server.list_tools()
        async def list_tools() -> list[types.Tool]:
            """List all available MCP tools."""
            return self.tool_provider.list_tools()

        @server.call_tool(validate_input=False)
        async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
            """Call a tool by name with arguments.

            Input validation is disabled: missing or mistyped arguments are
            reported as tool errors (or fall back to defaults) by the dispatcher
            instead of failing the whole request.
            """
            return await self.tool_provider.call_tool(name, arguments)

        return server

    # ------------------------------------------------------------------
    # HTTP transport
    # ------------------------------------------------------------------

    @property
    def app(self) -> FastAPI:
        if self._app is None:
            self._app = self._create_app()
        return self._app

    def _create_app(self) -> FastAPI:
        """Create the FastAPI app with the MCP endpoint and a health route."""
        app = FastAPI(title=self.config.name, version=self.config.version)
        self._session_manager = StreamableHTTPSessionManager(
            app=self.mcp_server,
            json_response=True,
            stateless=False,
        )

        @app.on_event("startup")
        async def _startup_session_manager() -> None:
            self._session_manager_cm = self._session_manager.run()
            await self._session_manager_cm.__aenter__()
            self._running = True

        @app.on_event("shutdown")
        async def _shutdown_session_manager() -> None:
            self._running = False
            if self._session_manager_cm is not None:
                await self._session_manager_cm.__aexit__(None, None, None)
                self._session_manager_cm = None

        app.mount("/mcp/message", self._session_manager.handle_request)

        @app.get("/health")
        async def health_check() -> dict[str, Any]:
            """Health check endpoint."""
            return {
                "status": "healthy" if self._running else "starting",
                "server": self.config.name,
                "version": self.config.version,
                "tools": len(self.registry),
            }

        return app

    async def serve_http(self) -> None:
        import uvicorn

        config = uvicorn.Config(app=self.app, host=self.config.host, port=self.config.port, log_level="info")
        server = uvicorn.Server(config)
        DebugLogger.debug(self, f"Starting HTTP transport on {self.config.host}:{self.config.port}")
        logger.info(f"MCP server listening on http://{self.config.host}:{self.config.port}/mcp/message")
        await server.serve()

    def run_http(self) -> None:
        """Serve streamable HTTP until interrupted."""
        asyncio.run(self.serve_http())

    # ------------------------------------------------------------------
    # stdio transport
    # ------------------------------------------------------------------

    async def serve_stdio(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            self._running = True
            logger.info(f"MCP server running on stdio with {len(self.registry)} tools")
            try:
                await self.mcp_server.run(
                    read_stream,
                    write_stream,
                    self.mcp_server.create_initialization_options(),
                )
            finally:
                self._running = False

    def run_stdio(self) -> None:
        """Serve MCP over stdin/stdout until the client disconnects."""
        asyncio.run(self.serve_stdio())

    def is_running(self) -> bool:
        return self._running


__all__ = ["CastMcpServer", "ServerConfig"]
