"""cast-mcp - Main entry point.

Serves the cast refactoring tools over MCP.
Usage: cast-mcp [--transport stdio|streamable-http] [--engine auto|text|cli] [--verbose]
"""

from __future__ import annotations

import argparse
import logging
import sys

from pathlib import Path

from cast_mcp import __version__
from cast_mcp.config import ConfigManager
from cast_mcp.engine import ENGINE_KINDS, build_engine
from cast_mcp.errors import RegistryBuildError
from cast_mcp.mcp_server.server import CastMcpServer, ServerConfig
from cast_mcp.mcp_utils.debug_logger import DebugLogger

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cast-mcp",
        description="MCP server exposing C# refactoring operations",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    g_server = parser.add_argument_group("Server options")
    g_server.add_argument(
        "-t",
        "--transport",
        choices=["stdio", "streamable-http"],
        default="stdio",
        help="Transport: stdio or streamable HTTP",
    )
    g_server.add_argument(
        "-o",
        "--host",
        type=str,
        default=None,
        help="Host for the HTTP transport (default: CAST_MCP_HOST or 127.0.0.1)",
    )
    g_server.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP transport (default: CAST_MCP_PORT or 8080)",
    )

    g_engine = parser.add_argument_group("Engine options")
    g_engine.add_argument(
        "--engine",
        choices=list(ENGINE_KINDS),
        default=None,
        help="Refactoring engine: the cast executable (cli), built-in text refactorings (text), or cli when cast is on PATH (auto)",
    )
    g_engine.add_argument(
        "--cast-command",
        type=str,
        default=None,
        help="Command used to run the cast tool (default: CAST_MCP_CAST_COMMAND or cast)",
    )
    g_engine.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Seconds before a cast invocation is killed (default: CAST_MCP_ENGINE_TIMEOUT or 120)",
    )

    parser.add_argument("--config", type=Path, default=None, help="JSON configuration file")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable verbose logging")
    return parser


def main() -> None:
    """Main entry point for the cast-mcp command."""
    parser = _build_parser()
    args = parser.parse_args()

    # stdout belongs to the stdio transport
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        stream=sys.stderr,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.config and not args.config.exists():
        sys.stderr.write(f"Error: Configuration file not found: {args.config}\n")
        sys.exit(1)

    config = ConfigManager(args.config)
    if args.verbose:
        DebugLogger.set_debug_enabled(True)

    try:
        if args.host is not None:
            config.set_server_host(args.host, persist=False)
        if args.port is not None:
            config.set_server_port(args.port, persist=False)
        if args.engine is not None:
            config.set_engine_kind(args.engine, persist=False)
        if args.cast_command is not None:
            config.set_cast_command(args.cast_command, persist=False)
        if args.timeout is not None:
            config.set_engine_timeout_seconds(args.timeout, persist=False)
    except ValueError as e:
        parser.error(str(e))

    try:
        engine = build_engine(
            config.get_engine_kind(),
            cast_command=config.get_cast_command(),
            timeout_seconds=float(config.get_engine_timeout_seconds()),
        )
        server = CastMcpServer(
            engine,
            ServerConfig(host=config.get_server_host(), port=config.get_server_port()),
        )
    except (RegistryBuildError, ValueError) as e:
        sys.stderr.write(f"Initialization error: {e}\n")
        sys.exit(1)

    logger.info(f"cast-mcp {__version__} using the {engine.name} engine ({len(server.registry)} tools)")

    try:
        if args.transport == "stdio":
            server.run_stdio()
        else:
            server.run_http()
    except KeyboardInterrupt:
        sys.stderr.write("\nShutdown complete\n")
        sys.exit(0)


if __name__ == "__main__":
    main()
