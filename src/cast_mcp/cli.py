"""Command-line client for a running cast-mcp server.

Usage:
  # Start the server (in another terminal)
  cast-mcp --transport streamable-http --port 8080

  # Use the CLI
  cast-mcp-cli tools
  cast-mcp-cli call rename -a file_path=src/Widget.cs -a old_name=Foo -a new_name=Bar
  cast-mcp-cli call cast_sort_usings --args '{"file_path": "src/Widget.cs", "dry_run": true}'
"""

from __future__ import annotations

import asyncio
import json
import sys

from typing import Any

import click

from cast_mcp import __version__
from cast_mcp.client import CastMcpClient, ServerNotRunningError, ToolResponse
from cast_mcp.registry import WIRE_PREFIX, to_wire_name


def _get_opts(ctx: click.Context) -> dict[str, Any]:
    return ctx.obj or {}


def _client(ctx: click.Context) -> CastMcpClient:
    opts = _get_opts(ctx)
    return CastMcpClient(host=opts.get("host", "127.0.0.1"), port=opts.get("port", 8080), url=opts.get("server_url"))


def _fmt(ctx: click.Context) -> str:
    return _get_opts(ctx).get("format", "text")


def resolve_wire_name(name: str) -> str:
    """Accept either a wire name (``cast_extract_method``) or a tool name (``extract-method``)."""
    name = name.strip()
    if name.startswith(WIRE_PREFIX):
        return name
    return to_wire_name(name)


def _parse_tool_payload(arguments: str) -> dict[str, Any]:
    """Parse the JSON object given with ``--args``."""
    arguments = arguments.strip()
    if arguments and arguments[0] in ('"', "'") and arguments[-1] == arguments[0]:
        arguments = arguments[1:-1]

    try:
        payload = json.loads(arguments) if arguments else {}
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON arguments: {e}", err=True)
        sys.exit(1)

    if not isinstance(payload, dict):
        click.echo("Arguments must be a JSON object.", err=True)
        sys.exit(1)
    return payload


def parse_assignment(assignment: str) -> tuple[str, Any]:
    """Parse ``key=value``; the value is read as JSON when it parses, otherwise as a string.

    ``line_number=12`` gives an int and ``dry_run=true`` a bool, while
    ``new_name=Bar`` stays a string.
    """
    key, sep, raw = assignment.partition("=")
    key = key.strip()
    if not sep or not key:
        raise click.BadParameter(f"expected key=value, got '{assignment}'", param_hint="-a/--arg")
    try:
        return key, json.loads(raw)
    except json.JSONDecodeError:
        return key, raw


async def _call(ctx: click.Context, tool: str, payload: dict[str, Any]) -> ToolResponse:
    try:
        async with _client(ctx) as client:
            return await client.call_tool(tool, payload)
    except ServerNotRunningError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error calling tool '{tool}': {exc}", err=True)
        sys.exit(1)


async def _list(ctx: click.Context) -> list[Any]:
    try:
        async with _client(ctx) as client:
            return await client.list_tools()
    except ServerNotRunningError as exc:
        click.echo(str(exc), err=True)
        sys.exit(1)
    except Exception as exc:
        click.echo(f"Error listing tools: {exc}", err=True)
        sys.exit(1)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--host", default="127.0.0.1", help="Server host")
@click.option("--port", type=int, default=8080, help="Server port")
@click.option("--server-url", help="Full server URL (overrides --host/--port)")
@click.option(
    "-f",
    "--format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.version_option(__version__, "--version", "-V")
@click.pass_context
def main(ctx: click.Context, host: str, port: int, server_url: str | None, format: str) -> None:
    """Call C# refactoring tools on a running cast-mcp server."""
    ctx.obj = {
        "host": host,
        "port": port,
        "server_url": server_url,
        "format": format,
    }


@main.command("tools")
@click.pass_context
def tools_command(ctx: click.Context) -> None:
    """List the tools offered by the server."""
    tools = asyncio.run(_list(ctx))
    if _fmt(ctx) == "json":
        click.echo(
            json.dumps(
                [{"name": t.name, "description": t.description, "inputSchema": t.inputSchema} for t in tools],
                indent=2,
            ),
        )
        return
    width = max((len(t.name) for t in tools), default=0)
    for t in tools:
        click.echo(f"{t.name.ljust(width)}  {t.description or ''}")


@main.command("call")
@click.argument("name")
@click.option("--args", "arguments", default="", help="Tool arguments as a JSON object")
@click.option("-a", "--arg", "assignments", multiple=True, help="Tool argument as key=value (repeatable)")
@click.pass_context
def call_command(ctx: click.Context, name: str, arguments: str, assignments: tuple[str, ...]) -> None:
    """Call tool NAME (wire name or tool name).  Exits 1 when the tool reports an error."""
    payload = _parse_tool_payload(arguments)
    for assignment in assignments:
        key, value = parse_assignment(assignment)
        payload[key] = value

    tool = resolve_wire_name(name)
    response = asyncio.run(_call(ctx, tool, payload))

    if _fmt(ctx) == "json":
        click.echo(json.dumps({"tool": tool, "isError": response.is_error, "text": response.text}, indent=2))
    elif response.is_error:
        click.echo(response.text, err=True)
    else:
        click.echo(response.text)

    if response.is_error:
        sys.exit(1)


if __name__ == "__main__":
    main()
