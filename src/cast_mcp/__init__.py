"""cast-mcp - MCP server exposing C# refactoring operations.

Each operation of the ``cast`` refactoring tool (rename, extract-method,
sort-usings, ...) is advertised as an MCP tool named ``cast_<operation>``.
Run ``cast-mcp`` for the server and ``cast-mcp-cli`` to call a running one.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("cast-mcp")
except PackageNotFoundError:
    # Running from a source checkout without an install
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
