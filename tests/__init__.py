"""cast-mcp tests

Unit tests cover the naming rules, schemas, argument binding, the dispatcher
and the built-in text engine.  Integration tests drive the MCP server through
an in-memory client session and the CLI engine through stand-in ``cast``
scripts.

Fixtures (conftest.py):
- sample_cs - a small C# file written to a temporary directory
- text_engine - the built-in text engine
- text_provider - protocol adapter over a registry built from the text engine

Usage:
    pytest tests/ -v
    pytest tests/ -m unit
    pytest tests/ -k "dispatcher" -v
"""
