"""Test helper utilities for cast-mcp tests.

Provides common functionality used across multiple test modules:
- A scriptable fake refactoring engine
- Tool result and schema validation
"""

from __future__ import annotations

import asyncio

from pathlib import Path
from typing import Any

from mcp import types

from cast_mcp.engine.base import EngineResult, OperationDefinition, RefactoringEngine, RefactoringRequest
from cast_mcp.engine.catalog import TRANSFORM

SAMPLE_SOURCE = r"""using System.Text;
using System;
using MyApp.Models;

namespace MyApp
{
    public class Foo
    {
        private int count = 0x1F;

        public string Name { get; set; }

        public Foo(string name)
        {
            Name = name;
            var path = "C:\\temp\\Foo";
        }

        // Foo is the widget
        public Foo Clone() => new Foo(Name);
    }
}
"""


class FakeEngine(RefactoringEngine):
    """Engine double that records requests and returns (or raises) what it is told."""

    name = "fake"

    def __init__(
        self,
        operations: list[OperationDefinition] | None = None,
        result: EngineResult | None = None,
        error: BaseException | None = None,
        discover_error: BaseException | None = None,
    ) -> None:
        self.operations: list[OperationDefinition] = operations or [OperationDefinition("RenameCommand", TRANSFORM)]
        self.result: EngineResult = result or EngineResult(report="fake report")
        self.error: BaseException | None = error
        self.discover_error: BaseException | None = discover_error
        self.calls: list[tuple[str, RefactoringRequest]] = []
        self.started: asyncio.Event | None = None
        self.release: asyncio.Event | None = None

    def block_until_released(self) -> None:
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    def discover_operations(self) -> list[OperationDefinition]:
        if self.discover_error is not None:
            raise self.discover_error
        return list(self.operations)

    async def execute(self, identifier: str, request: RefactoringRequest) -> EngineResult:
        self.calls.append((identifier, request))
        if self.started is not None and self.release is not None:
            self.started.set()
            await self.release.wait()
        if self.error is not None:
            raise self.error
        return self.result


def write_source(directory: Path, name: str = "Widget.cs", text: str = SAMPLE_SOURCE) -> Path:
    path = directory / name
    path.write_bytes(text.encode("utf-8"))
    return path


def single_text(result: types.CallToolResult) -> str:
    """Return the only text block of a tool result."""
    assert isinstance(result, types.CallToolResult)
    assert len(result.content) == 1
    block = result.content[0]
    assert block.type == "text"
    assert isinstance(block.text, str)
    return block.text


def assert_tool_schema_invariants(tool: Any, *, expected_name: str | None = None) -> None:
    assert isinstance(tool.name, str)
    assert tool.name.startswith("cast_")
    assert tool.name == tool.name.lower()
    assert "-" not in tool.name
    if expected_name is not None:
        assert tool.name == expected_name
    assert isinstance(tool.description, str) and tool.description
    schema = tool.inputSchema
    assert isinstance(schema, dict)
    assert schema.get("type") == "object"
    assert isinstance(schema.get("properties"), dict)
    assert "file_path" in schema.get("required", [])
    assert all(name in schema["properties"] for name in schema["required"])
    for name, prop in schema["properties"].items():
        assert name == name.strip() and " " not in name
        assert prop.get("type") in ("string", "integer", "boolean")
        assert prop.get("description")
