from __future__ import annotations

import os

from pathlib import Path

import pytest

from cast_mcp.engine.text_engine import TextRefactoringEngine
from cast_mcp.mcp_server.dispatcher import Dispatcher
from cast_mcp.mcp_server.tool_providers import CastToolProvider
from cast_mcp.mcp_utils.debug_logger import DebugLogger
from cast_mcp.registry import build_registry

from tests.helpers import write_source


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch):
    for name in list(os.environ):
        if name.startswith("CAST_MCP_"):
            monkeypatch.delenv(name, raising=False)
    yield
    DebugLogger.set_debug_enabled(False)


@pytest.fixture
def sample_cs(tmp_path: Path) -> Path:
    return write_source(tmp_path)


@pytest.fixture
def text_engine() -> TextRefactoringEngine:
    return TextRefactoringEngine()


@pytest.fixture
def text_provider(text_engine: TextRefactoringEngine) -> CastToolProvider:
    return CastToolProvider(build_registry(text_engine), Dispatcher(text_engine))
