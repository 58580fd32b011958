"""Server wiring: MCP handlers, HTTP app and the cast-mcp entry point."""

from __future__ import annotations

import sys

from pathlib import Path

import pytest

from fastapi.testclient import TestClient
from mcp.shared.memory import create_connected_server_and_client_session

from cast_mcp import __version__
from cast_mcp.__main__ import main
from cast_mcp.errors import EngineError, RegistryBuildError
from cast_mcp.mcp_server.server import CastMcpServer, ServerConfig

from tests.helpers import FakeEngine, assert_tool_schema_invariants, single_text


@pytest.mark.unit
class TestServerConstruction:
    def test_registry_failure_aborts_construction(self):
        with pytest.raises(RegistryBuildError):
            CastMcpServer(FakeEngine(discover_error=EngineError("cast is not installed")))

    def test_default_config(self, text_engine):
        server = CastMcpServer(text_engine)
        assert server.config == ServerConfig()
        assert server.config.version == __version__
        assert len(server.registry) == 10
        assert server.is_running() is False

    def test_health_before_startup(self, text_engine):
        server = CastMcpServer(text_engine, ServerConfig(name="cast-test"))
        response = TestClient(server.app).get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "starting", "server": "cast-test", "version": __version__, "tools": 10}

    def test_app_is_created_once(self, text_engine):
        server = CastMcpServer(text_engine)
        assert server.app is server.app


@pytest.mark.integration
class TestInMemorySession:
    @pytest.mark.asyncio
    async def test_list_and_call(self, text_engine, sample_cs: Path):
        server = CastMcpServer(text_engine)
        async with create_connected_server_and_client_session(server.mcp_server) as client:
            listed = await client.list_tools()
            assert len(listed.tools) == 10
            rename = next(tool for tool in listed.tools if tool.name == "cast_rename")
            assert_tool_schema_invariants(rename, expected_name="cast_rename")
            assert rename.inputSchema["required"] == ["file_path", "old_name", "new_name"]

            result = await client.call_tool("cast_rename", {"file_path": str(sample_cs), "old_name": "Foo", "new_name": "Bar"})
            assert result.isError is False
            assert single_text(result).endswith(f"Wrote {sample_cs}")

            missing = await client.call_tool("cast_rename", {"old_name": "Foo"})
            assert missing.isError is True
            assert single_text(missing) == "Error: file_path is required"

            unknown = await client.call_tool("cast_extract_method", {"file_path": str(sample_cs)})
            assert unknown.isError is True
            assert single_text(unknown) == "Error: Unknown command: cast_extract_method"

        assert "public class Bar" in sample_cs.read_text(encoding="utf-8")


@pytest.mark.unit
class TestMain:
    def test_version(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
        monkeypatch.setattr(sys, "argv", ["cast-mcp", "--version"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 0
        assert capsys.readouterr().out.strip() == f"cast-mcp {__version__}"

    def test_missing_config_file(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str], tmp_path: Path):
        missing = tmp_path / "missing.json"
        monkeypatch.setattr(sys, "argv", ["cast-mcp", "--config", str(missing)])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
        assert f"Error: Configuration file not found: {missing}" in capsys.readouterr().err

    def test_missing_cast_executable(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
        monkeypatch.setattr(sys, "argv", ["cast-mcp", "--engine", "cli", "--cast-command", "cast-mcp-test-no-such-binary"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 1
        err = capsys.readouterr().err
        assert "Initialization error: Failed to enumerate operations from the cli engine" in err
        assert "'cast-mcp-test-no-such-binary' executable not found on PATH" in err

    def test_invalid_port(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(sys, "argv", ["cast-mcp", "--port", "0"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 2

    def test_runs_selected_transport(self, monkeypatch: pytest.MonkeyPatch):
        started: list[CastMcpServer] = []
        monkeypatch.setattr(CastMcpServer, "run_http", lambda self: started.append(self))
        monkeypatch.setattr(sys, "argv", ["cast-mcp", "-t", "streamable-http", "--engine", "text", "-o", "0.0.0.0", "-p", "9123"])
        main()
        [server] = started
        assert server.config.host == "0.0.0.0"
        assert server.config.port == 9123
        assert server.engine.name == "text"

    def test_keyboard_interrupt(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]):
        def interrupted(self):
            raise KeyboardInterrupt

        monkeypatch.setattr(CastMcpServer, "run_stdio", interrupted)
        monkeypatch.setattr(sys, "argv", ["cast-mcp", "--engine", "text"])
        with pytest.raises(SystemExit) as exc:
            main()
        assert exc.value.code == 0
        assert "Shutdown complete" in capsys.readouterr().err
