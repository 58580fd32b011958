"""Refactoring engine backed by the external ``cast`` command-line tool.

Every catalog operation maps onto one ``cast <verb> <file> ...`` invocation.
Single-file transforms are redirected with ``--output`` into a private
temporary directory and the result is read back, so the target file is only
ever written by the dispatcher.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import tempfile

from pathlib import Path
from typing import Any

from cast_mcp.engine.base import EngineResult, OperationDefinition, RefactoringEngine, RefactoringRequest
from cast_mcp.engine.catalog import OPERATIONS, OPERATIONS_BY_ID, PROJECT, TRANSFORM, OperationSpec
from cast_mcp.errors import EngineError

logger = logging.getLogger(__name__)

_MARKUP_RE = re.compile(r"\[(?:/|red|green|yellow|blue|cyan|dim|bold|grey|gray|italic|underline)\]")


def strip_markup(text: str) -> str:
    """Remove console style tags such as ``[green]`` and ``[/]`` from tool output."""
    return _MARKUP_RE.sub("", text)


class CastCliEngine(RefactoringEngine):
    """Runs operations through the ``cast`` executable."""

    name = "cli"

    def __init__(self, command: str = "cast", timeout_seconds: float = 120.0) -> None:
        self.command: str = command
        self.timeout_seconds: float = timeout_seconds
        self._executable: str | None = None

    def discover_operations(self) -> list[OperationDefinition]:
        self._executable = shutil.which(self.command)
        if self._executable is None:
            raise EngineError(f"'{self.command}' executable not found on PATH")
        logger.info("Using cast executable at %s", self._executable)
        return [OperationDefinition(op.identifier, op.kind) for op in OPERATIONS]

    def build_arguments(self, spec: OperationSpec, request: RefactoringRequest, output_file: str | None) -> list[str]:
        """Translate a request into the tool's command-line arguments (without the executable)."""
        args: list[str] = [spec.verb, request.file_path]
        for name in spec.positionals:
            args.append(_format_value(request.option(name, "")))
        for name, flag in spec.options.items():
            value = request.option(name)
            if value is None or value == "":
                continue
            if isinstance(value, bool):
                if value:
                    args.append(flag)
                continue
            args.extend([flag, _format_value(value)])
        if spec.accepts_line:
            args.extend(["--line", str(request.line_number)])
        if spec.accepts_column:
            args.extend(["--column", str(request.column_number)])
        if spec.kind == TRANSFORM and output_file is not None:
            args.extend(["--output", output_file])
        if spec.kind == PROJECT and request.dry_run:
            args.append("--dry-run")
        return args

    async def execute(self, identifier: str, request: RefactoringRequest) -> EngineResult:
        spec = OPERATIONS_BY_ID.get(identifier)
        if spec is None:
            raise EngineError(f"Unknown operation: {identifier}")

        if spec.kind != TRANSFORM:
            stdout = await self._run(self.build_arguments(spec, request, None))
            return EngineResult(report=stdout or f"{spec.verb} completed")

        with tempfile.TemporaryDirectory(prefix="cast-mcp-") as workdir:
            output_file = str(Path(workdir) / Path(request.file_path).name)
            stdout = await self._run(self.build_arguments(spec, request, output_file))
            output = Path(output_file)
            content = output.read_text(encoding="utf-8") if output.is_file() else None
        stdout = stdout.replace(output_file, request.output_path or request.file_path)
        return EngineResult(report=stdout or f"{spec.verb} completed", content=content)

    async def _run(self, args: list[str]) -> str:
        executable = self._executable or shutil.which(self.command) or self.command
        logger.debug("Running %s %s", executable, " ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise EngineError(f"Failed to start {self.command}: {e}") from e

        try:
            stdout_b, stderr_b = await asyncio.wait_for(process.communicate(), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            await _kill(process)
            raise EngineError(f"{self.command} {args[0]} timed out after {self.timeout_seconds:g}s") from None
        except asyncio.CancelledError:
            await _kill(process)
            raise

        stdout = strip_markup(stdout_b.decode("utf-8", errors="replace")).strip()
        stderr = strip_markup(stderr_b.decode("utf-8", errors="replace")).strip()
        if process.returncode != 0:
            raise EngineError(_last_line(stderr) or _last_line(stdout) or f"{self.command} {args[0]} exited with status {process.returncode}")
        return stdout


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
        await process.wait()


def _last_line(text: str) -> str:
    for line in reversed(text.splitlines()):
        if line.strip():
            return line.strip()
    return ""


def _format_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)


__all__ = ["CastCliEngine", "strip_markup"]
