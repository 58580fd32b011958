"""Dispatcher: validate a call, run the engine, commit or preview the result.

Expected failures (missing ``file_path``, missing required arguments, a
target that is not a file) are returned as error results before the engine
is ever reached.  Anything the engine raises is logged with its traceback and
reduced to a one-line error message.

For ``transform`` operations the engine only returns the rewritten text.
The dispatcher turns it into a diff on a dry run, or writes it atomically
otherwise, so a dry run can never touch the file system.
"""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import tempfile

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cast_mcp.engine.base import RefactoringEngine, RefactoringRequest
from cast_mcp.engine.catalog import TRANSFORM
from cast_mcp.errors import ErrorKind
from cast_mcp.mcp_server.arguments import ArgumentBag, bind_parameter, get_bool, get_int, get_string, is_blank
from cast_mcp.mcp_utils.debug_logger import DebugLogger
from cast_mcp.mcp_utils.diff_util import unified_diff
from cast_mcp.registry import CapabilityDescriptor
from cast_mcp.tools_schema import (
    COLUMN_NUMBER,
    DEFAULT_COLUMN_NUMBER,
    DEFAULT_LINE_NUMBER,
    DRY_RUN,
    FILE_PATH,
    LINE_NUMBER,
    OUTPUT_PATH,
    get_extension,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    text: str
    is_error: bool = False
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, text: str) -> DispatchResult:
        return cls(text)

    @classmethod
    def error(cls, kind: ErrorKind, message: str) -> DispatchResult:
        return cls(f"Error: {message}", True, kind)


def sanitize_message(error: BaseException) -> str:
    """First line of the exception message, or the exception type if it has none."""
    message = str(error).strip()
    if not message:
        return error.__class__.__name__
    return message.splitlines()[0].strip()


def _read_source(path: Path) -> str:
    with open(path, encoding="utf-8", newline="") as f:
        return f.read()


def _discard(tmp_name: str) -> None:
    try:
        os.unlink(tmp_name)
    except FileNotFoundError:
        pass


def _write_temp(target: Path, content: str) -> str:
    """Write ``content`` to a temporary sibling of ``target`` and return its name."""
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(content)
        if target.exists():
            os.chmod(tmp_name, stat.S_IMODE(target.stat().st_mode))
    except BaseException:
        _discard(tmp_name)
        raise
    return tmp_name


def _discard_finished_write(future: asyncio.Future) -> None:
    if not future.cancelled() and future.exception() is None:
        _discard(future.result())


async def _write_atomic(target: Path, content: str) -> None:
    """Write ``content`` to ``target`` via a temporary sibling and ``os.replace``.

    The temporary file is written off the loop; the rename happens on the loop
    thread, so a cancelled call never replaces the target.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, _write_temp, target, content)
    try:
        tmp_name = await asyncio.shield(future)
    except asyncio.CancelledError:
        future.add_done_callback(_discard_finished_write)
        raise
    try:
        os.replace(tmp_name, target)
    except BaseException:
        _discard(tmp_name)
        raise


def _same_file(a: Path, b: Path) -> bool:
    try:
        return a.resolve() == b.resolve()
    except OSError:
        return False


class Dispatcher:
    """Runs resolved capabilities against a refactoring engine."""

    def __init__(self, engine: RefactoringEngine):
        self.engine: RefactoringEngine = engine

    def build_options(self, descriptor: CapabilityDescriptor, arguments: ArgumentBag | None) -> dict[str, Any]:
        extension = get_extension(descriptor.tool_name)
        if extension is None:
            return {}
        return {param.name: bind_parameter(arguments, param) for param in extension.parameters}

    async def invoke(self, descriptor: CapabilityDescriptor, arguments: ArgumentBag | None) -> DispatchResult:
        tool_name = descriptor.tool_name
        file_path = get_string(arguments, FILE_PATH).strip()
        if not file_path:
            return DispatchResult.error(ErrorKind.MISSING_REQUIRED_ARGUMENT, "file_path is required")

        options = self.build_options(descriptor, arguments)
        extension = get_extension(tool_name)
        if extension is not None:
            missing = [name for name in extension.required if is_blank(options.get(name))]
            if missing:
                return DispatchResult.error(
                    ErrorKind.MISSING_REQUIRED_ARGUMENT,
                    f"{tool_name} requires: {', '.join(missing)}",
                )

        path = Path(file_path)
        if not path.is_file():
            return DispatchResult.error(ErrorKind.TARGET_NOT_FOUND, f"File not found: {file_path}")

        line_number = get_int(arguments, LINE_NUMBER, DEFAULT_LINE_NUMBER)
        if line_number < 1:
            line_number = DEFAULT_LINE_NUMBER
        column_number = get_int(arguments, COLUMN_NUMBER, DEFAULT_COLUMN_NUMBER)
        if column_number < 0:
            column_number = DEFAULT_COLUMN_NUMBER
        output_path = get_string(arguments, OUTPUT_PATH).strip() or None
        dry_run = get_bool(arguments, DRY_RUN, False)

        loop = asyncio.get_running_loop()
        try:
            source = await loop.run_in_executor(None, _read_source, path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read {file_path}: {e}")
            return DispatchResult.error(ErrorKind.TARGET_NOT_FOUND, f"Cannot read {file_path}: {sanitize_message(e)}")

        request = RefactoringRequest(
            file_path=file_path,
            source=source,
            line_number=line_number,
            column_number=column_number,
            output_path=output_path,
            dry_run=dry_run,
            options=options,
        )

        try:
            with DebugLogger.time_operation(self, tool_name, file_path):
                result = await self.engine.execute(descriptor.operation_id, request)
                if descriptor.kind == TRANSFORM:
                    content = source if result.content is None else result.content
                    text = await self._finish_transform(request, tool_name, result.report, content)
                else:
                    header = self._header(tool_name, file_path, dry_run)
                    text = f"{header}\n{result.report}" if result.report else header
        except Exception as e:
            logger.exception(f"Operation {tool_name} failed on {file_path}")
            return DispatchResult.error(ErrorKind.ENGINE_FAILURE, sanitize_message(e))

        logger.info(f"Executed command {tool_name} on {file_path}{' (dry run)' if dry_run else ''}")
        return DispatchResult.ok(text)

    @staticmethod
    def _header(tool_name: str, file_path: str, dry_run: bool) -> str:
        if dry_run:
            return f"[DRY RUN] Would execute {tool_name} on {file_path}"
        return f"Successfully executed {tool_name} on {file_path}"

    async def _finish_transform(self, request: RefactoringRequest, tool_name: str, report: str, content: str) -> str:
        lines = [self._header(tool_name, request.file_path, request.dry_run)]
        if report:
            lines.append(report)

        if request.dry_run:
            lines.append(unified_diff(request.source, content, request.file_path))
            return "\n".join(lines)

        target = Path(request.output_path) if request.output_path else Path(request.file_path)
        if content == request.source and _same_file(target, Path(request.file_path)):
            lines.append(f"No changes were needed in {request.file_path}")
            return "\n".join(lines)

        await _write_atomic(target, content)
        lines.append(f"Wrote {target}")
        return "\n".join(lines)


__all__ = ["DispatchResult", "Dispatcher", "sanitize_message"]
