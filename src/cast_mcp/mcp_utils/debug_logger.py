"""Debug logging for tool calls, switched on by the ``Debug Mode`` option.

Messages are written at INFO to the logger of the module that emits them, so
they appear beside the normal server log without lowering its level.
"""

from __future__ import annotations

import logging
import time

from contextlib import contextmanager
from typing import Any, Iterator


class DebugLogger:
    """Process-wide debug switch plus the helpers that honour it."""

    _enabled: bool = False

    @classmethod
    def set_debug_enabled(cls, enabled: bool) -> None:
        cls._enabled = bool(enabled)

    @classmethod
    def is_debug_enabled(cls) -> bool:
        return cls._enabled

    @staticmethod
    def _logger_for(source: Any) -> logging.Logger:
        # a module name, or any object whose module owns the message
        name = source if isinstance(source, str) else type(source).__module__
        return logging.getLogger(name)

    @classmethod
    def debug(cls, source: Any, message: str) -> None:
        if cls._enabled:
            cls._logger_for(source).info(f"[DEBUG] {message}")

    @classmethod
    @contextmanager
    def time_operation(cls, source: Any, tool_name: str, target: str | None = None) -> Iterator[None]:
        """Log the start, outcome and duration of one tool call.

        Example:
            with DebugLogger.time_operation(self, "rename", file_path):
                result = await engine.execute(...)

        Exceptions (cancellation included) are logged as ``ERROR`` and re-raised.
        """
        if not cls._enabled:
            yield
            return

        log = cls._logger_for(source)
        log.info(f"[DEBUG-TOOL] {tool_name} - START{f': {target}' if target else ''}")
        started = time.monotonic()
        try:
            yield
        except BaseException as e:
            log.info(f"[DEBUG-TOOL] {tool_name} - ERROR after {_elapsed_ms(started)}ms: {type(e).__name__}")
            raise
        log.info(f"[DEBUG-TOOL] {tool_name} - SUCCESS in {_elapsed_ms(started)}ms")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)
