"""Refactoring engine interface.

The registry and dispatcher only talk to engines through this module:
enumerate the operations an engine can run, and run one of them against a
request.  Engines never commit rewritten source for ``transform`` operations;
they hand the new text back in ``EngineResult.content`` and the dispatcher
decides whether to write it (or, on a dry run, to diff it).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from cast_mcp.engine.catalog import TRANSFORM
from cast_mcp.errors import EngineError


@dataclass(frozen=True)
class OperationDefinition:
    """An invocable operation as reported by an engine."""

    identifier: str
    kind: str = TRANSFORM


@dataclass(frozen=True)
class RefactoringRequest:
    """Bound arguments for a single engine invocation."""

    file_path: str
    source: str
    line_number: int = 1
    column_number: int = 0
    output_path: str | None = None
    dry_run: bool = False
    options: dict[str, Any] = field(default_factory=dict)

    def option(self, name: str, default: Any = None) -> Any:
        value = self.options.get(name)
        return default if value is None else value


@dataclass(frozen=True)
class EngineResult:
    """What an engine produced.

    ``content`` is the complete rewritten text of the target file, or None when
    the operation only reports (analysis) or manages files itself (project).
    """

    report: str
    content: str | None = None


class RefactoringEngine(ABC):
    """Base class for refactoring engines."""

    name: str = "engine"

    @abstractmethod
    def discover_operations(self) -> list[OperationDefinition]:
        """Enumerate every operation this engine can execute.

        Raises:
            EngineError: if the engine is unusable (the server refuses to start).
        """

    @abstractmethod
    async def execute(self, identifier: str, request: RefactoringRequest) -> EngineResult:
        """Run ``identifier`` against ``request``.

        Raises:
            EngineError: when the operation cannot be applied.
        """


__all__ = [
    "EngineError",
    "EngineResult",
    "OperationDefinition",
    "RefactoringEngine",
    "RefactoringRequest",
]
