"""Refactoring engines that execute cast operations.

``build_engine`` picks an engine by name: ``text`` (built-in lexical
refactorings), ``cli`` (the external ``cast`` tool), or ``auto`` (``cli`` when
the executable is on PATH, otherwise ``text``).
"""

from __future__ import annotations

import logging
import shutil

from .base import EngineResult, OperationDefinition, RefactoringEngine, RefactoringRequest
from .catalog import OPERATIONS, OPERATIONS_BY_ID, OperationSpec
from .cli_engine import CastCliEngine
from .text_engine import TextRefactoringEngine

logger = logging.getLogger(__name__)

ENGINE_KINDS = ("auto", "text", "cli")


def build_engine(kind: str = "auto", cast_command: str = "cast", timeout_seconds: float = 120.0) -> RefactoringEngine:
    """Create the engine selected by ``kind``."""
    normalized = (kind or "auto").strip().lower()
    if normalized not in ENGINE_KINDS:
        raise ValueError(f"Unknown engine '{kind}' (expected one of: {', '.join(ENGINE_KINDS)})")
    if normalized == "auto":
        normalized = "cli" if shutil.which(cast_command) else "text"
        logger.info("Engine 'auto' resolved to '%s'", normalized)
    if normalized == "cli":
        return CastCliEngine(command=cast_command, timeout_seconds=timeout_seconds)
    return TextRefactoringEngine()


__all__ = [
    "ENGINE_KINDS",
    "OPERATIONS",
    "OPERATIONS_BY_ID",
    "CastCliEngine",
    "EngineResult",
    "OperationDefinition",
    "OperationSpec",
    "RefactoringEngine",
    "RefactoringRequest",
    "TextRefactoringEngine",
    "build_engine",
]
