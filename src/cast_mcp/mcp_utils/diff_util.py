"""Unified diffs for dry-run previews."""

from __future__ import annotations

import difflib


def unified_diff(original: str, modified: str, path: str, context_lines: int = 3) -> str:
    """Render the change from ``original`` to ``modified`` as a unified diff.

    Both headers carry ``path``.  Identical inputs produce a short
    "No changes would be made" note instead of an empty diff.
    """
    if original == modified:
        return f"No changes would be made to {path}"
    lines = difflib.unified_diff(
        original.splitlines(keepends=True),
        modified.splitlines(keepends=True),
        fromfile=path,
        tofile=path,
        n=context_lines,
    )
    out: list[str] = []
    for line in lines:
        if not line.endswith("\n"):
            line += "\n\\ No newline at end of file\n"
        out.append(line)
    return "".join(out).rstrip("\n")
