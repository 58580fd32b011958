"""Lexical helpers for C# source.

Just enough of the C# lexical grammar to tell code apart from comments and
literals: ``//`` and ``/* */`` comments, regular, verbatim, interpolated and
raw string literals, and character literals.  Identifier searches only look
at code segments, so renaming ``Foo`` never touches ``"Foo"`` or ``// Foo``,
while the expressions inside interpolation holes are treated as code.
"""

from __future__ import annotations

import bisect
import re
import unicodedata

from dataclasses import dataclass
from typing import Iterator

CODE = "code"
COMMENT = "comment"
STRING = "string"
CHAR = "char"

IDENTIFIER_RE = re.compile(r"@?[^\W\d]\w*")
VALID_IDENTIFIER_RE = re.compile(r"^@?[^\W\d]\w*$")
QUALIFIED_NAME_RE = re.compile(r"^[^\W\d]\w*(\.[^\W\d]\w*)*$")


@dataclass(frozen=True)
class Segment:
    kind: str
    start: int
    end: int


@dataclass(frozen=True)
class Token:
    name: str
    start: int
    end: int

    @property
    def bare_name(self) -> str:
        return self.name[1:] if self.name.startswith("@") else self.name


def newline_of(source: str) -> str:
    return "\r\n" if "\r\n" in source else "\n"


def _string_prefix(source: str, i: int) -> tuple[int, bool, bool] | None:
    """Return (prefix_length, verbatim, raw) if a string literal starts at ``i``."""
    j = i
    verbatim = False
    while j < len(source) and source[j] in "$@" and j - i < 4:
        if source[j] == "@":
            verbatim = True
        j += 1
    if j >= len(source) or source[j] != '"':
        return None
    raw = source.startswith('"""', j)
    return j - i, verbatim, raw


def _count_run(source: str, i: int, ch: str) -> int:
    j = i
    while j < len(source) and source[j] == ch:
        j += 1
    return j - i


class _Lexer:
    """Single pass over C# source producing ordered, non-overlapping segments.

    Interpolated strings are split: their literal text becomes STRING
    segments and the expressions inside the ``{...}`` holes are lexed as code.
    """

    def __init__(self, source: str) -> None:
        self.source = source
        self.n = len(source)
        self.out: list[Segment] = []

    def emit(self, kind: str, start: int, end: int) -> None:
        if end > start:
            self.out.append(Segment(kind, start, end))

    def code(self, i: int, in_hole: bool = False) -> int:
        """Lex code from ``i``.

        In a hole, stop at the unmatched ``}`` or the top-level ``:`` that
        starts a format specifier and return its index.
        """
        source, n = self.source, self.n
        start = i
        depth = 0
        while i < n:
            ch = source[i]
            if source.startswith("//", i):
                self.emit(CODE, start, i)
                end = source.find("\n", i)
                end = n if end < 0 else end
                self.emit(COMMENT, i, end)
                i = start = end
                continue
            if source.startswith("/*", i):
                self.emit(CODE, start, i)
                end = source.find("*/", i + 2)
                end = n if end < 0 else end + 2
                self.emit(COMMENT, i, end)
                i = start = end
                continue
            if ch in '"$@':
                prefix = _string_prefix(source, i)
                if prefix is not None:
                    self.emit(CODE, start, i)
                    i = start = self.string(i, *prefix)
                    continue
            if ch == "'":
                self.emit(CODE, start, i)
                j = i + 1
                while j < n and source[j] not in "'\n":
                    j += 2 if source[j] == "\\" else 1
                end = min(j + 1, n)
                self.emit(CHAR, i, end)
                i = start = end
                continue
            if in_hole:
                if ch in "([{":
                    depth += 1
                elif ch in ")]":
                    depth = max(depth - 1, 0)
                elif ch == "}":
                    if depth == 0:
                        self.emit(CODE, start, i)
                        return i
                    depth -= 1
                elif ch == ":" and depth == 0 and not source.startswith("::", i) and source[i - 1] != ":":
                    self.emit(CODE, start, i)
                    return i
            i += 1
        self.emit(CODE, start, n)
        return n

    def string(self, i: int, prefix_len: int, verbatim: bool, raw: bool) -> int:
        """Lex the string literal starting at ``i`` and return the index just past it."""
        source, n = self.source, self.n
        dollars = source.count("$", i, i + prefix_len)
        j = i + prefix_len
        if raw:
            quotes = _count_run(source, j, '"')
            closing = '"' * quotes
            j += quotes
        else:
            quotes = 1
            closing = '"'
            j += 1

        literal_start = i
        while j < n:
            ch = source[j]
            if raw:
                if source.startswith(closing, j):
                    self.emit(STRING, literal_start, j + quotes)
                    return j + quotes
            elif verbatim:
                if ch == '"':
                    if j + 1 < n and source[j + 1] == '"':
                        j += 2
                        continue
                    self.emit(STRING, literal_start, j + 1)
                    return j + 1
            else:
                if ch == "\\":
                    j += 2
                    continue
                if ch == '"':
                    self.emit(STRING, literal_start, j + 1)
                    return j + 1
                if ch == "\n":
                    self.emit(STRING, literal_start, j)
                    return j

            if ch == "{" and dollars:
                run = _count_run(source, j, "{")
                if raw:
                    if run < dollars:
                        j += run
                        continue
                    hole = j + run
                elif run >= 2:
                    # {{ is an escaped brace
                    j += 2
                    continue
                else:
                    hole = j + 1
                self.emit(STRING, literal_start, hole)
                stop = self.code(hole, in_hole=True)
                close = source.find("}", stop)
                close = n if close < 0 else close
                # format specifier and closing braces are literal text
                literal_start = stop
                j = min(close + (dollars if raw else 1), n)
                continue
            j += 1
        self.emit(STRING, literal_start, n)
        return n


def segments(source: str) -> list[Segment]:
    """Split ``source`` into code, comment, string and char segments.

    Expressions inside interpolation holes are code; only literal text is
    reported as STRING.
    """
    lexer = _Lexer(source)
    lexer.code(0)
    return lexer.out


def _is_identifier_part(ch: str) -> bool:
    return ch.isalnum() or ch == "_" or unicodedata.category(ch) in ("Mn", "Mc", "Pc", "Cf")


def iter_identifiers(source: str) -> Iterator[Token]:
    """Yield identifier tokens that appear in code (never in comments or literals)."""
    for segment in segments(source):
        if segment.kind != CODE:
            continue
        text = source[segment.start : segment.end]
        for match in IDENTIFIER_RE.finditer(text):
            start = segment.start + match.start()
            # letters glued to digits are literal suffixes or hex digits (10UL, 0x1F)
            if start > 0 and _is_identifier_part(source[start - 1]):
                continue
            end = segment.start + match.end()
            # combining marks continue an identifier but are not matched by \w
            while end < segment.end and _is_identifier_part(source[end]):
                end += 1
            yield Token(source[start:end], start, end)


class LineIndex:
    """Map between (1-based line, 0-based column) positions and string offsets."""

    def __init__(self, source: str) -> None:
        self.source = source
        self.starts: list[int] = [0]
        for match in re.finditer(r"\n", source):
            self.starts.append(match.end())

    @property
    def line_count(self) -> int:
        return len(self.starts)

    def offset(self, line: int, column: int) -> int:
        if line < 1 or line > self.line_count:
            raise ValueError(f"Line {line} is outside the file (1-{self.line_count})")
        start, end = self.line_bounds(line)
        return min(start + max(column, 0), end)

    def line_bounds(self, line: int) -> tuple[int, int]:
        start = self.starts[line - 1]
        end = self.starts[line] - 1 if line < self.line_count else len(self.source)
        if end > start and self.source[end - 1] == "\r":
            end -= 1
        return start, end

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self.starts, offset)

    def line_text(self, line: int) -> str:
        start, end = self.line_bounds(line)
        return self.source[start:end]


def token_at(source: str, line: int, column: int) -> Token | None:
    """Identifier covering (line, column), else the first one after it on that line."""
    index = LineIndex(source)
    offset = index.offset(line, column)
    _, line_end = index.line_bounds(line)
    following: Token | None = None
    for token in iter_identifiers(source):
        if token.start <= offset < token.end:
            return token
        if offset <= token.start < line_end and following is None:
            following = token
        if token.start >= line_end:
            break
    return following


def segment_at(source: str, line: int, column: int, kind: str) -> Segment | None:
    """Segment of ``kind`` covering (line, column), else the first one after it on that line."""
    index = LineIndex(source)
    offset = index.offset(line, column)
    _, line_end = index.line_bounds(line)
    for segment in segments(source):
        if segment.kind != kind:
            continue
        if segment.start <= offset < segment.end:
            return segment
        if offset <= segment.start < line_end:
            return segment
        if segment.start >= line_end:
            break
    return None
