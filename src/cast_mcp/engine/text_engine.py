"""Built-in refactoring engine working on C# source text.

No compiler is involved: every operation here works on the lexical structure
exposed by ``csharp_text`` (identifiers in code, comments, literals, lines).
That covers the operations which do not need a semantic model; everything
else is left to the external ``cast`` tool (see ``cli_engine``).

Handlers are pure functions of the request.  They run on a worker thread so
a slow rewrite never blocks the event loop, and they never write files.
"""

from __future__ import annotations

import asyncio
import datetime
import fnmatch
import functools
import logging
import re

from pathlib import Path
from typing import Callable, ClassVar

from cast_mcp.engine.base import EngineResult, OperationDefinition, RefactoringEngine, RefactoringRequest
from cast_mcp.engine.catalog import ANALYSIS, OPERATIONS_BY_ID
from cast_mcp.engine.csharp_text import (
    CODE,
    QUALIFIED_NAME_RE,
    STRING,
    VALID_IDENTIFIER_RE,
    LineIndex,
    iter_identifiers,
    newline_of,
    segment_at,
    segments,
    token_at,
)
from cast_mcp.errors import EngineError

logger = logging.getLogger(__name__)

_USING_RE = re.compile(
    r"^[ \t]*(?:global\s+)?using\s+(?:static\s+)?(?:(?P<alias>\w+)\s*=\s*)?(?P<name>[\w.]+(?:<[^;]*>)?)\s*;",
)
_HEADER_LINE_RE = re.compile(r"^\s*(?://|/\*|\*|#)")
_NUMERIC_RE = re.compile(r"(?<![\w.])(?P<body>0[xX][0-9A-Fa-f_]+|0[bB][01_]+|\d[\d_]*)(?P<suffix>[uUlL]{0,2})(?![\w.])")
_TYPE_DECL_RE = re.compile(
    r"^(?P<indent>[ \t]*)(?:\[[^\]]*\]\s*)*(?:(?:public|internal|private|protected|sealed|abstract|static|partial|unsafe|new)\s+)*"
    r"(?:class|struct|record)\s+(?P<name>\w+)",
)
_DECLARATION_RES = (
    re.compile(r"\b(?:class|interface|struct|enum|record|namespace|delegate\s+[\w<>\[\],.?]+)\s+(?P<name>[\w.]+)"),
    re.compile(
        r"^\s*(?:\[[^\]]*\]\s*)*(?:(?:public|private|protected|internal|static|virtual|override|abstract|async|sealed|"
        r"readonly|const|new|partial|extern|unsafe|required|volatile|event)\s+)*"
        r"(?P<type>[\w<>\[\],.?]+(?:\s*<[^>]*>)?)\s+(?P<name>\w+)\s*(?:\(|\{|=>|=|;)",
    ),
)
_NOT_A_TYPE = frozenset(
    {
        "return", "new", "throw", "await", "yield", "else", "case", "goto", "using", "var", "in", "is", "as",
        "if", "while", "for", "foreach", "switch", "lock", "catch", "typeof", "nameof", "default", "out", "ref",
    },
)
_PUBLIC_PROPERTY_RE = re.compile(r"^\s*public\s+(?:(?:static|virtual|override|required|new)\s+)*[\w<>\[\],.?]+\s+(?P<name>\w+)\s*\{\s*(?:get|set|init)")
_ESCAPES = {"n": "\n", "r": "\r", "t": "\t", "0": "\0", "a": "\a", "b": "\b", "f": "\f", "v": "\v", "\\": "\\", '"': '"', "'": "'"}
_NUMERIC_FORMATS = ("dec", "hex", "bin")


class TextRefactoringEngine(RefactoringEngine):
    """Lexical C# refactorings that need no semantic model."""

    name = "text"

    HANDLERS: ClassVar[dict[str, str]] = {
        "AddDebuggerDisplayCommand": "_add_debugger_display",
        "AddFileHeaderCommand": "_add_file_header",
        "AddUsingCommand": "_add_using",
        "ConvertNumericLiteralCommand": "_convert_numeric_literal",
        "ConvertStringLiteralCommand": "_convert_string_literal",
        "FindReferencesCommand": "_find_references",
        "FindSymbolsCommand": "_find_symbols",
        "FindUsagesCommand": "_find_usages",
        "RenameCommand": "_rename",
        "SortUsingsCommand": "_sort_usings",
    }

    def discover_operations(self) -> list[OperationDefinition]:
        return [OperationDefinition(identifier, OPERATIONS_BY_ID[identifier].kind) for identifier in self.HANDLERS]

    async def execute(self, identifier: str, request: RefactoringRequest) -> EngineResult:
        method_name = self.HANDLERS.get(identifier)
        if method_name is None:
            raise EngineError(f"Operation not supported by the text engine: {identifier}")
        handler: Callable[[RefactoringRequest], EngineResult] = getattr(self, method_name)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(handler, request))

    # ------------------------------------------------------------------
    # Symbols
    # ------------------------------------------------------------------

    def _rename(self, request: RefactoringRequest) -> EngineResult:
        old_name = str(request.option("old_name", "")).lstrip("@")
        new_name = str(request.option("new_name", ""))
        if not VALID_IDENTIFIER_RE.match(new_name):
            raise EngineError(f"'{new_name}' is not a valid C# identifier")

        source = request.source
        pieces: list[str] = []
        last = 0
        count = 0
        for token in iter_identifiers(source):
            if token.bare_name != old_name:
                continue
            pieces.append(source[last : token.start])
            pieces.append(new_name)
            last = token.end
            count += 1
        if count == 0:
            raise EngineError(f"No symbol named '{old_name}' found in {request.file_path}")
        pieces.append(source[last:])
        return EngineResult(
            report=f"Renamed '{old_name}' to '{new_name}' ({count} occurrence{'s' if count != 1 else ''})",
            content="".join(pieces),
        )

    # ------------------------------------------------------------------
    # Using directives
    # ------------------------------------------------------------------

    @staticmethod
    def _using_block(lines: list[str]) -> list[int]:
        """Indexes of the using directives in the file's leading block."""
        indexes: list[int] = []
        for i, line in enumerate(lines):
            if _USING_RE.match(line):
                indexes.append(i)
            elif line.strip() and not _HEADER_LINE_RE.match(line):
                break
        return indexes

    def _add_using(self, request: RefactoringRequest) -> EngineResult:
        namespace = str(request.option("namespace", "")).strip()
        if not QUALIFIED_NAME_RE.match(namespace):
            raise EngineError(f"'{namespace}' is not a valid namespace name")

        newline = newline_of(request.source)
        lines = request.source.splitlines(keepends=True)
        block = self._using_block(lines)
        names = [_USING_RE.match(lines[i]).group("name") for i in block]  # type: ignore[union-attr]
        if namespace in names:
            return EngineResult(report=f"Using statement for '{namespace}' already exists", content=request.source)

        directive = f"using {namespace};{newline}"
        if block:
            insert_at = block[0]
            for i, name in zip(block, names):
                if namespace > name:
                    insert_at = i + 1
                else:
                    break
            if insert_at > 0 and not lines[insert_at - 1].endswith(("\n", "\r")):
                lines[insert_at - 1] += newline
            lines.insert(insert_at, directive)
        else:
            insert_at = 0
            while insert_at < len(lines) and _HEADER_LINE_RE.match(lines[insert_at]):
                insert_at += 1
            while insert_at < len(lines) and not lines[insert_at].strip():
                insert_at += 1
            lines[insert_at:insert_at] = [directive, newline] if insert_at < len(lines) else [directive]
        return EngineResult(report=f"Added 'using {namespace};'", content="".join(lines))

    def _sort_usings(self, request: RefactoringRequest) -> EngineResult:
        separate_system = bool(request.option("separate_system", True))
        newline = newline_of(request.source)
        lines = request.source.splitlines(keepends=True)
        block = self._using_block(lines)
        if not block:
            return EngineResult(report="No using statements to sort", content=request.source)

        entries = [(_USING_RE.match(lines[i]).group("name"), lines[i].rstrip("\r\n")) for i in block]  # type: ignore[union-attr]
        if separate_system:
            system = sorted((e for e in entries if e[0].startswith("System")), key=lambda e: e[0])
            other = sorted((e for e in entries if not e[0].startswith("System")), key=lambda e: e[0])
            ordered = [text for _, text in system]
            if system and other:
                ordered.append("")
            ordered.extend(text for _, text in other)
        else:
            ordered = [text for _, text in sorted(entries, key=lambda e: e[0])]

        first, last = block[0], block[-1]
        # comments interleaved with the directives move above the sorted block
        kept = [line for i, line in enumerate(lines[first : last + 1], start=first) if i not in block and line.strip()]
        replacement = [text + newline for text in ordered]
        if not lines[last].endswith(("\n", "\r")):
            replacement[-1] = replacement[-1][: -len(newline)]
        new_lines = lines[:first] + kept + replacement + lines[last + 1 :]
        content = "".join(new_lines)
        if content == request.source:
            return EngineResult(report="Using statements are already sorted", content=request.source)
        return EngineResult(report=f"Sorted {len(entries)} using statements", content=content)

    # ------------------------------------------------------------------
    # File header
    # ------------------------------------------------------------------

    def _header_text(self, request: RefactoringRequest) -> str:
        header_file = str(request.option("header_file", "")).strip()
        if header_file:
            path = Path(header_file)
            if not path.is_file():
                raise EngineError(f"Header file not found: {header_file}")
            return path.read_text(encoding="utf-8")
        header_text = str(request.option("header_text", ""))
        if header_text.strip():
            return header_text.replace("\\n", "\n")
        copyright_holder = str(request.option("copyright", "")).strip()
        if copyright_holder:
            year = datetime.date.today().year
            return f"// Copyright (c) {year} {copyright_holder}. All rights reserved."
        raise EngineError("No header text provided. Use header_text, header_file, or copyright")

    def _add_file_header(self, request: RefactoringRequest) -> EngineResult:
        newline = newline_of(request.source)
        header_lines: list[str] = []
        for line in self._header_text(request).splitlines():
            text = line.strip()
            if not text:
                header_lines.append("//")
            elif text.startswith("//"):
                header_lines.append(text)
            else:
                header_lines.append(f"// {text}")
        header = newline.join(header_lines) + newline + newline

        report = "Added file header"
        if request.source.lstrip().startswith(("//", "/*")):
            report = "File already appears to have a header comment; added new header at the top"
        return EngineResult(report=report, content=header + request.source)

    # ------------------------------------------------------------------
    # Literals
    # ------------------------------------------------------------------

    def _convert_numeric_literal(self, request: RefactoringRequest) -> EngineResult:
        index = LineIndex(request.source)
        offset = index.offset(request.line_number, request.column_number)
        line_start, line_end = index.line_bounds(request.line_number)
        line_text = _blank_non_code(request.source)[line_start:line_end]

        match = None
        for candidate in _NUMERIC_RE.finditer(line_text):
            start, end = line_start + candidate.start(), line_start + candidate.end()
            if start <= offset < end or offset <= start:
                match = candidate
                break
        if match is None:
            raise EngineError("No numeric literal found at the specified location")

        body = match.group("body").replace("_", "")
        lowered = body.lower()
        if lowered.startswith("0x"):
            current, value = "hex", int(body[2:], 16)
        elif lowered.startswith("0b"):
            current, value = "bin", int(body[2:], 2)
        else:
            current, value = "dec", int(body, 10)

        target = str(request.option("target_format", "")).strip().lower()
        if not target:
            target = _NUMERIC_FORMATS[(_NUMERIC_FORMATS.index(current) + 1) % len(_NUMERIC_FORMATS)]
        if target not in _NUMERIC_FORMATS:
            raise EngineError("Target format must be dec, hex, or bin")

        if target == "hex":
            converted = f"0x{value:X}"
        elif target == "bin":
            converted = f"0b{value:b}"
        else:
            converted = str(value)
        converted += match.group("suffix")

        start = line_start + match.start()
        end = line_start + match.end()
        content = request.source[:start] + converted + request.source[end:]
        return EngineResult(report=f"Converted numeric literal from {current} to {target} format", content=content)

    def _convert_string_literal(self, request: RefactoringRequest) -> EngineResult:
        segment = segment_at(request.source, request.line_number, request.column_number, STRING)
        if segment is None:
            raise EngineError("No string literal found at the specified location")
        literal = request.source[segment.start : segment.end]
        target = str(request.option("target", "verbatim")).strip().lower()
        if target not in ("verbatim", "regular"):
            raise EngineError("Target must be verbatim or regular")

        if literal.startswith('@"'):
            if target == "verbatim":
                return EngineResult(report="String literal is already verbatim", content=request.source)
            value = literal[2:-1].replace('""', '"')
            converted = _to_regular_literal(value)
        elif literal.startswith('"') and not literal.startswith('"""'):
            if target == "regular":
                return EngineResult(report="String literal is already regular", content=request.source)
            value = _decode_regular_literal(literal[1:-1])
            converted = '@"' + value.replace('"', '""') + '"'
        else:
            raise EngineError("Only regular and verbatim string literals can be converted")

        content = request.source[: segment.start] + converted + request.source[segment.end :]
        return EngineResult(report=f"Converted string literal to {target}", content=content)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def _add_debugger_display(self, request: RefactoringRequest) -> EngineResult:
        newline = newline_of(request.source)
        lines = request.source.splitlines(keepends=True)
        class_index = None
        match = None
        for i in range(max(request.line_number - 1, 0), len(lines)):
            match = _TYPE_DECL_RE.match(lines[i])
            if match:
                class_index = i
                break
        if class_index is None or match is None:
            raise EngineError(f"No class declaration found at or after line {request.line_number}")

        class_name = match.group("name")
        previous = lines[class_index - 1] if class_index > 0 else ""
        if "DebuggerDisplay" in previous or "DebuggerDisplay" in lines[class_index]:
            return EngineResult(report=f"Class '{class_name}' already has a DebuggerDisplay attribute", content=request.source)

        display_format = str(request.option("display_format", "")) or _default_display_format(class_name, lines[class_index + 1 :])
        escaped = display_format.replace("\\", "\\\\").replace('"', '\\"')
        lines.insert(class_index, f'{match.group("indent")}[DebuggerDisplay("{escaped}")]{newline}')

        content = "".join(lines)
        if not any(_USING_RE.match(line) and "System.Diagnostics;" in line for line in lines):
            content = self._add_using(
                RefactoringRequest(file_path=request.file_path, source=content, options={"namespace": "System.Diagnostics"}),
            ).content or content
        return EngineResult(report=f"Added DebuggerDisplay attribute to class '{class_name}'", content=content)

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def _find_symbols(self, request: RefactoringRequest) -> EngineResult:
        pattern = str(request.option("pattern", "")).strip()
        if not pattern:
            raise EngineError("Pattern is required for symbol search")

        index = LineIndex(request.source)
        code_only = _blank_non_code(request.source)
        found: list[int] = []
        for line_no in range(1, index.line_count + 1):
            start, end = index.line_bounds(line_no)
            text = code_only[start:end]
            for regex in _DECLARATION_RES:
                hit = regex.search(text)
                if hit is None:
                    continue
                if "type" in regex.groupindex and hit.group("type") in _NOT_A_TYPE:
                    continue
                if _matches_pattern(hit.group("name").split(".")[-1], pattern):
                    found.append(line_no)
                    break

        if not found:
            return EngineResult(report=f"No symbols found matching pattern '{pattern}'")
        lines = [_format_hit(request.file_path, index, line_no) for line_no in found]
        lines.append(f"Found {len(found)} symbol{'s' if len(found) != 1 else ''} matching '{pattern}'")
        return EngineResult(report="\n".join(lines))

    def _find_references(self, request: RefactoringRequest) -> EngineResult:
        token = token_at(request.source, request.line_number, request.column_number)
        if token is None:
            raise EngineError("No symbol found at the specified location")
        return self._report_lines_using(request, token.bare_name, "references to symbol")

    def _find_usages(self, request: RefactoringRequest) -> EngineResult:
        name = str(request.option("type_name", "") or request.option("pattern", "")).strip()
        if not name:
            token = token_at(request.source, request.line_number, request.column_number)
            if token is None:
                raise EngineError("No symbol found at the specified location")
            name = token.bare_name
        return self._report_lines_using(request, name, "usages of")

    @staticmethod
    def _report_lines_using(request: RefactoringRequest, name: str, noun: str) -> EngineResult:
        index = LineIndex(request.source)
        line_numbers = sorted({index.line_of(t.start) for t in iter_identifiers(request.source) if t.bare_name == name})
        if not line_numbers:
            return EngineResult(report=f"No {noun} '{name}' found")
        lines = [_format_hit(request.file_path, index, line_no) for line_no in line_numbers]
        lines.append(f"Found {len(line_numbers)} {noun} '{name}'")
        return EngineResult(report="\n".join(lines))


def _format_hit(file_path: str, index: LineIndex, line_no: int) -> str:
    return f"{file_path}:{line_no} {index.line_text(line_no).strip()}"


def _matches_pattern(name: str, pattern: str) -> bool:
    if any(ch in pattern for ch in "*?"):
        return fnmatch.fnmatchcase(name.lower(), pattern.lower())
    return pattern.lower() in name.lower()


def _blank_non_code(source: str) -> str:
    """Replace comments and literals with spaces, keeping offsets and newlines."""
    chars = list(source)
    for segment in segments(source):
        if segment.kind == CODE:
            continue
        for i in range(segment.start, segment.end):
            if chars[i] not in "\r\n":
                chars[i] = " "
    return "".join(chars)


def _default_display_format(class_name: str, following_lines: list[str]) -> str:
    properties: list[str] = []
    depth = 0
    opened = False
    for line in following_lines:
        if depth == 1:
            hit = _PUBLIC_PROPERTY_RE.match(line)
            if hit:
                properties.append(hit.group("name"))
                if len(properties) == 3:
                    break
        depth += line.count("{") - line.count("}")
        opened = opened or "{" in line
        if opened and depth <= 0:
            break
    if not properties:
        return class_name
    return f"{class_name} {{ " + ", ".join(f"{p} = {{{p}}}" for p in properties) + " }"


def _decode_regular_literal(body: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 >= len(body):
            out.append(ch)
            i += 1
            continue
        code = body[i + 1]
        if code in _ESCAPES:
            out.append(_ESCAPES[code])
            i += 2
        elif code == "u":
            out.append(chr(int(body[i + 2 : i + 6], 16)))
            i += 6
        elif code == "U":
            out.append(chr(int(body[i + 2 : i + 10], 16)))
            i += 10
        elif code == "x":
            digits = re.match(r"[0-9A-Fa-f]{1,4}", body[i + 2 :])
            if digits is None:
                raise EngineError("Invalid \\x escape in string literal")
            out.append(chr(int(digits.group(0), 16)))
            i += 2 + len(digits.group(0))
        else:
            raise EngineError(f"Unrecognized escape sequence \\{code} in string literal")
    return "".join(out)


def _to_regular_literal(value: str) -> str:
    reverse = {v: k for k, v in _ESCAPES.items() if k != "'"}
    out: list[str] = []
    for ch in value:
        if ch in reverse:
            out.append("\\" + reverse[ch])
        elif ord(ch) < 0x20:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'
