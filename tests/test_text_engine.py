"""Built-in lexical refactorings."""

from __future__ import annotations

import datetime

import pytest

from cast_mcp.engine.base import RefactoringRequest
from cast_mcp.engine.csharp_text import CODE, COMMENT, STRING, iter_identifiers, segments, token_at
from cast_mcp.engine.text_engine import TextRefactoringEngine
from cast_mcp.errors import EngineError

from tests.helpers import SAMPLE_SOURCE

pytestmark = pytest.mark.unit


def _request(source: str = SAMPLE_SOURCE, line: int = 1, column: int = 0, **options) -> RefactoringRequest:
    return RefactoringRequest(file_path="Widget.cs", source=source, line_number=line, column_number=column, options=options)


async def _run(identifier: str, request: RefactoringRequest):
    return await TextRefactoringEngine().execute(identifier, request)


class TestLexer:
    def test_comments_and_strings_are_segmented(self):
        source = 'var a = "x // y"; // note\n/* block */ var b = @"c:\\""";'
        kinds = [(s.kind, source[s.start : s.end]) for s in segments(source) if s.kind != "code"]
        assert kinds == [(STRING, '"x // y"'), (COMMENT, "// note"), (COMMENT, "/* block */"), (STRING, '@"c:\\"""')]

    def test_interpolation_holes_are_code(self):
        source = 'var s = $"a {{b}} {M("x"):N2} c";'
        pieces = [(s.kind, source[s.start : s.end]) for s in segments(source)]
        assert pieces == [
            (CODE, "var s = "),
            (STRING, '$"a {{b}} {'),
            (CODE, "M("),
            (STRING, '"x"'),
            (CODE, ")"),
            (STRING, ':N2} c"'),
            (CODE, ";"),
        ]

    def test_raw_interpolation_brace_count(self):
        source = '$$"""{a} {{b}}""";'
        code = [source[s.start : s.end] for s in segments(source) if s.kind == CODE]
        assert code == ["b", ";"]

    def test_token_at(self):
        assert token_at(SAMPLE_SOURCE, 7, 17).name == "Foo"
        # column before the identifier picks the next one on the line
        assert token_at(SAMPLE_SOURCE, 7, 0).name == "public"
        assert token_at(SAMPLE_SOURCE, 4, 0) is None


class TestDiscovery:
    def test_operations(self):
        identifiers = [op.identifier for op in TextRefactoringEngine().discover_operations()]
        assert len(identifiers) == 10
        assert "RenameCommand" in identifiers

    @pytest.mark.asyncio
    async def test_unsupported_operation(self):
        with pytest.raises(EngineError, match="not supported by the text engine"):
            await _run("ExtractMethodCommand", _request())


class TestRename:
    @pytest.mark.asyncio
    async def test_rename_skips_comments_and_literals(self):
        result = await _run("RenameCommand", _request(old_name="Foo", new_name="Bar"))
        assert result.report == "Renamed 'Foo' to 'Bar' (4 occurrences)"
        assert "// Foo is the widget" in result.content
        assert "\\Foo\"" in result.content
        assert "new Bar(Name)" in result.content

    @pytest.mark.asyncio
    async def test_rename_whole_identifiers_only(self):
        result = await _run("RenameCommand", _request("int Foo; int FooBar; Foo++;", old_name="Foo", new_name="X"))
        assert result.content == "int X; int FooBar; X++;"
        assert result.report.endswith("(2 occurrences)")

    @pytest.mark.asyncio
    async def test_rename_inside_interpolation_holes(self):
        source = 'public class Foo { public override string ToString() => $"I am {Foo.Name}"; }'
        result = await _run("RenameCommand", _request(source, old_name="Foo", new_name="Bar"))
        assert result.content == 'public class Bar { public override string ToString() => $"I am {Bar.Name}"; }'
        assert result.report.endswith("(2 occurrences)")

    @pytest.mark.asyncio
    async def test_rename_leaves_interpolation_literal_text(self):
        source = 'var a = $"{{Foo}} {Foo:N2}"; var b = $$"""{Foo} {{Foo}}""";'
        result = await _run("RenameCommand", _request(source, old_name="Foo", new_name="Bar"))
        assert result.content == 'var a = $"{{Foo}} {Bar:N2}"; var b = $$"""{Foo} {{Bar}}""";'

    @pytest.mark.asyncio
    async def test_rename_respects_unicode_identifiers(self):
        result = await _run("RenameCommand", _request("int Fooé = 1; int Foo = 2;", old_name="Foo", new_name="Bar"))
        assert result.content == "int Fooé = 1; int Bar = 2;"
        assert result.report.endswith("(1 occurrence)")

    @pytest.mark.asyncio
    async def test_rename_unicode_names(self):
        source = "var Größe = 3; Console.WriteLine(Größe);"
        result = await _run("RenameCommand", _request(source, old_name="Größe", new_name="Maß"))
        assert result.content == "var Maß = 3; Console.WriteLine(Maß);"

    def test_combining_mark_continues_identifier(self):
        source = "int Foó = 1;"
        names = [token.name for token in iter_identifiers(source)]
        assert names == ["int", "Foó"]

    @pytest.mark.asyncio
    async def test_invalid_new_name(self):
        with pytest.raises(EngineError, match="not a valid C# identifier"):
            await _run("RenameCommand", _request(old_name="Foo", new_name="1abc"))


class TestUsings:
    @pytest.mark.asyncio
    async def test_sort_separating_system(self):
        result = await _run("SortUsingsCommand", _request(separate_system=True))
        assert result.content.startswith("using System;\nusing System.Text;\n\nusing MyApp.Models;\n\nnamespace MyApp\n")
        assert result.report == "Sorted 3 using statements"

    @pytest.mark.asyncio
    async def test_sort_alphabetically(self):
        result = await _run("SortUsingsCommand", _request(separate_system=False))
        assert result.content.startswith("using MyApp.Models;\nusing System;\nusing System.Text;\n\nnamespace")

    @pytest.mark.asyncio
    async def test_sorted_file_is_unchanged(self):
        source = "using System;\nusing System.Text;\n\nclass A {}\n"
        result = await _run("SortUsingsCommand", _request(source))
        assert result.content == source
        assert result.report == "Using statements are already sorted"

    @pytest.mark.asyncio
    async def test_add_using(self):
        result = await _run("AddUsingCommand", _request("using System;\nusing System.Text;\n\nclass A {}\n", namespace="System.Linq"))
        assert result.content == "using System;\nusing System.Linq;\nusing System.Text;\n\nclass A {}\n"
        assert result.report == "Added 'using System.Linq;'"

    @pytest.mark.asyncio
    async def test_add_using_to_file_without_usings(self):
        result = await _run("AddUsingCommand", _request("// header\n\nclass A {}\n", namespace="System"))
        assert result.content == "// header\n\nusing System;\n\nclass A {}\n"

    @pytest.mark.asyncio
    async def test_add_existing_using(self):
        result = await _run("AddUsingCommand", _request(namespace="System"))
        assert result.content == SAMPLE_SOURCE
        assert result.report == "Using statement for 'System' already exists"

    @pytest.mark.asyncio
    async def test_invalid_namespace(self):
        with pytest.raises(EngineError, match="not a valid namespace name"):
            await _run("AddUsingCommand", _request(namespace="System..Linq"))


class TestLiterals:
    @pytest.mark.asyncio
    async def test_numeric_to_decimal(self):
        result = await _run("ConvertNumericLiteralCommand", _request(line=9, target_format="dec"))
        assert "private int count = 31;" in result.content
        assert result.report == "Converted numeric literal from hex to dec format"

    @pytest.mark.asyncio
    async def test_numeric_cycles_to_next_format(self):
        result = await _run("ConvertNumericLiteralCommand", _request(line=9))
        assert "private int count = 0b11111;" in result.content

    @pytest.mark.asyncio
    async def test_numeric_suffix_is_kept(self):
        result = await _run("ConvertNumericLiteralCommand", _request("long x = 255UL;", target_format="hex"))
        assert result.content == "long x = 0xFFUL;"

    @pytest.mark.asyncio
    async def test_no_numeric_literal(self):
        with pytest.raises(EngineError, match="No numeric literal"):
            await _run("ConvertNumericLiteralCommand", _request(line=7))

    @pytest.mark.asyncio
    async def test_string_to_verbatim(self):
        result = await _run("ConvertStringLiteralCommand", _request(line=16))
        assert 'var path = @"C:\\temp\\Foo";' in result.content
        assert result.report == "Converted string literal to verbatim"

    @pytest.mark.asyncio
    async def test_string_to_regular(self):
        result = await _run("ConvertStringLiteralCommand", _request('s = @"a\\b ""q""";', target="regular"))
        assert result.content == 's = "a\\\\b \\"q\\"";'

    @pytest.mark.asyncio
    async def test_string_already_verbatim(self):
        source = 's = @"x";'
        result = await _run("ConvertStringLiteralCommand", _request(source))
        assert result.content == source

    @pytest.mark.asyncio
    async def test_interpolated_string_is_not_converted(self):
        with pytest.raises(EngineError, match="Only regular and verbatim string literals"):
            await _run("ConvertStringLiteralCommand", _request('s = $"a {b} c";'))


class TestHeaderAndAttributes:
    @pytest.mark.asyncio
    async def test_add_file_header_text(self):
        result = await _run("AddFileHeaderCommand", _request(header_text="Acme Widgets\\nAll rights reserved"))
        assert result.content.startswith("// Acme Widgets\n// All rights reserved\n\nusing System.Text;")
        assert result.report == "Added file header"

    @pytest.mark.asyncio
    async def test_add_file_header_copyright(self):
        result = await _run("AddFileHeaderCommand", _request(copyright="Acme"))
        year = datetime.date.today().year
        assert result.content.startswith(f"// Copyright (c) {year} Acme. All rights reserved.\n\n")

    @pytest.mark.asyncio
    async def test_add_file_header_needs_text(self):
        with pytest.raises(EngineError, match="No header text provided"):
            await _run("AddFileHeaderCommand", _request())

    @pytest.mark.asyncio
    async def test_add_debugger_display(self):
        result = await _run("AddDebuggerDisplayCommand", _request())
        assert '    [DebuggerDisplay("Foo { Name = {Name} }")]\n    public class Foo' in result.content
        assert "using System.Diagnostics;" in result.content
        assert result.report == "Added DebuggerDisplay attribute to class 'Foo'"

    @pytest.mark.asyncio
    async def test_debugger_display_custom_format(self):
        result = await _run("AddDebuggerDisplayCommand", _request(display_format="Foo {Name}"))
        assert '[DebuggerDisplay("Foo {Name}")]' in result.content


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_find_symbols(self):
        result = await _run("FindSymbolsCommand", _request(pattern="Cl*"))
        assert result.content is None
        assert result.report.splitlines() == [
            "Widget.cs:20 public Foo Clone() => new Foo(Name);",
            "Found 1 symbol matching 'Cl*'",
        ]

    @pytest.mark.asyncio
    async def test_find_symbols_nothing(self):
        result = await _run("FindSymbolsCommand", _request(pattern="Zzz"))
        assert result.report == "No symbols found matching pattern 'Zzz'"

    @pytest.mark.asyncio
    async def test_find_references(self):
        result = await _run("FindReferencesCommand", _request(line=7, column=17))
        lines = result.report.splitlines()
        assert [line.split(" ", 1)[0] for line in lines[:-1]] == ["Widget.cs:7", "Widget.cs:13", "Widget.cs:20"]
        assert lines[-1] == "Found 3 references to symbol 'Foo'"

    @pytest.mark.asyncio
    async def test_find_usages_by_type_name(self):
        result = await _run("FindUsagesCommand", _request(type_name="Name"))
        assert result.report.splitlines()[-1] == "Found 3 usages of 'Name'"
