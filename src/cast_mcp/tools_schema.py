"""Input schemas for the cast MCP tools.

Every tool shares the five common parameters.  Operations that take more
than a file and a position declare a ``SchemaExtension``: the parameters they
add and the ones among them that are required.  The dispatcher binds
operation-specific arguments from the same table, so the advertised schema
and what actually reaches the engine cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from cast_mcp.mcp_utils.schema_util import SchemaBuilder

STRING = "string"
INTEGER = "integer"
BOOLEAN = "boolean"


@dataclass(frozen=True)
class ParameterSpec:
    """One named argument of a tool."""

    name: str
    type: str
    description: str
    default: Any = None
    enum: tuple[str, ...] = ()
    minimum: int | None = None


@dataclass(frozen=True)
class SchemaExtension:
    """Parameters an operation adds on top of the common ones."""

    tool_name: str
    parameters: tuple[ParameterSpec, ...]
    required: tuple[str, ...] = ()

    def parameter(self, name: str) -> ParameterSpec | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


def _str(name: str, description: str, default: str | None = None) -> ParameterSpec:
    return ParameterSpec(name, STRING, description, default)


def _int(name: str, description: str, minimum: int | None = None) -> ParameterSpec:
    return ParameterSpec(name, INTEGER, description, minimum=minimum)


def _bool(name: str, description: str, default: bool) -> ParameterSpec:
    return ParameterSpec(name, BOOLEAN, description, default)


def _enum(name: str, description: str, values: tuple[str, ...], default: str | None = None) -> ParameterSpec:
    return ParameterSpec(name, STRING, description, default, enum=values)


def _ext(tool_name: str, *parameters: ParameterSpec, required: tuple[str, ...] = ()) -> SchemaExtension:
    return SchemaExtension(tool_name, tuple(parameters), required)


# ---------------------------------------------------------------------------
# Common parameters
# ---------------------------------------------------------------------------

FILE_PATH = "file_path"
LINE_NUMBER = "line_number"
COLUMN_NUMBER = "column_number"
OUTPUT_PATH = "output_path"
DRY_RUN = "dry_run"

DEFAULT_LINE_NUMBER = 1
DEFAULT_COLUMN_NUMBER = 0

COMMON_PARAMETERS: tuple[ParameterSpec, ...] = (
    _str(FILE_PATH, "Path to the C# source file"),
    ParameterSpec(LINE_NUMBER, INTEGER, "Line number (1-based) where the refactoring should be applied", DEFAULT_LINE_NUMBER, minimum=1),
    ParameterSpec(COLUMN_NUMBER, INTEGER, "Column number (0-based) where the refactoring should be applied", DEFAULT_COLUMN_NUMBER, minimum=0),
    _str(OUTPUT_PATH, "Output file path (defaults to overwriting the input file)"),
    _bool(DRY_RUN, "Show what changes would be made without applying them", False),
)

COMMON_REQUIRED: tuple[str, ...] = (FILE_PATH,)

# ---------------------------------------------------------------------------
# Per-operation extensions
# ---------------------------------------------------------------------------

_PATTERN = _str("pattern", "Name pattern to search for (* and ? wildcards, otherwise a case-insensitive substring)")
_TYPE_NAME = _str("type_name", "Type name to search for")
_MEMBERS = _str("members", "Comma-separated member names (defaults to all eligible members)")
_CLASS_NAME = _str("class_name", "Name of the class to operate on (defaults to the first class in the file)")

SCHEMA_EXTENSIONS: dict[str, SchemaExtension] = {
    ext.tool_name: ext
    for ext in (
        _ext("add-constructor-parameters", _str("member_names", "Comma-separated field or property names to add as constructor parameters")),
        _ext("add-debugger-display", _str("display_format", "Format string for the DebuggerDisplay attribute")),
        _ext("add-explicit-cast", _str("cast_type", "Type to cast the expression to"), required=("cast_type",)),
        _ext(
            "add-file-header",
            _str("header_text", "Header text to add to the file"),
            _str("header_file", "Path to a file whose contents become the header"),
            _str("copyright", "Copyright holder used to generate a standard header"),
        ),
        _ext("add-named-argument", _int("parameter_index", "Only name the argument at this 0-based position", minimum=0)),
        _ext("add-using", _str("namespace", "Namespace to add a using directive for"), required=("namespace",)),
        _ext(
            "change-method-signature",
            _str("parameters", "New parameter list, e.g. 'int id, string name'"),
            _str("return_type", "New return type"),
        ),
        _ext("convert-anonymous-type-to-class", _str("class_name", "Name of the generated class", "GeneratedClass")),
        _ext("convert-auto-property", _enum("target", "Property form to convert to", ("full", "auto"), "full")),
        _ext("convert-cast-to-as-expression", _enum("target", "Expression form to convert to", ("as", "cast"), "as")),
        _ext("convert-for-loop", _enum("target", "Loop form to convert to", ("foreach", "for"), "foreach")),
        _ext("convert-get-method-to-property", _enum("target", "Member form to convert to", ("property", "method"), "property")),
        _ext("convert-if-to-switch", _enum("target", "Statement form to convert to", ("switch", "if"), "switch")),
        _ext(
            "convert-numeric-literal",
            _enum("target_format", "Literal format to convert to (defaults to the next of dec, hex, bin)", ("dec", "hex", "bin")),
        ),
        _ext("convert-string-literal", _enum("target", "String literal form to convert to", ("verbatim", "regular"), "verbatim")),
        _ext("convert-tuple-to-struct", _str("struct_name", "Name of the generated struct"), required=("struct_name",)),
        _ext(
            "extract-base-class",
            _CLASS_NAME,
            _str("base_class_name", "Name of the new base class"),
            _MEMBERS,
            required=("base_class_name",),
        ),
        _ext(
            "extract-interface",
            _CLASS_NAME,
            _str("interface_name", "Name of the new interface"),
            _MEMBERS,
            required=("interface_name",),
        ),
        _ext(
            "extract-local-function",
            _str("function_name", "Name of the new local function"),
            _int("start_line", "First line (1-based) of the code to extract", minimum=1),
            _int("end_line", "Last line (1-based) of the code to extract", minimum=1),
            required=("function_name",),
        ),
        _ext(
            "extract-method",
            _str("method_name", "Name for the extracted method"),
            _int("end_line_number", "End line number for the selection", minimum=1),
            _int("end_column_number", "End column number for the selection", minimum=0),
            required=("method_name",),
        ),
        _ext("find-dependencies", _PATTERN, _TYPE_NAME),
        _ext("find-duplicate-code", _PATTERN, _TYPE_NAME),
        _ext("find-references", _PATTERN, _TYPE_NAME),
        _ext("find-symbols", _PATTERN, _TYPE_NAME, required=("pattern",)),
        _ext("find-usages", _PATTERN, _TYPE_NAME),
        _ext(
            "implement-interface-members-explicit",
            _CLASS_NAME,
            _str("interface_name", "Interface whose members are implemented"),
            required=("interface_name",),
        ),
        _ext(
            "implement-interface-members-implicit",
            _CLASS_NAME,
            _str("interface_name", "Interface whose members are implemented"),
            required=("interface_name",),
        ),
        _ext("inline-method", _str("method_name", "Name of the method to inline"), required=("method_name",)),
        _ext("introduce-local-variable", _str("variable_name", "Name of the new local variable", "temp")),
        _ext(
            "introduce-parameter",
            _str("parameter_name", "Name of the new parameter"),
            _str("parameter_type", "Type of the new parameter"),
            required=("parameter_name", "parameter_type"),
        ),
        _ext(
            "move-type-to-matching-file",
            _str("type_name", "Type to move into its own file"),
            _str("target_directory", "Directory for the new file (defaults to the source file's directory)"),
            required=("type_name",),
        ),
        _ext(
            "move-type-to-namespace-folder",
            _str("type_name", "Type to move"),
            _str("target_namespace", "Namespace to move the type into"),
            _str("target_folder", "Folder for the moved type (derived from the namespace when omitted)"),
            _str("project_path", "Project root used to resolve the target folder"),
            required=("type_name", "target_namespace"),
        ),
        _ext(
            "pull-members-up",
            _str("source_type", "Type the members are pulled from"),
            _str("target_type", "Base type or interface the members are pulled into"),
            _MEMBERS,
            required=("target_type",),
        ),
        _ext(
            "rename",
            _str("old_name", "Current name of the symbol"),
            _str("new_name", "New name for the symbol"),
            required=("old_name", "new_name"),
        ),
        _ext("sort-usings", _bool("separate_system", "Place System namespaces first, separated by a blank line", True)),
        _ext(
            "split-or-merge-if-statements",
            _enum("operation", "Whether to split or merge (auto picks based on the statement)", ("split", "merge", "auto"), "auto"),
        ),
        _ext("sync-namespace-with-folder", _str("root_namespace", "Root namespace of the project")),
        _ext(
            "sync-type-and-file",
            _bool("rename_type", "Rename the type to match the file name", False),
            _bool("rename_file", "Rename the file to match the type name", True),
        ),
    )
}


def get_extension(tool_name: str) -> SchemaExtension | None:
    """Return the extension for ``tool_name``, or None if it only takes common parameters."""
    return SCHEMA_EXTENSIONS.get(tool_name)


def _add_property(builder: SchemaBuilder, param: ParameterSpec) -> None:
    if param.enum:
        builder.enum_property(param.name, param.description, list(param.enum), param.default)
    elif param.type == INTEGER:
        builder.integer_property(param.name, param.description, param.default, param.minimum)
    elif param.type == BOOLEAN:
        builder.boolean_property(param.name, param.description, param.default)
    else:
        builder.string_property(param.name, param.description, param.default)


def generate_input_schema(tool_name: str) -> dict[str, Any]:
    """Build the JSON input schema for ``tool_name``.

    Pure: every call returns a fresh, structurally identical dict.
    """
    builder = SchemaBuilder().description(f"Input parameters for {tool_name} command")
    for param in COMMON_PARAMETERS:
        _add_property(builder, param)
    builder.required(*COMMON_REQUIRED)

    extension = get_extension(tool_name)
    if extension is not None:
        for param in extension.parameters:
            _add_property(builder, param)
        builder.required(*extension.required)
    return builder.build()


__all__ = [
    "COMMON_PARAMETERS",
    "SCHEMA_EXTENSIONS",
    "ParameterSpec",
    "SchemaExtension",
    "generate_input_schema",
    "get_extension",
]
