"""Explicit catalog of every refactoring operation the ``cast`` tool provides.

Each entry pairs an operation identifier with how the external tool is driven:
its command-line verb, the named arguments it takes positionally after the
file path, the named arguments mapped to command-line options, and whether
the verb accepts ``--line`` / ``--column``.

Named arguments use the same names the MCP input schemas advertise
(see ``cast_mcp.tools_schema``).
"""

from __future__ import annotations

from dataclasses import dataclass, field

TRANSFORM = "transform"
ANALYSIS = "analysis"
PROJECT = "project"

OPERATION_KINDS = frozenset({TRANSFORM, ANALYSIS, PROJECT})


@dataclass(frozen=True)
class OperationSpec:
    """How one operation is invoked on the external ``cast`` tool."""

    identifier: str
    verb: str
    kind: str = TRANSFORM
    positionals: tuple[str, ...] = ()
    options: dict[str, str] = field(default_factory=dict)
    accepts_line: bool = True
    accepts_column: bool = True


def _op(
    identifier: str,
    verb: str,
    *,
    kind: str = TRANSFORM,
    positionals: tuple[str, ...] = (),
    options: dict[str, str] | None = None,
    line: bool = True,
    column: bool = True,
) -> OperationSpec:
    return OperationSpec(
        identifier=identifier,
        verb=verb,
        kind=kind,
        positionals=positionals,
        options=dict(options or {}),
        accepts_line=line,
        accepts_column=column,
    )


_ANALYSIS_OPTIONS = {"pattern": "--pattern", "type_name": "--type"}

OPERATIONS: tuple[OperationSpec, ...] = (
    _op("AddAwaitCommand", "add-await"),
    _op("AddConstructorParametersCommand", "add-constructor-params", options={"member_names": "--member-names"}),
    _op("AddDebuggerDisplayCommand", "add-debugger-display", options={"display_format": "--display-format"}),
    _op("AddExplicitCastCommand", "add-explicit-cast", positionals=("cast_type",)),
    _op(
        "AddFileHeaderCommand",
        "add-file-header",
        options={"header_text": "--header-text", "header_file": "--header-file", "copyright": "--copyright"},
        line=False,
        column=False,
    ),
    _op("AddNamedArgumentCommand", "add-named-argument", options={"parameter_index": "--parameter-index"}),
    _op("AddUsingCommand", "add-using", positionals=("namespace",)),
    _op("ChangeMethodSignatureCommand", "change-method-signature", options={"parameters": "--parameters", "return_type": "--return-type"}),
    _op("ConvertAnonymousTypeToClassCommand", "convert-anonymous-type", options={"class_name": "--class-name"}),
    _op("ConvertAutoPropertyCommand", "convert-auto-property", options={"target": "--to"}),
    _op("ConvertCastToAsExpressionCommand", "convert-cast-to-as-expression", options={"target": "--target"}),
    _op("ConvertForLoopCommand", "convert-for-loop", options={"target": "--to"}),
    _op("ConvertGetMethodToPropertyCommand", "convert-get-method", options={"target": "--target"}),
    _op("ConvertIfToSwitchCommand", "convert-if-switch", options={"target": "--target"}),
    _op("ConvertLocalFunctionToMethodCommand", "convert-local-function", column=False),
    _op("ConvertNumericLiteralCommand", "convert-numeric-literal", options={"target_format": "--to"}),
    _op("ConvertStringFormatCommand", "convert-string-format"),
    _op("ConvertStringLiteralCommand", "convert-string-literal", options={"target": "--target"}),
    _op("ConvertToInterpolatedStringCommand", "convert-to-interpolated"),
    _op("ConvertTupleToStructCommand", "convert-tuple-struct", positionals=("struct_name",)),
    _op("EncapsulateFieldCommand", "encapsulate-field", column=False),
    _op(
        "ExtractBaseClassCommand",
        "extract-base-class",
        options={"class_name": "--class-name", "base_class_name": "--base-class-name", "members": "--members"},
        line=False,
        column=False,
    ),
    _op(
        "ExtractInterfaceCommand",
        "extract-interface",
        options={"class_name": "--class-name", "interface_name": "--interface-name", "members": "--members"},
        line=False,
        column=False,
    ),
    _op(
        "ExtractLocalFunctionCommand",
        "extract-local-function",
        options={"function_name": "--function-name", "start_line": "--start-line", "end_line": "--end-line"},
        line=False,
        column=False,
    ),
    _op(
        "ExtractMethodCommand",
        "extract-method",
        positionals=("method_name",),
        options={"end_line_number": "--end-line", "end_column_number": "--end-column"},
    ),
    _op("FindDependenciesCommand", "find-dependencies", kind=ANALYSIS, options=_ANALYSIS_OPTIONS),
    _op("FindDuplicateCodeCommand", "find-duplicate-code", kind=ANALYSIS, options=_ANALYSIS_OPTIONS),
    _op("FindReferencesCommand", "find-references", kind=ANALYSIS, options=_ANALYSIS_OPTIONS),
    _op("FindSymbolsCommand", "find-symbols", kind=ANALYSIS, options=_ANALYSIS_OPTIONS),
    _op("FindUsagesCommand", "find-usages", kind=ANALYSIS, options=_ANALYSIS_OPTIONS),
    _op("GenerateComparisonOperatorsCommand", "generate-comparison-operators", column=False),
    _op("GenerateDefaultConstructorCommand", "generate-default-constructor", column=False),
    _op("GenerateParameterCommand", "generate-parameter"),
    _op(
        "ImplementInterfaceMembersExplicitCommand",
        "implement-interface-explicit",
        options={"class_name": "--class-name", "interface_name": "--interface-name"},
        line=False,
        column=False,
    ),
    _op(
        "ImplementInterfaceMembersImplicitCommand",
        "implement-interface-implicit",
        options={"class_name": "--class-name", "interface_name": "--interface-name"},
        line=False,
        column=False,
    ),
    _op("InlineMethodCommand", "inline-method", options={"method_name": "--method-name"}, column=False),
    _op("InlineTemporaryVariableCommand", "inline-temporary", column=False),
    _op("IntroduceLocalVariableCommand", "introduce-local-variable", options={"variable_name": "--variable-name"}),
    _op("IntroduceParameterCommand", "introduce-parameter", positionals=("parameter_name", "parameter_type"), column=False),
    _op("IntroduceUsingStatementCommand", "introduce-using-statement"),
    _op("InvertConditionalExpressionsCommand", "invert-conditional"),
    _op("InvertIfStatementCommand", "invert-if", column=False),
    _op("MakeLocalFunctionStaticCommand", "make-local-function-static", column=False),
    _op("MakeMemberStaticCommand", "make-member-static", column=False),
    _op("MoveDeclarationNearReferenceCommand", "move-declaration-near-reference", column=False),
    _op(
        "MoveTypeToMatchingFileCommand",
        "move-type-to-file",
        kind=PROJECT,
        options={"type_name": "--type-name", "target_directory": "--target-directory"},
        line=False,
        column=False,
    ),
    _op(
        "MoveTypeToNamespaceFolderCommand",
        "move-type-to-namespace",
        kind=PROJECT,
        options={
            "type_name": "--type-name",
            "target_namespace": "--target-namespace",
            "target_folder": "--target-folder",
            "project_path": "--project-path",
        },
        line=False,
        column=False,
    ),
    _op(
        "PullMembersUpCommand",
        "pull-members-up",
        options={"source_type": "--source-type", "target_type": "--target-type", "members": "--members"},
        line=False,
        column=False,
    ),
    _op("RemoveUnusedUsingsCommand", "remove-unused-usings", line=False, column=False),
    _op("RenameCommand", "rename", positionals=("old_name", "new_name")),
    _op("ReverseForStatementCommand", "reverse-for", column=False),
    _op("SortUsingsCommand", "sort-usings", options={"separate_system": "--separate-system"}, line=False, column=False),
    _op("SplitOrMergeIfStatementsCommand", "split-merge-if", options={"operation": "--operation"}, column=False),
    _op("SyncNamespaceWithFolderCommand", "sync-namespace", options={"root_namespace": "--root-namespace"}, line=False, column=False),
    _op(
        "SyncTypeAndFileCommand",
        "sync-type-file",
        kind=PROJECT,
        options={"rename_type": "--rename-type", "rename_file": "--rename-file"},
        line=False,
        column=False,
    ),
    _op("UseExplicitTypeCommand", "use-explicit-type"),
    _op("UseLambdaExpressionCommand", "use-lambda-expression"),
    _op("UseRecursivePatternsCommand", "use-recursive-patterns", column=False),
    _op("WrapBinaryExpressionsCommand", "wrap-binary-expressions"),
)

OPERATIONS_BY_ID: dict[str, OperationSpec] = {op.identifier: op for op in OPERATIONS}


def get_operation(identifier: str) -> OperationSpec:
    """Look up a catalog entry, raising ``KeyError`` for unknown identifiers."""
    return OPERATIONS_BY_ID[identifier]
