"""Capability registry: tool naming, descriptions and the immutable tool table.

Operation identifiers (``ExtractMethodCommand``) become kebab-case tool names
(``extract-method``), which are advertised on the wire with a fixed prefix and
underscores (``cast_extract_method``).  The registry is built once from an
engine before any request is served and is read-only afterwards.
"""

from __future__ import annotations

import logging
import re

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Mapping

from cast_mcp.errors import RegistryBuildError
from cast_mcp.tools_schema import generate_input_schema

if TYPE_CHECKING:
    from cast_mcp.engine.base import RefactoringEngine

logger = logging.getLogger(__name__)

COMMAND_SUFFIX = "Command"
WIRE_PREFIX = "cast_"

_WIRE_NAME_RE = re.compile(r"^[a-z0-9_]+$")

# ---------------------------------------------------------------------------
# Name conversion
# ---------------------------------------------------------------------------


def to_tool_name(operation_id: str) -> str:
    """Convert an operation identifier to its kebab-case tool name.

    A trailing ``Command`` is dropped.  A hyphen goes before an uppercase
    letter that follows a lowercase letter or digit, and before the last
    letter of an acronym when a lowercase letter follows it, so acronyms get
    one hyphen per boundary::

        to_tool_name("ExtractMethodCommand")  # -> "extract-method"
        to_tool_name("AddIOHandlerCommand")    # -> "add-io-handler"
    """
    name = operation_id[: -len(COMMAND_SUFFIX)] if operation_id.endswith(COMMAND_SUFFIX) else operation_id
    out: list[str] = []
    for i, ch in enumerate(name):
        if i > 0 and ch.isupper():
            prev = name[i - 1]
            nxt = name[i + 1] if i + 1 < len(name) else ""
            if prev.islower() or prev.isdigit() or (prev.isupper() and nxt.islower()):
                out.append("-")
        out.append(ch.lower())
    return "".join(out)


def to_wire_name(tool_name: str) -> str:
    """``extract-method`` -> ``cast_extract_method``."""
    return WIRE_PREFIX + tool_name.replace("-", "_")


def from_wire_name(wire_name: str) -> tuple[str, bool]:
    """Invert ``to_wire_name``.

    Returns ``(tool_name, recognized)``.  Names without the prefix, or whose
    remainder is not lowercase letters, digits and underscores, come back
    unchanged with ``recognized=False``.
    """
    if not wire_name.startswith(WIRE_PREFIX):
        return wire_name, False
    rest = wire_name[len(WIRE_PREFIX) :]
    if not _WIRE_NAME_RE.match(rest):
        return wire_name, False
    return rest.replace("_", "-"), True


# ---------------------------------------------------------------------------
# Descriptions
# ---------------------------------------------------------------------------

DESCRIPTIONS: dict[str, str] = {
    "add-await": "Add await to an async call",
    "add-constructor-parameters": "Add constructor parameters from class members",
    "add-debugger-display": "Add DebuggerDisplay attribute to a class",
    "add-explicit-cast": "Add explicit cast to an expression",
    "add-file-header": "Add a file header comment to the source file",
    "add-named-argument": "Add named arguments to method calls",
    "add-using": "Add missing using statements",
    "change-method-signature": "Change method signature (parameters and return type)",
    "convert-anonymous-type-to-class": "Convert anonymous type to class",
    "convert-auto-property": "Convert between auto property and full property",
    "convert-cast-to-as-expression": "Convert between cast and as expressions",
    "convert-for-loop": "Convert between for and foreach loops",
    "convert-get-method-to-property": "Convert between Get method and property",
    "convert-if-to-switch": "Convert between if-else-if and switch statements",
    "convert-local-function-to-method": "Convert local function to method",
    "convert-numeric-literal": "Convert numeric literal between decimal, hexadecimal, and binary formats",
    "convert-string-format": "Convert String.Format calls to interpolated strings",
    "convert-string-literal": "Convert between regular and verbatim string literals",
    "convert-to-interpolated-string": "Convert string concatenation to interpolated string",
    "convert-tuple-to-struct": "Convert tuple to struct",
    "encapsulate-field": "Encapsulate field as property",
    "extract-base-class": "Extract base class from existing class",
    "extract-interface": "Extract interface from existing class",
    "extract-local-function": "Extract local function from code block",
    "extract-method": "Extract a method from the selected code",
    "find-dependencies": "Find dependencies and create a dependency graph from a type",
    "find-duplicate-code": "Find code that is substantially similar to existing code",
    "find-references": "Find all references to a symbol at the specified location",
    "find-symbols": "Find symbols matching a pattern (including partial matches)",
    "find-usages": "Find all usages of a symbol, type, or member",
    "generate-comparison-operators": "Generate comparison operators for class",
    "generate-default-constructor": "Generate default constructor for class or struct",
    "generate-parameter": "Generate parameter for method",
    "implement-interface-members-explicit": "Implement all interface members explicitly",
    "implement-interface-members-implicit": "Implement all interface members implicitly",
    "inline-method": "Inline a method by replacing its calls with the method body",
    "inline-temporary-variable": "Inline temporary variable",
    "introduce-local-variable": "Introduce local variable for expression",
    "introduce-parameter": "Introduce parameter to method",
    "introduce-using-statement": "Introduce using statement for disposable objects",
    "invert-conditional-expressions": "Invert conditional expressions and logical operators",
    "invert-if-statement": "Invert if statement condition",
    "make-local-function-static": "Make local function static",
    "make-member-static": "Make member static",
    "move-declaration-near-reference": "Move variable declaration closer to its first use",
    "move-type-to-matching-file": "Move type to its own matching file",
    "move-type-to-namespace-folder": "Move type to namespace and corresponding folder",
    "pull-members-up": "Pull members up to base type or interface",
    "remove-unused-usings": "Remove unused using statements from the file",
    "rename": "Rename a symbol at the specified location",
    "reverse-for-statement": "Reverse for statement direction",
    "sort-usings": "Sort using statements alphabetically",
    "split-or-merge-if-statements": "Split or merge if statements",
    "sync-namespace-with-folder": "Sync namespace with folder structure",
    "sync-type-and-file": "Synchronize type name and file name",
    "use-explicit-type": "Use explicit type (replace var)",
    "use-lambda-expression": "Convert between lambda expression and block body",
    "use-recursive-patterns": "Convert to recursive patterns for advanced pattern matching",
    "wrap-binary-expressions": "Wrap binary expressions with line breaks",
}


def describe(tool_name: str) -> str:
    return DESCRIPTIONS.get(tool_name, f"C# refactoring command: {tool_name}")


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class CapabilityDescriptor:
    """Everything advertised for one tool, plus the operation it dispatches to.

    ``schema`` is stored read-only; ``input_schema`` hands out a fresh,
    mutable JSON copy on every access.
    """

    tool_name: str
    operation_id: str
    kind: str
    description: str
    schema: Mapping[str, Any] = field(hash=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "schema", _freeze(self.schema))

    @property
    def input_schema(self) -> dict[str, Any]:
        return _thaw(self.schema)

    @property
    def wire_name(self) -> str:
        return to_wire_name(self.tool_name)


class CapabilityRegistry:
    """Read-only, ordered table of capability descriptors keyed by tool name."""

    def __init__(self, descriptors: list[CapabilityDescriptor]):
        by_name: dict[str, CapabilityDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.tool_name in by_name:
                existing = by_name[descriptor.tool_name]
                raise RegistryBuildError(
                    f"Operations '{existing.operation_id}' and '{descriptor.operation_id}' both map to tool '{descriptor.tool_name}'"
                )
            by_name[descriptor.tool_name] = descriptor
        self._ordered: tuple[CapabilityDescriptor, ...] = tuple(by_name.values())
        self._by_name: Mapping[str, CapabilityDescriptor] = MappingProxyType(by_name)

    def list_all(self) -> tuple[CapabilityDescriptor, ...]:
        return self._ordered

    def resolve(self, tool_name: str) -> CapabilityDescriptor | None:
        return self._by_name.get(tool_name)

    def tool_names(self) -> list[str]:
        return [d.tool_name for d in self._ordered]

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, tool_name: object) -> bool:
        return tool_name in self._by_name


def build_registry(engine: RefactoringEngine) -> CapabilityRegistry:
    """Enumerate ``engine`` and build the registry.

    Raises:
        RegistryBuildError: if the engine cannot be enumerated or two
            operations collide on the same tool name.
    """
    try:
        operations = engine.discover_operations()
    except Exception as e:
        raise RegistryBuildError(f"Failed to enumerate operations from the {engine.name} engine: {e}") from e

    descriptors: list[CapabilityDescriptor] = []
    for op in operations:
        tool_name = to_tool_name(op.identifier)
        if not tool_name:
            raise RegistryBuildError(f"Operation identifier '{op.identifier}' yields an empty tool name")
        descriptors.append(
            CapabilityDescriptor(
                tool_name=tool_name,
                operation_id=op.identifier,
                kind=op.kind,
                description=describe(tool_name),
                schema=generate_input_schema(tool_name),
            )
        )
    registry = CapabilityRegistry(descriptors)
    logger.info("Registered %d tools from the %s engine", len(registry), engine.name)
    return registry


__all__ = [
    "COMMAND_SUFFIX",
    "DESCRIPTIONS",
    "WIRE_PREFIX",
    "CapabilityDescriptor",
    "CapabilityRegistry",
    "build_registry",
    "describe",
    "from_wire_name",
    "to_tool_name",
    "to_wire_name",
]
