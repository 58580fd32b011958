"""Typed argument extraction from MCP call arguments.

Lookups are permissive: a missing key, or a value of the wrong JSON kind,
yields the caller's default instead of an error.  Only the dispatcher decides
that an argument is mandatory.
"""

from __future__ import annotations

from typing import Any, Mapping

from cast_mcp.tools_schema import BOOLEAN, INTEGER, ParameterSpec

ArgumentBag = Mapping[str, Any]


def _as_int(value: Any) -> int | None:
    # bool is an int subclass but a different JSON kind
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def get_string(args: ArgumentBag | None, key: str, default: str = "") -> str:
    value = (args or {}).get(key)
    return value if isinstance(value, str) else default


def get_bool(args: ArgumentBag | None, key: str, default: bool = False) -> bool:
    value = (args or {}).get(key)
    return value if isinstance(value, bool) else default


def get_int(args: ArgumentBag | None, key: str, default: int = 0) -> int:
    value = _as_int((args or {}).get(key))
    return default if value is None else value


def bind_parameter(args: ArgumentBag | None, param: ParameterSpec) -> Any:
    """Bind one declared parameter, or return its default (possibly None).

    Blank strings count as absent.
    """
    raw = (args or {}).get(param.name)
    if param.type == BOOLEAN:
        return raw if isinstance(raw, bool) else param.default
    if param.type == INTEGER:
        value = _as_int(raw)
        return param.default if value is None else value
    if isinstance(raw, str) and raw.strip():
        return raw
    return param.default


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


__all__ = ["ArgumentBag", "bind_parameter", "get_bool", "get_int", "get_string", "is_blank"]
