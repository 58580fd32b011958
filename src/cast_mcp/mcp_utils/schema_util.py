"""JSON schema helpers for MCP tool input schemas."""

from __future__ import annotations

from typing import Any


class SchemaUtil:
    """Utility methods for creating MCP JSON schemas."""

    @staticmethod
    def string_property(description: str) -> dict[str, Any]:
        """Create a string property schema."""
        return {
            "type": "string",
            "description": description,
        }

    @staticmethod
    def boolean_property(description: str) -> dict[str, Any]:
        """Create a boolean property schema."""
        return {
            "type": "boolean",
            "description": description,
        }

    @staticmethod
    def integer_property(description: str, minimum: int | None = None) -> dict[str, Any]:
        """Create an integer property schema, optionally bounded below."""
        schema: dict[str, Any] = {
            "type": "integer",
            "description": description,
        }
        if minimum is not None:
            schema["minimum"] = minimum
        return schema

    @staticmethod
    def enum_property(description: str, enum_values: list[str]) -> dict[str, Any]:
        """Create an enum property schema."""
        return {
            "type": "string",
            "description": description,
            "enum": enum_values,
        }

    @staticmethod
    def create_schema(
        properties: dict[str, Any],
        required: list[str] | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a complete JSON schema."""
        schema: dict[str, Any] = {
            "type": "object",
        }
        if description:
            schema["description"] = description
        schema["properties"] = properties
        if required:
            schema["required"] = required
        return schema


class SchemaBuilder:
    """Fluent builder for creating JSON schemas."""

    def __init__(self):
        self._properties: dict[str, Any] = {}
        self._required: list[str] = []
        self._description: str | None = None

    def description(self, text: str) -> SchemaBuilder:
        self._description = text
        return self

    def string_property(self, name: str, description: str, default: str | None = None) -> SchemaBuilder:
        """Add a string property."""
        prop = SchemaUtil.string_property(description)
        if default is not None:
            prop["default"] = default
        self._properties[name] = prop
        return self

    def boolean_property(self, name: str, description: str, default: bool | None = None) -> SchemaBuilder:
        """Add a boolean property."""
        prop = SchemaUtil.boolean_property(description)
        if default is not None:
            prop["default"] = default
        self._properties[name] = prop
        return self

    def integer_property(
        self,
        name: str,
        description: str,
        default: int | None = None,
        minimum: int | None = None,
    ) -> SchemaBuilder:
        """Add an integer property."""
        prop = SchemaUtil.integer_property(description, minimum)
        if default is not None:
            prop["default"] = default
        self._properties[name] = prop
        return self

    def enum_property(self, name: str, description: str, values: list[str], default: str | None = None) -> SchemaBuilder:
        """Add an enum property."""
        prop = SchemaUtil.enum_property(description, values)
        if default is not None:
            prop["default"] = default
        self._properties[name] = prop
        return self

    def required(self, *names: str) -> SchemaBuilder:
        """Mark properties as required."""
        for name in names:
            if name not in self._required:
                self._required.append(name)
        return self

    def build(self) -> dict[str, Any]:
        """Build the final schema."""
        return SchemaUtil.create_schema(
            self._properties,
            self._required if self._required else None,
            self._description,
        )
