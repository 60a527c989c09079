"""Data types for tool schemas.

A raw schema arrives as a JSON object whose ``type`` key names the node kind.
Once it has passed shape validation it is parsed into a tree of frozen
Schema nodes so that value validation dispatches on SchemaKind rather than
on strings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class SchemaKind(str, Enum):
    """The kind of value a schema node describes."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


# Accepted values of the "format" keyword on string nodes
STRING_FORMATS = frozenset({"email", "uri"})


@dataclass
class ValidationResult:
    """Outcome of a validation pass.

    Holds every error found, not just the first. The result is truthy when
    no errors were recorded.
    """

    errors: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        """Whether validation found no errors."""
        return not self.errors

    def __bool__(self) -> bool:
        return self.valid


@dataclass(frozen=True)
class Schema:
    """A parsed, well-formed schema node."""

    kind: SchemaKind
    properties: dict[str, "Schema"] = field(default_factory=dict)
    required: tuple[str, ...] = ()
    items: "Schema | None" = None
    minimum: float | None = None
    maximum: float | None = None
    multiple_of: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    format: str | None = None
    min_items: int | None = None
    max_items: int | None = None
    unique_items: bool = False
    enum: tuple[Any, ...] | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Schema":
        """Build a Schema tree from a raw schema that passed shape validation.

        Args:
            raw: Raw schema as decoded from JSON.

        Returns:
            The parsed Schema node.
        """
        properties = {
            name: cls.from_dict(child)
            for name, child in (raw.get("properties") or {}).items()
        }
        items = cls.from_dict(raw["items"]) if raw.get("items") is not None else None
        enum = raw.get("enum")

        return cls(
            kind=SchemaKind(raw["type"]),
            properties=properties,
            required=tuple(raw.get("required") or ()),
            items=items,
            minimum=raw.get("minimum"),
            maximum=raw.get("maximum"),
            multiple_of=raw.get("multipleOf"),
            min_length=raw.get("minLength"),
            max_length=raw.get("maxLength"),
            pattern=raw.get("pattern"),
            format=raw.get("format"),
            min_items=raw.get("minItems"),
            max_items=raw.get("maxItems"),
            unique_items=bool(raw.get("uniqueItems", False)),
            enum=tuple(enum) if enum is not None else None,
        )
