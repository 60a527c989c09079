"""Structural schema validation.

Two passes are provided:

- validate_schema_shape() checks that a raw schema is well-formed.
- validate_value() checks a JSON value against a parsed Schema.

Both collect every error they find. Schemas must be acyclic; a cyclic raw
schema is cut off by the depth ceiling in validate_schema_shape().
"""

import math
import re
from fractions import Fraction
from typing import Any
from urllib.parse import urlsplit

from toolhub_server.errors import InvalidSchemaError
from toolhub_server.schema.types import (
    STRING_FORMATS,
    Schema,
    SchemaKind,
    ValidationResult,
)

DEFAULT_MAX_DEPTH = 64

_KINDS = {kind.value for kind in SchemaKind}
_URI_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*$")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_schema_shape(
    schema: Any, max_depth: int = DEFAULT_MAX_DEPTH
) -> ValidationResult:
    """Check that a raw schema is internally well-formed.

    Args:
        schema: The raw schema, as decoded from JSON.
        max_depth: Maximum nesting depth through properties/items.

    Returns:
        ValidationResult listing every violation found.
    """
    result = ValidationResult()
    _check_shape(schema, result.errors, path="", depth=0, max_depth=max_depth)
    return result


def _check_shape(
    schema: Any, errors: list[str], path: str, depth: int, max_depth: int
) -> None:
    prefix = f"{path}: " if path else ""

    if depth > max_depth:
        errors.append(f"{prefix}Schema exceeds maximum nesting depth of {max_depth}")
        return

    if not isinstance(schema, dict):
        errors.append(f"{prefix}Schema must be an object")
        return

    kind = schema.get("type")
    if kind is None:
        errors.append(f"{prefix}Schema must have a type")
    elif not isinstance(kind, str) or kind not in _KINDS:
        errors.append(f"{prefix}Invalid schema type: {kind}")

    properties = schema.get("properties")
    if properties is not None:
        if not isinstance(properties, dict):
            errors.append(f"{prefix}Object properties must be an object")
            properties = None
        else:
            for name, child in properties.items():
                _check_shape(
                    child,
                    errors,
                    path=f"{path}.{name}" if path else str(name),
                    depth=depth + 1,
                    max_depth=max_depth,
                )

    required = schema.get("required")
    if required is not None:
        if not isinstance(required, list) or not all(
            isinstance(name, str) for name in required
        ):
            errors.append(f"{prefix}Required properties must be an array of strings")
        elif required and schema.get("properties") is None:
            errors.append(
                f"{prefix}Cannot have required properties without properties definition"
            )
        elif properties is not None:
            for name in required:
                if name not in properties:
                    errors.append(f"{prefix}Required property not defined: {name}")

    if kind == SchemaKind.ARRAY.value:
        if schema.get("items") is None:
            errors.append(f"{prefix}Array schema must have items definition")
    if schema.get("items") is not None:
        _check_shape(
            schema["items"],
            errors,
            path=f"{path}[]",
            depth=depth + 1,
            max_depth=max_depth,
        )

    for keyword in ("minItems", "maxItems", "minLength", "maxLength"):
        if keyword in schema and not _is_count(schema[keyword]):
            errors.append(f"{prefix}{keyword} must be a non-negative integer")

    if "uniqueItems" in schema and not isinstance(schema["uniqueItems"], bool):
        errors.append(f"{prefix}uniqueItems must be a boolean")

    for keyword in ("minimum", "maximum"):
        if keyword in schema and not _is_number(schema[keyword]):
            errors.append(f"{prefix}{keyword} must be a number")

    if "multipleOf" in schema:
        divisor = schema["multipleOf"]
        if not _is_number(divisor) or divisor <= 0:
            errors.append(f"{prefix}multipleOf must be a positive number")

    if "pattern" in schema:
        pattern = schema["pattern"]
        if not isinstance(pattern, str):
            errors.append(f"{prefix}pattern must be a string")
        else:
            try:
                re.compile(pattern)
            except re.error as e:
                errors.append(f"{prefix}Invalid pattern {pattern!r}: {e}")

    if "format" in schema and schema["format"] not in STRING_FORMATS:
        errors.append(f"{prefix}Unsupported format: {schema['format']}")

    if "enum" in schema and not isinstance(schema["enum"], list):
        errors.append(f"{prefix}enum must be an array")


def validate_tool_schema(
    schema: Any, max_depth: int = DEFAULT_MAX_DEPTH
) -> ValidationResult:
    """Check a raw schema for use as a tool's argument schema.

    Tool schemas must be well-formed and describe an object at the top level.
    """
    result = validate_schema_shape(schema, max_depth=max_depth)
    if isinstance(schema, dict) and "type" in schema:
        if schema["type"] != SchemaKind.OBJECT.value:
            result.errors.append(
                f"Tool schema must have type object, got {schema['type']}"
            )
    return result


def parse_schema(schema: Any, max_depth: int = DEFAULT_MAX_DEPTH) -> Schema:
    """Validate and parse a raw schema into a Schema tree.

    Raises:
        InvalidSchemaError: If the schema is not well-formed.
    """
    result = validate_schema_shape(schema, max_depth=max_depth)
    if not result:
        raise InvalidSchemaError(
            f"Invalid schema: {'; '.join(result.errors)}",
            details={"errors": result.errors},
        )
    return Schema.from_dict(schema)


def _json_type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number" if math.isfinite(value) else "non-finite number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _matches_kind(value: Any, kind: SchemaKind) -> bool:
    if kind is SchemaKind.STRING:
        return isinstance(value, str)
    if kind is SchemaKind.NUMBER:
        return _is_number(value) and not (
            isinstance(value, float) and not math.isfinite(value)
        )
    if kind is SchemaKind.INTEGER:
        if isinstance(value, float):
            return math.isfinite(value) and value.is_integer()
        return isinstance(value, int) and not isinstance(value, bool)
    if kind is SchemaKind.BOOLEAN:
        return isinstance(value, bool)
    if kind is SchemaKind.NULL:
        return value is None
    if kind is SchemaKind.ARRAY:
        return isinstance(value, list)
    if kind is SchemaKind.OBJECT:
        return isinstance(value, dict)
    return False


def _freeze(value: Any) -> Any:
    """Build a hashable key with JSON equality semantics.

    Booleans are tagged so that true and 1 stay distinct; 1 and 1.0 compare
    equal as they do in JSON.
    """
    if isinstance(value, bool):
        return ("bool", value)
    if _is_number(value):
        return ("number", value)
    if isinstance(value, list):
        return ("array", tuple(_freeze(item) for item in value))
    if isinstance(value, dict):
        return (
            "object",
            frozenset((key, _freeze(item)) for key, item in value.items()),
        )
    return (type(value).__name__, value)


def _is_multiple(value: int | float, divisor: int | float) -> bool:
    # Exact arithmetic, valid for integers of any size
    return Fraction(value) % Fraction(divisor) == 0


def _is_absolute_uri(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    if not parts.scheme or not _URI_SCHEME.match(parts.scheme):
        return False
    return bool(value[len(parts.scheme) + 1 :])


def validate_value(value: Any, schema: Schema) -> ValidationResult:
    """Check a JSON value against a parsed schema.

    Args:
        value: The value to validate.
        schema: A parsed, well-formed Schema.

    Returns:
        ValidationResult listing every violation found.
    """
    return ValidationResult(errors=_check_value(value, schema))


def _check_value(value: Any, schema: Schema) -> list[str]:
    kind = schema.kind
    if not _matches_kind(value, kind):
        return [f"Expected type {kind.value}, got {_json_type_name(value)}"]

    errors: list[str] = []

    if kind is SchemaKind.OBJECT:
        for name in schema.required:
            if name not in value:
                errors.append(f"Missing required property: {name}")
        # Undeclared keys are permitted
        for name, child in schema.properties.items():
            if name in value:
                errors.extend(
                    f"Property {name}: {error}"
                    for error in _check_value(value[name], child)
                )

    elif kind is SchemaKind.ARRAY:
        if schema.items is not None:
            for index, item in enumerate(value):
                errors.extend(
                    f"Array item {index}: {error}"
                    for error in _check_value(item, schema.items)
                )
        if schema.min_items is not None and len(value) < schema.min_items:
            errors.append(f"Array must have at least {schema.min_items} items")
        if schema.max_items is not None and len(value) > schema.max_items:
            errors.append(f"Array must have at most {schema.max_items} items")
        if schema.unique_items:
            frozen = [_freeze(item) for item in value]
            if len(set(frozen)) != len(frozen):
                errors.append("Array items must be unique")

    elif kind is SchemaKind.STRING:
        if schema.min_length is not None and len(value) < schema.min_length:
            errors.append(f"String length must be >= {schema.min_length}")
        if schema.max_length is not None and len(value) > schema.max_length:
            errors.append(f"String length must be <= {schema.max_length}")
        if schema.pattern is not None and re.search(schema.pattern, value) is None:
            errors.append(f"String must match pattern: {schema.pattern}")
        if schema.format == "email" and "@" not in value:
            errors.append("Invalid email format")
        elif schema.format == "uri" and not _is_absolute_uri(value):
            errors.append("Invalid URI format")

    elif kind in (SchemaKind.NUMBER, SchemaKind.INTEGER):
        if schema.minimum is not None and value < schema.minimum:
            errors.append(f"Value must be >= {schema.minimum}")
        if schema.maximum is not None and value > schema.maximum:
            errors.append(f"Value must be <= {schema.maximum}")
        if schema.multiple_of is not None and not _is_multiple(value, schema.multiple_of):
            errors.append(f"Value must be multiple of {schema.multiple_of}")

    if schema.enum is not None:
        allowed = {_freeze(option) for option in schema.enum}
        if _freeze(value) not in allowed:
            options = ", ".join(str(option) for option in schema.enum)
            errors.append(f"Value must be one of: {options}")

    return errors
