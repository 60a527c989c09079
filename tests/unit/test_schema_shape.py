"""Unit tests for schema shape validation and parsing."""

import pytest

from toolhub_server.errors import ErrorCode, InvalidSchemaError
from toolhub_server.schema import (
    Schema,
    SchemaKind,
    parse_schema,
    validate_schema_shape,
    validate_tool_schema,
)


@pytest.mark.parametrize(
    "kind", ["string", "number", "integer", "boolean", "null", "object"]
)
def test_basic_kinds_are_valid(kind):
    """Test that every non-array kind is valid on its own."""
    result = validate_schema_shape({"type": kind})
    assert result.valid
    assert result.errors == []


def test_array_without_items_reports_exactly_one_error():
    """Test that an array schema lacking items yields a single items error."""
    result = validate_schema_shape({"type": "array", "minItems": 1})

    assert not result.valid
    assert len(result.errors) == 1
    assert "items" in result.errors[0]


def test_nested_array_without_items_reports_exactly_one_error():
    """Test that a nested array lacking items is reported once with its path."""
    schema = {
        "type": "object",
        "properties": {"tags": {"type": "array"}},
    }
    result = validate_schema_shape(schema)

    assert len(result.errors) == 1
    assert result.errors[0].startswith("tags: ")


def test_schema_must_be_object():
    """Test that non-dict schemas are rejected."""
    assert validate_schema_shape("string").errors == ["Schema must be an object"]
    assert validate_schema_shape(None).errors == ["Schema must be an object"]


def test_missing_and_unknown_type():
    """Test that a missing or unknown type is reported."""
    assert validate_schema_shape({}).errors == ["Schema must have a type"]
    assert validate_schema_shape({"type": "date"}).errors == [
        "Invalid schema type: date"
    ]


def test_all_errors_are_collected():
    """Test that validation keeps going after the first error."""
    schema = {
        "type": "object",
        "properties": {
            "a": {"type": "bogus"},
            "b": {"type": "string", "minLength": -1},
            "c": {"type": "array"},
        },
        "required": ["a", "missing"],
    }
    result = validate_schema_shape(schema)

    assert len(result.errors) == 4
    assert "a: Invalid schema type: bogus" in result.errors
    assert "b: minLength must be a non-negative integer" in result.errors
    assert "c: Array schema must have items definition" in result.errors
    assert "Required property not defined: missing" in result.errors


def test_required_without_properties():
    """Test that required names need a properties definition."""
    result = validate_schema_shape({"type": "object", "required": ["x"]})
    assert result.errors == [
        "Cannot have required properties without properties definition"
    ]


def test_required_must_be_list_of_strings():
    """Test that required must be an array of strings."""
    result = validate_schema_shape(
        {"type": "object", "properties": {"x": {"type": "string"}}, "required": "x"}
    )
    assert result.errors == ["Required properties must be an array of strings"]


def test_properties_must_be_object():
    """Test that properties must be a mapping."""
    result = validate_schema_shape({"type": "object", "properties": ["x"]})
    assert result.errors == ["Object properties must be an object"]


def test_keyword_types_are_checked():
    """Test the type checks on constraint keywords."""
    schema = {
        "type": "array",
        "items": {"type": "number", "minimum": "0", "multipleOf": 0},
        "uniqueItems": "yes",
        "maxItems": 1.5,
    }
    result = validate_schema_shape(schema)

    assert "uniqueItems must be a boolean" in result.errors
    assert "maxItems must be a non-negative integer" in result.errors
    assert "[]: minimum must be a number" in result.errors
    assert "[]: multipleOf must be a positive number" in result.errors
    assert len(result.errors) == 4


def test_invalid_pattern_and_format():
    """Test that uncompilable patterns and unknown formats are rejected."""
    result = validate_schema_shape(
        {"type": "string", "pattern": "([a-z", "format": "date-time"}
    )

    assert len(result.errors) == 2
    assert result.errors[0].startswith("Invalid pattern")
    assert result.errors[1] == "Unsupported format: date-time"


def test_enum_must_be_list():
    """Test that enum must be an array."""
    result = validate_schema_shape({"type": "string", "enum": "a"})
    assert result.errors == ["enum must be an array"]


def test_depth_ceiling():
    """Test that deeply nested schemas hit the depth ceiling."""
    schema = {"type": "string"}
    for _ in range(5):
        schema = {"type": "array", "items": schema}

    assert validate_schema_shape(schema, max_depth=10).valid
    result = validate_schema_shape(schema, max_depth=3)
    assert len(result.errors) == 1
    assert "maximum nesting depth of 3" in result.errors[0]


def test_cyclic_schema_is_cut_off_by_depth_ceiling():
    """Test that a cyclic raw schema terminates with a depth error."""
    schema = {"type": "object", "properties": {}}
    schema["properties"]["self"] = schema

    result = validate_schema_shape(schema, max_depth=8)
    assert not result.valid
    assert "maximum nesting depth" in result.errors[0]


def test_tool_schema_must_be_object_kind():
    """Test that tool schemas must describe an object at the top level."""
    assert validate_tool_schema({"type": "object"}).valid

    result = validate_tool_schema({"type": "string"})
    assert result.errors == ["Tool schema must have type object, got string"]


def test_tool_schema_shape_errors_are_kept():
    """Test that tool schema validation includes shape errors."""
    result = validate_tool_schema({"type": "array"})
    assert len(result.errors) == 2


def test_parse_schema_builds_tree():
    """Test that parse_schema builds a typed Schema tree."""
    schema = parse_schema(
        {
            "type": "object",
            "properties": {
                "tags": {
                    "type": "array",
                    "items": {"type": "string", "maxLength": 5},
                    "uniqueItems": True,
                },
                "count": {"type": "integer", "minimum": 0, "multipleOf": 2},
            },
            "required": ["tags"],
        }
    )

    assert isinstance(schema, Schema)
    assert schema.kind is SchemaKind.OBJECT
    assert schema.required == ("tags",)
    assert list(schema.properties) == ["tags", "count"]

    tags = schema.properties["tags"]
    assert tags.kind is SchemaKind.ARRAY
    assert tags.unique_items is True
    assert tags.items is not None
    assert tags.items.max_length == 5

    count = schema.properties["count"]
    assert count.minimum == 0
    assert count.multiple_of == 2


def test_parse_schema_rejects_invalid_shape():
    """Test that parse_schema raises InvalidSchemaError with all errors."""
    with pytest.raises(InvalidSchemaError) as exc_info:
        parse_schema({"type": "array"})

    assert exc_info.value.code is ErrorCode.INVALID_SCHEMA
    assert exc_info.value.details["errors"] == [
        "Array schema must have items definition"
    ]
