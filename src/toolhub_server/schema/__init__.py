"""Schema parsing and validation.

This package validates tool schemas for well-formedness and checks
invocation arguments against them.
"""

from toolhub_server.schema.types import Schema, SchemaKind, ValidationResult
from toolhub_server.schema.validator import (
    DEFAULT_MAX_DEPTH,
    parse_schema,
    validate_schema_shape,
    validate_tool_schema,
    validate_value,
)

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "Schema",
    "SchemaKind",
    "ValidationResult",
    "parse_schema",
    "validate_schema_shape",
    "validate_tool_schema",
    "validate_value",
]
