"""
Response validation for upstream payloads.

Schemas are pydantic models built from strict scalar types, so "1" never
becomes 1 and 1 never becomes "1". Unknown fields are ignored. Every
violation is reported as its own FieldError.
"""

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Annotated, Any, Generic, TypeVar, Union

import pydantic
from pydantic import BaseModel, ConfigDict, Strict, TypeAdapter

from portfolio_api.services.errors import FieldError

T = TypeVar("T")

StrictNumber = Annotated[float, Strict()]


class UpstreamModel(BaseModel):
    """Base for upstream payload schemas."""

    model_config = ConfigDict(extra="ignore", frozen=True)


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    errors: list[FieldError] = field(default_factory=list)


ValidationResult = Union[Valid[T], Invalid]

_EXPECTED_KINDS = {
    "string_type": "string",
    "int_type": "integer",
    "float_type": "number",
    "bool_type": "boolean",
    "list_type": "array",
    "dict_type": "object",
    "model_type": "object",
    "model_attributes_type": "object",
    "none_required": "null",
    "string_pattern_mismatch": "numeric string",
}


@lru_cache(maxsize=None)
def _adapter(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def kind_of(value: Any) -> str:
    """Name the JSON kind of a deserialized value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def _field_error(error: dict[str, Any]) -> FieldError:
    path = ".".join(str(part) for part in error["loc"]) or "$"
    error_type = error["type"]

    if error_type == "missing":
        return FieldError(path=path, expected="required field", actual="missing")

    if error_type == "literal_error":
        expected = f"one of {error.get('ctx', {}).get('expected', '?')}"
    else:
        expected = _EXPECTED_KINDS.get(error_type, error_type)

    return FieldError(path=path, expected=expected, actual=kind_of(error.get("input")))


def validate(raw: Any, schema: Any) -> ValidationResult:
    """
    Check a deserialized payload against a schema.

    Args:
        raw: Deserialized JSON (dicts, lists, scalars)
        schema: A pydantic model or any type TypeAdapter accepts

    Returns:
        Valid(parsed) or Invalid(field errors)
    """
    try:
        value = _adapter(schema).validate_python(raw)
    except pydantic.ValidationError as e:
        return Invalid(errors=[_field_error(err) for err in e.errors()])
    return Valid(value=value)
