"""Schema Generators

Emit JSON Schema (Draft-07) from a Schema. Generation is pure: it reads
the schema's fields and never calls user hooks or default factories.

Features:
- Nested objects, arrays, unions, literals and discriminated unions
- Nullable fields widen ``type`` with "null"
- Numeric bounds become minimum/maximum, string bounds minLength/maxLength,
  array bounds minItems/maxItems
- Named formats map to JSON Schema formats where one exists
"""
from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from .coercion import (
    BooleanType,
    DateTimeType,
    DateType,
    DecimalType,
    FloatType,
    IntegerType,
    StringType,
    TimeType,
    TypeHandler,
)
from .composite import ArrayType, DiscriminatedUnionType, LiteralType, ObjectType, UnionType
from .constraints import Enum, Format, Length, Max, Min
from .serializer import to_primitive
from .values import MISSING, is_number

if TYPE_CHECKING:
    from .field import Field
    from .schema import Schema


class JSONSchemaGenerator:
    """Generate JSON Schema Draft-07 documents."""

    DRAFT = "https://json-schema.org/draft-07/schema#"

    TYPE_MAP: dict[type[TypeHandler], dict[str, Any]] = {
        StringType: {"type": "string"},
        IntegerType: {"type": "integer"},
        FloatType: {"type": "number"},
        DecimalType: {"type": "number"},
        BooleanType: {"type": "boolean"},
        DateType: {"type": "string", "format": "date"},
        DateTimeType: {"type": "string", "format": "date-time"},
        TimeType: {"type": "string", "format": "time"},
    }

    # Named formats with a JSON Schema equivalent; the rest emit their pattern
    FORMAT_MAP: dict[str, str] = {"email": "email", "url": "uri", "uuid": "uuid"}

    def generate(self, schema: Schema) -> dict[str, Any]:
        return {"$schema": self.DRAFT, **self.object_schema(schema)}

    def object_schema(self, schema: Schema) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {name: self.field_schema(f) for name, f in schema.fields.items()},
            "required": schema.required_fields(),
            "additionalProperties": not schema.is_strict,
        }

    def field_schema(self, field: Field) -> dict[str, Any]:
        result = self.type_schema(field.type)

        if field.literal is not None:
            result["enum"] = [to_primitive(v) for v in field.literal]
        if field.nullable:
            self._add_null(result)
        if field.default is not MISSING:
            result["default"] = to_primitive(field.default)

        for constraint in field.constraints:
            self._apply_constraint(result, constraint)
        return result

    def type_schema(self, handler: TypeHandler) -> dict[str, Any]:
        if (mapped := self.TYPE_MAP.get(type(handler))) is not None:
            return dict(mapped)
        if isinstance(handler, ArrayType):
            result: dict[str, Any] = {"type": "array"}
            if handler.item_type is not None:
                result["items"] = self.type_schema(handler.item_type)
            return result
        if isinstance(handler, ObjectType):
            return self.object_schema(handler.schema) if handler.schema is not None else {"type": "object"}
        if isinstance(handler, UnionType):
            return {"oneOf": [self.type_schema(member) for member in handler.types]}
        if isinstance(handler, LiteralType):
            return {"enum": [to_primitive(v) for v in handler.values]}
        if isinstance(handler, DiscriminatedUnionType):
            return {"oneOf": [self.object_schema(s) for s in handler.mapping.values()]}
        return {"type": "string"}

    @staticmethod
    def _add_null(result: dict[str, Any]) -> None:
        if isinstance(kind := result.get("type"), list):
            if "null" not in kind: kind.append("null")
        elif kind is not None:
            result["type"] = [kind, "null"]
        elif "oneOf" in result:
            result["oneOf"].append({"type": "null"})
        elif "enum" in result and None not in result["enum"]:
            result["enum"].append(None)

    @staticmethod
    def _types(result: dict[str, Any]) -> set[str]:
        kind = result.get("type")
        return set(kind) if isinstance(kind, list) else {kind} if kind else set()

    def _bound_keys(self, result: dict[str, Any]) -> tuple[str, str]:
        kinds = self._types(result)
        if kinds & {"integer", "number"}: return "minimum", "maximum"
        if "array" in kinds: return "minItems", "maxItems"
        if "object" in kinds: return "minProperties", "maxProperties"
        return "minLength", "maxLength"

    def _apply_constraint(self, result: dict[str, Any], constraint: Any) -> None:
        low, high = self._bound_keys(result)
        if isinstance(constraint, (Min, Max)):
            # Bounds on dates and other ordered values have no JSON Schema keyword
            if is_number(constraint.value):
                result[low if isinstance(constraint, Min) else high] = _json_number(constraint.value)
        elif isinstance(constraint, Length):
            if low == "minimum": low, high = "minLength", "maxLength"
            minimum, maximum = constraint.bounds
            if minimum is not None: result[low] = minimum
            if maximum is not None: result[high] = maximum
        elif isinstance(constraint, Format):
            if constraint.format_name in self.FORMAT_MAP:
                result["format"] = self.FORMAT_MAP[constraint.format_name]
            else:
                result["pattern"] = _ecma_pattern(constraint.pattern)
        elif isinstance(constraint, Enum):
            result["enum"] = [to_primitive(v) for v in constraint.values]


def _json_number(value: Any) -> int | float:
    if isinstance(value, int): return value
    number = float(value)
    return int(number) if number.is_integer() else number


def _ecma_pattern(pattern: re.Pattern[str]) -> str:
    return pattern.pattern.replace(r"\A", "^").replace(r"\Z", "$")
