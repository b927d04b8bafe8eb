"""Composite Types

Handlers that contain other handlers or schemas: arrays, nested objects,
unions, literal sets and discriminated unions. Nested schemas run one level
deeper in the parse scope and never see the outer Context.
"""
from __future__ import annotations

from collections.abc import Hashable, Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Sequence

from valora.errors import (
    ArgumentError,
    Error,
    array_length_limit_error,
    depth_limit_error,
    discriminator_missing,
    invalid_discriminator,
    literal_mismatch,
    type_error,
    union_type_error,
)
from valora.logging import schema_logger
from valora.messages import t

from .coercion import TypeHandler
from .scope import Scope
from .values import COERCION_FAILED, normalize_key, normalize_keys, same_value, symbol_name

if TYPE_CHECKING:
    from .registry import TypeRegistry
    from .schema import Schema

HandlerSpec = Any  # type name, TypeHandler instance or class, Schema, or schema build callable

PYTHON_TYPE_NAMES: dict[type, str] = {
    str: "string",
    int: "integer",
    float: "float",
    bool: "boolean",
    Decimal: "decimal",
    date: "date",
    datetime: "datetime",
    time: "time",
    list: "array",
    dict: "object",
}


def resolve_schema(spec: Any, registry: TypeRegistry | None = None) -> Schema:
    """A Schema, or a build callable turned into one."""
    from .schema import Schema, schema

    if isinstance(spec, Schema): return spec
    if callable(spec): return schema(spec, types=registry)
    raise ArgumentError(f"Expected a Schema or a build function, got {type(spec).__name__}")


def resolve_handler(spec: HandlerSpec, registry: TypeRegistry, **options: Any) -> TypeHandler:
    """Turn any accepted type spelling into a handler instance."""
    from .schema import Schema

    if isinstance(spec, TypeHandler): return spec
    if isinstance(spec, type) and issubclass(spec, TypeHandler): return spec(**options)
    if isinstance(spec, type) and spec in PYTHON_TYPE_NAMES: return registry.build(PYTHON_TYPE_NAMES[spec], **options)
    if isinstance(spec, (str, Enum)): return registry.build(normalize_key(spec), **options)
    if isinstance(spec, Schema) or (callable(spec) and not isinstance(spec, type)):
        return ObjectType(schema=resolve_schema(spec, registry))
    raise ArgumentError(f"Invalid type: {spec!r}")


def _run_nested(schema: Schema, value: Any, scope: Scope) -> tuple[Any, list[Error]]:
    nested = scope.descend()
    if nested.too_deep:
        schema_logger().warning("resource_limit_hit", limit="max_depth",
                                value=scope.limits.max_depth, path=scope.path)
        return COERCION_FAILED, [depth_limit_error(scope.path, scope.limits.max_depth)]
    result = schema._parse(value, nested)
    if result.is_success():
        return result.data, []
    return COERCION_FAILED, list(result.errors)


class ArrayType(TypeHandler):
    """Sequences (list or tuple on input, list on output), items checked by ``of``."""

    name = "array"

    def __init__(self, of: TypeHandler | None = None, **options: Any):
        super().__init__(**options)
        self.item_type = of

    def coerce(self, value: Any) -> Any:
        if isinstance(value, list): return value
        if isinstance(value, tuple): return list(value)
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, list)

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        items = self.coerce(value) if coerce else value
        items, errors = self._checked(value, items, scope)
        if errors: return items, errors

        if len(items) > scope.limits.max_array_length:
            schema_logger().warning("resource_limit_hit", limit="max_array_length",
                                    value=scope.limits.max_array_length, actual=len(items), path=scope.path)
            return COERCION_FAILED, [array_length_limit_error(scope.path, scope.limits.max_array_length, len(items))]

        if self.item_type is None:
            return list(items), []

        output: list[Any] = []
        for index, item in enumerate(items):
            coerced, item_errors = self.item_type.call(item, scope.child(index), coerce)
            if item_errors:
                errors.extend(item_errors)
            else:
                output.append(coerced)
        return (COERCION_FAILED, errors) if errors else (output, [])

    @property
    def type_name(self) -> str:
        return f"array<{self.item_type.type_name}>" if self.item_type else "array"

    def describe(self) -> dict[str, Any]:
        described: dict[str, Any] = {"type": "array"}
        if self.item_type is not None:
            described["of"] = self.item_type.describe()
        return described


class ObjectType(TypeHandler):
    """Mappings, validated by a nested schema when one is given."""

    name = "object"

    def __init__(self, schema: Schema | None = None, **options: Any):
        super().__init__(**options)
        self.schema = schema

    def coerce(self, value: Any) -> Any:
        return value if isinstance(value, Mapping) else COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, Mapping)

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        checked, errors = self._checked(value, self.coerce(value), scope)
        if errors: return checked, errors
        if self.schema is None:
            return dict(normalize_keys(checked)), []
        return _run_nested(self.schema, checked, scope)

    def describe(self) -> dict[str, Any]:
        described: dict[str, Any] = {"type": "object"}
        if self.schema is not None:
            described["schema"] = self.schema.to_schema_hash()
        return described


class UnionType(TypeHandler):
    """First member that accepts the value wins; members are tried in order."""

    name = "union"

    def __init__(self, types: Sequence[TypeHandler] = (), **options: Any):
        super().__init__(**options)
        if not types:
            raise ArgumentError("Union requires at least one member type")
        self.types = tuple(types)

    def validate(self, value: Any) -> bool:
        return any(member.validate(value) for member in self.types)

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        for member in self.types:
            coerced, errors = member.call(value, scope, coerce)
            if not errors:
                return coerced, []
        return COERCION_FAILED, [union_type_error(scope.path, self.member_names)]

    @property
    def member_names(self) -> list[str]:
        return [member.type_name for member in self.types]

    @property
    def type_name(self) -> str:
        return f"union<{' | '.join(self.member_names)}>"

    def describe(self) -> dict[str, Any]:
        return {"type": "union", "types": [member.describe() for member in self.types]}


class LiteralType(TypeHandler):
    """Exact set of accepted values. No coercion; 1, 1.0 and True are distinct."""

    name = "literal"

    def __init__(self, values: Iterable[Any] = (), **options: Any):
        super().__init__(**options)
        self.values = tuple(values) if isinstance(values, (list, tuple, set, frozenset)) else (values,)
        if not self.values:
            raise ArgumentError("Literal requires at least one value")

    def matches(self, value: Any) -> bool:
        return any(same_value(value, member) for member in self.values)

    def validate(self, value: Any) -> bool:
        return self.matches(value)

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        if self.matches(value):
            return value, []
        return COERCION_FAILED, [literal_mismatch(scope.path, self.type_name, value)]

    @property
    def type_name(self) -> str:
        return " | ".join(repr(v) for v in self.values)

    def coercion_error_message(self, value: Any) -> str:
        return t("literal_mismatch", expected=self.type_name, actual=repr(value))

    validation_error_message = coercion_error_message

    def describe(self) -> dict[str, Any]:
        return {"type": "literal", "values": list(self.values)}


class DiscriminatedUnionType(TypeHandler):
    """Mapping whose schema is picked by the value under ``discriminator``.

    Mapping keys given as enum members are normalized to their symbolic
    names; discriminator values in the input are normalized the same way.
    """

    name = "discriminated_union"

    def __init__(self, discriminator: str | Enum | None = None,
                 mapping: Mapping[Any, Schema | Callable[..., Any]] | None = None, **options: Any):
        super().__init__(**options)
        if discriminator is None or not mapping:
            raise ArgumentError("discriminated_union requires discriminator and mapping")
        self.discriminator = normalize_key(discriminator)
        self.mapping: dict[Any, Schema] = {
            self._lookup_key(key): resolve_schema(spec) for key, spec in mapping.items()
        }

    @staticmethod
    def _lookup_key(value: Any) -> Any:
        return symbol_name(value) if isinstance(value, Enum) else value

    def validate(self, value: Any) -> bool:
        return isinstance(value, Mapping)

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        if not isinstance(value, Mapping):
            return COERCION_FAILED, [type_error(scope.path, t("not_an_object"))]

        tag = normalize_keys(value).get(self.discriminator)
        tag_path = (*scope.path, self.discriminator)
        if tag is None:
            return COERCION_FAILED, [discriminator_missing(tag_path)]

        lookup = self._lookup_key(tag)
        selected = self.mapping.get(lookup) if isinstance(lookup, Hashable) else None
        if selected is None:
            return COERCION_FAILED, [invalid_discriminator(tag_path, list(self.mapping))]
        return _run_nested(selected, value, scope)

    @property
    def type_name(self) -> str:
        return f"discriminated_union<{self.discriminator}: {' | '.join(repr(k) for k in self.mapping)}>"

    def describe(self) -> dict[str, Any]:
        return {
            "type": "discriminated_union",
            "discriminator": self.discriminator,
            "mapping": {str(k): s.to_schema_hash() for k, s in self.mapping.items()},
        }


COMPOSITE_TYPES: tuple[type[TypeHandler], ...] = (
    ArrayType, ObjectType, UnionType, LiteralType, DiscriminatedUnionType,
)
