"""Schema Definition and Parsing

A Schema is an immutable, ordered set of fields plus cross-field
validators and an unknown-key policy. Build one with ``schema()`` and a
build function, or with an explicit ``SchemaBuilder``.

Features:
- Every field runs on every parse, so one pass reports every field error
- Unknown keys are stripped, rejected (strict) or kept (passthrough)
- Cross-field validators run only once all fields are valid
- Algebra: extend, pick, omit, merge, partial, each returning a new schema
- Introspection and JSON Schema emission

Usage:
    def user(s):
        s.field("name", "string", min=1, max=100)
        s.field("email", "string", format="email")
        s.optional("age", "integer", min=0)

    UserSchema = schema(user, strict=True)
    UserSchema.parse({"name": "Ada", "email": "ada@example.com"})
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Sequence

from valora.errors import (
    ArgumentError,
    DuplicateFieldError,
    Error,
    ErrorCode,
    ErrorCollection,
    PathSegment,
    ValidationFailed,
    custom_error,
    unknown_key_error,
)
from valora.logging import schema_logger

from .context import Context
from .field import Field, build_field
from .hooks import Hook
from .registry import DEFAULT_REGISTRY, TypeRegistry
from .result import Failure, Result, Success
from .scope import ParseLimits, Scope
from .serializer import DumpFormat, dump
from .values import MISSING, normalize_key, normalize_keys

BuildFunction = Callable[["SchemaBuilder"], Any]


class UnknownKeys(str, Enum):
    """What to do with input keys that match no field."""
    STRIP = "strip"
    STRICT = "strict"
    PASSTHROUGH = "passthrough"


def _unknown_keys_policy(strict: bool, passthrough: bool, unknown_keys: UnknownKeys | str | None) -> UnknownKeys:
    if strict and passthrough:
        raise ArgumentError("A schema cannot be both strict and passthrough")
    if unknown_keys is not None:
        if strict or passthrough:
            raise ArgumentError("Give either unknown_keys or strict/passthrough, not both")
        try:
            return UnknownKeys(normalize_key(unknown_keys))
        except ValueError:
            raise ArgumentError(f"Unknown unknown_keys policy: {unknown_keys!r}") from None
    if strict: return UnknownKeys.STRICT
    if passthrough: return UnknownKeys.PASSTHROUGH
    return UnknownKeys.STRIP


def _type_registry(types: TypeRegistry | Mapping[str, Any] | None) -> TypeRegistry:
    if types is None: return DEFAULT_REGISTRY
    if isinstance(types, TypeRegistry): return types
    if isinstance(types, Mapping):
        registry = DEFAULT_REGISTRY.child()
        for name, handler in types.items():
            registry.register(name, handler)
        return registry
    raise ArgumentError(f"types must be a TypeRegistry or a mapping, got {type(types).__name__}")


# ============================================================================
# Cross-field validators
# ============================================================================

class ValidatorScope(Mapping[str, Any]):
    """Read-only view of the parsed output handed to cross-field validators.

    Validators report problems through ``error`` and ``base_error``; they
    cannot change the output.
    """

    __slots__ = ("_data", "_prefix", "_context", "_errors")

    def __init__(self, data: Mapping[str, Any], prefix: Sequence[PathSegment] = (), context: Context | None = None):
        self._data = MappingProxyType(dict(data))
        self._prefix = tuple(prefix)
        self._context = context if context is not None else Context.empty()
        self._errors: list[Error] = []

    def __getitem__(self, key: Any) -> Any: return self._data[normalize_key(key)]

    def __iter__(self) -> Iterator[str]: return iter(self._data)

    def __len__(self) -> int: return len(self._data)

    def __contains__(self, key: object) -> bool: return normalize_key(key) in self._data

    @property
    def data(self) -> Mapping[str, Any]: return self._data

    @property
    def context(self) -> Context: return self._context

    @property
    def errors(self) -> list[Error]: return list(self._errors)

    def error(self, field: Any, message: str, code: ErrorCode | str = ErrorCode.CUSTOM) -> Error:
        """Attach an error to a field name, or to a path given as a tuple/list."""
        path = tuple(field) if isinstance(field, (tuple, list)) else (normalize_key(field),)
        error = custom_error((*self._prefix, *path), message, ErrorCode(code))
        self._errors.append(error)
        return error

    def base_error(self, message: str, code: ErrorCode | str = ErrorCode.CUSTOM) -> Error:
        """Attach an error to the schema itself rather than to a field."""
        error = custom_error(self._prefix, message, ErrorCode(code))
        self._errors.append(error)
        return error


# ============================================================================
# Schema
# ============================================================================

class Schema:
    """Immutable description of an expected mapping."""

    __slots__ = ("_fields", "_validators", "_unknown_keys", "_registry", "_limits")

    def __init__(
        self,
        fields: Iterable[Field] = (),
        validators: Iterable[Hook] = (),
        *,
        unknown_keys: UnknownKeys = UnknownKeys.STRIP,
        registry: TypeRegistry | None = None,
        limits: ParseLimits | None = None,
    ):
        table: dict[str, Field] = {}
        for f in fields:
            if f.name in table:
                raise DuplicateFieldError(f.name)
            table[f.name] = f
        object.__setattr__(self, "_fields", MappingProxyType(table))
        object.__setattr__(self, "_validators", tuple(validators))
        object.__setattr__(self, "_unknown_keys", UnknownKeys(unknown_keys))
        object.__setattr__(self, "_registry", registry or DEFAULT_REGISTRY)
        object.__setattr__(self, "_limits", limits or ParseLimits.from_settings())

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        return f"Schema(fields={list(self._fields)!r}, unknown_keys={self._unknown_keys.value!r})"

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse(self, data: Mapping[Any, Any] | None, context: Context | Mapping[Any, Any] | None = None, *,
              path_prefix: Sequence[PathSegment] = ()) -> dict[str, Any]:
        """Validated output, or raise ValidationFailed with every error."""
        result = self.safe_parse(data, context, path_prefix=path_prefix)
        if result.is_failure():
            raise ValidationFailed(result.errors)
        return result.data

    def safe_parse(self, data: Mapping[Any, Any] | None, context: Context | Mapping[Any, Any] | None = None, *,
                   path_prefix: Sequence[PathSegment] = ()) -> Result:
        """Success(data) or Failure(errors); raises only for caller misuse."""
        scope = Scope(path=tuple(path_prefix), context=Context.coerce(context), limits=self._limits)
        result = self._parse(data, scope)
        if result.is_failure():
            schema_logger().debug("parse_failed", error_count=len(result.errors),
                                  codes=sorted({e.code.value for e in result.errors}))
        return result

    def _parse(self, data: Any, scope: Scope) -> Result:
        if data is None:
            data = {}
        elif not isinstance(data, Mapping):
            raise ArgumentError(f"Expected a mapping, got {type(data).__name__}")
        data = normalize_keys(data)

        output: dict[str, Any] = {}
        errors = ErrorCollection()
        for name, f in self._fields.items():
            value, field_errors = f.run(data.get(name, MISSING), data, scope)
            if field_errors:
                errors.extend(field_errors)
            elif value is not MISSING:
                output[name] = value

        if self._unknown_keys is not UnknownKeys.STRIP:
            for key in data:
                if key in self._fields: continue
                if self._unknown_keys is UnknownKeys.STRICT:
                    errors.push(unknown_key_error((*scope.path, key)))
                else:
                    output[key] = data[key]

        if errors.is_empty() and self._validators:
            validator_scope = ValidatorScope(output, scope.path, scope.context)
            for validator in self._validators:
                validator(validator_scope, scope.context)
            errors.extend(validator_scope.errors)

        return Failure(errors) if errors else Success(output)

    def dump(self, data: Mapping[Any, Any] | None, format: DumpFormat = "primitives",
             context: Context | Mapping[Any, Any] | None = None) -> Any:
        """Parse, then lower the output to primitives (or JSON)."""
        return dump(self.parse(data, context), format)

    def safe_dump(self, data: Mapping[Any, Any] | None, format: DumpFormat = "primitives",
                  context: Context | Mapping[Any, Any] | None = None) -> Result:
        result = self.safe_parse(data, context)
        if result.is_failure(): return result
        return Success(dump(result.data, format))

    # ------------------------------------------------------------------
    # Algebra
    # ------------------------------------------------------------------

    def _derive(self, fields: Iterable[Field], validators: Iterable[Hook]) -> Schema:
        return Schema(
            fields,
            validators,
            unknown_keys=self._unknown_keys,
            registry=self._registry,
            limits=self._limits,
        )

    def extend(self, build: BuildFunction | None = None, **options: Any) -> Schema:
        """All fields and validators of this schema plus those added by ``build``."""
        builder = SchemaBuilder(_parent=self, **options)
        if build is not None:
            build(builder)
        return builder.build()

    def pick(self, *names: Any) -> Schema:
        """Only the named fields, in declaration order. Validators are dropped."""
        wanted = self._known_names(names)
        return self._derive((f for n, f in self._fields.items() if n in wanted), ())

    def omit(self, *names: Any) -> Schema:
        """Every field except the named ones. Validators are dropped."""
        unwanted = self._known_names(names)
        return self._derive((f for n, f in self._fields.items() if n not in unwanted), ())

    def merge(self, other: Schema) -> Schema:
        """Fields of both; on a name clash ``other``'s field wins and keeps this schema's position."""
        table = dict(self._fields)
        table.update(other._fields)
        return self._derive(table.values(), (*self._validators, *other._validators))

    def partial(self) -> Schema:
        """Every field optional, all else unchanged."""
        return self._derive((replace(f, optional=True) for f in self._fields.values()), self._validators)

    def _known_names(self, names: tuple[Any, ...]) -> set[str]:
        if len(names) == 1 and isinstance(names[0], (list, tuple, set, frozenset)):
            names = tuple(names[0])
        keys = {normalize_key(n) for n in names}
        if unknown := keys - set(self._fields):
            raise ArgumentError(f"Unknown fields: {', '.join(sorted(unknown))}")
        return keys

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def fields(self) -> Mapping[str, Field]: return self._fields

    @property
    def validators(self) -> tuple[Hook, ...]: return self._validators

    @property
    def unknown_keys(self) -> UnknownKeys: return self._unknown_keys

    @property
    def registry(self) -> TypeRegistry: return self._registry

    @property
    def limits(self) -> ParseLimits: return self._limits

    @property
    def is_strict(self) -> bool: return self._unknown_keys is UnknownKeys.STRICT

    @property
    def is_passthrough(self) -> bool: return self._unknown_keys is UnknownKeys.PASSTHROUGH

    def field(self, name: Any) -> Field | None: return self._fields.get(normalize_key(name))

    def has_field(self, name: Any) -> bool: return normalize_key(name) in self._fields

    def field_names(self) -> list[str]: return list(self._fields)

    def required_fields(self) -> list[str]:
        """Fields that must be present: not optional, not conditional, no default."""
        return [n for n, f in self._fields.items() if f.is_required and not f.is_conditional and not f.has_default]

    def optional_fields(self) -> list[str]: return [n for n, f in self._fields.items() if f.optional]

    def conditional_fields(self) -> list[str]: return [n for n, f in self._fields.items() if f.is_conditional]

    def fields_with_defaults(self) -> list[str]: return [n for n, f in self._fields.items() if f.has_default]

    def options(self) -> dict[str, Any]:
        return {"strict": self.is_strict, "passthrough": self.is_passthrough,
                "unknown_keys": self._unknown_keys.value}

    def to_schema_hash(self) -> dict[str, Any]:
        return {
            "fields": {name: f.to_hash() for name, f in self._fields.items()},
            "options": self.options(),
            "validators_count": len(self._validators),
        }

    def to_json_schema(self) -> dict[str, Any]:
        from .generators import JSONSchemaGenerator

        return JSONSchemaGenerator().generate(self)


# ============================================================================
# Builder
# ============================================================================

class SchemaBuilder:
    """Collects fields and validators, then produces a frozen Schema."""

    def __init__(
        self,
        *,
        strict: bool = False,
        passthrough: bool = False,
        unknown_keys: UnknownKeys | str | None = None,
        types: TypeRegistry | Mapping[str, Any] | None = None,
        max_depth: int | None = None,
        max_array_length: int | None = None,
        _parent: Schema | None = None,
    ):
        overrides = strict or passthrough or unknown_keys is not None
        if _parent is not None and not overrides:
            self._unknown_keys = _parent.unknown_keys
        else:
            self._unknown_keys = _unknown_keys_policy(strict, passthrough, unknown_keys)

        if types is not None:
            self._registry = _type_registry(types)
        else:
            self._registry = _parent.registry if _parent is not None else DEFAULT_REGISTRY

        if _parent is not None and max_depth is None and max_array_length is None:
            self._limits = _parent.limits
        else:
            self._limits = ParseLimits.from_settings(max_depth, max_array_length)

        self._fields: dict[str, Field] = dict(_parent.fields) if _parent is not None else {}
        self._validators: list[Hook] = list(_parent.validators) if _parent is not None else []

    def field(self, name: Any, type: Any = None, **options: Any) -> Field:
        """Declare a field. Raises DuplicateFieldError if the name is taken."""
        key = normalize_key(name)
        if key in self._fields:
            raise DuplicateFieldError(key)
        built = build_field(key, type, registry=self._registry, **options)
        self._fields[key] = built
        return built

    def required(self, name: Any, type: Any = None, **options: Any) -> Field:
        return self.field(name, type, **{**options, "optional": False})

    def optional(self, name: Any, type: Any = None, **options: Any) -> Field:
        return self.field(name, type, **{**options, "optional": True})

    def validate(self, fn: Callable[..., Any] | Hook | None = None):
        """Add a cross-field validator; usable directly or as a decorator.

        The validator receives a ValidatorScope, and the Context too when it
        declares a second parameter.
        """
        if fn is None:
            return self.validate
        self._validators.append(Hook.of(fn))
        return fn

    def build(self) -> Schema:
        built = Schema(
            self._fields.values(),
            self._validators,
            unknown_keys=self._unknown_keys,
            registry=self._registry,
            limits=self._limits,
        )
        schema_logger().debug("schema_built", fields=len(self._fields), validators=len(self._validators),
                              unknown_keys=self._unknown_keys.value)
        return built


def schema(build: BuildFunction | None = None, **options: Any) -> Schema:
    """Build a Schema.

    ``build`` receives a SchemaBuilder. Also works as a bare decorator on a
    build function. Options: strict, passthrough, unknown_keys, types,
    max_depth, max_array_length.
    """
    builder = SchemaBuilder(**options)
    if build is not None:
        build(builder)
    return builder.build()


make_schema = schema
