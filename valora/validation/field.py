"""Field Pipeline

One named slot of a schema and the state machine that validates it:

    conditional gate -> missing/default -> preprocess -> null check
        -> coerce (or type check) -> literal -> constraints -> refinements
        -> transform

Every stage either hands a value to the next one or stops with errors.
Constraints all run so a caller sees every violation on a field;
refinements stop at the first failure.

``optional`` permits a missing key, ``nullable`` permits an explicit
``None``; the two are independent. A field with ``when``/``unless`` is
conditional: while its condition is off it is never required, but a value
that was supplied anyway still goes through the pipeline.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable

from valora.errors import (
    ArgumentError,
    Error,
    ErrorCode,
    literal_mismatch,
    preprocess_error,
    refinement_error,
    required_error,
    transform_error,
    type_error,
)

from .coercion import TypeHandler
from .composite import LiteralType, UnionType, resolve_handler, resolve_schema
from .constraints import CONSTRAINTS, Constraint
from .context import Context
from .hooks import Hook, optional_hook
from .registry import DEFAULT_REGISTRY, TypeRegistry
from .scope import Scope
from .values import MISSING, normalize_key, same_value

RefinementMessage = str | Callable[[Any], str] | None


# ============================================================================
# Refinements and Conditions
# ============================================================================

@dataclass(frozen=True, slots=True)
class Refinement:
    """A user predicate run after constraints, with its failure message."""
    check: Hook
    message: RefinementMessage = None

    @classmethod
    def of(cls, spec: Any) -> Refinement:
        """Accept a callable, a Refinement, a ``(check, message)`` pair or a
        ``{"check" | "if": fn, "message": ...}`` mapping."""
        if isinstance(spec, Refinement): return spec
        if isinstance(spec, Mapping):
            check = spec.get("check", spec.get("if"))
            if check is None:
                raise ArgumentError("Refinement mapping needs a 'check' or 'if' callable")
            return cls(Hook.of(check), spec.get("message"))
        if isinstance(spec, tuple) and len(spec) == 2:
            return cls(Hook.of(spec[0]), spec[1])
        return cls(Hook.of(spec))

    @classmethod
    def many(cls, spec: Any) -> tuple[Refinement, ...]:
        if spec is None: return ()
        specs = spec if isinstance(spec, list) else [spec]
        return tuple(cls.of(s) for s in specs)

    def passes(self, value: Any, ctx: Context) -> bool:
        # A predicate that raises has failed
        try:
            return bool(self.check(value, ctx))
        except Exception:
            return False

    def message_for(self, value: Any) -> str | None:
        return self.message(value) if callable(self.message) else self.message


@dataclass(frozen=True, slots=True)
class Condition:
    """``when``/``unless`` predicate over the whole input.

    A callable receives ``(data)`` or ``(data, ctx)``; a field name tests
    the truthiness of that input value; anything else is a constant.
    """
    hook: Hook | None = None
    field_name: str | None = None
    constant: Any = None

    @classmethod
    def of(cls, spec: Any) -> Condition:
        if isinstance(spec, Condition): return spec
        if isinstance(spec, Hook) or callable(spec): return cls(hook=Hook.of(spec))
        if isinstance(spec, (str, Enum)): return cls(field_name=normalize_key(spec))
        return cls(constant=spec)

    def evaluate(self, data: Mapping[str, Any], ctx: Context) -> bool:
        if self.hook is not None: return bool(self.hook(data, ctx))
        if self.field_name is not None: return bool(data.get(self.field_name))
        return bool(self.constant)

    def describe(self) -> Any:
        if self.hook is not None: return "callable"
        if self.field_name is not None: return {"field": self.field_name}
        return self.constant


# ============================================================================
# Field
# ============================================================================

@dataclass(frozen=True, slots=True, eq=False)
class Field:
    name: str
    type: TypeHandler
    optional: bool = False
    nullable: bool = False
    coerce: bool = True
    default: Any = MISSING
    default_factory: Callable[[], Any] | None = None
    preprocess: Hook | None = None
    transform: Hook | None = None
    when: Condition | None = None
    unless: Condition | None = None
    literal: tuple[Any, ...] | None = None
    refinements: tuple[Refinement, ...] = ()
    constraints: tuple[Constraint, ...] = ()
    message: str | None = None
    null_error: ErrorCode = ErrorCode.REQUIRED
    declared: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @property
    def is_required(self) -> bool: return not self.optional

    @property
    def is_optional(self) -> bool: return self.optional

    @property
    def is_nullable(self) -> bool: return self.nullable

    @property
    def is_conditional(self) -> bool: return self.when is not None or self.unless is not None

    @property
    def has_default(self) -> bool: return self.default is not MISSING or self.default_factory is not None

    def default_value(self) -> Any:
        """Materialize the default; factories are called with no arguments."""
        if self.default_factory is not None: return self.default_factory()
        return None if self.default is MISSING else self.default

    def is_active(self, data: Mapping[str, Any], ctx: Context) -> bool:
        """False when a ``when`` condition is off or an ``unless`` condition is on."""
        if self.when is not None and not self.when.evaluate(data, ctx): return False
        if self.unless is not None and self.unless.evaluate(data, ctx): return False
        return True

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def run(self, raw: Any, data: Mapping[str, Any], scope: Scope) -> tuple[Any, list[Error]]:
        """Validate one input value.

        Returns ``(value, [])`` on success, ``(MISSING, [])`` when the field
        is absent from output, or ``(MISSING, errors)``.
        """
        scope = scope.child(self.name)
        ctx = scope.context
        active = self.is_active(data, ctx) if self.is_conditional else True

        from_default = False
        if raw is MISSING:
            if not active:
                return MISSING, []
            if self.has_default:
                raw, from_default = self.default_value(), True
            elif self.optional:
                return MISSING, []
            else:
                return self._fail(required_error(scope.path))

        value = raw
        if self.preprocess is not None:
            try:
                value = self.preprocess(value, ctx)
            except Exception as exc:
                return self._fail(preprocess_error(scope.path, exc))

        if value is None:
            if self.nullable or from_default or not active:
                return None, []
            return self._fail(self._null_error(scope))

        typed, errors = self.type.call(value, scope, self.coerce)
        if errors: return self._fail(*errors)

        if self.literal is not None and not any(same_value(typed, member) for member in self.literal):
            expected = " | ".join(repr(member) for member in self.literal)
            return self._fail(literal_mismatch(scope.path, expected, typed))

        violations = [
            Error(scope.path, result.message, result.code)
            for constraint in self.constraints
            if not (result := constraint.check(typed))
        ]
        if violations: return self._fail(*violations)

        for refinement in self.refinements:
            if not refinement.passes(typed, ctx):
                return self._fail(refinement_error(scope.path, refinement.message_for(typed)))

        if self.transform is not None:
            try:
                typed = self.transform(typed, ctx)
            except Exception as exc:
                return self._fail(transform_error(scope.path, exc))

        return typed, []

    def _null_error(self, scope: Scope) -> Error:
        if self.null_error is ErrorCode.TYPE_ERROR:
            return type_error(scope.path, self.type.validation_error_message(None))
        return required_error(scope.path)

    def _fail(self, *errors: Error) -> tuple[Any, list[Error]]:
        if self.message is None:
            return MISSING, list(errors)
        return MISSING, [error.with_message(self.message) for error in errors]

    # ------------------------------------------------------------------
    # Derivation and introspection
    # ------------------------------------------------------------------

    def with_options(self, **changes: Any) -> Field:
        return replace(self, **changes)

    @property
    def type_name(self) -> str: return self.type.type_name

    def constraint_by(self, kind: str | type[Constraint]) -> Constraint | None:
        """First constraint of the given name or class."""
        for constraint in self.constraints:
            if (constraint.name == kind) if isinstance(kind, str) else isinstance(constraint, kind):
                return constraint
        return None

    def has_constraint(self, kind: str | type[Constraint]) -> bool:
        return self.constraint_by(kind) is not None

    def constraint_values(self) -> dict[str, Any]:
        return {constraint.name: constraint.option_value for constraint in self.constraints}

    def options(self) -> dict[str, Any]:
        options = {"optional": self.optional, "nullable": self.nullable, "coerce": self.coerce}
        if self.default is not MISSING:
            options["default"] = self.default
        return options

    def to_hash(self) -> dict[str, Any]:
        described = self.type.describe()
        hashed = {
            "type": self.type_name,
            "optional": self.optional,
            "nullable": self.nullable,
            "has_default": self.has_default,
            "conditional": self.is_conditional,
            "constraints": [constraint.describe() for constraint in self.constraints],
        }
        hashed.update((k, v) for k, v in described.items() if k != "type")
        if self.default is not MISSING:
            hashed["default"] = self.default
        if self.when is not None:
            hashed["when"] = self.when.describe()
        if self.unless is not None:
            hashed["unless"] = self.unless.describe()
        if self.literal is not None:
            hashed["literal"] = list(self.literal)
        if self.refinements:
            hashed["refinements"] = len(self.refinements)
        return hashed

    def __repr__(self) -> str:
        return f"Field({self.name!r}, {self.type_name!r}, optional={self.optional}, nullable={self.nullable})"


# ============================================================================
# Construction from options
# ============================================================================

FIELD_OPTIONS = frozenset({
    "optional", "nullable", "default", "default_factory", "coerce", "preprocess",
    "transform", "when", "unless", "literal", "union", "refine", "message",
    "null_error", "constraints",
})
TYPE_OPTIONS = frozenset({"of", "schema", "discriminator", "mapping", "values", "types"})


def _as_tuple(values: Any) -> tuple[Any, ...]:
    if isinstance(values, (list, tuple, set, frozenset)): return tuple(values)
    return (values,)


def _resolve_type(name: str, type_spec: Any, registry: TypeRegistry,
                  options: Mapping[str, Any]) -> tuple[TypeHandler, bool]:
    """Handler for the field, and whether ``literal=`` was folded into it."""
    if "union" in options:
        if type_spec not in (None, "union"):
            raise ArgumentError(f"Field {name!r}: 'union' cannot be combined with type {type_spec!r}")
        return UnionType(types=[resolve_handler(member, registry) for member in options["union"]]), False

    if type_spec is None:
        if "literal" in options:
            return LiteralType(values=_as_tuple(options["literal"])), True
        raise ArgumentError(f"Field {name!r} requires a type")

    type_options: dict[str, Any] = {}
    if (of := options.get("of")) is not None:
        type_options["of"] = resolve_handler(of, registry)
    if (nested := options.get("schema")) is not None:
        type_options["schema"] = resolve_schema(nested, registry)
    if "discriminator" in options:
        type_options["discriminator"] = options["discriminator"]
    if (mapping := options.get("mapping")) is not None:
        type_options["mapping"] = {key: resolve_schema(spec, registry) for key, spec in mapping.items()}
    if "types" in options:
        type_options["types"] = [resolve_handler(member, registry) for member in options["types"]]
    if "values" in options:
        type_options["values"] = _as_tuple(options["values"])
    elif normalize_key(type_spec) == "literal" and "literal" in options:
        type_options["values"] = _as_tuple(options["literal"])
        return resolve_handler(type_spec, registry, **type_options), True

    return resolve_handler(type_spec, registry, **type_options), False


def build_field(name: Any, type_spec: Any = None, *, registry: TypeRegistry | None = None,
                **options: Any) -> Field:
    """Build a Field from builder-style options.

    Constraint options (``min``, ``max``, ``length``, ``format``, ``enum``)
    are applied in the order they are given.
    """
    name = normalize_key(name)
    registry = registry or DEFAULT_REGISTRY

    constraints: list[Constraint] = []
    for key, value in options.items():
        if key in CONSTRAINTS:
            constraints.append(CONSTRAINTS.build(key, value))
        elif key == "constraints":
            constraints.extend(_custom_constraints(name, value))
        elif key not in FIELD_OPTIONS and key not in TYPE_OPTIONS:
            raise ArgumentError(f"Unknown option {key!r} for field {name!r}")

    if "default" in options and "default_factory" in options:
        raise ArgumentError(f"Field {name!r}: give either 'default' or 'default_factory', not both")
    if (factory := options.get("default_factory")) is not None and not callable(factory):
        raise ArgumentError(f"Field {name!r}: 'default_factory' must be callable")

    null_error = ErrorCode(options.get("null_error", ErrorCode.REQUIRED))
    if null_error not in (ErrorCode.REQUIRED, ErrorCode.TYPE_ERROR):
        raise ArgumentError(f"Field {name!r}: 'null_error' must be 'required' or 'type_error'")

    handler, literal_in_type = _resolve_type(name, type_spec, registry, options)
    literal = None
    if "literal" in options and not literal_in_type:
        literal = _as_tuple(options["literal"])

    return Field(
        name=name,
        type=handler,
        optional=bool(options.get("optional", False)),
        nullable=bool(options.get("nullable", False)),
        coerce=bool(options.get("coerce", True)),
        default=options.get("default", MISSING),
        default_factory=factory,
        preprocess=optional_hook(options.get("preprocess")),
        transform=optional_hook(options.get("transform")),
        when=Condition.of(options["when"]) if "when" in options else None,
        unless=Condition.of(options["unless"]) if "unless" in options else None,
        literal=literal,
        refinements=Refinement.many(options.get("refine")),
        constraints=tuple(constraints),
        message=options.get("message"),
        null_error=null_error,
        declared=MappingProxyType(dict(options)),
    )


def _custom_constraints(name: str, values: Iterable[Any]) -> list[Constraint]:
    constraints = list(values)
    for constraint in constraints:
        if not isinstance(constraint, Constraint):
            raise ArgumentError(f"Field {name!r}: {constraint!r} is not a Constraint")
    return constraints
