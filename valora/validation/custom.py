"""User-Defined Types

``define_type`` builds a TypeHandler subclass from plain callables and
registers it. Coercers may take ``(value)`` or ``(value, ctx)``; an
exception raised while coercing counts as a failed coercion.

Usage:
    define_type(
        "money",
        coerce=lambda v: Decimal(str(v).lstrip("$")),
        validate=lambda v: v >= 0,
        error_message="must be a valid amount",
    )
"""
from __future__ import annotations

from typing import Any, Callable, ClassVar

from valora.errors import Error, type_error

from .coercion import TypeHandler
from .context import Context
from .hooks import Hook, optional_hook
from .registry import DEFAULT_REGISTRY, TypeRegistry
from .scope import Scope
from .values import COERCION_FAILED, normalize_key

ErrorMessage = str | Callable[[Any], str] | None


class CustomType(TypeHandler):
    """Base for handlers created by ``define_type``."""

    coerce_hook: ClassVar[Hook | None] = None
    validate_hook: ClassVar[Hook | None] = None
    error_message: ClassVar[ErrorMessage] = None

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        ctx = scope.context
        coerced = value
        if coerce and self.coerce_hook is not None:
            try:
                coerced = self.coerce_hook(value, ctx)
            except Exception:
                coerced = COERCION_FAILED
        if coerced is COERCION_FAILED:
            return COERCION_FAILED, [type_error(scope.path, self.coercion_error_message(value))]
        if self.validate_hook is not None and not self._passes(coerced, ctx):
            return COERCION_FAILED, [type_error(scope.path, self.validation_error_message(coerced))]
        return coerced, []

    def _passes(self, value: Any, ctx: Any) -> bool:
        try:
            return bool(self.validate_hook(value, ctx))
        except Exception:
            return False

    def coerce(self, value: Any) -> Any:
        if self.coerce_hook is None: return value
        try:
            return self.coerce_hook(value, Context.empty())
        except Exception:
            return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return self.validate_hook is None or self._passes(value, Context.empty())

    def _message(self, value: Any) -> str | None:
        message = type(self).error_message
        if message is None: return None
        return message(value) if callable(message) else message

    def coercion_error_message(self, value: Any) -> str:
        return self._message(value) or super().coercion_error_message(value)

    def validation_error_message(self, value: Any) -> str:
        return self._message(value) or super().validation_error_message(value)


def define_type(
    name: Any,
    *,
    coerce: Callable[..., Any] | Hook | None = None,
    validate: Callable[..., Any] | Hook | None = None,
    error_message: ErrorMessage = None,
    type_name: str | None = None,
    registry: TypeRegistry | None = None,
) -> type[CustomType]:
    """Create and register a custom type; returns the handler class.

    Args:
        name: Registry name, as a string or enum member.
        coerce: Converts raw input. Raising means the value cannot be coerced.
        validate: Predicate on the coerced value.
        error_message: Static message, or a callable receiving the value.
        type_name: Name used in generated messages. Defaults to ``name``.
        registry: Target registry. Defaults to the process-wide one.
    """
    key = normalize_key(name)
    handler = type(
        f"{key.title().replace('_', '')}Type",
        (CustomType,),
        {
            "name": type_name or key,
            "coerce_hook": optional_hook(coerce),
            "validate_hook": optional_hook(validate),
            "error_message": staticmethod(error_message) if callable(error_message) else error_message,
            "__module__": __name__,
        },
    )
    return (registry or DEFAULT_REGISTRY).register(key, handler)


def unregister_type(name: Any, registry: TypeRegistry | None = None) -> type[TypeHandler] | None:
    """Remove a type from the registry; the counterpart of every ``define_type``."""
    return (registry or DEFAULT_REGISTRY).unregister(name)
