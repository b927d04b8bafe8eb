"""Type Registry

Named lookup of type handler classes. One process-wide registry
(``DEFAULT_REGISTRY``) holds the built-ins and anything added through
``define_type``; schemas may carry a child registry whose entries shadow
the parent's without touching global state.

Writes take a lock and swap in a new read-only table, so lookups never
block and never observe a half-applied change.

Usage:
    registry = DEFAULT_REGISTRY.child()
    registry.register("money", MoneyType)

    with DEFAULT_REGISTRY.registered("money", MoneyType):
        ...  # unregistered again on exit
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from types import MappingProxyType
from typing import Any, Iterator, Mapping

from valora.errors import ArgumentError
from valora.logging import types_logger

from .coercion import TypeHandler
from .values import normalize_key

ALIASES: dict[str, str] = {
    "bool": "boolean",
    "bigdecimal": "decimal",
    "date_time": "datetime",
    "hash": "object",
}


class TypeRegistry:
    """Copy-on-write map of type name to handler class."""

    def __init__(self, parent: TypeRegistry | None = None):
        self._parent = parent
        self._types: Mapping[str, type[TypeHandler]] = MappingProxyType({})
        self._lock = threading.Lock()

    @property
    def parent(self) -> TypeRegistry | None: return self._parent

    def register(self, name: Any, handler: type[TypeHandler]) -> type[TypeHandler]:
        if not (isinstance(handler, type) and issubclass(handler, TypeHandler)):
            raise ArgumentError(f"Type handler must be a TypeHandler subclass, got {handler!r}")
        key = normalize_key(name)
        with self._lock:
            self._types = MappingProxyType({**self._types, key: handler})
        if self._parent is None:
            types_logger().info("type_registered", type=key, handler=handler.__name__)
        return handler

    def unregister(self, name: Any) -> type[TypeHandler] | None:
        key = normalize_key(name)
        with self._lock:
            if key not in self._types: return None
            remaining = dict(self._types)
            removed = remaining.pop(key)
            self._types = MappingProxyType(remaining)
        if self._parent is None:
            types_logger().info("type_unregistered", type=key)
        return removed

    def lookup(self, name: Any) -> type[TypeHandler] | None:
        key = normalize_key(name)
        if (handler := self._types.get(key)) is not None:
            return handler
        return self._parent.lookup(key) if self._parent is not None else None

    def build(self, name: Any, **options: Any) -> TypeHandler:
        handler = self.lookup(name)
        if handler is None:
            raise ArgumentError(f"Unknown type: {normalize_key(name)}. Available: {', '.join(self.names())}")
        return handler(**options)

    def names(self) -> list[str]:
        inherited = self._parent.names() if self._parent is not None else []
        return [*inherited, *(n for n in self._types if n not in inherited)]

    def __contains__(self, name: object) -> bool:
        return self.lookup(name) is not None

    def child(self) -> TypeRegistry:
        """A registry whose registrations shadow this one's."""
        return TypeRegistry(parent=self)

    @contextmanager
    def registered(self, name: Any, handler: type[TypeHandler]) -> Iterator[type[TypeHandler]]:
        """Register for the duration of a ``with`` block."""
        previous = self._types.get(normalize_key(name))
        self.register(name, handler)
        try:
            yield handler
        finally:
            if previous is not None:
                self.register(name, previous)
            else:
                self.unregister(name)


DEFAULT_REGISTRY = TypeRegistry()


def _auto_register() -> None:
    """Register built-in types on import."""
    from .composite import COMPOSITE_TYPES
    from .coercion import SCALAR_TYPES

    for handler in (*SCALAR_TYPES, *COMPOSITE_TYPES):
        DEFAULT_REGISTRY._types = MappingProxyType({**DEFAULT_REGISTRY._types, handler.name: handler})
    for alias, target in ALIASES.items():
        DEFAULT_REGISTRY._types = MappingProxyType({**DEFAULT_REGISTRY._types, alias: DEFAULT_REGISTRY._types[target]})


_auto_register()
