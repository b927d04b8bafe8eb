"""Validation Context

Immutable request-scoped data (current user, limits, locale) threaded into
hooks, refinements, conditions and cross-field validators. Keys may be
given as strings or enum members; both spellings resolve to the same entry.
"""
from __future__ import annotations

from types import MappingProxyType
from typing import Any, Iterator, Mapping

from valora.errors import ArgumentError

from .values import normalize_key

_NO_DEFAULT = object()


class Context(Mapping[str, Any]):
    """Read-only key/value map. Use ``Context.empty()`` for the shared empty instance."""

    __slots__ = ("_data",)

    _EMPTY: Context | None = None

    def __init__(self, data: Mapping[Any, Any] | None = None, **kwargs: Any):
        merged = {normalize_key(k): v for k, v in (data or {}).items()}
        merged.update(kwargs)
        self._data = MappingProxyType(merged)

    @classmethod
    def empty(cls) -> Context:
        if cls._EMPTY is None:
            cls._EMPTY = cls()
        return cls._EMPTY

    @classmethod
    def coerce(cls, value: Any) -> Context:
        """Accept a Context, a plain mapping (wrapped) or None (empty)."""
        if value is None: return cls.empty()
        if isinstance(value, Context): return value
        if isinstance(value, Mapping): return cls(value)
        raise ArgumentError(f"Expected Context or mapping, got {type(value).__name__}")

    def __getitem__(self, key: Any) -> Any:
        return self._data[normalize_key(key)]

    def __iter__(self) -> Iterator[str]: return iter(self._data)

    def __len__(self) -> int: return len(self._data)

    def __contains__(self, key: object) -> bool:
        return normalize_key(key) in self._data

    def get(self, key: Any, default: Any = None) -> Any:
        return self._data.get(normalize_key(key), default)

    def has(self, key: Any) -> bool:
        return key in self

    def fetch(self, key: Any, default: Any = _NO_DEFAULT) -> Any:
        """Like ``get`` but raises KeyError when absent and no default is given."""
        name = normalize_key(key)
        if name in self._data: return self._data[name]
        if default is _NO_DEFAULT:
            raise KeyError(name)
        return default

    def is_empty(self) -> bool: return not self._data

    def to_dict(self) -> dict[str, Any]: return dict(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Context): return dict(self._data) == dict(other._data)
        if isinstance(other, Mapping): return dict(self._data) == dict(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Context({dict(self._data)!r})"


def context(data: Mapping[Any, Any] | None = None, **kwargs: Any) -> Context:
    """Build a Context from a mapping and/or keyword arguments."""
    return Context(data, **kwargs)
