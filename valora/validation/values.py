"""Value Helpers and Sentinels

Sentinels distinguish "key not supplied" and "coercion failed" from an
explicit ``None``. Symbolic keys (enum members) are normalized to plain
strings so that input keys, context keys and discriminator values compare
the same way no matter how the caller spelled them.
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, Mapping


class _Sentinel:
    __slots__ = ("_name",)

    def __init__(self, name: str):
        self._name = name

    def __repr__(self) -> str: return self._name

    def __bool__(self) -> bool: return False

    def __copy__(self): return self

    def __deepcopy__(self, memo): return self

    def __reduce__(self): return self._name


MISSING: Any = _Sentinel("MISSING")
COERCION_FAILED: Any = _Sentinel("COERCION_FAILED")


def symbol_name(value: Enum) -> str:
    """Symbolic name of an enum member: its value if str-valued, else its name."""
    return value.value if isinstance(value.value, str) else value.name


def normalize_key(key: Any) -> str:
    if isinstance(key, str): return key
    if isinstance(key, Enum): return symbol_name(key)
    return str(key)


def normalize_keys(data: Mapping[Any, Any]) -> Mapping[str, Any]:
    """Return ``data`` unchanged when every key is already a str, else a normalized copy."""
    if all(type(k) is str for k in data):
        return data
    return {normalize_key(k): v for k, v in data.items()}


def is_number(value: Any) -> bool:
    """True for real numbers, excluding bool."""
    return isinstance(value, (int, float, Decimal, Fraction)) and not isinstance(value, bool)


def same_value(left: Any, right: Any) -> bool:
    """Strict equality: same type and equal, so 1, 1.0 and True never match each other."""
    if left is right: return True
    return type(left) is type(right) and left == right

