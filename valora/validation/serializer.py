"""Serializer

Lowers parsed values to primitive trees (None, bool, int, float, str, list,
dict with str keys) that any JSON encoder accepts. Decimals become strings
so no precision is lost.
"""
from __future__ import annotations

import dataclasses
import json
from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel

from valora.errors import ArgumentError

from .values import normalize_key, symbol_name

DumpFormat = Literal["primitives", "json"]


def to_primitive(value: Any) -> Any:
    """Recursively lower ``value``; never mutates it."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return symbol_name(value) if isinstance(value, Enum) else value
    if isinstance(value, Enum): return symbol_name(value)
    if isinstance(value, Decimal): return format(value, "f")
    if isinstance(value, (datetime, date, time)): return value.isoformat()
    if isinstance(value, Mapping):
        return {normalize_key(k): to_primitive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_primitive(v) for v in value]
    if isinstance(value, BaseModel):
        return to_primitive(value.model_dump())
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_primitive(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if callable(to_dict := getattr(value, "to_dict", None)):
        return to_primitive(to_dict())
    return str(value)


def dump(value: Any, format: DumpFormat = "primitives") -> Any:
    """Primitive tree of ``value``, or its compact UTF-8 JSON encoding."""
    primitives = to_primitive(value)
    if format == "primitives": return primitives
    if format == "json": return json.dumps(primitives, ensure_ascii=False, separators=(",", ":"))
    raise ArgumentError(f"Unknown format: {format}")
