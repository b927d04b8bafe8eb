"""Constraint System

Bounded predicates applied to a value after coercion: min, max, length,
format and enum. Constraints are type-aware: ``min``/``max`` compare
lengths for strings and sequences and values for numbers, dates and
other ordered types.

Features:
- Frozen dataclass constraints, safe to share across parses
- Named format catalog compiled once at import
- Every constraint describes itself for introspection and JSON Schema
- A registry maps option names to constraint classes
"""
from __future__ import annotations

import re
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sized
from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Any, ClassVar, Iterable

from valora.errors import ArgumentError, ErrorCode
from valora.messages import t

from .values import is_number, normalize_key, symbol_name


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of a constraint check."""
    is_valid: bool
    message: str | None = None
    code: ErrorCode | None = None

    @classmethod
    def valid(cls) -> ValidationResult: return _VALID

    @classmethod
    def invalid(cls, message: str, code: ErrorCode) -> ValidationResult:
        return cls(is_valid=False, message=message, code=code)

    def __bool__(self) -> bool: return self.is_valid


_VALID = ValidationResult(is_valid=True)


class Constraint(ABC):
    """Base class for constraints.

    ``check`` never raises for ordinary input: comparisons that fail with
    TypeError count as violations.
    """

    name: ClassVar[str]
    code: ClassVar[ErrorCode]

    @abstractmethod
    def check(self, value: Any) -> ValidationResult:
        """Validate a coerced value."""

    @abstractmethod
    def describe(self) -> dict[str, Any]:
        """Configuration view used by introspection."""

    @property
    def option_value(self) -> Any:
        """The value as it would be written in a field option."""
        return self.describe().get("value")

    def __call__(self, value: Any) -> ValidationResult: return self.check(value)


def _length_based(value: Any) -> bool:
    return isinstance(value, Sized) and not is_number(value)


# ============================================================================
# Bounds
# ============================================================================

@dataclass(frozen=True, slots=True)
class Min(Constraint):
    """Lower bound: minimum length for sized values, minimum value otherwise."""
    value: Any

    name: ClassVar[str] = "min"
    code: ClassVar[ErrorCode] = ErrorCode.MIN

    def check(self, value: Any) -> ValidationResult:
        if _length_based(value):
            if len(value) >= self.value: return _VALID
            return ValidationResult.invalid(t("min_length", value=self.value, actual=len(value)), self.code)
        try:
            if value >= self.value: return _VALID
        except TypeError:
            pass
        return ValidationResult.invalid(t("min", value=self.value), self.code)

    def describe(self) -> dict[str, Any]: return {"type": self.name, "value": self.value}


@dataclass(frozen=True, slots=True)
class Max(Constraint):
    """Upper bound: maximum length for sized values, maximum value otherwise."""
    value: Any

    name: ClassVar[str] = "max"
    code: ClassVar[ErrorCode] = ErrorCode.MAX

    def check(self, value: Any) -> ValidationResult:
        if _length_based(value):
            if len(value) <= self.value: return _VALID
            return ValidationResult.invalid(t("max_length", value=self.value, actual=len(value)), self.code)
        try:
            if value <= self.value: return _VALID
        except TypeError:
            pass
        return ValidationResult.invalid(t("max", value=self.value), self.code)

    def describe(self) -> dict[str, Any]: return {"type": self.name, "value": self.value}


@dataclass(frozen=True, slots=True)
class Length(Constraint):
    """Length bounds: exact, inclusive range, or min and/or max.

    Build from a field option with ``Length.from_option``:
        4                 exactly 4
        (8, 32)           8 to 32 inclusive
        range(8, 33)      membership in the range
        {"min": 1, "max": 10}
    """
    exact: int | None = None
    min: int | None = None
    max: int | None = None
    range: range | None = None

    name: ClassVar[str] = "length"
    code: ClassVar[ErrorCode] = ErrorCode.LENGTH

    def __post_init__(self):
        if self.exact is None and self.min is None and self.max is None and self.range is None:
            raise ArgumentError("Length constraint requires at least one of: exact, min, max, or range")
        if self.range is not None and len(self.range) == 0:
            raise ArgumentError("Length range must not be empty")

    @classmethod
    def from_option(cls, option: Any) -> Length:
        if isinstance(option, bool):
            raise ArgumentError(f"Invalid length option: {option!r}")
        if isinstance(option, int): return cls(exact=option)
        if isinstance(option, range): return cls(range=option)
        if isinstance(option, tuple) and len(option) == 2: return cls(min=option[0], max=option[1])
        if isinstance(option, Mapping):
            unknown = set(option) - {"exact", "min", "max", "range"}
            if unknown:
                raise ArgumentError(f"Unknown length options: {', '.join(sorted(map(str, unknown)))}")
            return cls(**option)
        raise ArgumentError(f"Invalid length option: {option!r}")

    def _accepts(self, size: int) -> bool:
        if self.exact is not None: return size == self.exact
        if self.range is not None: return size in self.range
        return (self.min is None or size >= self.min) and (self.max is None or size <= self.max)

    def check(self, value: Any) -> ValidationResult:
        if _length_based(value) and self._accepts(len(value)):
            return _VALID
        return ValidationResult.invalid(self._message(len(value) if _length_based(value) else "N/A"), self.code)

    def _message(self, actual: Any) -> str:
        if self.exact is not None: return t("length_exact", value=self.exact, actual=actual)
        if self.range is not None: return t("length_range", min=self.range[0], max=self.range[-1], actual=actual)
        if self.min is not None and self.max is not None:
            return t("length_range", min=self.min, max=self.max, actual=actual)
        if self.min is not None: return t("length_min", min=self.min, actual=actual)
        return t("length_max", max=self.max, actual=actual)

    @property
    def bounds(self) -> tuple[int | None, int | None]:
        """Inclusive (min, max) view regardless of how the constraint was declared."""
        if self.exact is not None: return self.exact, self.exact
        if self.range is not None: return self.range[0], self.range[-1]
        return self.min, self.max

    def options(self) -> dict[str, Any]:
        return {k: v for k, v in (("exact", self.exact), ("min", self.min), ("max", self.max),
                                  ("range", self.range)) if v is not None}

    @property
    def option_value(self) -> Any: return self.options()

    def describe(self) -> dict[str, Any]: return {"type": self.name, "options": self.options()}


# ============================================================================
# Format
# ============================================================================

_NAMED_FLAGS = re.ASCII

NAMED_FORMATS: dict[str, re.Pattern[str]] = {
    "email": re.compile(r"\A[\w+\-.]+@[a-z\d\-]+(\.[a-z\d\-]+)*\.[a-z]+\Z", _NAMED_FLAGS | re.IGNORECASE),
    "url": re.compile(r"\Ahttps?://[^\s/$.?#].[^\s]*\Z", _NAMED_FLAGS | re.IGNORECASE),
    "uuid": re.compile(r"\A[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}\Z",
                       _NAMED_FLAGS | re.IGNORECASE),
    "phone": re.compile(r"\A\+?[\d\s\-().]{7,}\Z", _NAMED_FLAGS),
    "alphanumeric": re.compile(r"\A[a-zA-Z0-9]+\Z", _NAMED_FLAGS),
    "alpha": re.compile(r"\A[a-zA-Z]+\Z", _NAMED_FLAGS),
    "numeric": re.compile(r"\A\d+\Z", _NAMED_FLAGS),
    "hex": re.compile(r"\A[0-9a-fA-F]+\Z", _NAMED_FLAGS),
    "slug": re.compile(r"\A[a-z0-9]+(?:-[a-z0-9]+)*\Z", _NAMED_FLAGS),
}


@dataclass(frozen=True, slots=True)
class Format(Constraint):
    """String must match a named format or a user regex (searched, unanchored)."""
    pattern: re.Pattern[str]
    format_name: str | None = None

    name: ClassVar[str] = "format"
    code: ClassVar[ErrorCode] = ErrorCode.FORMAT

    @classmethod
    def from_option(cls, option: Any) -> Format:
        if isinstance(option, re.Pattern): return cls(option)
        if isinstance(option, (str, PyEnum)):
            key = normalize_key(option)
            if key not in NAMED_FORMATS:
                raise ArgumentError(f"Unknown format: {key}. Available: {', '.join(NAMED_FORMATS)}")
            return cls(NAMED_FORMATS[key], key)
        raise ArgumentError(f"Format must be a compiled pattern or a format name, got {type(option).__name__}")

    def check(self, value: Any) -> ValidationResult:
        if isinstance(value, str) and self.pattern.search(value) is not None:
            return _VALID
        if self.format_name is not None:
            return ValidationResult.invalid(t("format_named", name=self.format_name), self.code)
        return ValidationResult.invalid(t("format", pattern=f"/{self.pattern.pattern}/"), self.code)

    @property
    def option_value(self) -> Any: return self.format_name or self.pattern

    def describe(self) -> dict[str, Any]:
        if self.format_name is not None:
            return {"type": self.name, "format": self.format_name, "pattern": self.pattern.pattern}
        return {"type": self.name, "pattern": self.pattern.pattern}


# ============================================================================
# Membership
# ============================================================================

@dataclass(frozen=True, slots=True)
class Enum(Constraint):
    """Value must equal one of the allowed values."""
    values: tuple[Any, ...]

    name: ClassVar[str] = "enum"
    code: ClassVar[ErrorCode] = ErrorCode.ENUM

    def __post_init__(self):
        if not self.values:
            raise ArgumentError("Enum requires at least one allowed value")

    @classmethod
    def from_option(cls, option: Any) -> Enum:
        """Accept an iterable of values or an enum class (members become their symbolic names)."""
        if isinstance(option, type) and issubclass(option, PyEnum):
            return cls(tuple(symbol_name(member) for member in option))
        if isinstance(option, (str, bytes)) or not isinstance(option, Iterable):
            return cls((option,))
        return cls(tuple(option))

    def check(self, value: Any) -> ValidationResult:
        for allowed in self.values:
            if value == allowed and isinstance(value, bool) == isinstance(allowed, bool):
                return _VALID
        return ValidationResult.invalid(t("enum", values=", ".join(repr(v) for v in self.values)), self.code)

    @property
    def option_value(self) -> Any: return list(self.values)

    def describe(self) -> dict[str, Any]: return {"type": self.name, "values": list(self.values)}


# ============================================================================
# Registry
# ============================================================================

class ConstraintRegistry:
    """Maps field option names to constraint factories."""

    def __init__(self):
        self._constraints: dict[str, type[Constraint]] = {}

    def register(self, constraint: type[Constraint]) -> type[Constraint]:
        self._constraints[constraint.name] = constraint
        return constraint

    def lookup(self, name: str) -> type[Constraint] | None:
        return self._constraints.get(name)

    def build(self, name: str, option: Any) -> Constraint:
        """Build from the value given in a field option (``min=3``, ``format="email"``...)."""
        if (constraint := self.lookup(name)) is None:
            raise ArgumentError(f"Unknown constraint: {name}")
        factory = getattr(constraint, "from_option", None)
        return factory(option) if factory is not None else constraint(option)

    def names(self) -> list[str]: return list(self._constraints)

    def __contains__(self, name: object) -> bool: return name in self._constraints


CONSTRAINTS = ConstraintRegistry()
for _constraint in (Min, Max, Length, Format, Enum):
    CONSTRAINTS.register(_constraint)
