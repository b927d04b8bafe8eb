"""Type Handlers and Coercion Rules

A type handler turns a raw input value into a typed value, or reports why it
cannot. Coercion is on by default and can be switched off per field, in
which case the handler performs a pure type check.

Features:
- Three-way outcome: typed value, COERCION_FAILED, or passthrough of None
  (None never reaches a handler; the field pipeline decides nullability)
- Closed string grammars per type, so "42.0" is an integer and "42.5" is not
- bool is never accepted as a number
- Temporal values are always timezone-aware (UTC when the input is naive)
"""
from __future__ import annotations

import math
import re
from abc import ABC
from datetime import date, datetime, time, timezone
from decimal import Context as DecimalContext
from decimal import Decimal, InvalidOperation
from email.utils import parsedate_to_datetime
from enum import Enum
from fractions import Fraction
from types import MappingProxyType
from typing import Any, ClassVar

from valora.errors import Error, type_error
from valora.messages import t

from .scope import Scope
from .values import COERCION_FAILED, is_number, symbol_name

_INTEGER = re.compile(r"-?\d+", re.ASCII)
_INTEGRAL_FLOAT = re.compile(r"-?\d+\.0+", re.ASCII)
_DECIMAL = re.compile(r"-?\d+(?:\.\d+)?", re.ASCII)
_FRACTION = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)", re.ASCII)

# Float::DIG
_FLOAT_DIGITS = 15


class TypeHandler(ABC):
    """Base class for all types.

    Subclasses override ``coerce`` (return COERCION_FAILED when impossible)
    and ``validate``. Composite handlers override ``call`` to recurse.
    """

    name: ClassVar[str] = "any"

    def __init__(self, **options: Any):
        self.options = MappingProxyType(options)

    def coerce(self, value: Any) -> Any:
        return value

    def validate(self, value: Any) -> bool:
        return True

    @property
    def type_name(self) -> str:
        return self.name

    def coercion_error_message(self, value: Any) -> str:
        return t("coercion_failed", source=type(value).__name__, type=self.type_name)

    def validation_error_message(self, value: Any) -> str:
        return t("must_be_type", type=self.type_name)

    def call(self, value: Any, scope: Scope, coerce: bool = True) -> tuple[Any, list[Error]]:
        """Coerce (or only type-check) ``value``; returns ``(typed_value, errors)``."""
        coerced = self.coerce(value) if coerce else value
        return self._checked(value, coerced, scope)

    def _checked(self, raw: Any, coerced: Any, scope: Scope) -> tuple[Any, list[Error]]:
        if coerced is COERCION_FAILED:
            return COERCION_FAILED, [type_error(scope.path, self.coercion_error_message(raw))]
        if not self.validate(coerced):
            return COERCION_FAILED, [type_error(scope.path, self.validation_error_message(coerced))]
        return coerced, []

    def describe(self) -> dict[str, Any]:
        """Introspection view of this handler."""
        return {"type": self.type_name}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.type_name!r})"


# ============================================================================
# Scalar Types
# ============================================================================

def _decimal_text(value: Any) -> str | None:
    """Plain decimal rendering of a finite number, or None."""
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format(Decimal(repr(value)), "f") if math.isfinite(value) else None
    if isinstance(value, Decimal):
        return format(value, "f") if value.is_finite() else None
    if isinstance(value, Fraction):
        return str(value)
    return None


class StringType(TypeHandler):
    name = "string"

    def coerce(self, value: Any) -> Any:
        if isinstance(value, str): return value
        if isinstance(value, Enum): return symbol_name(value)
        if is_number(value) and (text := _decimal_text(value)) is not None:
            return text
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, str)


class IntegerType(TypeHandler):
    name = "integer"

    def coerce(self, value: Any) -> Any:
        if isinstance(value, bool): return COERCION_FAILED
        if isinstance(value, int): return value
        if isinstance(value, float):
            return int(value) if math.isfinite(value) and value.is_integer() else COERCION_FAILED
        if isinstance(value, str):
            return self._coerce_string(value)
        return COERCION_FAILED

    @staticmethod
    def _coerce_string(value: str) -> Any:
        stripped = value.strip()
        if _INTEGER.fullmatch(stripped):
            return int(stripped)
        if _INTEGRAL_FLOAT.fullmatch(stripped):
            return int(stripped.split(".", 1)[0])
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, int) and not isinstance(value, bool)


class FloatType(TypeHandler):
    name = "float"

    def coerce(self, value: Any) -> Any:
        if isinstance(value, bool): return COERCION_FAILED
        if isinstance(value, float): return value if math.isfinite(value) else COERCION_FAILED
        if isinstance(value, int):
            try:
                return float(value)
            except OverflowError:
                return COERCION_FAILED
        if isinstance(value, str):
            stripped = value.strip()
            if not _DECIMAL.fullmatch(stripped): return COERCION_FAILED
            result = float(stripped)
            return result if math.isfinite(result) else COERCION_FAILED
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, float) and math.isfinite(value)


class BooleanType(TypeHandler):
    name = "boolean"

    TRUTHY: ClassVar[frozenset[str]] = frozenset({"1", "true", "yes", "on", "t", "y"})
    FALSY: ClassVar[frozenset[str]] = frozenset({"0", "false", "no", "off", "f", "n"})

    def coerce(self, value: Any) -> Any:
        if isinstance(value, bool): return value
        if isinstance(value, int):
            return {1: True, 0: False}.get(value, COERCION_FAILED)
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in self.TRUTHY: return True
            if normalized in self.FALSY: return False
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, bool)


class DecimalType(TypeHandler):
    """Exact decimals. Strings keep their declared precision ("1.50" stays 1.50)."""

    name = "decimal"

    _CONTEXT: ClassVar[DecimalContext] = DecimalContext(prec=_FLOAT_DIGITS)

    def coerce(self, value: Any) -> Any:
        if isinstance(value, bool): return COERCION_FAILED
        if isinstance(value, Decimal): return value if value.is_finite() else COERCION_FAILED
        if isinstance(value, int): return Decimal(value)
        if isinstance(value, float):
            if not math.isfinite(value): return COERCION_FAILED
            return Decimal(format(value, f".{_FLOAT_DIGITS}g"))
        if isinstance(value, Fraction):
            return self._CONTEXT.divide(Decimal(value.numerator), Decimal(value.denominator))
        if isinstance(value, str):
            stripped = value.strip()
            if not _DECIMAL.fullmatch(stripped): return COERCION_FAILED
            try:
                return Decimal(stripped)
            except InvalidOperation:
                return COERCION_FAILED
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, Decimal) and value.is_finite()


# ============================================================================
# Temporal Types
# ============================================================================

def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _iso_text(value: str) -> str:
    # fromisoformat before 3.11 rejects a trailing Z and fractions that are not 3 or 6 digits
    if value[-1:] in ("Z", "z"): value = value[:-1] + "+00:00"
    return _FRACTION.sub(lambda m: f"{m[1]}.{m[2][:6].ljust(6, '0')}", value, count=1)


def _parse_iso_datetime(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(_iso_text(value))
    except ValueError:
        return None


def _parse_rfc2822(value: str) -> datetime | None:
    try:
        return parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None


def _from_epoch(value: Any) -> datetime | None:
    if isinstance(value, float) and not math.isfinite(value): return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


class DateType(TypeHandler):
    name = "date"

    STRING_FORMATS: ClassVar[tuple[str, ...]] = ("%Y/%m/%d",)

    def coerce(self, value: Any) -> Any:
        if isinstance(value, datetime): return value.date()
        if isinstance(value, date): return value
        if isinstance(value, str): return self._coerce_string(value.strip())
        if isinstance(value, int) and not isinstance(value, bool):
            moment = _from_epoch(value)
            return moment.date() if moment is not None else COERCION_FAILED
        return COERCION_FAILED

    def _coerce_string(self, value: str) -> Any:
        if not value: return COERCION_FAILED
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass
        if (moment := _parse_iso_datetime(value)) is not None:
            return moment.date()
        for fmt in self.STRING_FORMATS:
            try:
                return datetime.strptime(value, fmt).date()
            except ValueError:
                continue
        return COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, date) and not isinstance(value, datetime)


class DateTimeType(TypeHandler):
    name = "datetime"

    EPOCH: ClassVar[date] = date(1970, 1, 1)

    def coerce(self, value: Any) -> Any:
        if isinstance(value, datetime): return _aware(value)
        if isinstance(value, date): return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        if isinstance(value, time): return _aware(datetime.combine(self.EPOCH, value))
        if isinstance(value, str): return self._coerce_string(value.strip())
        if is_number(value) and isinstance(value, (int, float)):
            moment = _from_epoch(value)
            return moment if moment is not None else COERCION_FAILED
        return COERCION_FAILED

    @staticmethod
    def _coerce_string(value: str) -> Any:
        if not value: return COERCION_FAILED
        moment = _parse_iso_datetime(value) or _parse_rfc2822(value)
        return _aware(moment) if moment is not None else COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, datetime)


class TimeType(TypeHandler):
    """Time of day, timezone-aware."""

    name = "time"

    def coerce(self, value: Any) -> Any:
        if isinstance(value, datetime): return _aware(value).timetz()
        if isinstance(value, date): return time(0, tzinfo=timezone.utc)
        if isinstance(value, time): return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
        if isinstance(value, str): return self._coerce_string(value.strip())
        if is_number(value) and isinstance(value, (int, float)):
            moment = _from_epoch(value)
            return moment.timetz() if moment is not None else COERCION_FAILED
        return COERCION_FAILED

    @staticmethod
    def _coerce_string(value: str) -> Any:
        if not value: return COERCION_FAILED
        try:
            parsed = time.fromisoformat(_iso_text(value))
            return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)
        except ValueError:
            pass
        moment = _parse_iso_datetime(value) or _parse_rfc2822(value)
        return _aware(moment).timetz() if moment is not None else COERCION_FAILED

    def validate(self, value: Any) -> bool:
        return isinstance(value, time)


SCALAR_TYPES: tuple[type[TypeHandler], ...] = (
    StringType, IntegerType, FloatType, BooleanType, DecimalType,
    DateType, DateTimeType, TimeType,
)
