"""Path-Tracked Validation Errors

Immutable diagnostics produced by a parse, plus the ordered collection
that aggregates them. Every error carries the path of the offending value
inside the input, a human-readable message and a code from a closed
taxonomy.

Path rendering:
    ("user", "items", 0, "name")  ->  "user.items[0].name"
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Iterator, Sequence, Union, overload

PathSegment = Union[str, int]
Path = tuple[PathSegment, ...]

EMPTY_PATH: Path = ()


class ErrorCode(str, Enum):
    """Closed taxonomy of error codes emitted by the engine."""
    REQUIRED = "required"
    TYPE_ERROR = "type_error"
    PREPROCESS_ERROR = "preprocess_error"
    TRANSFORM_ERROR = "transform_error"
    MIN = "min"
    MAX = "max"
    LENGTH = "length"
    FORMAT = "format"
    ENUM = "enum"
    REFINEMENT = "refinement"
    UNION_TYPE_ERROR = "union_type_error"
    LITERAL_MISMATCH = "literal_mismatch"
    UNKNOWN_KEY = "unknown_key"
    DUPLICATE_FIELD = "duplicate_field"
    DISCRIMINATOR_MISSING = "discriminator_missing"
    INVALID_DISCRIMINATOR = "invalid_discriminator"
    CUSTOM = "custom"
    ARGUMENT_ERROR = "argument_error"
    RESOURCE_LIMIT = "resource_limit"

    @property
    def category(self) -> str:
        """Coarse grouping used by reporting layers."""
        if self in (ErrorCode.MIN, ErrorCode.MAX, ErrorCode.LENGTH, ErrorCode.FORMAT, ErrorCode.ENUM):
            return "constraint"
        if self in (ErrorCode.ARGUMENT_ERROR, ErrorCode.DUPLICATE_FIELD):
            return "usage"
        if self is ErrorCode.RESOURCE_LIMIT:
            return "resource"
        return "validation"


def format_path(path: Sequence[PathSegment]) -> str:
    """Render a path as dotted keys with bracketed indices."""
    parts: list[str] = []
    for segment in path:
        if isinstance(segment, int) and not isinstance(segment, bool):
            parts.append(f"[{segment}]")
        elif parts:
            parts.append(f".{segment}")
        else:
            parts.append(str(segment))
    return "".join(parts)


@dataclass(frozen=True, slots=True)
class Error:
    """A single diagnostic bound to a location in the input."""
    path: Path
    message: str
    code: ErrorCode = ErrorCode.CUSTOM

    def __post_init__(self):
        if not isinstance(self.path, tuple):
            object.__setattr__(self, "path", tuple(self.path))
        if not isinstance(self.code, ErrorCode):
            object.__setattr__(self, "code", ErrorCode(self.code))

    @property
    def full_path(self) -> str:
        return format_path(self.path)

    def with_message(self, message: str) -> Error:
        return Error(path=self.path, message=message, code=self.code)

    def with_prefix(self, prefix: Sequence[PathSegment]) -> Error:
        """Re-home this error under an outer path."""
        return Error(path=(*prefix, *self.path), message=self.message, code=self.code)

    def to_dict(self) -> dict[str, Any]:
        return {"path": list(self.path), "message": self.message, "code": self.code.value}

    def __str__(self) -> str:
        if not self.path: return self.message
        return f"{self.full_path}: {self.message}"


class ErrorCollection:
    """Ordered sequence of errors.

    Order is significant: field errors arrive in declaration order and,
    within a field, in pipeline order.
    """

    __slots__ = ("_errors",)

    def __init__(self, errors: Iterable[Error] = ()):
        self._errors = list(errors)

    def push(self, error: Error) -> ErrorCollection:
        self._errors.append(error)
        return self

    def extend(self, other: Iterable[Error]) -> ErrorCollection:
        self._errors.extend(other)
        return self

    def merge(self, other: Iterable[Error]) -> ErrorCollection:
        """Return a new collection holding both sets of errors."""
        return ErrorCollection([*self._errors, *other])

    def is_empty(self) -> bool: return not self._errors

    def __len__(self) -> int: return len(self._errors)

    def __bool__(self) -> bool: return bool(self._errors)

    def __iter__(self) -> Iterator[Error]: return iter(self._errors)

    @overload
    def __getitem__(self, index: int) -> Error: ...
    @overload
    def __getitem__(self, index: slice) -> ErrorCollection: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return ErrorCollection(self._errors[index])
        return self._errors[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ErrorCollection):
            return self._errors == other._errors
        if isinstance(other, (list, tuple)):
            return self._errors == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"ErrorCollection({self._errors!r})"

    @property
    def first(self) -> Error | None: return self._errors[0] if self._errors else None

    def filter_by_prefix(self, prefix: Sequence[PathSegment]) -> ErrorCollection:
        """Errors whose path starts with the given segments."""
        prefix = tuple(prefix)
        size = len(prefix)
        return ErrorCollection(e for e in self._errors if e.path[:size] == prefix)

    def for_path(self, *path: PathSegment) -> ErrorCollection:
        return self.filter_by_prefix(path)

    def group_by_path(self) -> dict[str, list[str]]:
        """Map of rendered path to messages, in first-seen order."""
        grouped: dict[str, list[str]] = {}
        for error in self._errors:
            grouped.setdefault(error.full_path, []).append(error.message)
        return grouped

    def codes(self) -> list[ErrorCode]: return [e.code for e in self._errors]

    def messages(self) -> list[str]: return [e.message for e in self._errors]

    def full_messages(self) -> list[str]: return [str(e) for e in self._errors]

    def to_list(self) -> list[Error]: return list(self._errors)


# ============================================================================
# Exceptions
# ============================================================================

class ValidationFailed(Exception):
    """Raised by ``Schema.parse`` when the input does not validate."""

    def __init__(self, errors: ErrorCollection | Iterable[Error]):
        self.errors = errors if isinstance(errors, ErrorCollection) else ErrorCollection(errors)
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        if not (messages := self.errors.full_messages()): return "Validation failed"
        return f"Validation failed: {'; '.join(messages)}"


class ArgumentError(ValueError):
    """Caller misuse: bad input shape, bad context, bad schema definition."""
    code: ErrorCode = ErrorCode.ARGUMENT_ERROR


class DuplicateFieldError(ArgumentError):
    """A field name was declared twice in one schema."""
    code = ErrorCode.DUPLICATE_FIELD

    def __init__(self, name: str):
        self.field_name = name
        super().__init__(f"Field {name!r} already defined")
