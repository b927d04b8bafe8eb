"""Parse Results

``safe_parse`` returns ``Success(data)`` or ``Failure(errors)``. Both
variants share the same query surface, so callers can branch on
``is_success()`` or hand both functions to ``match``.

Usage:
    result = schema.safe_parse(payload)
    result.match(
        success=lambda data: save(data),
        failure=lambda errors: report(errors.group_by_path()),
    )
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, TypeVar, Union, final

from pydantic import BaseModel, ConfigDict

from valora.errors import ArgumentError, Error, ErrorCollection, ValidationFailed

from .serializer import DumpFormat, dump

U = TypeVar("U")


class ErrorEntry(BaseModel):
    """Wire form of one error."""
    model_config = ConfigDict(frozen=True)

    path: list[Union[str, int]]
    message: str
    code: str


class ErrorReport(BaseModel):
    """Wire form of a failed parse: ``{"errors": [...]}``."""
    model_config = ConfigDict(frozen=True)

    errors: list[ErrorEntry]

    @classmethod
    def from_errors(cls, errors: ErrorCollection) -> ErrorReport:
        return cls(errors=[ErrorEntry(**error.to_dict()) for error in errors])


@final
@dataclass(frozen=True, slots=True)
class Success:
    """Parsed, validated output."""
    data: dict[str, Any]

    def is_success(self) -> bool: return True

    def is_failure(self) -> bool: return False

    @property
    def errors(self) -> ErrorCollection: return ErrorCollection()

    def unwrap(self) -> dict[str, Any]: return self.data

    def value_or(self, default: Any) -> dict[str, Any]: return self.data

    def map(self, f: Callable[[dict[str, Any]], Any]) -> Success:
        """Transform the output data."""
        return Success(f(self.data))

    def flat_map(self, f: Callable[[dict[str, Any]], Result]) -> Result:
        """Chain another step that may fail."""
        return f(self.data)

    def match(self, success: Callable[[dict[str, Any]], U], failure: Callable[[ErrorCollection], U]) -> U:
        return success(self.data)

    def dump(self, format: DumpFormat = "primitives") -> Any:
        return dump(self.data, format)


@final
@dataclass(frozen=True, slots=True)
class Failure:
    """Errors from a parse, in field declaration order."""
    errors: ErrorCollection

    def __post_init__(self):
        if not isinstance(self.errors, ErrorCollection):
            object.__setattr__(self, "errors", ErrorCollection(self.errors))

    def is_success(self) -> bool: return False

    def is_failure(self) -> bool: return True

    @property
    def data(self) -> None: return None

    def unwrap(self) -> dict[str, Any]:
        raise ValidationFailed(self.errors)

    def value_or(self, default: Any) -> Any: return default

    def map(self, f: Callable[[dict[str, Any]], Any]) -> Failure:
        """No-op for Failure."""
        return self

    def flat_map(self, f: Callable[[dict[str, Any]], Result]) -> Failure:
        return self

    def match(self, success: Callable[[dict[str, Any]], U], failure: Callable[[ErrorCollection], U]) -> U:
        return failure(self.errors)

    def report(self) -> ErrorReport:
        return ErrorReport.from_errors(self.errors)

    def dump(self, format: DumpFormat = "primitives") -> Any:
        """``{"errors": [{"path", "message", "code"}]}`` as primitives or JSON."""
        if format == "json":
            return self.report().model_dump_json()
        if format == "primitives":
            return self.report().model_dump()
        raise ArgumentError(f"Unknown format: {format}")

    @classmethod
    def of(cls, *errors: Error) -> Failure:
        return cls(ErrorCollection(errors))


Result = Union[Success, Failure]
