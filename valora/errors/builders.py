"""Error Builders

Ergonomic constructors for the errors the engine emits. Each builder picks
the right code and the catalog template, so call sites only supply the
path and the template values.
"""
from typing import Any, Sequence

from valora.messages import t

from .types import Error, ErrorCode, PathSegment


def _path(path: Sequence[PathSegment]) -> tuple[PathSegment, ...]:
    return path if isinstance(path, tuple) else tuple(path)


def required_error(path: Sequence[PathSegment], message: str | None = None) -> Error:
    return Error(_path(path), message or t("required"), ErrorCode.REQUIRED)


def type_error(path: Sequence[PathSegment], message: str | None = None) -> Error:
    return Error(_path(path), message or t("type_error"), ErrorCode.TYPE_ERROR)


def preprocess_error(path: Sequence[PathSegment], exc: BaseException) -> Error:
    return Error(_path(path), t("preprocess_error", reason=exc), ErrorCode.PREPROCESS_ERROR)


def transform_error(path: Sequence[PathSegment], exc: BaseException) -> Error:
    return Error(_path(path), t("transform_error", reason=exc), ErrorCode.TRANSFORM_ERROR)


def refinement_error(path: Sequence[PathSegment], message: str | None = None) -> Error:
    return Error(_path(path), message or t("refinement"), ErrorCode.REFINEMENT)


def union_type_error(path: Sequence[PathSegment], type_names: Sequence[str]) -> Error:
    return Error(_path(path), t("union_type_error", types=", ".join(type_names)), ErrorCode.UNION_TYPE_ERROR)


def literal_mismatch(path: Sequence[PathSegment], expected: str, actual: Any) -> Error:
    return Error(_path(path), t("literal_mismatch", expected=expected, actual=repr(actual)),
                 ErrorCode.LITERAL_MISMATCH)


def unknown_key_error(path: Sequence[PathSegment]) -> Error:
    return Error(_path(path), t("unknown_key"), ErrorCode.UNKNOWN_KEY)


def discriminator_missing(path: Sequence[PathSegment]) -> Error:
    return Error(_path(path), t("discriminator_missing"), ErrorCode.DISCRIMINATOR_MISSING)


def invalid_discriminator(path: Sequence[PathSegment], allowed: Sequence[Any]) -> Error:
    return Error(_path(path), t("invalid_discriminator", values=", ".join(repr(v) for v in allowed)),
                 ErrorCode.INVALID_DISCRIMINATOR)


def custom_error(path: Sequence[PathSegment], message: str, code: ErrorCode = ErrorCode.CUSTOM) -> Error:
    return Error(_path(path), message, code)


def depth_limit_error(path: Sequence[PathSegment], limit: int) -> Error:
    return Error(_path(path), t("resource_depth", limit=limit), ErrorCode.RESOURCE_LIMIT)


def array_length_limit_error(path: Sequence[PathSegment], limit: int, actual: int) -> Error:
    return Error(_path(path), t("resource_array_length", limit=limit, actual=actual), ErrorCode.RESOURCE_LIMIT)
