"""Error Taxonomy and Aggregation

Key components:
- ErrorCode: closed set of codes every diagnostic carries
- Error / ErrorCollection: path-tracked diagnostics and their ordered aggregate
- ValidationFailed: raised by ``Schema.parse`` on a failed parse
- ArgumentError / DuplicateFieldError: caller misuse
- Builder functions: one constructor per emitted code

Usage:
    from valora.errors import Error, ErrorCode, ErrorCollection

    errors = ErrorCollection()
    errors.push(Error(("user", "email"), "must be a valid email", ErrorCode.FORMAT))
    errors.group_by_path()  # {"user.email": ["must be a valid email"]}
"""
from .types import (
    EMPTY_PATH,
    ArgumentError,
    DuplicateFieldError,
    Error,
    ErrorCode,
    ErrorCollection,
    Path,
    PathSegment,
    ValidationFailed,
    format_path,
)

from .builders import (
    array_length_limit_error,
    custom_error,
    depth_limit_error,
    discriminator_missing,
    invalid_discriminator,
    literal_mismatch,
    preprocess_error,
    refinement_error,
    required_error,
    transform_error,
    type_error,
    union_type_error,
    unknown_key_error,
)

__all__ = [
    # Core types
    "EMPTY_PATH",
    "Path",
    "PathSegment",
    "Error",
    "ErrorCode",
    "ErrorCollection",
    "format_path",
    # Exceptions
    "ValidationFailed",
    "ArgumentError",
    "DuplicateFieldError",
    # Builders
    "required_error",
    "type_error",
    "preprocess_error",
    "transform_error",
    "refinement_error",
    "union_type_error",
    "literal_mismatch",
    "unknown_key_error",
    "discriminator_missing",
    "invalid_discriminator",
    "custom_error",
    "depth_limit_error",
    "array_length_limit_error",
]
