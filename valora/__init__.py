"""valora - data validation and coercion

Parse raw, untrusted mappings into typed output with path-accurate
diagnostics.

Usage:
    import valora

    User = valora.schema(lambda s: (
        s.field("name", "string", min=1),
        s.field("email", "string", format="email"),
    ))
    User.parse({"name": "Ada", "email": "ada@example.com"})
"""
from valora.errors import (
    ArgumentError,
    DuplicateFieldError,
    Error,
    ErrorCode,
    ErrorCollection,
    ValidationFailed,
)
from valora.messages import MessageCatalog, catalog
from valora.validation import (
    Context,
    Failure,
    Field,
    Hook,
    Refinement,
    Schema,
    SchemaBuilder,
    Success,
    TypeHandler,
    TypeRegistry,
    UnknownKeys,
    context,
    define_type,
    dump,
    make_schema,
    schema,
    unregister_type,
)

__version__ = "0.1.0"

__all__ = [
    # Building
    "schema",
    "make_schema",
    "Schema",
    "SchemaBuilder",
    "Field",
    "Refinement",
    "Hook",
    "UnknownKeys",
    # Types
    "TypeHandler",
    "TypeRegistry",
    "define_type",
    "unregister_type",
    # Parsing
    "Context",
    "context",
    "Success",
    "Failure",
    "dump",
    # Errors
    "Error",
    "ErrorCode",
    "ErrorCollection",
    "ValidationFailed",
    "ArgumentError",
    "DuplicateFieldError",
    # Messages
    "MessageCatalog",
    "catalog",
]
