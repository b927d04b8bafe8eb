"""Validation Engine

Schemas parse untrusted mappings into typed, validated output, or into an
ordered, path-tracked error report.

Key Features:
- Per-field pipeline: preprocess, coerce, constrain, refine, transform
- Strip / strict / passthrough handling of unknown keys
- Cross-field validators that run once every field is valid
- Schema algebra: extend, pick, omit, merge, partial
- Built-in and user-defined types behind one registry
- Canonical serialization and JSON Schema emission

Usage:
    from valora.validation import schema, context

    def payment(s):
        s.field("amount", "decimal", min=0,
                refine=(lambda v, ctx: v <= ctx["limit"], "exceeds your limit"))

    Payment = schema(payment)
    result = Payment.safe_parse({"amount": "12.50"}, context(limit=100))
    if result.is_failure():
        return result.dump()
"""

# Values and context
from .values import MISSING, COERCION_FAILED
from .context import Context, context
from .hooks import Hook
from .scope import ParseLimits, Scope

# Types
from .coercion import (
    TypeHandler,
    StringType,
    IntegerType,
    FloatType,
    BooleanType,
    DecimalType,
    DateType,
    DateTimeType,
    TimeType,
)
from .composite import (
    ArrayType,
    ObjectType,
    UnionType,
    LiteralType,
    DiscriminatedUnionType,
)
from .registry import TypeRegistry, DEFAULT_REGISTRY
from .custom import CustomType, define_type, unregister_type

# Constraints
from .constraints import (
    ValidationResult,
    Constraint,
    Min,
    Max,
    Length,
    Format,
    Enum,
    NAMED_FORMATS,
    ConstraintRegistry,
    CONSTRAINTS,
)

# Fields and schemas
from .field import Field, Refinement, Condition, build_field
from .schema import (
    Schema,
    SchemaBuilder,
    UnknownKeys,
    ValidatorScope,
    schema,
    make_schema,
)

# Results and output
from .result import Success, Failure, Result, ErrorReport, ErrorEntry
from .serializer import dump, to_primitive
from .generators import JSONSchemaGenerator

__all__ = [
    # Values and context
    "MISSING",
    "COERCION_FAILED",
    "Context",
    "context",
    "Hook",
    "ParseLimits",
    "Scope",
    # Types
    "TypeHandler",
    "StringType",
    "IntegerType",
    "FloatType",
    "BooleanType",
    "DecimalType",
    "DateType",
    "DateTimeType",
    "TimeType",
    "ArrayType",
    "ObjectType",
    "UnionType",
    "LiteralType",
    "DiscriminatedUnionType",
    "TypeRegistry",
    "DEFAULT_REGISTRY",
    "CustomType",
    "define_type",
    "unregister_type",
    # Constraints
    "ValidationResult",
    "Constraint",
    "Min",
    "Max",
    "Length",
    "Format",
    "Enum",
    "NAMED_FORMATS",
    "ConstraintRegistry",
    "CONSTRAINTS",
    # Fields and schemas
    "Field",
    "Refinement",
    "Condition",
    "build_field",
    "Schema",
    "SchemaBuilder",
    "UnknownKeys",
    "ValidatorScope",
    "schema",
    "make_schema",
    # Results and output
    "Success",
    "Failure",
    "Result",
    "ErrorReport",
    "ErrorEntry",
    "dump",
    "to_primitive",
    # Generators
    "JSONSchemaGenerator",
]
