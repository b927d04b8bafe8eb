"""Tests for the type registry and user-defined types."""
from decimal import Decimal

import pytest

from valora import ArgumentError, ErrorCode, TypeHandler, context, define_type, schema, unregister_type
from valora.validation import DEFAULT_REGISTRY, COERCION_FAILED, IntegerType, TypeRegistry


class UpperType(TypeHandler):
    name = "upper"

    def coerce(self, value):
        return value.upper() if isinstance(value, str) else COERCION_FAILED

    def validate(self, value):
        return isinstance(value, str) and value.isupper()


def test_builtins_and_aliases_are_registered():
    for name in ("string", "integer", "float", "boolean", "decimal", "date", "datetime", "time",
                 "array", "object", "union", "literal", "discriminated_union"):
        assert name in DEFAULT_REGISTRY
    assert DEFAULT_REGISTRY.lookup("bool") is DEFAULT_REGISTRY.lookup("boolean")
    assert DEFAULT_REGISTRY.lookup("bigdecimal") is DEFAULT_REGISTRY.lookup("decimal")
    assert DEFAULT_REGISTRY.lookup("hash") is DEFAULT_REGISTRY.lookup("object")


def test_unknown_type_lists_available_names():
    with pytest.raises(ArgumentError, match="Unknown type: money"):
        DEFAULT_REGISTRY.build("money")
    with pytest.raises(ArgumentError):
        schema(lambda s: s.field("amount", "money"))


def test_register_rejects_non_handlers():
    with pytest.raises(ArgumentError):
        TypeRegistry().register("x", int)


def test_child_registry_shadows_without_touching_parent():
    child = DEFAULT_REGISTRY.child()
    child.register("upper", UpperType)
    assert child.lookup("upper") is UpperType
    assert child.lookup("integer") is IntegerType
    assert "upper" not in DEFAULT_REGISTRY
    assert child.names()[-1] == "upper"


def test_schema_level_types_table():
    Shout = schema(lambda s: s.field("word", "upper"), types={"upper": UpperType})
    assert Shout.parse({"word": "hey"}) == {"word": "HEY"}
    assert "upper" not in DEFAULT_REGISTRY


def test_registered_context_manager_restores_state():
    with DEFAULT_REGISTRY.registered("upper", UpperType):
        assert schema(lambda s: s.field("w", "upper")).parse({"w": "a"}) == {"w": "A"}
    assert "upper" not in DEFAULT_REGISTRY


def test_python_types_resolve_to_builtin_handlers():
    Row = schema(lambda s: (s.field("n", int), s.field("price", Decimal), s.field("tags", list, of=str)))
    assert Row.parse({"n": "3", "price": "1.50", "tags": [1]}) == {
        "n": 3, "price": Decimal("1.50"), "tags": ["1"],
    }


def test_define_type_with_static_message(custom_types):
    custom_types.append("money")
    define_type(
        "money",
        coerce=lambda v: Decimal(str(v).lstrip("$")),
        validate=lambda v: v >= 0,
        error_message="must be a valid amount",
    )
    Price = schema(lambda s: s.field("price", "money"))
    assert Price.parse({"price": "$12.50"}) == {"price": Decimal("12.50")}

    for bad in ("$abc", "-1"):
        error = Price.safe_parse({"price": bad}).errors[0]
        assert error.code is ErrorCode.TYPE_ERROR
        assert error.message == "must be a valid amount"


def test_define_type_with_context_and_callable_message(custom_types):
    custom_types.append("scaled")
    define_type(
        "scaled",
        coerce=lambda v, ctx: int(v) * ctx.get("factor", 1),
        error_message=lambda v: f"cannot scale {v!r}",
    )
    Scaled = schema(lambda s: s.field("n", "scaled"))
    assert Scaled.parse({"n": "4"}, context(factor=10)) == {"n": 40}
    assert Scaled.parse({"n": "4"}) == {"n": 4}
    assert Scaled.safe_parse({"n": "x"}).errors[0].message == "cannot scale 'x'"


def test_define_type_default_messages(custom_types):
    custom_types.append("even")
    handler = define_type("even", validate=lambda v: isinstance(v, int) and v % 2 == 0)
    assert handler.name == "even"
    assert handler().validate(4)
    error = schema(lambda s: s.field("n", "even")).safe_parse({"n": 3}).errors[0]
    assert error.message == "must be a even"


def test_unregister_type_removes_handler():
    define_type("temporary", coerce=lambda v: v)
    assert "temporary" in DEFAULT_REGISTRY
    assert unregister_type("temporary") is not None
    assert "temporary" not in DEFAULT_REGISTRY
    assert unregister_type("temporary") is None
