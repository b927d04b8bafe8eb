"""Tests for arrays, nested objects, unions, literals and discriminated unions."""
from enum import Enum

import pytest

from valora import ArgumentError, ErrorCode, context, schema


class Kind(Enum):
    CARD = "card"
    BANK = "bank"


def test_array_items_are_coerced_and_indexed():
    Tags = schema(lambda s: s.field("ids", "array", of="integer"))
    assert Tags.parse({"ids": ["1", 2, (3.0)]}) == {"ids": [1, 2, 3]}

    result = Tags.safe_parse({"ids": [1, "x", 3, "y"]})
    assert [e.path for e in result.errors] == [("ids", 1), ("ids", 3)]
    assert all(e.code is ErrorCode.TYPE_ERROR for e in result.errors)


def test_array_accepts_tuples_and_rejects_scalars():
    Tags = schema(lambda s: s.field("tags", "array", of="string"))
    assert Tags.parse({"tags": ("a", "b")}) == {"tags": ["a", "b"]}
    assert Tags.safe_parse({"tags": "a"}).errors[0].code is ErrorCode.TYPE_ERROR


def test_array_of_nested_schema_reports_full_paths():
    def order(s):
        s.field("items", "array", of=lambda item: item.field("sku", "string", min=3))

    result = schema(order).safe_parse({"items": [{"sku": "abc"}, {"sku": "x"}]})
    assert result.errors[0].path == ("items", 1, "sku")
    assert result.errors[0].code is ErrorCode.MIN


def test_array_length_is_checked_by_constraints():
    Tags = schema(lambda s: s.field("tags", "array", of="string", min=1, max=2))
    assert Tags.safe_parse({"tags": []}).errors[0].code is ErrorCode.MIN
    assert Tags.safe_parse({"tags": ["a", "b", "c"]}).errors[0].code is ErrorCode.MAX


def test_object_without_schema_normalizes_keys():
    Meta = schema(lambda s: s.field("meta", "object"))
    assert Meta.parse({"meta": {Kind.CARD: 1, "b": 2}}) == {"meta": {"card": 1, "b": 2}}
    assert Meta.safe_parse({"meta": [1]}).errors[0].code is ErrorCode.TYPE_ERROR


def test_nested_schema_does_not_inherit_context():
    seen = []

    def inner(s):
        s.field("value", "integer", refine=lambda v, ctx: seen.append(ctx.is_empty()) or True)

    Outer = schema(lambda s: s.field("inner", "object", schema=inner))
    Outer.parse({"inner": {"value": 1}}, context(limit=5))
    assert seen == [True]


def test_union_tries_members_in_order():
    Id = schema(lambda s: s.field("id", union=["integer", "string"]))
    assert Id.parse({"id": "42"}) == {"id": 42}
    assert Id.parse({"id": "abc"}) == {"id": "abc"}

    result = Id.safe_parse({"id": [1]})
    assert result.errors[0].code is ErrorCode.UNION_TYPE_ERROR
    assert result.errors[0].message == "must be one of: integer, string"


def test_union_via_types_option():
    Flag = schema(lambda s: s.field("flag", "union", types=["boolean", "integer"]))
    assert Flag.parse({"flag": "yes"}) == {"flag": True}
    assert Flag.parse({"flag": 7}) == {"flag": 7}


def test_literal_is_strict():
    Status = schema(lambda s: s.field("status", literal=["active", 1]))
    assert Status.parse({"status": "active"}) == {"status": "active"}
    assert Status.parse({"status": 1}) == {"status": 1}
    for bad in (True, 1.0, "ACTIVE"):
        assert Status.safe_parse({"status": bad}).errors[0].code is ErrorCode.LITERAL_MISMATCH


def test_literal_after_coercion():
    Level = schema(lambda s: s.field("level", "integer", literal=[1, 2, 3]))
    assert Level.parse({"level": "2"}) == {"level": 2}
    assert Level.safe_parse({"level": "4"}).errors[0].code is ErrorCode.LITERAL_MISMATCH


def _payment_schema():
    def card(s):
        s.field("method", "string")
        s.field("card_number", "string", format="numeric")

    def bank(s):
        s.field("method", "string")
        s.field("iban", "string")

    return schema(lambda s: s.field(
        "payment", "discriminated_union",
        discriminator="method",
        mapping={Kind.CARD: card, "bank": bank},
    ))


def test_discriminated_union_selects_schema():
    Payment = _payment_schema()
    assert Payment.parse({"payment": {"method": "card", "card_number": "4111"}}) == {
        "payment": {"method": "card", "card_number": "4111"}
    }
    assert Payment.parse({"payment": {"method": Kind.BANK, "iban": "DE00"}}) == {
        "payment": {"method": "bank", "iban": "DE00"}
    }


def test_discriminated_union_errors():
    Payment = _payment_schema()

    missing = Payment.safe_parse({"payment": {"method": None}}).errors[0]
    assert missing.code is ErrorCode.DISCRIMINATOR_MISSING
    assert missing.path == ("payment", "method")

    invalid = Payment.safe_parse({"payment": {"method": "cash"}}).errors[0]
    assert invalid.code is ErrorCode.INVALID_DISCRIMINATOR
    assert invalid.path == ("payment", "method")

    inner = Payment.safe_parse({"payment": {"method": "card", "card_number": "x1"}}).errors[0]
    assert inner.code is ErrorCode.FORMAT
    assert inner.path == ("payment", "card_number")

    not_object = Payment.safe_parse({"payment": "card"}).errors[0]
    assert not_object.code is ErrorCode.TYPE_ERROR
    assert not_object.message == "must be an object"


def test_discriminated_union_requires_configuration():
    with pytest.raises(ArgumentError):
        schema(lambda s: s.field("payment", "discriminated_union", discriminator="method"))


def test_empty_union_and_literal_are_rejected():
    with pytest.raises(ArgumentError):
        schema(lambda s: s.field("x", union=[]))
    with pytest.raises(ArgumentError):
        schema(lambda s: s.field("x", literal=[]))
