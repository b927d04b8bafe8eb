"""Tests for the per-field pipeline."""
import pytest

from valora import ArgumentError, ErrorCode, Refinement, context, schema
from valora.validation import Field, Max, Min, build_field


def one_field(name="value", type="string", **options):
    return schema(lambda s: s.field(name, type, **options))


# ============================================================================
# Missing, optional, nullable, defaults
# ============================================================================

def test_required_field_missing():
    result = one_field().safe_parse({})
    assert result.errors[0].code is ErrorCode.REQUIRED
    assert result.errors[0].path == ("value",)


def test_optional_field_missing_is_absent_from_output():
    assert one_field(optional=True).parse({}) == {}


def test_null_on_required_field_is_required_error():
    assert one_field().safe_parse({"value": None}).errors[0].code is ErrorCode.REQUIRED


def test_null_error_can_be_type_error():
    error = one_field(null_error="type_error").safe_parse({"value": None}).errors[0]
    assert error.code is ErrorCode.TYPE_ERROR
    assert error.message == "must be a string"


def test_nullable_and_optional_are_independent():
    nullable = one_field(nullable=True)
    assert nullable.parse({"value": None}) == {"value": None}
    assert nullable.safe_parse({}).errors[0].code is ErrorCode.REQUIRED

    optional = one_field(optional=True)
    assert optional.safe_parse({"value": None}).errors[0].code is ErrorCode.REQUIRED


def test_default_fills_missing_and_flows_through_pipeline():
    Page = one_field("page", "integer", default="1", min=1)
    assert Page.parse({}) == {"page": 1}
    assert Page.parse({"page": "3"}) == {"page": 3}


def test_explicit_null_does_not_use_default():
    assert one_field(default="x").safe_parse({"value": None}).errors[0].code is ErrorCode.REQUIRED


def test_default_factory_is_called_per_parse():
    Tags = one_field("tags", "array", of="string", default_factory=list)
    first = Tags.parse({})
    second = Tags.parse({})
    assert first == {"tags": []}
    assert first["tags"] is not second["tags"]


def test_null_default_is_accepted():
    assert one_field(default=None).parse({}) == {"value": None}


def test_default_and_factory_are_exclusive():
    with pytest.raises(ArgumentError):
        one_field(default=1, default_factory=list)
    with pytest.raises(ArgumentError):
        one_field(default_factory=[])


# ============================================================================
# Hooks
# ============================================================================

def test_preprocess_runs_before_coercion():
    Count = one_field("count", "integer", preprocess=lambda v: v.replace(",", ""))
    assert Count.parse({"count": "1,234"}) == {"count": 1234}


def test_preprocess_may_produce_null():
    Name = one_field(nullable=True, preprocess=lambda v: v.strip() or None)
    assert Name.parse({"value": "   "}) == {"value": None}


def test_preprocess_exception_becomes_error():
    error = one_field(preprocess=lambda v: v.upper()).safe_parse({"value": 5}).errors[0]
    assert error.code is ErrorCode.PREPROCESS_ERROR
    assert error.message.startswith("preprocess failed:")


def test_transform_runs_last_and_may_use_context():
    Price = one_field("price", "integer", min=0, transform=lambda v, ctx: v * ctx.get("rate", 1))
    assert Price.parse({"price": "5"}, {"rate": 3}) == {"price": 15}
    assert Price.safe_parse({"price": "-1"}, {"rate": 3}).errors[0].code is ErrorCode.MIN


def test_transform_exception_becomes_error():
    error = one_field("n", "integer", transform=lambda v: 1 / v).safe_parse({"n": 0}).errors[0]
    assert error.code is ErrorCode.TRANSFORM_ERROR


def test_coerce_false_performs_type_check_only():
    Age = one_field("age", "integer", coerce=False)
    assert Age.parse({"age": 5}) == {"age": 5}
    assert Age.safe_parse({"age": "5"}).errors[0].code is ErrorCode.TYPE_ERROR


# ============================================================================
# Refinements
# ============================================================================

def test_refinements_stop_at_first_failure():
    calls = []

    def first(v):
        calls.append("first")
        return False

    def second(v):
        calls.append("second")
        return False

    result = one_field(refine=[(first, "first failed"), (second, "second failed")]).safe_parse({"value": "x"})
    assert [e.message for e in result.errors] == ["first failed"]
    assert calls == ["first"]


def test_refinement_forms():
    Even = one_field("n", "integer", refine={"if": lambda v: v % 2 == 0, "message": lambda v: f"{v} is odd"})
    assert Even.safe_parse({"n": 3}).errors[0].message == "3 is odd"

    plain = one_field("n", "integer", refine=lambda v: v > 0).safe_parse({"n": 0}).errors[0]
    assert plain.code is ErrorCode.REFINEMENT
    assert plain.message == "failed refinement"

    explicit = Refinement.of((lambda v: True, "never"))
    assert one_field("n", "integer", refine=explicit).parse({"n": 1}) == {"n": 1}


def test_refinement_exception_counts_as_failure():
    error = one_field("n", "integer", refine=lambda v: 1 / v).safe_parse({"n": 0}).errors[0]
    assert error.code is ErrorCode.REFINEMENT


def test_refinements_do_not_run_after_constraint_failure():
    calls = []
    one_field("n", "integer", min=5, refine=lambda v: calls.append(v) or True).safe_parse({"n": 1})
    assert calls == []


def test_refinement_with_context():
    Amount = one_field("amount", "integer", refine=(lambda v, ctx: v <= ctx["limit"], "over limit"))
    assert Amount.parse({"amount": 5}, context(limit=10)) == {"amount": 5}
    assert Amount.safe_parse({"amount": 50}, context(limit=10)).errors[0].message == "over limit"


# ============================================================================
# Conditions and messages
# ============================================================================

def test_when_with_field_name():
    def form(s):
        s.field("has_company", "boolean", default=False)
        s.field("company", "string", when="has_company")

    Form = schema(form)
    assert Form.parse({}) == {"has_company": False}
    assert Form.safe_parse({"has_company": "yes"}).errors[0].path == ("company",)


def test_unless_with_callable_and_context():
    Reason = one_field("reason", "string", unless=lambda data, ctx: ctx.get("admin", False))
    assert Reason.parse({}, context(admin=True)) == {}
    assert Reason.safe_parse({}).errors[0].code is ErrorCode.REQUIRED


def test_inactive_conditional_field_still_validates_supplied_value():
    Note = one_field("note", "string", when=False, max=3)
    assert Note.parse({"note": "abc"}) == {"note": "abc"}
    assert Note.safe_parse({"note": "abcdef"}).errors[0].code is ErrorCode.MAX


def test_inactive_conditional_field_skips_its_default():
    Note = one_field("note", "string", when=False, default="none")
    assert Note.parse({}) == {}
    assert Note.parse({"note": "hi"}) == {"note": "hi"}
    assert one_field("note", "string", when=True, default="none").parse({}) == {"note": "none"}


def test_custom_message_replaces_every_error_message():
    Code = one_field("code", "string", min=5, format="numeric", message="invalid code")
    errors = Code.safe_parse({"code": "ab"}).errors
    assert errors.messages() == ["invalid code", "invalid code"]
    assert errors.codes() == [ErrorCode.MIN, ErrorCode.FORMAT]


# ============================================================================
# Construction and introspection
# ============================================================================

def test_unknown_option_is_rejected():
    with pytest.raises(ArgumentError, match="Unknown option 'minimum'"):
        one_field(minimum=1)


def test_type_is_required():
    with pytest.raises(ArgumentError):
        build_field("x")


def test_field_introspection():
    f = build_field("age", "integer", min=0, max=150, optional=True, default=18)
    assert isinstance(f, Field)
    assert f.type_name == "integer"
    assert f.is_optional and not f.is_required
    assert f.has_default and f.default_value() == 18
    assert f.has_constraint("min") and f.has_constraint(Max)
    assert f.constraint_by(Min) == Min(0)
    assert f.constraint_values() == {"min": 0, "max": 150}
    assert f.options() == {"optional": True, "nullable": False, "coerce": True, "default": 18}
    assert f.with_options(nullable=True).is_nullable
    assert not f.is_nullable


def test_field_to_hash():
    f = build_field("tags", "array", of="string", when="enabled", length=(1, 3))
    hashed = f.to_hash()
    assert hashed["type"] == "array<string>"
    assert hashed["of"] == {"type": "string"}
    assert hashed["conditional"] is True
    assert hashed["when"] == {"field": "enabled"}
    assert hashed["constraints"] == [{"type": "length", "options": {"min": 1, "max": 3}}]
