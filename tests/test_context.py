"""Tests for Context and callable hooks."""
from enum import Enum

import pytest

from valora import ArgumentError, Context, Hook, context, schema
from valora.validation.hooks import accepts_context


class Key(Enum):
    LIMIT = "limit"


def test_context_normalizes_symbolic_keys():
    ctx = context({Key.LIMIT: 100}, locale="en")
    assert ctx["limit"] == 100
    assert ctx[Key.LIMIT] == 100
    assert ctx.has("locale")
    assert Key.LIMIT in ctx
    assert ctx.get("missing") is None
    assert ctx.to_dict() == {"limit": 100, "locale": "en"}


def test_context_fetch():
    ctx = context(limit=5)
    assert ctx.fetch("limit") == 5
    assert ctx.fetch("other", 0) == 0
    with pytest.raises(KeyError):
        ctx.fetch("other")


def test_context_is_read_only():
    ctx = context(limit=5)
    with pytest.raises(TypeError):
        ctx["limit"] = 6  # type: ignore[index]


def test_empty_context_is_shared():
    assert Context.empty() is Context.empty()
    assert Context.empty().is_empty()
    assert Context.coerce(None) is Context.empty()


def test_coerce_wraps_mappings_and_rejects_other_values():
    ctx = Context.coerce({"a": 1})
    assert isinstance(ctx, Context)
    assert Context.coerce(ctx) is ctx
    assert ctx == {"a": 1}
    with pytest.raises(ArgumentError):
        Context.coerce([("a", 1)])


def test_hook_arity_is_detected_once():
    assert Hook.of(lambda v: v).arity == 1
    assert Hook.of(lambda v, ctx: v).arity == 2
    assert Hook.of(lambda *args: args).takes_context


def test_hook_dispatch():
    plain = Hook.of(lambda v: v + 1)
    contextual = Hook.of(lambda v, ctx: v + ctx["step"])
    ctx = context(step=10)
    assert plain(1, ctx) == 2
    assert contextual(1, ctx) == 11


def test_hook_explicit_choice():
    assert Hook.contextual(max).takes_context
    assert not Hook.plain(max).takes_context


def test_hook_rejects_non_callables():
    with pytest.raises(ArgumentError):
        Hook.of("strip")


def test_accepts_context_for_methods_and_keyword_only_params():
    class Rounder:
        def round(self, value):
            return round(value)

    assert not accepts_context(Rounder().round)
    assert not accepts_context(lambda v, *, ctx=None: v)


def test_optional_parameters_do_not_receive_context():
    assert not accepts_context(str.strip)
    assert not accepts_context(round)
    assert not accepts_context(lambda v, places=2: v)
    assert Hook.contextual(lambda v, ctx=None: ctx)(1, "ctx") == "ctx"


def test_builtins_work_as_field_hooks():
    Reading = schema(lambda s: s.field("value", "float", preprocess=str.strip, transform=round))
    assert Reading.parse({"value": "  2.6 "}) == {"value": 3}
