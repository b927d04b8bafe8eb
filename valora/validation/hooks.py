"""Callable Hooks

User callbacks (preprocess, transform, refinements, conditions, validators,
custom-type coercers) may take one argument or two. The second argument is
the parse Context. Arity is resolved once when the hook is wrapped, never
per call, so dispatch is a single branch on a stored flag.

Usage:
    Hook.of(lambda v: v.strip())              # called as fn(value)
    Hook.of(lambda v, ctx: v * ctx["rate"])   # called as fn(value, ctx)
    Hook.of(str.strip)                        # optional parameters don't count: fn(value)
    Hook.contextual(some_builtin)             # force a choice when inspection can't tell
"""
from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Callable, final

from valora.errors import ArgumentError

_POSITIONAL = (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)


def accepts_context(fn: Callable[..., Any]) -> bool:
    """True if ``fn`` needs two or more positional arguments (or takes ``*args``).

    Positional parameters with defaults are not counted, so ``round`` and
    ``str.strip`` are called with the value alone. Wrap such callables in
    ``Hook.contextual`` when the optional parameter should get the Context.
    """
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        # Builtins without introspectable signatures get the value only
        return False
    positional = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return True
        if param.kind in _POSITIONAL and param.default is inspect.Parameter.empty:
            positional += 1
    return positional >= 2


@final
@dataclass(frozen=True, slots=True)
class Hook:
    """A callback tagged with whether it receives the Context."""
    fn: Callable[..., Any]
    takes_context: bool = False

    @classmethod
    def of(cls, fn: Callable[..., Any] | Hook) -> Hook:
        if isinstance(fn, Hook): return fn
        if not callable(fn):
            raise ArgumentError(f"Expected a callable, got {type(fn).__name__}")
        return cls(fn, accepts_context(fn))

    @classmethod
    def plain(cls, fn: Callable[[Any], Any]) -> Hook: return cls(fn, False)

    @classmethod
    def contextual(cls, fn: Callable[[Any, Any], Any]) -> Hook: return cls(fn, True)

    def __call__(self, value: Any, ctx: Any) -> Any:
        if self.takes_context:
            return self.fn(value, ctx)
        return self.fn(value)

    @property
    def arity(self) -> int: return 2 if self.takes_context else 1


def optional_hook(fn: Callable[..., Any] | Hook | None) -> Hook | None:
    return None if fn is None else Hook.of(fn)
