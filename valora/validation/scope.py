"""Parse Scope

Per-parse state handed down the handler tree: the current path, the
Context, the nesting depth and the resource limits snapshotted when the
outermost schema was built.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace

from valora.config import get_settings
from valora.errors import EMPTY_PATH, Path, PathSegment

from .context import Context


@dataclass(frozen=True, slots=True)
class ParseLimits:
    """Caps on nesting depth and array length."""
    max_depth: int = 32
    max_array_length: int = 10_000

    @classmethod
    def from_settings(cls, max_depth: int | None = None, max_array_length: int | None = None) -> ParseLimits:
        settings = get_settings()
        return cls(
            max_depth=settings.MAX_DEPTH if max_depth is None else max_depth,
            max_array_length=settings.MAX_ARRAY_LENGTH if max_array_length is None else max_array_length,
        )


@dataclass(frozen=True, slots=True)
class Scope:
    path: Path = EMPTY_PATH
    context: Context = field(default_factory=Context.empty)
    depth: int = 0
    limits: ParseLimits = field(default_factory=ParseLimits)

    def child(self, segment: PathSegment) -> Scope:
        return replace(self, path=(*self.path, segment))

    def descend(self) -> Scope:
        """Scope for a nested schema: one level deeper, Context not inherited."""
        return replace(self, context=Context.empty(), depth=self.depth + 1)

    @property
    def too_deep(self) -> bool: return self.depth > self.limits.max_depth
