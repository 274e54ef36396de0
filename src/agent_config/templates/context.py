"""Read-only access to template contexts.

Provides dotted-path lookup, emptiness-based truthiness, iteration over
lists and mappings, and the layered scope used inside ``{{#each}}`` bodies.
Nothing here ever writes to a context, so one context can be shared by any
number of render passes.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .models import ContextValue, TemplateContext

LOOP_RESERVED_NAMES: frozenset[str] = frozenset({"item", "index", "key", "value"})


class _Missing:
    """Sentinel for paths that do not resolve."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def _step(current: Any, part: str) -> Any:
    if isinstance(current, Mapping):
        if part in current:
            return current[part]
        if part == "length":
            return len(current)
        return MISSING
    if isinstance(current, (list, tuple)):
        if part == "length":
            return len(current)
        if part.isdigit() and int(part) < len(current):
            return current[int(part)]
        return MISSING
    if isinstance(current, str) and part == "length":
        return len(current)
    return MISSING


def get_context_value(context: TemplateContext, path: str, default: Any = None) -> Any:
    """Resolve a dotted path such as ``project.name`` against a context.

    Integer segments index into lists and ``length`` yields the size of a
    list, mapping or string. Returns ``default`` when any segment is missing
    or a step lands on a value that cannot be indexed; never raises.
    """
    path = path.strip()
    if not path:
        return default

    current: Any = context
    for part in path.split("."):
        if not part:
            return default
        current = _step(current, part)
        if current is MISSING:
            return default
    return current


def is_truthy(value: Any) -> bool:
    """Emptiness-based truthiness used by ``{{#if}}`` and ``{{#unless}}``.

    ``None``, missing values, ``False``, zero, and empty strings, lists and
    mappings are falsy. Everything else is truthy.
    """
    if value is None or value is MISSING:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return len(value) > 0
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, (list, tuple, Mapping)):
        return len(value) > 0
    return bool(value)


def format_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def stringify_value(value: Any) -> str:
    """Render a context value as text for interpolation and comparison."""
    if value is None or value is MISSING:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return format_number(value)
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ", ".join(stringify_value(item) for item in value)
    if isinstance(value, Mapping):
        return json.dumps(to_plain(value), ensure_ascii=False)
    return str(value)


def to_plain(value: Any) -> Any:
    """Convert nested mappings (including loop scopes) into plain dicts and lists."""
    if isinstance(value, Mapping):
        return {str(key): to_plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(item) for item in value]
    return value


@dataclass(frozen=True)
class LoopEntry:
    """One iteration of an ``{{#each}}`` block."""

    index: int
    item: ContextValue
    key: str | None = None

    @property
    def bindings(self) -> dict[str, ContextValue]:
        if self.key is None:
            return {"item": self.item, "index": self.index}
        return {"key": self.key, "value": self.item, "item": self.item, "index": self.index}


def get_iterable(path: str, context: TemplateContext) -> list[LoopEntry]:
    """Resolve ``path`` and return its entries in order.

    Lists yield one entry per element; mappings yield one entry per key in
    insertion order. Anything else, including a missing path, yields nothing.
    """
    value = get_context_value(context, path)
    if isinstance(value, (list, tuple)):
        return [LoopEntry(index=index, item=item) for index, item in enumerate(value)]
    if isinstance(value, Mapping):
        return [
            LoopEntry(index=index, item=item, key=str(key))
            for index, (key, item) in enumerate(value.items())
        ]
    return []


class LoopContext(Mapping):
    """Scope for one ``{{#each}}`` iteration layered over its parent context.

    The reserved names ``item``, ``index``, ``key`` and ``value`` resolve only
    against this loop's own bindings, which hides the bindings of any
    enclosing loop. Every other name falls through to the parent.
    """

    def __init__(self, parent: TemplateContext, bindings: Mapping[str, ContextValue]):
        self._parent = parent
        self._bindings = dict(bindings)

    def __getitem__(self, name: str) -> ContextValue:
        if name in LOOP_RESERVED_NAMES:
            return self._bindings[name]
        return self._parent[name]

    def __iter__(self) -> Iterator[str]:
        yield from self._bindings
        for name in self._parent:
            if name not in LOOP_RESERVED_NAMES:
                yield name

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __repr__(self) -> str:
        return f"LoopContext(bindings={self._bindings!r})"


def create_loop_context(parent: TemplateContext, entry: LoopEntry) -> LoopContext:
    return LoopContext(parent, entry.bindings)


__all__ = [
    "LOOP_RESERVED_NAMES",
    "LoopContext",
    "LoopEntry",
    "MISSING",
    "create_loop_context",
    "format_number",
    "get_context_value",
    "get_iterable",
    "is_truthy",
    "stringify_value",
    "to_plain",
]
