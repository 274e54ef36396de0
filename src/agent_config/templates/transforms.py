"""Value transforms for ``{{variable | transform}}`` interpolation.

Every transform takes a resolved context value and returns text. Transforms
are pure and total: they never raise and never touch the context.

Available transforms (aliases in parentheses):
    lowercase (lower), uppercase (upper), capitalize (title),
    kebab (kebabcase), snake (snakecase), camel (camelcase),
    pascal (pascalcase), count, join, joinlines, bullet (bullets),
    numbered, json, first, last
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Mapping
from typing import Any

from .context import MISSING, stringify_value, to_plain

_HUMP_LOWER_UPPER = re.compile(r"([a-z0-9])([A-Z])")
_HUMP_ACRONYM = re.compile(r"([A-Z]+)([A-Z][a-z])")
_WORD_SEPARATORS = re.compile(r"[\s\-_]+")


def split_words(text: str) -> list[str]:
    """Split text into words on spaces, hyphens, underscores and camel humps."""
    text = _HUMP_ACRONYM.sub(r"\1 \2", text)
    text = _HUMP_LOWER_UPPER.sub(r"\1 \2", text)
    return [word for word in _WORD_SEPARATORS.split(text) if word]


def _capitalize_word(word: str) -> str:
    return word[:1].upper() + word[1:].lower()


def _as_list(value: Any) -> list[Any] | None:
    if isinstance(value, (list, tuple)):
        return list(value)
    return None


def _title(text: str) -> str:
    return " ".join(_capitalize_word(word) for word in text.split(" "))


def _kebab(text: str) -> str:
    return "-".join(word.lower() for word in split_words(text))


def _snake(text: str) -> str:
    return "_".join(word.lower() for word in split_words(text))


def _camel(text: str) -> str:
    words = split_words(text)
    if not words:
        return ""
    return words[0].lower() + "".join(_capitalize_word(word) for word in words[1:])


def _pascal(text: str) -> str:
    return "".join(_capitalize_word(word) for word in split_words(text))


def _count(value: Any) -> str:
    if isinstance(value, (list, tuple, Mapping)):
        return str(len(value))
    return str(len(stringify_value(value)))


def _join(value: Any, separator: str) -> str:
    items = _as_list(value)
    if items is None:
        return stringify_value(value)
    return separator.join(stringify_value(item) for item in items)


def _bullet(value: Any) -> str:
    items = _as_list(value)
    if items is None:
        return f"- {stringify_value(value)}"
    return "\n".join(f"- {stringify_value(item)}" for item in items)


def _numbered(value: Any) -> str:
    items = _as_list(value)
    if items is None:
        return f"1. {stringify_value(value)}"
    return "\n".join(f"{position}. {stringify_value(item)}" for position, item in enumerate(items, start=1))


def _first(value: Any) -> str:
    items = _as_list(value)
    if items is None:
        return stringify_value(value)
    return stringify_value(items[0]) if items else ""


def _last(value: Any) -> str:
    items = _as_list(value)
    if items is None:
        return stringify_value(value)
    return stringify_value(items[-1]) if items else ""


def _text(fn: Callable[[str], str]) -> Callable[[Any], str]:
    return lambda value: fn(stringify_value(value))


TRANSFORMS: dict[str, Callable[[Any], str]] = {
    "lowercase": _text(str.lower),
    "uppercase": _text(str.upper),
    "capitalize": _text(_title),
    "kebab": _text(_kebab),
    "snake": _text(_snake),
    "camel": _text(_camel),
    "pascal": _text(_pascal),
    "count": _count,
    "join": lambda value: _join(value, ", "),
    "joinlines": lambda value: _join(value, "\n"),
    "bullet": _bullet,
    "numbered": _numbered,
    "json": lambda value: json.dumps(to_plain(value), ensure_ascii=False),
    "first": _first,
    "last": _last,
}

TRANSFORM_ALIASES: dict[str, str] = {
    "lower": "lowercase",
    "upper": "uppercase",
    "title": "capitalize",
    "kebabcase": "kebab",
    "snakecase": "snake",
    "camelcase": "camel",
    "pascalcase": "pascal",
    "bullets": "bullet",
}


def resolve_transform_name(name: str) -> str | None:
    """Return the canonical transform name, or None when unknown."""
    normalized = name.strip().lower()
    normalized = TRANSFORM_ALIASES.get(normalized, normalized)
    return normalized if normalized in TRANSFORMS else None


def is_known_transform(name: str) -> bool:
    return resolve_transform_name(name) is not None


def apply_transform(value: Any, transform: str) -> str:
    """Apply a named transform to a resolved value.

    Missing and ``None`` values become an empty string. Unknown transform
    names pass the stringified value through unchanged.
    """
    if value is None or value is MISSING:
        return ""
    canonical = resolve_transform_name(transform)
    if canonical is None:
        return stringify_value(value)
    return TRANSFORMS[canonical](value)


__all__ = [
    "TRANSFORMS",
    "TRANSFORM_ALIASES",
    "apply_transform",
    "is_known_transform",
    "resolve_transform_name",
    "split_words",
]
