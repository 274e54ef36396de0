"""Data models for the template directive engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Union

# Closed value type for everything reachable from a TemplateContext.
ContextValue = Union[str, int, float, bool, None, list[Any], Mapping[str, Any]]
TemplateContext = Mapping[str, ContextValue]


class DirectiveKind(Enum):
    """Kind of node in a parsed template."""

    IF = "if"
    UNLESS = "unless"
    EACH = "each"
    SECTION = "section"
    TEXT = "text"


BLOCK_KINDS: frozenset[DirectiveKind] = frozenset(
    {DirectiveKind.IF, DirectiveKind.UNLESS, DirectiveKind.EACH, DirectiveKind.SECTION}
)


@dataclass
class DirectiveNode:
    """A block directive or a run of literal text.

    For TEXT nodes ``body`` holds the literal text and ``children`` is empty.
    For block nodes ``body`` is the raw text between the opening and closing
    markers and ``children`` is that body parsed into TEXT and block nodes.
    """

    kind: DirectiveKind
    expression: str = ""
    body: str = ""
    children: list[DirectiveNode] = field(default_factory=list)
    start: int = 0  # Offset of the opening marker in the parsed text
    end: int = 0  # Offset just past the closing marker
    line: int = 1

    @property
    def is_block(self) -> bool:
        return self.kind in BLOCK_KINDS

    @property
    def nested(self) -> list[DirectiveNode]:
        """Block directives found directly inside this node's body."""
        return [child for child in self.children if child.is_block]


@dataclass(frozen=True)
class ParsedExpression:
    """Structured form of a directive condition."""

    variable: str = ""
    operator: str | None = None  # "==", "!=", ">", ">=", "<", "<=", "&&", "||", "has"
    compare_value: str | None = None
    quoted: bool = False
    negated: bool = False
    operands: tuple[ParsedExpression, ...] = ()

    @property
    def is_compound(self) -> bool:
        return self.operator in ("&&", "||")


@dataclass(frozen=True)
class VariableRef:
    """An interpolation marker found in literal text."""

    match: str
    variable: str
    transform: str | None = None
    index: int = 0


@dataclass
class ProcessingResult:
    """Outcome of rendering one template."""

    content: str
    modified: bool = False
    directives_processed: int = 0
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ValidationResult:
    """Structural validation outcome for a template."""

    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class TemplateProcessingReport:
    """Aggregate outcome of processing a directory of templates."""

    total_files: int = 0
    files_modified: int = 0
    total_directives: int = 0
    files_with_errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    modified_files: list[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return bool(self.files_with_errors)

    def to_dict(self) -> dict[str, object]:
        return {
            "total_files": self.total_files,
            "files_modified": self.files_modified,
            "total_directives": self.total_directives,
            "files_with_errors": list(self.files_with_errors),
            "warnings": list(self.warnings),
            "modified_files": list(self.modified_files),
        }


__all__ = [
    "BLOCK_KINDS",
    "ContextValue",
    "DirectiveKind",
    "DirectiveNode",
    "ParsedExpression",
    "ProcessingResult",
    "TemplateContext",
    "TemplateProcessingReport",
    "ValidationResult",
    "VariableRef",
]
