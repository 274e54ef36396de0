"""Template directive parser.

Scans template text for block markers and builds a tree of
``DirectiveNode`` objects. Supported syntax::

    {{#if <expr>}} ... {{/if}}
    {{#unless <expr>}} ... {{/unless}}
    {{#each <path>}} ... {{/each}}
    {{#section <name>}} ... {{/section}}
    {{<path>}}
    {{<path> | <transform>}}

Block markers are matched with a stack: an opening marker pushes a frame and
a closing marker must match the tag on top of the stack. The first marker
that cannot be matched raises ``TemplateSyntaxError`` with its position.
Interpolation markers are not tokens for the block scanner; they are found
afterwards in the TEXT nodes by ``find_variables``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from .exceptions import TemplateSyntaxError
from .models import DirectiveKind, DirectiveNode, ValidationResult, VariableRef

logger = logging.getLogger(__name__)

BLOCK_TAGS: tuple[str, ...] = ("if", "unless", "each", "section")

BLOCK_TOKEN_PATTERN = re.compile(
    r"\{\{(?P<sigil>[#/])(?P<tag>if|unless|each|section)\b(?:\s+(?P<expression>[^{}]*?))?\s*\}\}"
)

# ``${{ ... }}`` is GitHub Actions expression syntax and is left alone.
VARIABLE_PATTERN = re.compile(r"(?<!\$)\{\{(?!\s*[#/>])\s*(?P<body>[^{}]*?)\s*\}\}")

INCLUDE_PATTERN = re.compile(r"\{\{>\s*(?P<name>[^{}]+?)\s*\}\}")

_ANY_MARKER_PATTERN = re.compile(r"\{\{[#/>]?\s*[\w$@]")


def line_and_column(content: str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and column of ``offset`` in ``content``."""
    line = content.count("\n", 0, offset) + 1
    column = offset - (content.rfind("\n", 0, offset) + 1) + 1
    return line, column


def _opening_marker(tag: str, expression: str) -> str:
    return f"{{{{#{tag} {expression}}}}}" if expression else f"{{{{#{tag}}}}}"


@dataclass
class _Frame:
    tag: str
    expression: str
    start: int
    body_start: int
    line: int
    column: int
    children: list[DirectiveNode] = field(default_factory=list)


def _append_text(children: list[DirectiveNode], content: str, start: int, end: int) -> None:
    if end > start:
        line, _ = line_and_column(content, start)
        children.append(
            DirectiveNode(kind=DirectiveKind.TEXT, body=content[start:end], start=start, end=end, line=line)
        )


def parse_template(content: str) -> list[DirectiveNode]:
    """Parse ``content`` into an ordered list of TEXT and block nodes.

    Raises:
        TemplateSyntaxError: On an unexpected, mismatched or unclosed block marker.
    """
    root: list[DirectiveNode] = []
    stack: list[_Frame] = []
    position = 0

    for match in BLOCK_TOKEN_PATTERN.finditer(content):
        children = stack[-1].children if stack else root
        _append_text(children, content, position, match.start())
        position = match.end()

        tag = match.group("tag")
        line, column = line_and_column(content, match.start())

        if match.group("sigil") == "#":
            stack.append(
                _Frame(
                    tag=tag,
                    expression=(match.group("expression") or "").strip(),
                    start=match.start(),
                    body_start=match.end(),
                    line=line,
                    column=column,
                )
            )
            continue

        if not stack:
            raise TemplateSyntaxError(
                f"Unexpected {{{{/{tag}}}}} at line {line}, column {column}", line, column
            )

        frame = stack[-1]
        if frame.tag != tag:
            raise TemplateSyntaxError(
                f"Mismatched {{{{/{tag}}}}} at line {line}, column {column}: expected "
                f"{{{{/{frame.tag}}}}} to close {_opening_marker(frame.tag, frame.expression)} "
                f"opened at line {frame.line}, column {frame.column}",
                line,
                column,
            )

        stack.pop()
        node = DirectiveNode(
            kind=DirectiveKind(tag),
            expression=frame.expression,
            body=content[frame.body_start:match.start()],
            children=frame.children,
            start=frame.start,
            end=match.end(),
            line=frame.line,
        )
        (stack[-1].children if stack else root).append(node)

    if stack:
        frame = stack[0]
        raise TemplateSyntaxError(
            f"Unclosed {_opening_marker(frame.tag, frame.expression)} opened at line "
            f"{frame.line}, column {frame.column}",
            frame.line,
            frame.column,
        )

    _append_text(root, content, position, len(content))
    return root


def parse_directives(content: str) -> list[DirectiveNode]:
    """Return the top-level block directives of ``content`` in document order.

    Each node's ``nested`` holds the block directives directly inside it.

    Raises:
        TemplateSyntaxError: On an unexpected, mismatched or unclosed block marker.
    """
    return [node for node in parse_template(content) if node.is_block]


def parse_variable(marker: str) -> VariableRef:
    """Parse a single ``{{path}}`` or ``{{path | transform}}`` marker."""
    inner = marker.strip()
    if inner.startswith("{{") and inner.endswith("}}"):
        inner = inner[2:-2]
    variable, pipe, transform = inner.partition("|")
    return VariableRef(
        match=marker,
        variable=variable.strip(),
        transform=transform.strip() if pipe else None,
    )


def find_variables(text: str) -> list[VariableRef]:
    """Find every interpolation marker in ``text`` in document order.

    Block markers and include markers are skipped, as are empty ``{{ }}``.
    """
    variables: list[VariableRef] = []
    for match in VARIABLE_PATTERN.finditer(text):
        body = match.group("body")
        if not body.strip():
            continue
        variable, pipe, transform = body.partition("|")
        variables.append(
            VariableRef(
                match=match.group(0),
                variable=variable.strip(),
                transform=transform.strip() if pipe else None,
                index=match.start(),
            )
        )
    return variables


def find_includes(text: str) -> list[str]:
    return [match.group("name") for match in INCLUDE_PATTERN.finditer(text)]


def has_directives(content: str) -> bool:
    """Quick check for any block, include or interpolation marker."""
    return bool(_ANY_MARKER_PATTERN.search(content))


def validate_template(content: str) -> ValidationResult:
    """Check that block directives are balanced. Needs no context."""
    try:
        parse_template(content)
    except TemplateSyntaxError as exc:
        logger.debug("Template failed structural validation: %s", exc)
        return ValidationResult(valid=False, errors=[str(exc)])
    return ValidationResult(valid=True)


__all__ = [
    "BLOCK_TAGS",
    "BLOCK_TOKEN_PATTERN",
    "INCLUDE_PATTERN",
    "VARIABLE_PATTERN",
    "find_includes",
    "find_variables",
    "has_directives",
    "line_and_column",
    "parse_directives",
    "parse_template",
    "parse_variable",
    "validate_template",
]
