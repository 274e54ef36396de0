"""Template processor.

Renders template text against a context by evaluating block directives,
expanding ``{{#each}}`` loops and substituting ``{{variable}}`` markers.

A render pass never raises for template content:

- Unbalanced block markers are structural errors. The original content is
  returned unchanged with ``errors`` populated, and callers must not write it.
- Missing variables, invalid conditions, unknown transforms and
  non-iterable ``{{#each}}`` targets are warnings. Rendering continues and
  the affected output becomes empty.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from .context import (
    MISSING,
    create_loop_context,
    get_context_value,
    get_iterable,
    stringify_value,
)
from .exceptions import ExpressionError, TemplateSyntaxError
from .expressions import evaluate_condition
from .models import DirectiveKind, DirectiveNode, ProcessingResult, TemplateContext
from .parser import find_includes, find_variables, parse_template
from .transforms import apply_transform, is_known_transform

logger = logging.getLogger(__name__)

# Three or more blank (or whitespace-only) lines at the start of the text or
# after a line break. LF and CRLF line endings are both recognised.
_EXCESS_BLANK_LINES = re.compile(r"(?P<lead>^|\n)(?:[ \t]*\r?\n){3,}")


def _two_blank_lines(match: re.Match[str]) -> str:
    newline = "\r\n" if "\r" in match.group(0) else "\n"
    return match.group("lead") + newline * 2


def cleanup_empty_lines(content: str) -> str:
    """Collapse runs of three or more blank lines down to two."""
    return _EXCESS_BLANK_LINES.sub(_two_blank_lines, content)


class _RenderPass:
    """State for one call to ``process_template``."""

    def __init__(self, result: ProcessingResult):
        self.result = result

    def warn(self, message: str) -> None:
        if message not in self.result.warnings:
            self.result.warnings.append(message)

    def render_nodes(self, nodes: list[DirectiveNode], context: TemplateContext) -> str:
        return "".join(self.render_node(node, context) for node in nodes)

    def render_node(self, node: DirectiveNode, context: TemplateContext) -> str:
        if node.kind is DirectiveKind.TEXT:
            return self.substitute_variables(node.body, context)

        self.result.directives_processed += 1

        if node.kind is DirectiveKind.SECTION:
            return self.render_nodes(node.children, context)

        if node.kind is DirectiveKind.EACH:
            return self.render_each(node, context)

        try:
            condition = evaluate_condition(node.expression, context)
        except ExpressionError as exc:
            self.warn(f"Invalid expression in {{{{#{node.kind.value} {node.expression}}}}}: {exc.reason}")
            return ""

        if node.kind is DirectiveKind.UNLESS:
            condition = not condition
        return self.render_nodes(node.children, context) if condition else ""

    def render_each(self, node: DirectiveNode, context: TemplateContext) -> str:
        path = node.expression
        entries = get_iterable(path, context)
        if not entries:
            value = get_context_value(context, path, MISSING)
            if value is not MISSING and value is not None and not isinstance(value, (list, tuple, Mapping)):
                self.warn(f"Cannot iterate over {path}: value is not a list or mapping")
            return ""

        outputs = [
            self.render_nodes(node.children, create_loop_context(context, entry))
            for entry in entries
        ]
        return "".join(outputs)

    def substitute_variables(self, text: str, context: TemplateContext) -> str:
        for name in find_includes(text):
            self.warn(f"Include directive not supported: {name}")

        references = find_variables(text)
        if not references:
            return text

        pieces: list[str] = []
        position = 0
        for reference in references:
            pieces.append(text[position:reference.index])
            pieces.append(self.resolve_reference(reference.variable, reference.transform, context))
            position = reference.index + len(reference.match)
            self.result.directives_processed += 1
        pieces.append(text[position:])
        return "".join(pieces)

    def resolve_reference(self, variable: str, transform: str | None, context: TemplateContext) -> str:
        value = get_context_value(context, variable, MISSING)
        if value is MISSING:
            self.warn(f"Variable not found: {variable}")
            return ""

        if transform is None:
            return stringify_value(value)
        if "|" in transform:
            self.warn(f"Only one transform is allowed: {{{{{variable} | {transform}}}}}")
            return stringify_value(value)
        if not is_known_transform(transform):
            self.warn(f"Unknown transform: {transform}")
            return stringify_value(value)
        return apply_transform(value, transform)


def process_template(content: str, context: TemplateContext) -> ProcessingResult:
    """Render one template against a context.

    Args:
        content: Raw template text
        context: Read-only template context

    Returns:
        ProcessingResult with the rendered content. ``modified`` is False only
        when no directive or variable marker was found; on a structural error
        the original content is returned unchanged together with the error.
    """
    result = ProcessingResult(content=content)

    try:
        nodes = parse_template(content)
    except TemplateSyntaxError as exc:
        logger.debug("Refusing to render template with structural error: %s", exc)
        result.errors.append(str(exc))
        return result

    render = _RenderPass(result)
    rendered = render.render_nodes(nodes, context)

    if result.directives_processed == 0:
        return result

    result.content = cleanup_empty_lines(rendered)
    result.modified = True
    return result


__all__ = [
    "cleanup_empty_lines",
    "process_template",
]
