"""Condition expressions for ``{{#if}}`` and ``{{#unless}}``.

Grammar, evaluated left to right with no parentheses::

    expression := term ( "&&" term )*  |  term ( "||" term )*
    term       := "!"? path
                | path ( "==" | "!=" ) literal
                | path ( ">" | ">=" | "<" | "<=" ) number
                | "has" path literal
                | "!"? path ".includes(" literal ")"
    literal    := bare-word | "double quoted" | 'single quoted'

Combinators inside quoted literals are part of the literal. ``&&`` and
``||`` may not be mixed in one expression, and ``!`` may not be
combined with a comparison. Both are rejected with ``ExpressionError``
instead of guessing a precedence.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from .context import MISSING, get_context_value, is_truthy, stringify_value
from .exceptions import ExpressionError
from .models import ParsedExpression, TemplateContext

_PATH_PATTERN = re.compile(r"^[A-Za-z_$@][\w$@\-]*(?:\.[\w$@\-]+)*$")
_COMPARISON_PATTERN = re.compile(r"^(?P<path>[^\s=!<>]+)\s*(?P<op>==|!=|>=|<=|>|<)\s*(?P<value>.*)$")
_INCLUDES_PATTERN = re.compile(r"^(?P<path>\S+?)\.includes\(\s*(?P<value>.+?)\s*\)$")
# Quoted runs are consumed first so combinators inside literals are skipped.
_COMBINATOR_PATTERN = re.compile(r"""(?P<quoted>"[^"]*"|'[^']*')|(?P<op>&&|\|\|)""")
_HAS_PATTERN = re.compile(r"^has\s+(?P<path>\S+)\s+(?P<value>.+)$")
_NUMBER_PATTERN = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")

ORDERING_OPERATORS: frozenset[str] = frozenset({">", ">=", "<", "<="})


def _check_path(path: str, expression: str) -> str:
    if not _PATH_PATTERN.match(path):
        raise ExpressionError(expression, f"Invalid variable path {path!r}")
    return path


def parse_literal(token: str, expression: str = "") -> tuple[str, bool]:
    """Strip quotes from a comparison literal.

    Returns the literal text and whether it was quoted.
    """
    token = token.strip()
    if not token:
        raise ExpressionError(expression or token, "Missing comparison value")
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return token[1:-1], True
    if any(char.isspace() for char in token) or token[0] in ("'", '"'):
        raise ExpressionError(expression or token, f"Invalid comparison value {token}")
    return token, False


def _parse_term(term: str, expression: str) -> ParsedExpression:
    term = term.strip()
    if not term:
        raise ExpressionError(expression, "Empty condition")

    has_match = _HAS_PATTERN.match(term)
    if has_match:
        value, quoted = parse_literal(has_match.group("value"), expression)
        return ParsedExpression(
            variable=_check_path(has_match.group("path"), expression),
            operator="has",
            compare_value=value,
            quoted=quoted,
        )

    negated = False
    if term.startswith("!") and not term.startswith("!="):
        negated = True
        term = term[1:].strip()
        if not term:
            raise ExpressionError(expression, "Negation without a variable")

    includes_match = _INCLUDES_PATTERN.match(term)
    if includes_match:
        value, quoted = parse_literal(includes_match.group("value"), expression)
        return ParsedExpression(
            variable=_check_path(includes_match.group("path"), expression),
            operator="has",
            compare_value=value,
            quoted=quoted,
            negated=negated,
        )

    comparison = _COMPARISON_PATTERN.match(term)
    if comparison:
        if negated:
            raise ExpressionError(expression, "Negation cannot be combined with a comparison")
        value, quoted = parse_literal(comparison.group("value"), expression)
        return ParsedExpression(
            variable=_check_path(comparison.group("path"), expression),
            operator=comparison.group("op"),
            compare_value=value,
            quoted=quoted,
        )

    if any(op in term for op in ("==", "!=", "<", ">")):
        raise ExpressionError(expression, "Comparison is missing a variable")
    return ParsedExpression(variable=_check_path(term, expression), negated=negated)


def _split_combinators(text: str) -> tuple[list[str], set[str]]:
    """Split on ``&&``/``||`` outside quoted literals.

    Returns the terms and the set of combinators found.
    """
    parts: list[str] = []
    operators: set[str] = set()
    position = 0
    for match in _COMBINATOR_PATTERN.finditer(text):
        if match.group("op") is None:
            continue
        parts.append(text[position:match.start()])
        operators.add(match.group("op"))
        position = match.end()
    parts.append(text[position:])
    return parts, operators


def parse_expression(expression: str) -> ParsedExpression:
    """Parse a directive condition into a ``ParsedExpression``.

    Raises:
        ExpressionError: When the condition falls outside the grammar.
    """
    parts, operators = _split_combinators(expression.strip())
    if len(operators) > 1:
        raise ExpressionError(expression, "Cannot mix && and || in one condition")

    if operators:
        (operator,) = operators
        operands = tuple(_parse_term(part, expression) for part in parts)
        return ParsedExpression(operator=operator, operands=operands)

    return _parse_term(parts[0], expression)


def _as_number(text: str) -> float | None:
    if _NUMBER_PATTERN.match(text.strip()):
        return float(text)
    return None


def values_equal(resolved: object, literal: str, quoted: bool = False) -> bool:
    """Compare a resolved value against a literal.

    Unquoted literals compare numerically when both sides parse as numbers;
    everything else compares the string form of the value with the literal.
    """
    text = stringify_value(resolved)
    if not quoted:
        left = _as_number(text)
        right = _as_number(literal)
        if left is not None and right is not None:
            return left == right
    return text == literal


def compare_numbers(resolved: object, literal: str, operator: str) -> bool:
    """Order a resolved value against a literal.

    False unless both sides parse as numbers.
    """
    if isinstance(resolved, bool):
        return False
    left = _as_number(stringify_value(resolved))
    right = _as_number(literal)
    if left is None or right is None:
        return False
    if operator == ">":
        return left > right
    if operator == ">=":
        return left >= right
    if operator == "<":
        return left < right
    return left <= right


def _contains(container: object, needle: str, quoted: bool) -> bool:
    if isinstance(container, (list, tuple)):
        return any(values_equal(item, needle, quoted) for item in container)
    if isinstance(container, Mapping):
        return needle in container
    if isinstance(container, str):
        return needle in container
    return False


def evaluate_parsed(parsed: ParsedExpression, context: TemplateContext) -> bool:
    """Evaluate an already parsed expression with short-circuit semantics."""
    if parsed.operator == "&&":
        return all(evaluate_parsed(operand, context) for operand in parsed.operands)
    if parsed.operator == "||":
        return any(evaluate_parsed(operand, context) for operand in parsed.operands)

    value = get_context_value(context, parsed.variable, MISSING)
    compare_value = parsed.compare_value or ""

    if parsed.operator == "==":
        result = values_equal(value, compare_value, parsed.quoted)
    elif parsed.operator == "!=":
        result = not values_equal(value, compare_value, parsed.quoted)
    elif parsed.operator == "has":
        result = _contains(value, compare_value, parsed.quoted)
    elif parsed.operator in ORDERING_OPERATORS:
        result = compare_numbers(value, compare_value, parsed.operator)
    else:
        result = is_truthy(value)

    return not result if parsed.negated else result


def evaluate_condition(expression: str, context: TemplateContext) -> bool:
    """Parse and evaluate a condition.

    Raises:
        ExpressionError: When the condition falls outside the grammar.
    """
    return evaluate_parsed(parse_expression(expression), context)


__all__ = [
    "ORDERING_OPERATORS",
    "compare_numbers",
    "evaluate_condition",
    "evaluate_parsed",
    "parse_expression",
    "parse_literal",
    "values_equal",
]
