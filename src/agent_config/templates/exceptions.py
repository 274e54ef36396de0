"""Exception hierarchy for the template engine."""

from __future__ import annotations


class TemplateError(Exception):
    """Base exception for template errors."""
    pass


class TemplateSyntaxError(TemplateError):
    """Block directives are unbalanced or interleaved.

    Raised by the directive parser. ``process_template`` turns it into an
    entry in ``ProcessingResult.errors`` and leaves the content untouched.
    """

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(message)


class ExpressionError(TemplateError):
    """A directive condition falls outside the expression grammar."""

    def __init__(self, expression: str, reason: str):
        self.expression = expression
        self.reason = reason
        super().__init__(f"{reason}: {expression!r}")


class TemplateConfigError(RuntimeError):
    """Raised when project or template configuration cannot be read."""


__all__ = [
    "ExpressionError",
    "TemplateConfigError",
    "TemplateError",
    "TemplateSyntaxError",
]
