"""Template directive engine for agent-config.

Supported directives:
- {{#if condition}}...{{/if}} - Conditional blocks
- {{#unless condition}}...{{/unless}} - Inverse conditionals
- {{#each items}}...{{/each}} - Loops over lists and mappings
- {{#section name}}...{{/section}} - Named sections
- {{variable}} - Variable replacement
- {{variable | transform}} - Variable with one transform
"""

from .builder import (
    add_custom_variable,
    build_template_context,
    extend_context,
    get_all_modules,
    has_all_modules,
    has_any_module,
    has_module,
    infer_tech_stack,
)
from .context import (
    LoopContext,
    LoopEntry,
    create_loop_context,
    get_context_value,
    get_iterable,
    is_truthy,
)
from .exceptions import (
    ExpressionError,
    TemplateConfigError,
    TemplateError,
    TemplateSyntaxError,
)
from .expressions import evaluate_condition, parse_expression
from .files import (
    find_template_files,
    process_template_file,
    process_templates_in_directory,
    show_template_report,
    validate_templates_in_directory,
)
from .models import (
    DirectiveKind,
    DirectiveNode,
    ParsedExpression,
    ProcessingResult,
    TemplateProcessingReport,
    ValidationResult,
    VariableRef,
)
from .parser import (
    find_variables,
    has_directives,
    parse_directives,
    parse_template,
    parse_variable,
    validate_template,
)
from .processor import process_template
from .transforms import apply_transform

__all__ = [
    "DirectiveKind",
    "DirectiveNode",
    "ExpressionError",
    "LoopContext",
    "LoopEntry",
    "ParsedExpression",
    "ProcessingResult",
    "TemplateConfigError",
    "TemplateError",
    "TemplateProcessingReport",
    "TemplateSyntaxError",
    "ValidationResult",
    "VariableRef",
    "add_custom_variable",
    "apply_transform",
    "build_template_context",
    "create_loop_context",
    "evaluate_condition",
    "extend_context",
    "find_template_files",
    "find_variables",
    "get_all_modules",
    "get_context_value",
    "get_iterable",
    "has_all_modules",
    "has_any_module",
    "has_directives",
    "has_module",
    "infer_tech_stack",
    "is_truthy",
    "parse_directives",
    "parse_expression",
    "parse_template",
    "parse_variable",
    "process_template",
    "process_template_file",
    "process_templates_in_directory",
    "show_template_report",
    "validate_template",
    "validate_templates_in_directory",
]
