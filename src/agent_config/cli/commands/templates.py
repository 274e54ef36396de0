"""Template processing CLI commands.

Commands:
    templates render    -- Render template directives in place
    templates validate  -- Check templates for unbalanced block directives
    templates set-var   -- Set or remove a custom template variable
    templates context   -- Show the context templates are rendered against
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.markup import escape

from agent_config.config import (
    TemplateSettings,
    load_project_config,
    load_template_settings,
    locate_project_root,
    parse_variable_value,
    remove_custom_variable,
    resolve_template_root,
    set_custom_variable,
)
from agent_config.templates import (
    add_custom_variable,
    build_template_context,
    find_template_files,
    process_templates_in_directory,
    show_template_report,
    validate_template,
    validate_templates_in_directory,
)
from agent_config.templates.context import to_plain
from agent_config.templates.exceptions import TemplateConfigError

logger = logging.getLogger(__name__)

app = typer.Typer(help="Template processing commands")
console = Console(width=120)

_VARIABLE_NAME_PATTERN = re.compile(r"^[A-Za-z_][\w-]*$")


def _require_project_root(project: Optional[Path]) -> Path:
    if project is not None:
        return project.expanduser().resolve()
    project_root = locate_project_root(Path.cwd())
    if project_root is None:
        console.print(
            "[red]Error:[/red] Not inside a configured project. "
            "Run this command from a directory containing .claude/ or pass --project."
        )
        raise typer.Exit(1)
    return project_root


def _load_context(project_root: Path, quiet: bool = False) -> tuple[dict[str, Any], TemplateSettings]:
    try:
        config = load_project_config(project_root)
        settings = load_template_settings(project_root)
    except TemplateConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    if config is None and not quiet:
        console.print("[yellow]No .claude/config.json found; rendering with an empty context[/yellow]")

    context = build_template_context(config)
    for key, value in settings.custom.items():
        context = add_custom_variable(context, key, value)
    return context, settings


@app.command("render")
def render(
    project: Optional[Path] = typer.Option(None, "--project", help="Project root (auto-detected when omitted)"),
    template_dir: Optional[Path] = typer.Option(None, "--dir", help="Directory of templates to render"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report changes without writing files"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
) -> None:
    """Render template directives in every template file."""
    project_root = _require_project_root(project)
    context, settings = _load_context(project_root, quiet=json_output)
    root = resolve_template_root(project_root, template_dir)

    if not root.is_dir():
        console.print(f"[red]Error:[/red] Template directory not found: {root}")
        raise typer.Exit(1)

    logger.debug("Rendering templates under %s", root)
    report = process_templates_in_directory(
        root,
        context,
        extensions=settings.extensions,
        exclude=settings.exclude,
        dry_run=dry_run,
    )

    if json_output:
        payload = report.to_dict()
        payload["dry_run"] = dry_run
        print(json.dumps(payload, indent=2))
    else:
        show_template_report(report, console)
        if dry_run and report.files_modified:
            console.print("\n[dim]Dry run: no files were written[/dim]")

    if report.has_errors:
        raise typer.Exit(1)


@app.command("validate")
def validate(
    paths: Optional[list[Path]] = typer.Argument(None, help="Template files or directories to check"),
    project: Optional[Path] = typer.Option(None, "--project", help="Project root (auto-detected when omitted)"),
    json_output: bool = typer.Option(False, "--json", help="Output in JSON format"),
) -> None:
    """Check templates for unbalanced block directives."""
    extensions = None
    exclude = None
    if not paths:
        project_root = _require_project_root(project)
        _, settings = _load_context(project_root, quiet=True)
        extensions, exclude = settings.extensions, settings.exclude
        paths = [resolve_template_root(project_root)]

    problems: dict[str, list[str]] = {}
    checked = 0
    for path in paths:
        if path.is_dir():
            for relative, errors in validate_templates_in_directory(path, extensions, exclude).items():
                problems[(path / relative).as_posix()] = errors
            checked += len(find_template_files(path, extensions, exclude))
        elif path.is_file():
            validation = validate_template(path.read_text(encoding="utf-8"))
            if not validation.valid:
                problems[path.as_posix()] = validation.errors
            checked += 1
        else:
            problems[path.as_posix()] = ["Path not found"]

    if json_output:
        print(json.dumps({"valid": not problems, "checked": checked, "errors": problems}, indent=2))
    elif problems:
        console.print(f"[red]✗[/red] {len(problems)} template(s) with errors:")
        for name, errors in problems.items():
            for error in errors:
                console.print(f"  {name}: {error}", markup=False, highlight=False)
    else:
        console.print("[green]✓[/green] All templates are valid")

    if problems:
        raise typer.Exit(1)


@app.command("set-var")
def set_var(
    key: str = typer.Argument(..., help="Custom variable name, available as custom.<name>"),
    value: Optional[str] = typer.Argument(None, help="Value, parsed as YAML (5, true, [a, b], text)"),
    project: Optional[Path] = typer.Option(None, "--project", help="Project root (auto-detected when omitted)"),
    unset: bool = typer.Option(False, "--unset", help="Remove the variable instead of setting it"),
) -> None:
    """Set or remove a custom template variable in .claude/templates.yaml."""
    if not _VARIABLE_NAME_PATTERN.match(key):
        console.print(f"[red]Error:[/red] Invalid variable name: {key}")
        raise typer.Exit(1)
    if not unset and value is None:
        console.print("[red]Error:[/red] Missing VALUE (or pass --unset)")
        raise typer.Exit(1)

    project_root = _require_project_root(project)
    try:
        if unset:
            if not remove_custom_variable(project_root, key):
                console.print(f"[yellow]custom.{key} is not set[/yellow]")
                return
            console.print(f"[green]✓[/green] Removed custom.{key}")
            return
        parsed = parse_variable_value(value)
        set_custom_variable(project_root, key, parsed)
    except TemplateConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(1)

    shown = escape(json.dumps(to_plain(parsed), default=str))
    console.print(f"[green]✓[/green] Set custom.{key} = {shown}", highlight=False)


@app.command("context")
def show_context(
    project: Optional[Path] = typer.Option(None, "--project", help="Project root (auto-detected when omitted)"),
) -> None:
    """Print the template context as JSON."""
    project_root = _require_project_root(project)
    context, _ = _load_context(project_root, quiet=True)
    print(json.dumps(to_plain(context), indent=2))


__all__ = ["app"]
