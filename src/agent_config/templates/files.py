"""Template file discovery and in-place processing helpers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.table import Table

from .models import ProcessingResult, TemplateProcessingReport
from .parser import has_directives, validate_template
from .processor import process_template

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS: tuple[str, ...] = (".md", ".json", ".yaml", ".yml", ".txt")
DEFAULT_EXCLUDES: tuple[str, ...] = ("node_modules", ".git", "dist", "build")
MAX_REPORTED_WARNINGS = 5


def _normalize_extensions(extensions: Iterable[str] | None) -> tuple[str, ...]:
    if extensions is None:
        return DEFAULT_EXTENSIONS
    return tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in extensions)


def find_template_files(
    root: Path,
    extensions: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> list[Path]:
    """Return template files under ``root`` sorted by path.

    Files inside any directory named in ``exclude`` are skipped.
    """
    wanted = _normalize_extensions(extensions)
    excluded = set(DEFAULT_EXCLUDES if exclude is None else exclude)
    if not root.is_dir():
        return []

    matches: list[Path] = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() not in wanted:
            continue
        relative_parts = path.relative_to(root).parts[:-1]
        if any(part in excluded for part in relative_parts):
            continue
        matches.append(path)
    return matches


def process_template_file(path: Path, context: Mapping[str, Any], dry_run: bool = False) -> ProcessingResult:
    """Render a template file in place.

    The file is written only when rendering changed it and produced no
    structural errors.
    """
    content = path.read_text(encoding="utf-8")
    result = process_template(content, context)
    if result.modified and result.ok and not dry_run:
        path.write_text(result.content, encoding="utf-8")
    return result


def process_templates_in_directory(
    root: Path,
    context: Mapping[str, Any],
    extensions: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    dry_run: bool = False,
) -> TemplateProcessingReport:
    """Render every template file under ``root`` against one shared context."""
    files = find_template_files(root, extensions, exclude)
    report = TemplateProcessingReport(total_files=len(files))

    for path in files:
        relative = path.relative_to(root).as_posix()
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.debug("Failed to read template %s: %s", relative, exc)
            report.files_with_errors.append(relative)
            continue

        if not has_directives(content):
            continue

        result = process_template(content, context)
        if result.errors:
            report.files_with_errors.append(relative)
            report.warnings.append(f"{relative}: {', '.join(result.errors)}")
            continue

        if result.modified and result.content != content:
            if not dry_run:
                path.write_text(result.content, encoding="utf-8")
            report.files_modified += 1
            report.modified_files.append(relative)

        report.total_directives += result.directives_processed
        report.warnings.extend(f"{relative}: {warning}" for warning in result.warnings)

    logger.debug(
        "Processed %d template files under %s (%d modified, %d with errors)",
        report.total_files,
        root,
        report.files_modified,
        len(report.files_with_errors),
    )
    return report


def validate_templates_in_directory(
    root: Path,
    extensions: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
) -> dict[str, list[str]]:
    """Structurally validate every template under ``root``.

    Returns a mapping of relative path to errors for invalid files only.
    """
    problems: dict[str, list[str]] = {}
    for path in find_template_files(root, extensions, exclude):
        relative = path.relative_to(root).as_posix()
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            problems[relative] = [f"Cannot read template file: {exc}"]
            continue
        validation = validate_template(content)
        if not validation.valid:
            problems[relative] = validation.errors
    return problems


def show_template_report(report: TemplateProcessingReport, console: Console) -> None:
    """Print a processing report."""
    table = Table(title="Template Processing Report", show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Files scanned", str(report.total_files))
    table.add_row("Files modified", str(report.files_modified))
    table.add_row("Directives processed", str(report.total_directives))
    console.print()
    console.print(table)

    if report.files_with_errors:
        console.print()
        console.print("[yellow]Files with errors:[/yellow]")
        for relative in report.files_with_errors:
            console.print(f"  • {relative}", markup=False)

    if not report.warnings:
        return

    console.print()
    if len(report.warnings) > MAX_REPORTED_WARNINGS:
        console.print(
            f"[yellow]{len(report.warnings)} warnings (showing first {MAX_REPORTED_WARNINGS}):[/yellow]"
        )
    else:
        console.print("[yellow]Warnings:[/yellow]")
    for warning in report.warnings[:MAX_REPORTED_WARNINGS]:
        console.print(f"  • {warning}", markup=False)


__all__ = [
    "DEFAULT_EXCLUDES",
    "DEFAULT_EXTENSIONS",
    "find_template_files",
    "process_template_file",
    "process_templates_in_directory",
    "show_template_report",
    "validate_templates_in_directory",
]
