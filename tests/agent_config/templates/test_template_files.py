"""Tests for processing template files on disk."""

import io

import pytest
from rich.console import Console

from agent_config.templates.files import (
    find_template_files,
    process_template_file,
    process_templates_in_directory,
    show_template_report,
    validate_templates_in_directory,
)
from agent_config.templates.models import TemplateProcessingReport


@pytest.fixture
def template_tree(tmp_path):
    """A small tree of templates with one of each interesting case."""
    (tmp_path / "a.md").write_text("{{#if project.name}}Hi {{project.name}}{{/if}}", encoding="utf-8")
    (tmp_path / "plain.md").write_text("no markers here", encoding="utf-8")
    (tmp_path / "broken.md").write_text("{{#if x}}oops", encoding="utf-8")
    (tmp_path / "warn.txt").write_text("{{missing}}x", encoding="utf-8")
    (tmp_path / "image.png").write_bytes(b"\x89PNG{{project.name}}")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "b.json").write_text('{"name": "{{project.name | kebab}}"}', encoding="utf-8")
    (tmp_path / "node_modules").mkdir()
    (tmp_path / "node_modules" / "dep.md").write_text("{{project.name}}", encoding="utf-8")
    return tmp_path


def test_find_template_files(template_tree):
    found = {path.relative_to(template_tree).as_posix() for path in find_template_files(template_tree)}
    assert found == {"a.md", "plain.md", "broken.md", "warn.txt", "sub/b.json"}


def test_find_template_files_with_custom_filters(template_tree):
    found = find_template_files(template_tree, extensions=["JSON"], exclude=["sub"])
    assert found == []
    found = find_template_files(template_tree, extensions=["md"], exclude=[])
    assert {path.name for path in found} == {"a.md", "plain.md", "broken.md", "dep.md"}


def test_find_template_files_missing_root(tmp_path):
    assert find_template_files(tmp_path / "absent") == []


class TestProcessDirectory:
    """Rendering a whole tree against one context."""

    def test_report(self, template_tree, sample_context):
        report = process_templates_in_directory(template_tree, sample_context)

        assert report.total_files == 5
        assert report.files_modified == 3
        assert sorted(report.modified_files) == ["a.md", "sub/b.json", "warn.txt"]
        assert report.files_with_errors == ["broken.md"]
        assert report.total_directives == 4
        assert "broken.md: Unclosed {{#if x}} opened at line 1, column 1" in report.warnings
        assert "warn.txt: Variable not found: missing" in report.warnings
        assert report.has_errors

    def test_files_are_rewritten(self, template_tree, sample_context):
        process_templates_in_directory(template_tree, sample_context)

        assert (template_tree / "a.md").read_text(encoding="utf-8") == "Hi Test Project"
        assert (template_tree / "sub" / "b.json").read_text(encoding="utf-8") == '{"name": "test-project"}'
        assert (template_tree / "warn.txt").read_text(encoding="utf-8") == "x"

    def test_broken_and_excluded_files_are_untouched(self, template_tree, sample_context):
        process_templates_in_directory(template_tree, sample_context)

        assert (template_tree / "broken.md").read_text(encoding="utf-8") == "{{#if x}}oops"
        assert (template_tree / "node_modules" / "dep.md").read_text(encoding="utf-8") == "{{project.name}}"
        assert (template_tree / "plain.md").read_text(encoding="utf-8") == "no markers here"

    def test_dry_run_writes_nothing(self, template_tree, sample_context):
        report = process_templates_in_directory(template_tree, sample_context, dry_run=True)

        assert report.files_modified == 3
        assert (template_tree / "a.md").read_text(encoding="utf-8") == (
            "{{#if project.name}}Hi {{project.name}}{{/if}}"
        )

    def test_second_run_is_a_no_op(self, template_tree, sample_context):
        process_templates_in_directory(template_tree, sample_context)
        report = process_templates_in_directory(template_tree, sample_context)
        assert report.files_modified == 0

    def test_undecodable_file_is_reported(self, tmp_path, sample_context):
        (tmp_path / "bad.md").write_bytes(b"\xff\xfe{{x}}")
        report = process_templates_in_directory(tmp_path, sample_context)
        assert report.files_with_errors == ["bad.md"]

    def test_to_dict(self, template_tree, sample_context):
        payload = process_templates_in_directory(template_tree, sample_context).to_dict()
        assert payload["total_files"] == 5
        assert payload["files_with_errors"] == ["broken.md"]


class TestProcessFile:
    """Rendering a single file in place."""

    def test_writes_rendered_content(self, tmp_path, sample_context):
        path = tmp_path / "t.md"
        path.write_text("# {{project.name | uppercase}}", encoding="utf-8")
        result = process_template_file(path, sample_context)
        assert result.modified
        assert path.read_text(encoding="utf-8") == "# TEST PROJECT"

    def test_never_writes_on_error(self, tmp_path, sample_context):
        path = tmp_path / "t.md"
        path.write_text("{{#each x}}", encoding="utf-8")
        result = process_template_file(path, sample_context)
        assert result.errors
        assert path.read_text(encoding="utf-8") == "{{#each x}}"

    def test_dry_run(self, tmp_path, sample_context):
        path = tmp_path / "t.md"
        path.write_text("{{project.org}}", encoding="utf-8")
        result = process_template_file(path, sample_context, dry_run=True)
        assert result.content == "test-org"
        assert path.read_text(encoding="utf-8") == "{{project.org}}"


def test_validate_templates_in_directory(template_tree):
    problems = validate_templates_in_directory(template_tree)
    assert problems == {"broken.md": ["Unclosed {{#if x}} opened at line 1, column 1"]}


class TestShowTemplateReport:
    """Console rendering of a report."""

    def _render(self, report):
        output = io.StringIO()
        show_template_report(report, Console(file=output, width=120))
        return output.getvalue()

    def test_summary(self):
        report = TemplateProcessingReport(total_files=3, files_modified=1, total_directives=7)
        text = self._render(report)
        assert "Files scanned" in text
        assert "Directives processed" in text
        assert "7" in text
        assert "Warnings" not in text

    def test_errors_and_truncated_warnings(self):
        report = TemplateProcessingReport(
            total_files=1,
            files_with_errors=["broken.md"],
            warnings=[f"a.md: Variable not found: v{number}" for number in range(7)],
        )
        text = self._render(report)
        assert "Files with errors:" in text
        assert "broken.md" in text
        assert "7 warnings (showing first 5):" in text
        assert "v4" in text
        assert "v5" not in text
