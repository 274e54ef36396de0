"""Tests for building template contexts from project configuration."""

from agent_config.templates.builder import (
    add_custom_variable,
    build_template_context,
    extend_context,
    get_all_modules,
    has_all_modules,
    has_any_module,
    has_module,
    infer_tech_stack,
)
from agent_config.templates.processor import process_template

PROJECT_CONFIG = {
    "version": "1.0.0",
    "project": {
        "name": "Shop",
        "description": "Online shop",
        "org": "acme",
        "repo": "shop",
        "location": ".",
        "unused": "ignored",
    },
    "modules": {
        "agents": {"selected": ["tech-lead", "nextjs-expert", "react-senior-dev"]},
        "skills": {"selected": ["prisma-patterns", "tdd-methodology", "vercel-deploy"]},
        "commands": {"selected": ["commit"]},
        "docs": {"selected": []},
    },
    "extras": {"codeStyle": {"biome": True, "editorconfig": True}},
    "bundles": ["frontend"],
    "mcp": {"servers": [{"serverId": "github"}, {"serverId": "context7"}, {"name": "no-id"}]},
}


class TestBuildTemplateContext:
    """Shape of the built context."""

    def test_project_fields(self):
        context = build_template_context(PROJECT_CONFIG)
        assert context["project"] == {
            "name": "Shop",
            "description": "Online shop",
            "org": "acme",
            "repo": "shop",
            "location": ".",
        }

    def test_modules_are_flattened(self):
        context = build_template_context(PROJECT_CONFIG)
        assert context["modules"]["agents"] == ["tech-lead", "nextjs-expert", "react-senior-dev"]
        assert context["modules"]["docs"] == []

    def test_code_style(self):
        context = build_template_context(PROJECT_CONFIG)
        assert context["codeStyle"] == {
            "formatter": "biome",
            "linter": "biome",
            "editorConfig": True,
            "commitlint": False,
        }

    def test_code_style_defaults(self):
        assert build_template_context({})["codeStyle"]["formatter"] == "none"
        prettier = build_template_context({"extras": {"codeStyle": {"prettier": True}}})
        assert prettier["codeStyle"]["formatter"] == "prettier"
        assert prettier["codeStyle"]["linter"] == "none"

    def test_bundles_and_servers(self):
        context = build_template_context(PROJECT_CONFIG)
        assert context["bundles"] == ["frontend"]
        assert context["mcpServers"] == ["github", "context7"]

    def test_empty_config(self):
        context = build_template_context(None)
        assert context["project"] == {}
        assert context["modules"] == {"agents": [], "skills": [], "commands": [], "docs": []}
        assert context["techStack"] == {}
        assert context["custom"] == {}

    def test_config_is_not_modified(self):
        config = {"modules": {"agents": {"selected": ["tech-lead"]}}}
        build_template_context(config)
        assert config == {"modules": {"agents": {"selected": ["tech-lead"]}}}

    def test_renders_against_engine(self):
        context = build_template_context(PROJECT_CONFIG)
        template = (
            "# {{project.name}}\n"
            '{{#if techStack.framework == "nextjs"}}Uses Next.js{{/if}}\n'
            '{{#if has modules.skills "tdd-methodology"}}TDD{{/if}}\n'
            "{{#each mcpServers}}- {{item}}\n{{/each}}"
        )
        result = process_template(template, context)
        assert result.content == "# Shop\nUses Next.js\nTDD\n- github\n- context7\n"
        assert result.warnings == []


class TestInferTechStack:
    """Stack inference from module ids."""

    def test_first_matching_rule_wins(self):
        stack = infer_tech_stack({"agents": ["react-senior-dev", "nextjs-expert"]})
        assert stack["framework"] == "nextjs"

    def test_full_stack(self):
        modules = {
            "agents": ["react-senior-dev", "hono-api"],
            "skills": ["drizzle-orm", "vercel-deploy", "testing-patterns"],
        }
        assert infer_tech_stack(modules) == {
            "framework": "react",
            "orm": "drizzle",
            "api": "hono",
            "deployment": "vercel",
            "testing": "vitest",
        }

    def test_nothing_inferred(self):
        assert infer_tech_stack({"agents": ["tech-lead"]}) == {}


class TestContextHelpers:
    """Pure helpers over built contexts."""

    def test_extend_context_merges_sections(self, sample_context):
        extended = extend_context(sample_context, {"custom": {"extra": 1}, "bundles": ["x"], "new": "v"})
        assert extended["custom"]["extra"] == 1
        assert extended["custom"]["enabled"] is True
        assert extended["bundles"] == ["x"]
        assert extended["new"] == "v"
        assert "extra" not in sample_context["custom"]
        assert "new" not in sample_context

    def test_extend_context_concatenates_lists(self, sample_context):
        extended = extend_context(sample_context, {"mcpServers": ["slack"]})
        assert extended["mcpServers"] == ["github", "context7", "slack"]
        assert sample_context["mcpServers"] == ["github", "context7"]

    def test_add_custom_variable(self, sample_context):
        updated = add_custom_variable(sample_context, "team", "core")
        assert updated["custom"]["team"] == "core"
        assert "team" not in sample_context["custom"]

    def test_module_queries(self, sample_context):
        assert get_all_modules(sample_context) == ["tech-lead", "react-senior-dev", "tdd-methodology", "commit"]
        assert has_module(sample_context, "commit")
        assert not has_module(sample_context, "deploy")
        assert has_any_module(sample_context, ["deploy", "commit"])
        assert not has_any_module(sample_context, [])
        assert has_all_modules(sample_context, ["commit", "tech-lead"])
        assert not has_all_modules(sample_context, ["commit", "deploy"])
