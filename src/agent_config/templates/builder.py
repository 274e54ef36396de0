"""Template context builder.

Creates the context handed to the template engine from a project's
persisted configuration (``.claude/config.json``). Sections:

- ``project``: name, description, org, repo, domain, entityType, location
- ``modules``: selected ids per category (agents, skills, commands, docs)
- ``codeStyle``: formatter, linter, editorConfig, commitlint
- ``techStack``: inferred from the selected module ids
- ``bundles``, ``mcpServers``: lists of ids
- ``custom``: free-form variables

All helpers return new dictionaries and never modify their input.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

MODULE_CATEGORIES: tuple[str, ...] = ("agents", "skills", "commands", "docs")

PROJECT_FIELDS: tuple[str, ...] = (
    "name",
    "description",
    "org",
    "repo",
    "domain",
    "entityType",
    "location",
)

# Ordered (module id fragment, value) candidates; the first hit wins.
_TECH_STACK_RULES: dict[str, tuple[tuple[str, str], ...]] = {
    "framework": (
        ("nextjs", "nextjs"),
        ("astro", "astro"),
        ("tanstack-start", "tanstack-start"),
        ("react", "react"),
    ),
    "orm": (
        ("prisma", "prisma"),
        ("drizzle", "drizzle"),
        ("mongoose", "mongoose"),
    ),
    "api": (
        ("hono", "hono"),
        ("express", "express"),
        ("fastify", "fastify"),
        ("nestjs", "nestjs"),
    ),
    "deployment": (("vercel", "vercel"),),
}


def _section(config: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = config.get(name)
    return value if isinstance(value, Mapping) else {}


def _selected_ids(selection: Any) -> list[str]:
    if isinstance(selection, Mapping):
        selected = selection.get("selected")
    else:
        selected = selection
    if not isinstance(selected, (list, tuple)):
        return []
    return [str(module_id) for module_id in selected]


def _server_ids(servers: Any) -> list[str]:
    if not isinstance(servers, (list, tuple)):
        return []
    ids: list[str] = []
    for server in servers:
        if isinstance(server, Mapping) and server.get("serverId"):
            ids.append(str(server["serverId"]))
        elif isinstance(server, str):
            ids.append(server)
    return ids


def _code_style(extras: Mapping[str, Any]) -> dict[str, Any]:
    code_style = _section(extras, "codeStyle")
    if code_style.get("biome"):
        formatter = "biome"
    elif code_style.get("prettier"):
        formatter = "prettier"
    else:
        formatter = "none"
    return {
        "formatter": formatter,
        "linter": "biome" if code_style.get("biome") else "none",
        "editorConfig": bool(code_style.get("editorconfig", False)),
        "commitlint": bool(code_style.get("commitlint", False)),
    }


def get_all_modules(context: Mapping[str, Any]) -> list[str]:
    """Return every selected module id across categories."""
    modules = _section(context, "modules")
    all_ids: list[str] = []
    for category in MODULE_CATEGORIES:
        all_ids.extend(_selected_ids(modules.get(category)))
    return all_ids


def infer_tech_stack(modules: Mapping[str, Iterable[str]]) -> dict[str, str]:
    """Infer the technology stack from selected module ids."""
    all_ids = [module_id for category in MODULE_CATEGORIES for module_id in modules.get(category, [])]
    tech_stack: dict[str, str] = {}

    for field_name, rules in _TECH_STACK_RULES.items():
        for fragment, value in rules:
            if any(fragment in module_id for module_id in all_ids):
                tech_stack[field_name] = value
                break

    if any("testing" in module_id or "tdd" in module_id for module_id in all_ids):
        tech_stack["testing"] = "vitest"

    return tech_stack


def build_template_context(config: Mapping[str, Any] | None) -> dict[str, Any]:
    """Build a template context from a project configuration mapping."""
    config = config or {}
    project = _section(config, "project")
    modules_config = _section(config, "modules")

    modules = {category: _selected_ids(modules_config.get(category)) for category in MODULE_CATEGORIES}

    return {
        "project": {name: project[name] for name in PROJECT_FIELDS if project.get(name) is not None},
        "modules": modules,
        "codeStyle": _code_style(_section(config, "extras")),
        "techStack": infer_tech_stack(modules),
        "bundles": _selected_ids(config.get("bundles")),
        "mcpServers": _server_ids(_section(config, "mcp").get("servers")),
        "custom": {},
    }


def extend_context(context: Mapping[str, Any], additions: Mapping[str, Any]) -> dict[str, Any]:
    """Return a new context with ``additions`` merged into each section.

    Mapping sections are shallow-merged and list sections concatenated.
    Other values in ``additions`` replace the existing ones.
    """
    extended: dict[str, Any] = {key: value for key, value in context.items()}
    for key, addition in additions.items():
        current = extended.get(key)
        if isinstance(current, Mapping) and isinstance(addition, Mapping):
            extended[key] = {**current, **addition}
        elif isinstance(current, list) and isinstance(addition, (list, tuple)):
            extended[key] = [*current, *addition]
        else:
            extended[key] = addition
    return extended


def add_custom_variable(context: Mapping[str, Any], key: str, value: Any) -> dict[str, Any]:
    """Return a new context with ``custom[key]`` set to ``value``."""
    return extend_context(context, {"custom": {key: value}})


def has_module(context: Mapping[str, Any], module_id: str) -> bool:
    return module_id in get_all_modules(context)


def has_any_module(context: Mapping[str, Any], module_ids: Iterable[str]) -> bool:
    selected = set(get_all_modules(context))
    return any(module_id in selected for module_id in module_ids)


def has_all_modules(context: Mapping[str, Any], module_ids: Iterable[str]) -> bool:
    selected = set(get_all_modules(context))
    return all(module_id in selected for module_id in module_ids)


__all__ = [
    "MODULE_CATEGORIES",
    "add_custom_variable",
    "build_template_context",
    "extend_context",
    "get_all_modules",
    "has_all_modules",
    "has_any_module",
    "has_module",
    "infer_tech_stack",
]
