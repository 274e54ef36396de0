"""Project configuration stored under ``.claude/``.

- ``.claude/config.json``: the project configuration written by the
  scaffolding commands. Only read here, to build template contexts.
- ``.claude/templates.yaml``: template engine settings (file extensions,
  excluded directories, custom template variables).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from agent_config.templates.exceptions import TemplateConfigError
from agent_config.templates.files import DEFAULT_EXCLUDES, DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)

CLAUDE_DIR = ".claude"
CONFIG_FILE = "config.json"
TEMPLATE_SETTINGS_FILE = "templates.yaml"
TEMPLATE_ROOT_ENV = "AGENT_CONFIG_TEMPLATE_ROOT"


def get_config_path(project_root: Path) -> Path:
    return project_root / CLAUDE_DIR / CONFIG_FILE


def get_template_settings_path(project_root: Path) -> Path:
    return project_root / CLAUDE_DIR / TEMPLATE_SETTINGS_FILE


def locate_project_root(start: Path) -> Path | None:
    """Walk up from ``start`` to the first directory containing ``.claude/``."""
    current = start.resolve()
    for candidate in (current, *current.parents):
        if (candidate / CLAUDE_DIR).is_dir():
            return candidate
    return None


def resolve_template_root(project_root: Path, override: Path | None = None) -> Path:
    """Directory whose templates are rendered.

    Precedence: explicit override, then ``AGENT_CONFIG_TEMPLATE_ROOT``, then
    ``<project>/.claude``.
    """
    if override is not None:
        return override.expanduser().resolve()
    env_root = os.environ.get(TEMPLATE_ROOT_ENV)
    if env_root:
        return Path(env_root).expanduser().resolve()
    return project_root / CLAUDE_DIR


def load_project_config(project_root: Path) -> dict[str, Any] | None:
    """Read ``.claude/config.json``. Returns None when the file does not exist."""
    config_path = get_config_path(project_root)
    if not config_path.exists():
        return None

    try:
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise TemplateConfigError(f"Failed to read {config_path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise TemplateConfigError(f"{config_path} must contain a JSON object")
    return payload


@dataclass(slots=True)
class TemplateSettings:
    """Template engine settings stored in ``.claude/templates.yaml``."""

    extensions: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    custom: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "extensions": list(self.extensions),
            "exclude": list(self.exclude),
            "custom": dict(self.custom),
        }

    @classmethod
    def from_dict(cls, data: dict[str, object] | None) -> "TemplateSettings":
        if not isinstance(data, dict):
            return cls()

        settings = cls()
        extensions = data.get("extensions")
        if isinstance(extensions, list):
            settings.extensions = [str(ext).strip() for ext in extensions if str(ext).strip()]
        exclude = data.get("exclude")
        if isinstance(exclude, list):
            settings.exclude = [str(name).strip() for name in exclude if str(name).strip()]
        custom = data.get("custom")
        if isinstance(custom, dict):
            settings.custom = {str(key): value for key, value in custom.items()}
        return settings


def _plain(value: Any) -> Any:
    # ruamel returns CommentedMap/CommentedSeq; the engine wants plain values
    if isinstance(value, dict):
        return {str(key): _plain(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_plain(item) for item in value]
    return value


def load_template_settings(project_root: Path) -> TemplateSettings:
    """Load template settings, falling back to defaults when the file is absent."""
    settings_path = get_template_settings_path(project_root)
    if not settings_path.exists():
        return TemplateSettings()

    yaml = YAML()
    try:
        with settings_path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    except (OSError, YAMLError) as exc:
        raise TemplateConfigError(f"Failed to parse {settings_path}: {exc}") from exc

    logger.debug("Loaded template settings from %s", settings_path)
    return TemplateSettings.from_dict(_plain(payload) if isinstance(payload, dict) else None)


def save_template_settings(project_root: Path, settings: TemplateSettings) -> None:
    """Persist template settings, preserving other top-level keys."""
    settings_path = get_template_settings_path(project_root)
    settings_path.parent.mkdir(parents=True, exist_ok=True)

    yaml = YAML()
    yaml.preserve_quotes = True

    if settings_path.exists():
        with settings_path.open("r", encoding="utf-8") as handle:
            payload = yaml.load(handle) or {}
    else:
        payload = {}

    if not isinstance(payload, dict):
        payload = {}

    payload.update(settings.to_dict())

    with settings_path.open("w", encoding="utf-8") as handle:
        yaml.dump(payload, handle)


def parse_variable_value(raw: str) -> Any:
    """Interpret a command-line value as a YAML scalar or collection.

    ``5`` becomes an int, ``true`` a bool and ``[a, b]`` a list. Text that is
    not valid YAML is kept as a string.
    """
    try:
        value = YAML(typ="safe").load(raw)
    except YAMLError:
        return raw
    return raw if value is None and raw.strip() else value


def set_custom_variable(project_root: Path, key: str, value: Any) -> TemplateSettings:
    """Set ``custom[key]`` in ``.claude/templates.yaml`` and return the new settings."""
    settings = load_template_settings(project_root)
    settings.custom[key] = value
    save_template_settings(project_root, settings)
    logger.debug("Set custom template variable %s in %s", key, get_template_settings_path(project_root))
    return settings


def remove_custom_variable(project_root: Path, key: str) -> bool:
    """Remove ``custom[key]``. Returns False when the variable was not set."""
    settings = load_template_settings(project_root)
    if key not in settings.custom:
        return False
    del settings.custom[key]
    save_template_settings(project_root, settings)
    return True


__all__ = [
    "CLAUDE_DIR",
    "TEMPLATE_ROOT_ENV",
    "TemplateSettings",
    "parse_variable_value",
    "remove_custom_variable",
    "set_custom_variable",
    "get_config_path",
    "get_template_settings_path",
    "load_project_config",
    "load_template_settings",
    "locate_project_root",
    "resolve_template_root",
    "save_template_settings",
]
