"""CLI command modules for agent-config."""

from .templates import app as templates_app

__all__ = ["templates_app"]
