"""Pytest fixtures for template engine tests."""

import pytest


@pytest.fixture
def sample_context():
    """Context shaped like the one built from a project configuration."""
    return {
        "project": {
            "name": "Test Project",
            "description": "A test project",
            "org": "test-org",
        },
        "modules": {
            "agents": ["tech-lead", "react-senior-dev"],
            "skills": ["tdd-methodology"],
            "commands": ["commit"],
            "docs": [],
        },
        "codeStyle": {
            "formatter": "biome",
            "editorConfig": True,
        },
        "techStack": {
            "framework": "react",
        },
        "bundles": [],
        "mcpServers": ["github", "context7"],
        "custom": {
            "enabled": True,
            "count": 5,
            "ratio": 2.5,
            "settings": {"theme": "dark", "tabs": 2},
        },
    }
