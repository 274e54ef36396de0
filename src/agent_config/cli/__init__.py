"""Command line interface for agent-config."""
