"""
agent-config - scaffold and maintain AI agent configuration directories.

Usage:
    agent-config templates render
    agent-config templates validate [PATH ...]
    agent-config templates context
"""

import logging

import typer

from agent_config.cli.commands import templates_app

__version__ = "0.1.0"

app = typer.Typer(
    name="agent-config",
    help="Scaffold and maintain AI agent configuration directories",
    add_completion=False,
    no_args_is_help=True,
)


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging for every subcommand."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


app.add_typer(templates_app, name="templates", help="Template processing commands")


def main():
    app()


if __name__ == "__main__":
    main()
