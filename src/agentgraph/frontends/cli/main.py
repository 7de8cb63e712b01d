"""CLI entry point."""

from __future__ import annotations

import os

import rich_click as click

from agentgraph.core.logging_config import configure_logging
from agentgraph.frontends.cli.graph import draw, run

# Configure rich-click styling
click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = True
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = "Try running '--help' for more information."
click.rich_click.ERRORS_EPILOGUE = ""
click.rich_click.MAX_WIDTH = 100


@click.group()
@click.version_option(package_name="agentgraph")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Log level (default: AGENTGRAPH_LOG_LEVEL or WARNING)",
)
def cli(log_level: str | None):
    """agentgraph - Build and run state graphs of async agent steps.

    Graphs are loaded from a **TARGET** of the form `module:attr` or
    `path/to/file.py:attr`. The attribute may be a Graph, a CompiledGraph,
    or a function returning one.

    **Commands:**

        agentgraph draw     Print a graph as a Mermaid flowchart

        agentgraph run      Execute a graph with a JSON input state
    """
    configure_logging(level=log_level or _default_level(), force=True)


def _default_level() -> str:
    return os.environ.get("AGENTGRAPH_LOG_LEVEL", "WARNING")


cli.add_command(draw)
cli.add_command(run)


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
