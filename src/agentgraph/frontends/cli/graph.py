"""Graph commands: draw and run."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import rich_click as click
from rich.console import Console

from agentgraph.core.graph import ExecutionTrace, GraphError
from agentgraph.frontends.cli.loader import GraphLoadError, load_compiled, load_graph
from agentgraph.frontends.cli.output import error_exit, output_mermaid, output_state


@click.command()
@click.argument("target")
@click.option("--plain", "-p", is_flag=True, help="Print without syntax highlighting")
def draw(target: str, plain: bool):
    """Print a graph as a Mermaid flowchart.

    The graph is not compiled first, so dangling references still render.

    **Examples:**

        agentgraph draw examples/graph_example.py:graph

        agentgraph draw my_project.agents:build_graph --plain > graph.mmd
    """
    try:
        graph = load_graph(target)
    except GraphLoadError as e:
        error_exit(str(e))

    output_mermaid(graph.draw_mermaid(), plain)


@click.command()
@click.argument("target")
@click.option("--input", "-i", "input_json", default="null", help="Initial state as JSON")
@click.option("--start", "-s", default=None, help="Start at this node instead of the entry point")
@click.option("--max-steps", "-m", type=int, default=None, help="Abort after this many steps")
@click.option("--trace", "-t", "show_trace", is_flag=True, help="Print the execution path to stderr")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output the final state as JSON")
def run(
    target: str,
    input_json: str,
    start: str | None,
    max_steps: int | None,
    show_trace: bool,
    json_output: bool,
):
    """Execute a graph with a JSON input state.

    The decoded input is passed to the first node unchanged, so the
    graph's nodes must accept plain JSON values (dicts, lists, numbers).

    **Examples:**

        agentgraph run examples/graph_example.py:graph --input '{"message": "Hello"}'

        agentgraph run my_project.agents:graph -i '{}' --start review --json
    """
    try:
        initial: Any = json.loads(input_json)
    except json.JSONDecodeError as e:
        error_exit(f"Invalid --input JSON: {e}")

    try:
        compiled = load_compiled(target)
    except (GraphError, GraphLoadError) as e:
        error_exit(str(e))

    trace = ExecutionTrace()

    async def _execute() -> Any:
        if start is not None:
            return await compiled.execute_with_start(
                start, initial, max_steps=max_steps, trace=trace
            )
        return await compiled.execute(initial, max_steps=max_steps, trace=trace)

    try:
        final = asyncio.run(_execute())
    except (GraphError, ValueError) as e:
        if show_trace:
            Console(stderr=True).print(trace.explain(), markup=False, highlight=False)
        error_exit(str(e))

    if show_trace:
        Console(stderr=True).print(trace.explain(), markup=False, highlight=False)
    output_state(final, json_output)
