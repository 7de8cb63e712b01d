"""CLI frontend for agentgraph.

Commands:
    agentgraph draw     Print a graph as a Mermaid flowchart
    agentgraph run      Execute a graph with a JSON input state

Example:
    $ agentgraph draw examples/graph_example.py:graph
    $ agentgraph run examples/graph_example.py:graph --input '{"message": "Hello"}'
"""

from agentgraph.frontends.cli.main import cli, main

__all__ = ["cli", "main"]
