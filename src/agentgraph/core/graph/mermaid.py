"""Mermaid flowchart export for graphs.

Paste the output into https://mermaid.live to visualize a graph.
"""

from __future__ import annotations

from collections.abc import Iterable

from agentgraph.core.graph.constants import END, START
from agentgraph.core.graph.edges import ConditionalEdge, Edge

START_END_STYLE = "fill:#e1f5fe,stroke:#01579b,stroke-width:2px"


def draw_mermaid(
    nodes: Iterable[str],
    edges: Iterable[Edge],
    conditional_edges: Iterable[ConditionalEdge],
) -> str:
    """Render a graph as a Mermaid flowchart.

    Args:
        nodes: Registered node names.
        edges: Unconditional edges.
        conditional_edges: Conditional edges; one labelled arrow is drawn
            per mapping entry.

    Returns:
        Mermaid source text ending with a newline.
    """
    lines = [
        "flowchart TD",
        f"    {START}([START])",
        f"    {END}([END])",
    ]

    for name in nodes:
        lines.append(f"    {name}[{name}]")

    for edge in edges:
        lines.append(f"    {edge.source} --> {edge.target}")

    for conditional in conditional_edges:
        for label, target in conditional.mapping.items():
            lines.append(f"    {conditional.source} -->|{label}| {target}")

    lines.append(f"    classDef startEnd {START_END_STYLE}")
    lines.append(f"    class {START},{END} startEnd")

    return "\n".join(lines) + "\n"
