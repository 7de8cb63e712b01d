"""State graph engine.

Nodes are named async transforms over one caller-defined state value.
Edges connect them unconditionally, or through a condition that picks
the next node by label. A Graph is compiled into an immutable
CompiledGraph that can be executed any number of times, concurrently.

Classes:
    Graph: Mutable builder (add_node, add_edge, add_conditional_edges, ...).
    CompiledGraph: Validated, executable snapshot (execute, execute_with_start, stream).
    ExecutionTrace: Opt-in record of one run.
    StepEvent: Event yielded by CompiledGraph.stream().

Example:
    >>> from agentgraph.core.graph import END, START, Graph
    >>>
    >>> async def increase(n: int) -> int:
    ...     return n + 1
    >>>
    >>> async def check(n: int) -> int:
    ...     return n
    >>>
    >>> graph = Graph[int]()
    >>> graph.add_node("check", check).add_node("increase", increase)
    >>> graph.add_edge(START, "check")
    >>> graph.add_conditional_edges(
    ...     "check",
    ...     lambda n: "low" if n < 5 else "high",
    ...     {"low": "increase", "high": END},
    ... )
    >>> graph.add_edge("increase", "check")
    >>> await graph.compile().execute(0)
    5
"""

from agentgraph.core.graph.builder import Graph
from agentgraph.core.graph.compiled import CompiledGraph
from agentgraph.core.graph.constants import END, START, NodeId, Sentinel
from agentgraph.core.graph.edges import ConditionalEdge, Edge, Predicate, Transform
from agentgraph.core.graph.errors import (
    ExecutionError,
    GraphError,
    MaxStepsExceededError,
    NoEntryPoint,
    NoEntryPointError,
    NodeNotFound,
    NodeNotFoundError,
    UnmappedConditionError,
)
from agentgraph.core.graph.events import StepEvent
from agentgraph.core.graph.mermaid import draw_mermaid
from agentgraph.core.graph.trace import ExecutionTrace, StepTrace

__all__ = [
    # Builder and compiled form
    "Graph",
    "CompiledGraph",
    # Identity
    "START",
    "END",
    "Sentinel",
    "NodeId",
    # Edges
    "Edge",
    "ConditionalEdge",
    "Transform",
    "Predicate",
    # Errors
    "GraphError",
    "NodeNotFoundError",
    "NodeNotFound",
    "ExecutionError",
    "NoEntryPointError",
    "NoEntryPoint",
    "MaxStepsExceededError",
    "UnmappedConditionError",
    # Observability
    "StepEvent",
    "ExecutionTrace",
    "StepTrace",
    "draw_mermaid",
]
