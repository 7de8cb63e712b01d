"""agentgraph - compose LLM-calling pipelines as state graphs.

Layers:
    core/       Graph engine (builder, compiled graph, executor), logging
    clients/    Chat-completion client for OpenAI-compatible endpoints
    frontends/  Command line interface

Quick Start:
    >>> from agentgraph import END, START, Graph
    >>>
    >>> async def generate(state: dict) -> dict:
    ...     return {**state, "draft": "Hello", "quality": 6}
    >>>
    >>> async def improve(state: dict) -> dict:
    ...     return {**state, "quality": state["quality"] + 3}
    >>>
    >>> graph = Graph[dict]()
    >>> graph.add_node("generate", generate).add_node("improve", improve)
    >>> graph.add_edge(START, "generate")
    >>> graph.add_conditional_edges(
    ...     "generate",
    ...     lambda s: "improve" if s["quality"] < 8 else "done",
    ...     {"improve": "improve", "done": END},
    ... )
    >>> graph.set_finish_point("improve")
    >>> result = await graph.compile().execute({})
"""

from agentgraph.__version__ import __version__
from agentgraph.core import (
    END,
    START,
    CompiledGraph,
    ConditionalEdge,
    Edge,
    ExecutionError,
    ExecutionTrace,
    Graph,
    GraphError,
    MaxStepsExceededError,
    NoEntryPointError,
    NodeNotFoundError,
    StepEvent,
    UnmappedConditionError,
    configure_logging,
)

__all__ = [
    "__version__",
    # Graph
    "Graph",
    "CompiledGraph",
    "START",
    "END",
    "Edge",
    "ConditionalEdge",
    # Errors
    "GraphError",
    "NodeNotFoundError",
    "ExecutionError",
    "NoEntryPointError",
    "MaxStepsExceededError",
    "UnmappedConditionError",
    # Observability
    "StepEvent",
    "ExecutionTrace",
    "configure_logging",
]
