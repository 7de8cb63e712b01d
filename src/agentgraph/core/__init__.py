"""Core - the graph engine and its ambient helpers.

This package has no knowledge of HTTP clients, providers or the CLI.
It can be used from scripts, notebooks, services or tests alike.

Architecture:
    graph/            Graph builder, CompiledGraph executor, traces, events
    validation        Node name rules
    logging_config    Opt-in logging setup for applications
    run_logging       Run IDs and structured log-line helpers
"""

from agentgraph.core.graph import (
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
    StepTrace,
    UnmappedConditionError,
)
from agentgraph.core.logging_config import configure_logging, get_logger
from agentgraph.core.validation import is_valid_node_name, validate_node_name

__all__ = [
    "Graph",
    "CompiledGraph",
    "START",
    "END",
    "Edge",
    "ConditionalEdge",
    "GraphError",
    "NodeNotFoundError",
    "ExecutionError",
    "NoEntryPointError",
    "MaxStepsExceededError",
    "UnmappedConditionError",
    "StepEvent",
    "ExecutionTrace",
    "StepTrace",
    "configure_logging",
    "get_logger",
    "validate_node_name",
    "is_valid_node_name",
]
