"""Errors raised while validating or executing a graph."""

from __future__ import annotations

from agentgraph.core.graph.constants import NodeId


class GraphError(Exception):
    """Base class for all graph errors."""

    pass


class NodeNotFoundError(GraphError):
    """A structural reference to a node that is not registered.

    Raised by validation for dangling edges or mapping targets, and by
    execution when execute_with_start() is given an unknown node.
    """

    def __init__(self, name: NodeId) -> None:
        super().__init__(f"Node not found: {name}")
        self.name = name


class ExecutionError(GraphError):
    """A node transform raised during execution.

    The original exception is chained as __cause__.
    """

    def __init__(self, node: str, detail: str) -> None:
        super().__init__(f"Execution error in node '{node}': {detail}")
        self.node = node
        self.detail = detail


class NoEntryPointError(GraphError):
    """execute() was called on a graph without an entry point."""

    def __init__(self) -> None:
        super().__init__("No entry point set. Use set_entry_point() or execute_with_start()")


class MaxStepsExceededError(GraphError):
    """A run exceeded its opt-in step limit."""

    def __init__(self, max_steps: int, node: str) -> None:
        super().__init__(f"Maximum of {max_steps} steps exceeded before running node '{node}'")
        self.max_steps = max_steps
        self.node = node


class UnmappedConditionError(GraphError):
    """A predicate returned a label absent from its mapping (strict mode only)."""

    def __init__(self, node: str, label: str) -> None:
        super().__init__(f"Condition on node '{node}' returned unmapped label '{label}'")
        self.node = node
        self.label = label


# Short names
NodeNotFound = NodeNotFoundError
NoEntryPoint = NoEntryPointError
