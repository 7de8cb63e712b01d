"""Edge records connecting nodes in a graph."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Generic, TypeVar

from agentgraph.core.graph.constants import NodeId, as_node_id

T = TypeVar("T")

# async def transform(state) -> state
Transform = Callable[[T], Awaitable[T]]

# async (or plain) def condition(state) -> label
Predicate = Callable[[T], Awaitable[str] | str]


@dataclass(frozen=True)
class Edge:
    """Unconditional transition taken once `source` completes.

    Attributes:
        source: Node name or START.
        target: Node name or END.
    """

    source: NodeId
    target: NodeId

    def __post_init__(self) -> None:
        object.__setattr__(self, "source", as_node_id(self.source))
        object.__setattr__(self, "target", as_node_id(self.target))


@dataclass(frozen=True)
class ConditionalEdge(Generic[T]):
    """Predicate-gated, multi-way transition out of `source`.

    The condition is evaluated against the state produced by `source`;
    the returned label is looked up in `mapping` to pick the next node.

    Attributes:
        source: Node name whose completion triggers the condition.
        condition: Callable returning a label (may be a coroutine function).
        mapping: Label to target node name (or END). Frozen on creation.
    """

    source: str
    condition: Predicate[T]
    mapping: Mapping[str, NodeId] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = MappingProxyType({str(k): as_node_id(v) for k, v in self.mapping.items()})
        object.__setattr__(self, "mapping", frozen)

    def targets(self) -> list[NodeId]:
        """All targets this edge can route to."""
        return list(self.mapping.values())

    def __repr__(self) -> str:
        name = getattr(self.condition, "__name__", type(self.condition).__name__)
        return f"ConditionalEdge(source={self.source!r}, condition={name}, mapping={dict(self.mapping)!r})"

