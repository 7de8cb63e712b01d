"""Sentinel identifiers for graph entry and termination.

START and END are tagged values rather than bare strings, so a node
can never be mistaken for a sentinel (or the other way around).
"""

from __future__ import annotations

from enum import Enum


class Sentinel(Enum):
    """Reserved pseudo-nodes marking where execution begins and ends."""

    START = "__start__"
    END = "__end__"

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return self.name


START = Sentinel.START
END = Sentinel.END

# Node names that may never be registered
RESERVED_NAMES = frozenset(s.value for s in Sentinel)

# A node name or a sentinel
NodeId = str | Sentinel


def as_node_id(value: NodeId) -> NodeId:
    """Normalize an edge endpoint.

    The literal strings "__start__" and "__end__" are accepted for
    convenience and mapped to their sentinels.

    Args:
        value: Node name, sentinel, or reserved sentinel string.

    Returns:
        The sentinel for reserved strings, otherwise the value unchanged.
    """
    if isinstance(value, Sentinel):
        return value
    if value == START.value:
        return START
    if value == END.value:
        return END
    return value
