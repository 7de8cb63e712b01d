"""Name validation for graph nodes.

Node names are free-form strings, but a few rules keep them usable as
identifiers in logs, traces and diagrams.
"""

from __future__ import annotations

from agentgraph.core.graph.constants import RESERVED_NAMES

MAX_NAME_LENGTH = 64


def validate_node_name(name: str) -> None:
    """Validate a node name.

    Rules:
    - 1-64 characters, not only whitespace
    - Not one of the reserved sentinel names ("__start__", "__end__")

    Args:
        name: The name to validate.

    Raises:
        ValueError: If the name is invalid.

    Example:
        >>> validate_node_name("call_model")  # OK
        >>> validate_node_name("")            # ValueError
        >>> validate_node_name("__end__")     # ValueError
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Node name is required")

    if len(name) > MAX_NAME_LENGTH:
        raise ValueError(f"Node name must be {MAX_NAME_LENGTH} characters or less")

    if name in RESERVED_NAMES:
        raise ValueError(f"Node name '{name}' is reserved")


def is_valid_node_name(name: str) -> bool:
    """Check if a node name is valid without raising.

    Args:
        name: The name to check.

    Returns:
        True if valid, False otherwise.
    """
    try:
        validate_node_name(name)
    except ValueError:
        return False
    return True
