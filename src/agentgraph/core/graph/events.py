"""StepEvent - events emitted by CompiledGraph.stream()."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

EventType = Literal["step_start", "step_complete", "step_error", "graph_complete"]


@dataclass
class StepEvent:
    """Event emitted during streaming graph execution.

    Attributes:
        event_type: Type of event.
        run_id: Run this event belongs to.
        node: Node the event relates to (None for graph_complete).
        step: 1-based step index within the run (0 for graph_complete).
        state: State after the event: the input state for step_start,
            the transform's output for step_complete and the final state
            for graph_complete. None for step_error.
        next_node: Resolved next node for step_complete ("__end__" for END).
        error: Error message for step_error.
        timestamp: When the event occurred.
    """

    event_type: EventType
    run_id: str
    node: str | None = None
    step: int = 0
    state: Any = None
    next_node: str | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict (state is passed through untouched)."""
        return {
            "event_type": self.event_type,
            "run_id": self.run_id,
            "node": self.node,
            "step": self.step,
            "state": self.state,
            "next_node": self.next_node,
            "error": self.error,
            "timestamp": self.timestamp.isoformat(),
        }
