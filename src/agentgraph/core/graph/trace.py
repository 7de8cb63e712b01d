"""Execution tracing for compiled graphs.

A trace records which nodes ran, in what order, how long each took and
where the run went next. Tracing is opt-in: pass an ExecutionTrace to
execute(), execute_with_start() or stream().

Example:
    >>> trace = ExecutionTrace()
    >>> result = await compiled.execute(state, trace=trace)
    >>> print(trace.explain())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal


@dataclass
class StepTrace:
    """Trace record for a single node invocation.

    Attributes:
        index: 1-based position of this step in the run.
        node: Name of the node that ran.
        next_node: Where the run went afterwards ("__end__" for END,
            None if there was no outgoing transition or the node failed).
        error: Error message if the transform failed.
        start_time: When the transform started.
        end_time: When the next node had been resolved (or the error raised).
        duration_ms: Time spent in the transform and next-node resolution.
    """

    index: int
    node: str
    next_node: str | None
    error: str | None
    start_time: datetime
    end_time: datetime
    duration_ms: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "index": self.index,
            "node": self.node,
            "next_node": self.next_node,
            "error": self.error,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_ms": self.duration_ms,
        }


@dataclass
class ExecutionTrace:
    """Trace record for one graph execution.

    Attributes:
        run_id: Run identifier, set when execution starts.
        start_time: When execution started.
        end_time: When execution finished (None while running).
        status: Execution status.
        steps: Step traces in execution order.
        error: Error message if the run failed.
    """

    run_id: str | None = None
    start_time: datetime = field(default_factory=datetime.now)
    end_time: datetime | None = None
    status: Literal["pending", "running", "completed", "failed", "cancelled"] = "pending"
    steps: list[StepTrace] = field(default_factory=list)
    error: str | None = None

    def start(self, run_id: str) -> None:
        """Mark the trace as running under the given run ID."""
        self.run_id = run_id
        self.start_time = datetime.now()
        self.status = "running"

    def add_step(self, step: StepTrace) -> None:
        self.steps.append(step)

    def complete(self, error: str | None = None) -> None:
        """Mark execution as finished.

        Args:
            error: Error message if execution failed.
        """
        self.end_time = datetime.now()
        if error:
            self.status = "failed"
            self.error = error
        else:
            self.status = "completed"

    def cancel(self) -> None:
        """Mark execution as cancelled or abandoned before it finished."""
        self.end_time = datetime.now()
        self.status = "cancelled"

    @property
    def path(self) -> list[str]:
        """Node names in the order they ran."""
        return [step.node for step in self.steps]

    @property
    def duration_ms(self) -> float | None:
        """Total duration in milliseconds, None while running."""
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds() * 1000

    def explain(self) -> str:
        """Human-readable execution summary."""
        lines = [
            f"Run: {self.run_id}",
            f"Status: {self.status}",
        ]

        if self.duration_ms is not None:
            lines.append(f"Duration: {self.duration_ms:.0f}ms")

        lines.append(f"Steps: {len(self.steps)}")

        for step in self.steps:
            status_indicator = "x" if step.error else "+"
            arrow = f" -> {step.next_node}" if step.next_node else ""
            lines.append(
                f"  [{status_indicator}] {step.index}. {step.node}{arrow}: {step.duration_ms:.0f}ms"
            )
            if step.error:
                lines.append(f"      Error: {step.error}")

        if self.error:
            lines.append(f"Error: {self.error}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "run_id": self.run_id,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status,
            "duration_ms": self.duration_ms,
            "steps": [step.to_dict() for step in self.steps],
            "error": self.error,
        }
