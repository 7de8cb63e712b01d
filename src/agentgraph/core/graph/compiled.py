"""CompiledGraph - validated, immutable, executable form of a Graph.

Execution is a sequential interpreter loop:

    1. Run the current node's transform on the state
    2. Resolve the next node from the new state
       (conditional edges first, in declaration order, then unconditional edges)
    3. Stop at END, or when no transition applies; otherwise repeat

Cycles are allowed and there is no default iteration cap: a loop must be
bounded by the state itself (e.g. an iteration counter a condition
inspects), or by the opt-in max_steps guard.

The compiled structure is never written during execution, so one
CompiledGraph can serve any number of concurrent execute() calls.
"""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import AsyncIterator, Mapping
from contextlib import aclosing
from datetime import datetime
from types import MappingProxyType
from typing import Generic, TypeVar

from agentgraph.core.graph.constants import END, START, NodeId
from agentgraph.core.graph.edges import ConditionalEdge, Edge, Transform
from agentgraph.core.graph.errors import (
    ExecutionError,
    MaxStepsExceededError,
    NodeNotFoundError,
    NoEntryPointError,
    UnmappedConditionError,
)
from agentgraph.core.graph.events import StepEvent
from agentgraph.core.graph.mermaid import draw_mermaid
from agentgraph.core.graph.trace import ExecutionTrace, StepTrace
from agentgraph.core.run_logging import (
    generate_run_id,
    log_complete,
    log_error,
    log_start,
    log_warning,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _check_max_steps(max_steps: int | None) -> None:
    if max_steps is not None and max_steps < 1:
        raise ValueError(f"max_steps must be a positive integer, got {max_steps}")


class CompiledGraph(Generic[T]):
    """Immutable snapshot of a validated Graph.

    Created by Graph.compile(); has no mutation API.

    Args:
        nodes: Node name to transform.
        edges: Unconditional edges in declaration order.
        conditional_edges: Conditional edges in declaration order.
        entry_point: Recorded entry point, if any.
        finish_point: Recorded finish point, if any.
        max_steps: Default per-run step limit (None = unbounded).
        strict_conditions: Treat an unmapped predicate label that would end
            the run as an error instead of a successful stop.
    """

    def __init__(
        self,
        nodes: Mapping[str, Transform[T]],
        edges: tuple[Edge, ...],
        conditional_edges: tuple[ConditionalEdge[T], ...],
        entry_point: str | None = None,
        finish_point: str | None = None,
        max_steps: int | None = None,
        strict_conditions: bool = False,
    ) -> None:
        _check_max_steps(max_steps)
        self._nodes: Mapping[str, Transform[T]] = MappingProxyType(dict(nodes))
        self._edges = tuple(edges)
        self._conditional_edges = tuple(conditional_edges)
        self._entry_point = entry_point
        self._finish_point = finish_point
        self._max_steps = max_steps
        self._strict_conditions = strict_conditions

    @property
    def nodes(self) -> Mapping[str, Transform[T]]:
        """Registered nodes (read-only)."""
        return self._nodes

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    @property
    def conditional_edges(self) -> tuple[ConditionalEdge[T], ...]:
        return self._conditional_edges

    @property
    def entry_point(self) -> str | None:
        return self._entry_point

    @property
    def finish_point(self) -> str | None:
        return self._finish_point

    @property
    def max_steps(self) -> int | None:
        return self._max_steps

    @property
    def strict_conditions(self) -> bool:
        return self._strict_conditions

    def list_nodes(self) -> list[str]:
        return list(self._nodes.keys())

    def start_node(self) -> NodeId:
        """Resolve where execute() begins.

        The first edge sourced from START wins, then the recorded entry point.

        Raises:
            NoEntryPointError: If neither is configured.
        """
        for edge in self._edges:
            if edge.source is START:
                return edge.target
        if self._entry_point is not None:
            return self._entry_point
        raise NoEntryPointError()

    async def execute(
        self,
        initial: T,
        *,
        max_steps: int | None = None,
        trace: ExecutionTrace | None = None,
    ) -> T:
        """Run the graph from its entry point.

        Args:
            initial: Initial state.
            max_steps: Step limit for this run (defaults to the compile-time value).
            trace: Optional trace to record into.

        Returns:
            The state when the run reached END or ran out of transitions.

        Raises:
            NoEntryPointError: If the graph has no entry point.
            ExecutionError: If a transform (or condition) raised.
            MaxStepsExceededError: If the step limit was hit.
            UnmappedConditionError: In strict mode, for an unmapped label.
        """
        return await self._run_to_end(self.start_node(), initial, max_steps, trace)

    async def execute_with_start(
        self,
        start: str,
        initial: T,
        *,
        max_steps: int | None = None,
        trace: ExecutionTrace | None = None,
    ) -> T:
        """Run the graph starting directly at `start`.

        Entry-point resolution is bypassed, and no check is made that
        `start` is reachable from START. Resolution after the first node
        is the same as for execute().

        Raises:
            NodeNotFoundError: If `start` is not a registered node.
            ExecutionError: If a transform (or condition) raised.
        """
        return await self._run_to_end(start, initial, max_steps, trace)

    async def stream(
        self,
        initial: T,
        *,
        start: str | None = None,
        max_steps: int | None = None,
        trace: ExecutionTrace | None = None,
    ) -> AsyncIterator[StepEvent]:
        """Run the graph and yield an event for every step.

        Same semantics as execute() (or execute_with_start() when `start`
        is given). The last event is "graph_complete" and carries the final
        state. A failing step yields "step_error" and then the error is raised.
        Closing the iterator early (e.g. breaking out of the loop and calling
        aclose()) stops the run and marks the trace "cancelled".

        Example:
            >>> async for event in compiled.stream(state):
            ...     if event.event_type == "step_complete":
            ...         print(event.node, "->", event.next_node)
        """
        first = start if start is not None else self.start_node()
        async with aclosing(self._run(first, initial, max_steps, trace)) as events:
            async for event in events:
                yield event

    async def _run_to_end(
        self,
        start: NodeId,
        state: T,
        max_steps: int | None,
        trace: ExecutionTrace | None,
    ) -> T:
        final = state
        async for event in self._run(start, state, max_steps, trace):
            if event.event_type == "graph_complete":
                final = event.state
        return final

    async def _run(
        self,
        start: NodeId,
        state: T,
        max_steps: int | None,
        trace: ExecutionTrace | None,
    ) -> AsyncIterator[StepEvent]:
        """The interpreter loop shared by every execution entry point."""
        limit = self._max_steps if max_steps is None else max_steps
        _check_max_steps(limit)

        run_id = generate_run_id()
        if trace is not None:
            trace.start(run_id)

        run_start_mono = time.monotonic()
        log_start(logger, run_id, "graph_start", start=start, max_steps=limit)

        current: NodeId = start
        steps = 0

        try:
            while current is not END:
                if current is START or current not in self._nodes:
                    raise NodeNotFoundError(current)
                transform = self._nodes[current]

                if limit is not None and steps >= limit:
                    raise MaxStepsExceededError(limit, current)
                steps += 1

                yield StepEvent("step_start", run_id, node=current, step=steps, state=state)
                log_start(logger, run_id, "step_start", step=steps, node=current)

                start_time = datetime.now()
                start_mono = time.monotonic()
                next_node: NodeId | None = None
                error: str | None = None

                try:
                    try:
                        state = await transform(state)
                    except Exception as e:
                        raise ExecutionError(current, str(e)) from e
                    next_node = await self._next_node(current, state, run_id)
                except Exception as e:
                    error = str(e)
                    log_error(
                        logger,
                        run_id,
                        "step_failed",
                        e,
                        step=steps,
                        node=current,
                        duration_s=f"{time.monotonic() - start_mono:.1f}",
                    )
                    yield StepEvent("step_error", run_id, node=current, step=steps, error=error)
                    raise
                finally:
                    if trace is not None:
                        trace.add_step(
                            StepTrace(
                                index=steps,
                                node=current,
                                next_node=None if next_node is None else str(next_node),
                                error=error,
                                start_time=start_time,
                                end_time=datetime.now(),
                                duration_ms=(time.monotonic() - start_mono) * 1000,
                            )
                        )

                log_complete(
                    logger,
                    run_id,
                    "step_complete",
                    time.monotonic() - start_mono,
                    step=steps,
                    node=current,
                    next=next_node,
                )
                yield StepEvent(
                    "step_complete",
                    run_id,
                    node=current,
                    step=steps,
                    state=state,
                    next_node=None if next_node is None else str(next_node),
                )

                if next_node is None:
                    # No outgoing transition: treated the same as reaching END
                    break
                current = next_node

        except Exception as e:
            if trace is not None:
                trace.complete(error=str(e))
            raise
        except BaseException as e:
            # Task cancellation, or GeneratorExit from an abandoned stream()
            log_complete(
                logger,
                run_id,
                "graph_cancelled",
                time.monotonic() - run_start_mono,
                steps=steps,
                reason=type(e).__name__,
            )
            if trace is not None:
                trace.cancel()
            raise

        log_complete(logger, run_id, "graph_complete", time.monotonic() - run_start_mono, steps=steps)
        if trace is not None:
            trace.complete()
        yield StepEvent("graph_complete", run_id, state=state, step=steps)

    async def _next_node(self, current: str, state: T, run_id: str = "-") -> NodeId | None:
        """Pick the node that follows `current`.

        Conditional edges from `current` are consulted first, in declaration
        order; a label missing from one edge's mapping falls through to the
        next. Then the first unconditional edge from `current` applies.

        Returns:
            The next node id (possibly END), or None if nothing matched.

        Raises:
            ExecutionError: If a condition raised.
            UnmappedConditionError: In strict mode, when an unmapped label
                is the only reason the run would stop.
        """
        unmapped: str | None = None

        for conditional in self._conditional_edges:
            if conditional.source != current:
                continue
            try:
                label = conditional.condition(state)
                if inspect.isawaitable(label):
                    label = await label
            except Exception as e:
                raise ExecutionError(current, f"condition failed: {e}") from e

            label = str(label)
            target = conditional.mapping.get(label)
            if target is not None:
                return target

            logger.debug("[%s] unmapped_condition: node=%s, label=%s", run_id, current, label)
            unmapped = label

        for edge in self._edges:
            if edge.source == current:
                return edge.target

        if unmapped is not None:
            if self._strict_conditions:
                raise UnmappedConditionError(current, unmapped)
            log_warning(
                logger,
                run_id,
                "run_ends_on_unmapped_condition",
                node=current,
                label=unmapped,
            )
        return None

    def draw_mermaid(self) -> str:
        """Render the compiled graph as a Mermaid flowchart."""
        return draw_mermaid(self._nodes, self._edges, self._conditional_edges)

    def __repr__(self) -> str:
        return f"CompiledGraph(nodes={self.list_nodes()}, entry_point={self._entry_point!r})"
