"""
Router

Decides, before every worker turn, which worker runs next or whether the
run is over. The decision is a pure function of the state store, the
previous turn and the registry of worker names, in priority order:

1. a terminal result is present            -> terminate
2. a pipeline stage is ready               -> that stage's worker
3. the last turn called route_to_agent(X)  -> X (if registered)
4. the last turn called done               -> terminate
5. anything else                           -> terminate

Before the first turn, when nothing above applies, the entry worker runs.
Because stage readiness is read from which output keys exist, a pipeline
can be resumed from any point regardless of how many turns have passed.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass

import structlog

from switchyard.core.state import (
    COMPLETED,
    RESULT_TYPE,
    TERMINAL_RESULT_KEYS,
    RouteDecision,
    StateStore,
    Turn,
)
from switchyard.core.tool import DONE_TOOL, ROUTE_TOOL

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PipelineStage:
    """One stage of a fixed-order workflow: the worker and the key it produces."""

    worker: str
    output_key: str


class Router:
    """
    State-driven router.

    Example:
        ```python
        router = Router(
            pipeline=[
                PipelineStage("Chart Picker Agent", "picked_chart"),
                PipelineStage("Data Agent", "data_result"),
            ],
            entry="Chart Picker Agent",
        )
        decision = router.decide(last_turn, state, registry={"Chart Picker Agent", "Data Agent"})
        ```
    """

    def __init__(
        self,
        pipeline: list[PipelineStage] | None = None,
        entry: str | None = None,
    ):
        self.pipeline = tuple(pipeline or ())
        self.entry = entry

    def decide(
        self,
        turn: Turn | None,
        state: StateStore,
        registry: Collection[str],
    ) -> RouteDecision:
        """
        Pick the next worker(s) or terminate.

        Args:
            turn: The turn that just finished, or None before the first turn
            state: The run's state store
            registry: Names of the workers that can be invoked

        Returns:
            A RouteDecision; never names a worker outside ``registry``
        """
        decision = self._terminal_check(state)
        if decision is not None:
            return decision

        decision = self._pipeline_check(state, registry)
        if decision is not None:
            return decision

        if turn is None:
            if self.entry and self.entry in registry:
                return RouteDecision.to(self.entry, reason="entry")
            logger.warning("No entry worker available", entry=self.entry)
            return RouteDecision.stop("no entry worker")

        decision = self._explicit_route(turn, registry)
        if decision is not None:
            return decision

        if turn.find(DONE_TOOL) is not None:
            return RouteDecision.stop(f"{turn.worker} called done")

        return RouteDecision.stop("no routing signal")

    def _terminal_check(self, state: StateStore) -> RouteDecision | None:
        key = state.terminal_key
        if key is None:
            return None
        state.set(COMPLETED, True)
        if not state.has(RESULT_TYPE):
            state.set(RESULT_TYPE, TERMINAL_RESULT_KEYS[key])
        return RouteDecision.stop(f"terminal result {key!r} is set")

    def _pipeline_check(self, state: StateStore, registry: Collection[str]) -> RouteDecision | None:
        for previous, stage in zip(self.pipeline, self.pipeline[1:]):
            if stage.worker not in registry:
                continue
            if state.has(previous.output_key) and not state.has(stage.output_key):
                return RouteDecision.to(
                    stage.worker,
                    reason=f"{previous.output_key} present, {stage.output_key} missing",
                )
        return None

    def _explicit_route(self, turn: Turn, registry: Collection[str]) -> RouteDecision | None:
        invocation = turn.find(ROUTE_TOOL)
        if invocation is None:
            return None

        target = invocation.arguments.get("agent")
        if not isinstance(target, str) or target not in registry:
            logger.warning("Route to unknown worker", target=target, source=turn.worker)
            return RouteDecision.stop(f"no valid route: unknown worker {target!r}")

        return RouteDecision.to(target, reason=f"{turn.worker} routed to {target}")
