"""
Agent Network and Run Loop

A Network wires a fixed set of agents to a router and a completion
service. ``run`` drives one request through

    INIT -> ROUTING -> WORKER_TURN -> (ROUTING | TERMINATED)

with a hard bound on worker turns, cooperative cancellation between
iterations, and a per-turn timeout. Each run gets its own StateStore and
history, so one Network can serve concurrent runs.
"""

from __future__ import annotations

import asyncio
from typing import Any
from uuid import uuid4

import structlog
from pydantic import BaseModel, ConfigDict, Field

from switchyard.core.agent import Agent
from switchyard.core.config import RunConfig
from switchyard.core.router import Router
from switchyard.core.state import (
    COMPLETION_MESSAGE,
    FINAL_SUMMARY,
    REQUEST,
    TERMINAL_RESULT_KEYS,
    RunPhase,
    RunStatus,
    StateStore,
    Turn,
)
from switchyard.llm.base import LLMMessage, LLMProvider, MessageRole

logger = structlog.get_logger(__name__)

DEFAULT_MESSAGE = "I've processed your request!"
NO_WORKER_MESSAGE = "No worker was available to handle the request."


class RunResult(BaseModel):
    """Final outcome of one run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    status: RunStatus
    message: str
    result_type: str | None = None
    payload: Any = None
    turns: tuple[Turn, ...] = ()
    iterations: int = 0
    reason: str = ""
    state: dict[str, Any] = Field(default_factory=dict)

    @property
    def completed(self) -> bool:
        return self.status == RunStatus.COMPLETED

    @property
    def has_payload(self) -> bool:
        return self.result_type is not None

    @property
    def workers(self) -> list[str]:
        """Worker names in the order they ran."""
        return [t.worker for t in self.turns]


class Network:
    """
    A router plus the agents it can dispatch to.

    Example:
        ```python
        network = Network(
            name="charts",
            agents=[picker, data, cleaner, chart],
            router=Router(pipeline=CHART_PIPELINE, entry=picker.name),
            llm=create_llm(),
        )
        result = await network.run("show me a bar chart of Q1 revenue by region")
        ```
    """

    def __init__(
        self,
        name: str,
        agents: list[Agent],
        router: Router,
        llm: LLMProvider,
        config: RunConfig | None = None,
    ):
        self.name = name
        self.router = router
        self.llm = llm
        self.config = config or RunConfig()

        self._agents: dict[str, Agent] = {}
        for agent in agents:
            if agent.name in self._agents:
                raise ValueError(f"Duplicate agent name: {agent.name!r}")
            self._agents[agent.name] = agent

    @property
    def agents(self) -> dict[str, Agent]:
        return dict(self._agents)

    @property
    def registry(self) -> frozenset[str]:
        return frozenset(self._agents)

    async def run(
        self,
        request: str | list[LLMMessage],
        cancel_event: asyncio.Event | None = None,
    ) -> RunResult:
        """
        Route a request through the network until it terminates.

        Args:
            request: The user's text, or the prior conversation ending in a
                user message
            cancel_event: Set it to abort the run before the next routing step

        Returns:
            The run's outcome

        Raises:
            ReasoningServiceError: The completion service failed during a turn
        """
        run_id = str(uuid4())
        with structlog.contextvars.bound_contextvars(run_id=run_id, network=self.name):
            return await self._run(run_id, request, cancel_event)

    async def _run(
        self,
        run_id: str,
        request: str | list[LLMMessage],
        cancel_event: asyncio.Event | None,
    ) -> RunResult:
        # INIT
        history = [LLMMessage.user(request)] if isinstance(request, str) else list(request)
        state = StateStore()
        state.set(REQUEST, _latest_user_text(history))
        turns: list[Turn] = []
        iterations = 0
        last_turn: Turn | None = None

        logger.info("Run started", request=state.get(REQUEST)[:200])
        phase = RunPhase.ROUTING
        status = RunStatus.COMPLETED
        reason = ""

        while phase != RunPhase.TERMINATED:
            # ROUTING
            if cancel_event is not None and cancel_event.is_set():
                status, reason = RunStatus.CANCELLED, "cancelled"
                phase = RunPhase.TERMINATED
                break

            decision = self.router.decide(last_turn, state, self.registry)
            if decision.terminate:
                reason = decision.reason
                phase = RunPhase.TERMINATED
                break

            logger.debug("Routing decision", workers=list(decision.workers), reason=decision.reason)

            # WORKER_TURN
            phase = RunPhase.WORKER_TURN
            for worker in decision.workers:
                if iterations >= self.config.max_iterations:
                    logger.warning("Iteration limit reached", max_iterations=self.config.max_iterations)
                    status, reason = RunStatus.MAX_ITERATIONS, "max iterations exceeded"
                    phase = RunPhase.TERMINATED
                    break

                iterations += 1
                turn, messages = await self._agents[worker].run_turn(
                    history, state, self.llm, timeout=self.config.turn_timeout
                )
                history.extend(messages)
                turns.append(turn)
                last_turn = turn
            else:
                phase = RunPhase.ROUTING

        result = self._assemble(run_id, state, status, reason, turns, iterations)
        logger.info(
            "Run finished",
            status=result.status.value,
            iterations=iterations,
            result_type=result.result_type,
            reason=reason,
        )
        return result

    def _assemble(
        self,
        run_id: str,
        state: StateStore,
        status: RunStatus,
        reason: str,
        turns: list[Turn],
        iterations: int,
    ) -> RunResult:
        key = state.terminal_key
        result_type = TERMINAL_RESULT_KEYS[key] if key else None
        payload = state.get(key) if key else None

        if status == RunStatus.MAX_ITERATIONS:
            message = (
                "I couldn't complete your request: the agents did not finish "
                f"within {self.config.max_iterations} steps."
            )
        elif status == RunStatus.CANCELLED:
            message = "The request was cancelled before it finished."
        elif not turns:
            message = NO_WORKER_MESSAGE
        else:
            last_content = next((t.content for t in reversed(turns) if t.content), "")
            message = (
                state.get(COMPLETION_MESSAGE)
                or state.get(FINAL_SUMMARY)
                or last_content
                or DEFAULT_MESSAGE
            )

        return RunResult(
            run_id=run_id,
            status=status,
            message=message,
            result_type=result_type,
            payload=payload,
            turns=tuple(turns),
            iterations=iterations,
            reason=reason,
            state=state.snapshot(),
        )


def _latest_user_text(history: list[LLMMessage]) -> str:
    for msg in reversed(history):
        if msg.role == MessageRole.USER:
            return msg.content
    return ""
