"""
Agents (Workers)

An Agent is a named specialist with an instruction profile and its own
tool set. Invoking it runs exactly one reasoning turn: one call to the
completion service, followed by in-order dispatch of the tool calls it
asked for. Agents hold no per-run state, so one descriptor can serve any
number of turns and concurrent runs.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from switchyard.core.errors import ReasoningServiceError
from switchyard.core.state import StateStore, ToolInvocation, Turn
from switchyard.core.tool import Tool, dispatch, unknown_tool
from switchyard.llm.base import LLMMessage, LLMProvider, ToolDefinition

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Agent:
    """
    A worker descriptor.

    Example:
        ```python
        agent = Agent(
            name="Chart Generator Agent",
            description="Creates charts",
            instructions="You are a chart generation specialist...",
            tools=(generate_chart_tool, done_tool()),
        )
        turn, messages = await agent.run_turn(history, state, llm)
        ```
    """

    name: str
    description: str
    instructions: str
    tools: tuple[Tool, ...] = field(default_factory=tuple)
    tool_choice: str | None = "auto"

    def __post_init__(self) -> None:
        names = [t.name for t in self.tools]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Agent {self.name!r} has duplicate tools: {sorted(duplicates)}")

    def get_tool(self, name: str) -> Tool | None:
        for tool in self.tools:
            if tool.name == name:
                return tool
        return None

    @property
    def tool_names(self) -> list[str]:
        return [t.name for t in self.tools]

    def tool_definitions(self) -> list[ToolDefinition]:
        return [t.definition() for t in self.tools]

    async def run_turn(
        self,
        history: list[LLMMessage],
        state: StateStore,
        llm: LLMProvider,
        timeout: float | None = None,
    ) -> tuple[Turn, list[LLMMessage]]:
        """
        Run one reasoning turn.

        The timeout covers the completion call and tool dispatch together.
        State written by tools that finished before it expired is kept.

        Args:
            history: Full conversation so far (never mutated here)
            state: The run's state store
            llm: Completion service
            timeout: Seconds allowed for the whole turn

        Returns:
            The Turn record and the messages to append to the history

        Raises:
            ReasoningServiceError: The completion service failed
        """
        try:
            return await asyncio.wait_for(self._turn(history, state, llm), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Agent turn timed out", agent=self.name, timeout=timeout)
            turn = Turn(worker=self.name, error=f"Timed out after {timeout}s", timed_out=True)
            return turn, []

    async def _turn(
        self,
        history: list[LLMMessage],
        state: StateStore,
        llm: LLMProvider,
    ) -> tuple[Turn, list[LLMMessage]]:
        messages = [LLMMessage.system(self.instructions), *history]

        try:
            response = await llm.generate(
                messages,
                tools=self.tool_definitions() or None,
                tool_choice=self.tool_choice if self.tools else None,
            )
        except (ReasoningServiceError, asyncio.TimeoutError):
            raise
        except Exception as e:
            raise ReasoningServiceError(
                f"Completion failed for {self.name}: {e}",
                provider=getattr(llm, "provider_name", None),
            ) from e

        invocations: list[ToolInvocation] = []
        for call in response.tool_calls:
            tool = self.get_tool(call.name)
            if tool is None:
                logger.warning("Unknown tool requested", agent=self.name, tool=call.name)
                invocation = unknown_tool(call.name, call.arguments, call.id)
            else:
                invocation = await dispatch(tool, call.arguments, state, call_id=call.id)
            invocations.append(invocation)

        new_messages = [response.to_message()]
        for call, invocation in zip(response.tool_calls, invocations):
            new_messages.append(LLMMessage.tool(invocation.result, name=call.name, tool_call_id=call.id))

        turn = Turn(
            worker=self.name,
            invocations=tuple(invocations),
            content=response.content,
        )
        logger.info(
            "Agent turn finished",
            agent=self.name,
            tools=turn.tool_names,
            failed_tools=[i.tool_name for i in invocations if i.error],
        )
        return turn, new_messages
