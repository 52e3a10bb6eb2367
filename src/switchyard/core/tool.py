"""
Tools and Tool Dispatch

A Tool is a named, schema-validated operation owned by one worker. The
completion service is an untrusted caller, so arguments are validated
strictly against the tool's pydantic model before the handler runs, and
handler failures are turned into textual results instead of exceptions.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from switchyard.core.errors import ToolValidationError
from switchyard.core.state import COMPLETED, COMPLETION_MESSAGE, StateStore, ToolInvocation
from switchyard.llm.base import ToolDefinition

logger = structlog.get_logger(__name__)

Handler = Callable[[Any, StateStore], "str | Awaitable[str]"]

DONE_TOOL = "done"
ROUTE_TOOL = "route_to_agent"


class ToolParams(BaseModel):
    """Base class for tool parameter models. Unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


@dataclass(frozen=True)
class Tool:
    """
    A tool a worker can call.

    Example:
        ```python
        class EchoParams(ToolParams):
            text: str

        def echo(params: EchoParams, state: StateStore) -> str:
            state.set("echoed", params.text)
            return params.text

        tool = Tool("echo", "Echo the text", EchoParams, echo)
        invocation = await dispatch(tool, {"text": "hi"}, state)
        ```
    """

    name: str
    description: str
    params: type[BaseModel]
    handler: Handler
    version: str = "1"

    def definition(self) -> ToolDefinition:
        """Render the tool for the completion service."""
        return ToolDefinition(
            name=self.name,
            description=self.description,
            parameters=self.params.model_json_schema(),
            version=self.version,
        )

    def validate(self, arguments: Any) -> BaseModel:
        """
        Validate raw arguments.

        Raises:
            ToolValidationError: Arguments do not match the schema
        """
        if not isinstance(arguments, dict):
            raise ToolValidationError(
                self.name,
                [{"loc": (), "msg": f"expected an object, got {type(arguments).__name__}"}],
            )
        try:
            return self.params.model_validate(arguments)
        except ValidationError as e:
            raise ToolValidationError(self.name, e.errors()) from e


async def dispatch(
    tool: Tool,
    arguments: Any,
    state: StateStore,
    call_id: str | None = None,
) -> ToolInvocation:
    """
    Validate and execute one tool call.

    Validation failures never reach the handler and leave the state
    untouched. Handler exceptions are logged and surfaced as the
    invocation's result text so the completion service can react to them
    on its next turn.
    """
    raw_args = arguments if isinstance(arguments, dict) else {"__raw__": arguments}

    try:
        params = tool.validate(arguments)
    except ToolValidationError as e:
        logger.warning("Tool arguments rejected", tool=tool.name, errors=e.summary)
        return ToolInvocation(
            tool_name=tool.name,
            arguments=raw_args,
            result=f"Validation error: {e.summary}",
            error=True,
            call_id=call_id,
        )

    start = time.perf_counter()
    try:
        result = tool.handler(params, state)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        logger.exception("Tool handler failed", tool=tool.name)
        return ToolInvocation(
            tool_name=tool.name,
            arguments=raw_args,
            result=f"Error: {e}",
            error=True,
            call_id=call_id,
        )

    logger.debug(
        "Tool executed",
        tool=tool.name,
        duration_ms=round((time.perf_counter() - start) * 1000, 2),
    )
    return ToolInvocation(
        tool_name=tool.name,
        arguments=raw_args,
        result=result if isinstance(result, str) else str(result),
        call_id=call_id,
    )


def unknown_tool(name: str, arguments: Any, call_id: str | None = None) -> ToolInvocation:
    """Invocation record for a call to a tool the worker does not own."""
    return ToolInvocation(
        tool_name=name,
        arguments=arguments if isinstance(arguments, dict) else {"__raw__": arguments},
        result=f"Validation error: unknown tool {name!r}",
        error=True,
        call_id=call_id,
    )


def done_tool(
    description: str = "Call this when your work is complete",
    field: str = "message",
    field_description: str = "Completion message to user",
) -> Tool:
    """
    The explicit end-of-work tool every worker carries.

    Sets ``completed`` and stores the text under ``completion_message``.
    """
    params = create_model(
        "DoneParams",
        __base__=ToolParams,
        **{field: (str, Field(description=field_description))},
    )

    def handler(p: BaseModel, state: StateStore) -> str:
        text = getattr(p, field)
        state.set(COMPLETED, True)
        state.set(COMPLETION_MESSAGE, text)
        return text

    return Tool(DONE_TOOL, description, params, handler)


def route_tool(worker_names: list[str]) -> Tool:
    """
    ``route_to_agent``: hand the request to another worker.

    The router reads the ``agent`` argument of a successful call; the
    schema restricts it to ``worker_names``.
    """
    if not worker_names:
        raise ValueError("route_to_agent needs at least one destination")

    params = create_model(
        "RouteParams",
        __base__=ToolParams,
        agent=(Literal[tuple(worker_names)], Field(description="The agent to route the request to")),
        reasoning=(str, Field(description="Explanation for why this agent was chosen")),
    )

    def handler(p: Any, state: StateStore) -> str:
        state.set("routed_to", p.agent)
        state.set("routing_reason", p.reasoning)
        return f"Routing to {p.agent}: {p.reasoning}"

    return Tool(ROUTE_TOOL, "Route the request to the appropriate specialist agent", params, handler)
