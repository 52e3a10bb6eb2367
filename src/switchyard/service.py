"""
Chat Service

The boundary between the HTTP layer and the agent network: validates a
chat request, runs it, and shapes the outcome into one assistant
message with an optional tagged payload.
"""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

import structlog
from pydantic import ValidationError

from switchyard.core.errors import RequestValidationError
from switchyard.core.network import Network, RunResult
from switchyard.core.state import RunStatus
from switchyard.llm.base import LLMMessage
from switchyard.schemas import ChatMessage, ChatRequest, ChatResponse, ChatRole, ToolCallPayload

logger = structlog.get_logger(__name__)

# result_type -> tool name the front end renders it with
PAYLOAD_TOOL_NAMES = {
    "chart": "generate_chart",
    "component": "generate_ui",
    "conversation": "get_conversation_history",
}


class ChatService:
    """
    Runs chat requests through one network.

    Example:
        ```python
        service = ChatService(build_assistant_network(create_llm()))
        response = await service.respond([{"role": "user", "content": "hi"}])
        print(response.message.content)
        ```
    """

    def __init__(self, network: Network, resources: Iterable[Any] = ()):
        self.network = network
        self.resources = list(resources)

    async def close(self) -> None:
        """Close the completion service client and any other clients the service owns."""
        await self.network.llm.close()
        for resource in self.resources:
            await resource.close()

    @staticmethod
    def parse(payload: Any) -> ChatRequest:
        """
        Validate a raw request body (a message list or ``{"messages": [...]}``).

        Raises:
            RequestValidationError: The conversation is empty or does not
                end with a non-empty user message
        """
        if isinstance(payload, ChatRequest):
            return payload
        body = {"messages": payload} if isinstance(payload, list) else payload
        try:
            return ChatRequest.model_validate(body)
        except ValidationError as e:
            details = "; ".join(err["msg"] for err in e.errors())
            raise RequestValidationError(f"Invalid chat request: {details}") from e

    async def respond(
        self,
        messages: Any,
        cancel_event: asyncio.Event | None = None,
    ) -> ChatResponse:
        """
        Answer the latest user message.

        Raises:
            RequestValidationError: Bad request; the network is not run
            ReasoningServiceError: The completion service failed
        """
        request = self.parse(messages)
        history = [
            LLMMessage.user(m.content) if m.role == ChatRole.USER else LLMMessage.assistant(m.content)
            for m in request.messages
        ]

        result = await self.network.run(history, cancel_event=cancel_event)
        return self.to_response(result)

    @staticmethod
    def to_response(result: RunResult) -> ChatResponse:
        tool_call = None
        if result.result_type is not None and isinstance(result.payload, dict):
            tool_call = ToolCallPayload(
                type=result.result_type,
                name=PAYLOAD_TOOL_NAMES[result.result_type],
                data=result.payload,
            )

        status = "completed" if result.status == RunStatus.COMPLETED else "incomplete"
        if status == "incomplete":
            logger.warning("Run did not complete", run_id=result.run_id, status=result.status.value)

        return ChatResponse(
            message=ChatMessage(role=ChatRole.ASSISTANT, content=result.message, tool_call=tool_call),
            status=status,
            run_id=result.run_id,
        )
