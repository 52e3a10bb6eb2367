"""
Completion Service Interface

The orchestration core never talks to a model API directly. Workers hand
their conversation and tool definitions to an LLMProvider and get back
text plus tool-call requests; any object implementing this interface
(including a test double) can drive a run.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from uuid import uuid4

import structlog

logger = structlog.get_logger(__name__)


class MessageRole(str, Enum):
    """Role of a message in the conversation."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass
class ToolCall:
    """
    A tool call requested by the completion service.
    """
    id: str
    name: str
    arguments: dict[str, Any]

    def to_openai_format(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {
                "name": self.name,
                "arguments": json.dumps(self.arguments),
            },
        }

    @classmethod
    def from_openai_format(cls, data: dict[str, Any]) -> ToolCall:
        """
        Create from OpenAI tool call format.

        Unparseable argument strings become a non-object payload so the
        dispatcher rejects them as a validation error instead of running
        the handler with empty arguments.
        """
        func = data.get("function", {})
        args_str = func.get("arguments") or "{}"
        try:
            args = json.loads(args_str)
        except json.JSONDecodeError:
            logger.warning("Malformed tool arguments", tool=func.get("name"), raw=args_str[:200])
            args = {"__raw__": args_str}
        if not isinstance(args, dict):
            args = {"__raw__": args}

        return cls(
            id=data.get("id") or str(uuid4()),
            name=func.get("name", ""),
            arguments=args,
        )


@dataclass
class LLMMessage:
    """
    A message in the conversation.

    Unified format that works across providers.
    """
    role: MessageRole
    content: str

    # For tool messages
    name: str | None = None
    tool_call_id: str | None = None

    # For assistant messages with tool calls
    tool_calls: list[ToolCall] | None = None

    def to_openai_format(self) -> dict[str, Any]:
        msg: dict[str, Any] = {
            "role": self.role.value,
            "content": self.content,
        }
        if self.name and self.role == MessageRole.TOOL:
            msg["name"] = self.name
        if self.tool_call_id:
            msg["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            msg["tool_calls"] = [tc.to_openai_format() for tc in self.tool_calls]
        return msg

    @classmethod
    def system(cls, content: str) -> LLMMessage:
        return cls(role=MessageRole.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> LLMMessage:
        return cls(role=MessageRole.USER, content=content)

    @classmethod
    def assistant(cls, content: str, tool_calls: list[ToolCall] | None = None) -> LLMMessage:
        return cls(role=MessageRole.ASSISTANT, content=content, tool_calls=tool_calls)

    @classmethod
    def tool(cls, content: str, name: str, tool_call_id: str) -> LLMMessage:
        return cls(
            role=MessageRole.TOOL,
            content=content,
            name=name,
            tool_call_id=tool_call_id,
        )


@dataclass
class ToolDefinition:
    """
    Definition of a tool exposed to the completion service.

    ``parameters`` is a JSON Schema object; ``version`` identifies the
    schema revision so callers can detect contract changes.
    """
    name: str
    description: str
    parameters: dict[str, Any]
    version: str = "1"

    def to_openai_format(self) -> dict[str, Any]:
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_anthropic_format(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.parameters,
        }


@dataclass
class LLMResponse:
    """
    Response from the completion service.
    """
    id: str = field(default_factory=lambda: str(uuid4()))

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)

    # stop, tool_calls, length, content_filter
    finish_reason: str = "stop"

    prompt_tokens: int = 0
    completion_tokens: int = 0

    model: str = ""
    provider: str = ""
    latency_ms: float = 0.0

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0

    def to_message(self) -> LLMMessage:
        """Convert to an LLMMessage for conversation history."""
        return LLMMessage.assistant(
            content=self.content,
            tool_calls=self.tool_calls if self.tool_calls else None,
        )


class LLMProvider(ABC):
    """
    Abstract base class for completion services.

    Example implementation:
        ```python
        class MyProvider(LLMProvider):
            provider_name = "mine"

            async def generate(self, messages, tools=None, tool_choice=None, **kwargs):
                response = await my_api.chat(messages)
                return LLMResponse(content=response.text)
        ```
    """

    def __init__(
        self,
        model: str,
        temperature: float = 0.2,
        max_tokens: int = 4096,
        **kwargs: Any,
    ):
        """
        Initialize the provider.

        Args:
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            **kwargs: Provider-specific options
        """
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.options = kwargs

    @property
    @abstractmethod
    def provider_name(self) -> str:
        ...

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        tool_choice: str | dict | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        """
        Run one completion.

        Args:
            messages: Conversation history, system message first
            tools: Tools the model may call
            tool_choice: "auto", "any"/"required", "none", or a specific tool

        Returns:
            Text content and requested tool calls

        Raises:
            ReasoningServiceError: The service failed or returned unusable output
        """
        ...

    async def close(self) -> None:
        """Close any open connections."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(model={self.model!r})"
