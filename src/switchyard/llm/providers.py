"""
Completion Service Providers

Concrete LLMProvider implementations on top of the vendor SDKs. SDK
failures are translated into ReasoningServiceError so the run loop can
report them as service errors rather than leaking vendor exceptions.
"""

from __future__ import annotations

import time
from typing import Any

import anthropic
import openai
import structlog

from switchyard.core.errors import ReasoningServiceError
from switchyard.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    MessageRole,
    ToolCall,
    ToolDefinition,
)

logger = structlog.get_logger(__name__)


class AnthropicProvider(LLMProvider):
    """
    Anthropic Messages API provider.

    Example:
        ```python
        llm = AnthropicProvider(model="claude-sonnet-4-20250514")
        response = await llm.generate([LLMMessage.user("Hi")])
        ```
    """

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(model=model, **kwargs)
        self.api_key = api_key
        self._client: Any = None

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self.api_key)
        return self._client

    def format_messages(self, messages: list[LLMMessage]) -> tuple[str, list[dict[str, Any]]]:
        """
        Split out the system prompt and convert the rest to content blocks.

        Consecutive tool results are folded into one user message, which is
        how the Messages API expects them after a multi-tool assistant turn.
        """
        system_parts: list[str] = []
        formatted: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                system_parts.append(msg.content)
                continue

            if msg.role == MessageRole.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                last = formatted[-1] if formatted else None
                if last and last["role"] == "user" and isinstance(last["content"], list) \
                        and all(b.get("type") == "tool_result" for b in last["content"]):
                    last["content"].append(block)
                else:
                    formatted.append({"role": "user", "content": [block]})
                continue

            if msg.role == MessageRole.ASSISTANT and msg.tool_calls:
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for tc in msg.tool_calls:
                    blocks.append({
                        "type": "tool_use",
                        "id": tc.id,
                        "name": tc.name,
                        "input": tc.arguments,
                    })
                formatted.append({"role": "assistant", "content": blocks})
                continue

            formatted.append({"role": msg.role.value, "content": msg.content})

        return "\n\n".join(system_parts), formatted

    @staticmethod
    def _tool_choice(tool_choice: str | dict | None) -> dict[str, Any] | None:
        if tool_choice is None or isinstance(tool_choice, dict):
            return tool_choice
        if tool_choice == "auto":
            return {"type": "auto"}
        if tool_choice in ("any", "required"):
            return {"type": "any"}
        if tool_choice == "none":
            return {"type": "none"}
        return {"type": "tool", "name": tool_choice}

    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        tool_choice: str | dict | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        system, formatted = self.format_messages(messages)

        request: dict[str, Any] = {
            "model": self.model,
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
            "temperature": kwargs.get("temperature", self.temperature),
            "messages": formatted,
        }
        if system:
            request["system"] = system
        if tools:
            request["tools"] = [t.to_anthropic_format() for t in tools]
            choice = self._tool_choice(tool_choice)
            if choice:
                request["tool_choice"] = choice

        start = time.perf_counter()
        try:
            response = await self._get_client().messages.create(**request)
        except anthropic.APIStatusError as e:
            raise ReasoningServiceError(
                f"Anthropic API error: {e.message}",
                provider=self.provider_name,
                status_code=e.status_code,
            ) from e
        except anthropic.APIError as e:
            raise ReasoningServiceError(
                f"Anthropic API error: {e}", provider=self.provider_name
            ) from e

        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                args = block.input if isinstance(block.input, dict) else {"__raw__": block.input}
                tool_calls.append(ToolCall(id=block.id, name=block.name, arguments=args))

        return LLMResponse(
            id=response.id,
            content="".join(text_parts),
            tool_calls=tool_calls,
            finish_reason="tool_calls" if response.stop_reason == "tool_use" else (response.stop_reason or "stop"),
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
            model=response.model,
            provider=self.provider_name,
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None


class OpenAIProvider(LLMProvider):
    """
    OpenAI Chat Completions provider.

    Also serves OpenAI-compatible servers (vLLM, LiteLLM, ...) through
    ``base_url``.
    """

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        base_url: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(model=model, **kwargs)
        self.api_key = api_key
        self.base_url = base_url
        self._client: Any = None

    @property
    def provider_name(self) -> str:
        return "openai"

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    @staticmethod
    def _tool_choice(tool_choice: str | dict | None) -> Any:
        if tool_choice is None or isinstance(tool_choice, dict):
            return tool_choice
        if tool_choice in ("auto", "none", "required"):
            return tool_choice
        if tool_choice == "any":
            return "required"
        return {"type": "function", "function": {"name": tool_choice}}

    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        tool_choice: str | dict | None = None,
        **kwargs: Any,
    ) -> LLMResponse:
        request: dict[str, Any] = {
            "model": self.model,
            "messages": [m.to_openai_format() for m in messages],
            "max_tokens": kwargs.get("max_tokens", self.max_tokens),
            "temperature": kwargs.get("temperature", self.temperature),
        }
        if tools:
            request["tools"] = [t.to_openai_format() for t in tools]
            choice = self._tool_choice(tool_choice)
            if choice:
                request["tool_choice"] = choice

        start = time.perf_counter()
        try:
            response = await self._get_client().chat.completions.create(**request)
        except openai.APIStatusError as e:
            raise ReasoningServiceError(
                f"OpenAI API error: {e.message}",
                provider=self.provider_name,
                status_code=e.status_code,
            ) from e
        except openai.APIError as e:
            raise ReasoningServiceError(
                f"OpenAI API error: {e}", provider=self.provider_name
            ) from e

        if not response.choices:
            raise ReasoningServiceError("Completion returned no choices", provider=self.provider_name)

        choice = response.choices[0]
        tool_calls = [
            ToolCall.from_openai_format({
                "id": tc.id,
                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
            })
            for tc in (choice.message.tool_calls or [])
        ]

        usage = response.usage
        return LLMResponse(
            id=response.id,
            content=choice.message.content or "",
            tool_calls=tool_calls,
            finish_reason=choice.finish_reason or "stop",
            prompt_tokens=usage.prompt_tokens if usage else 0,
            completion_tokens=usage.completion_tokens if usage else 0,
            model=response.model,
            provider=self.provider_name,
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
