"""
Completion Service Layer

Unified interface to the model that turns a worker's conversation into
tool-call requests:
- Anthropic Messages API
- OpenAI Chat Completions (and compatible servers)
"""

from switchyard.llm.base import (
    LLMMessage,
    LLMProvider,
    LLMResponse,
    MessageRole,
    ToolCall,
    ToolDefinition,
)
from switchyard.llm.factory import create_llm
from switchyard.llm.providers import AnthropicProvider, OpenAIProvider

__all__ = [
    # Base
    "LLMProvider",
    "LLMResponse",
    "LLMMessage",
    "MessageRole",
    "ToolDefinition",
    "ToolCall",
    # Factory
    "create_llm",
    # Providers
    "AnthropicProvider",
    "OpenAIProvider",
]
