"""
Provider Factory

Builds an LLMProvider from configuration, detecting the vendor from the
explicit setting, the model name, or whichever API key is present.
"""

from __future__ import annotations

import os

import structlog

from switchyard.core.config import LLMConfig
from switchyard.llm.base import LLMProvider
from switchyard.llm.providers import AnthropicProvider, OpenAIProvider

logger = structlog.get_logger(__name__)


def _detect_provider(provider: str | None, base_url: str | None, model: str | None) -> str:
    if provider:
        return provider.lower()
    if base_url:
        return "openai"
    if model:
        lowered = model.lower()
        if lowered.startswith("claude"):
            return "anthropic"
        if lowered.startswith(("gpt", "o1", "o3", "o4")):
            return "openai"
    if os.getenv("ANTHROPIC_API_KEY"):
        return "anthropic"
    if os.getenv("OPENAI_API_KEY"):
        return "openai"
    # Claude by default
    return "anthropic"


def create_llm(config: LLMConfig | None = None) -> LLMProvider:
    """
    Create a completion-service provider.

    Args:
        config: LLM settings; defaults detect everything from the environment

    Returns:
        A ready-to-use provider
    """
    config = config or LLMConfig()
    provider = _detect_provider(config.provider, config.base_url, config.model)

    if provider == "anthropic":
        llm: LLMProvider = AnthropicProvider(
            model=config.model or AnthropicProvider.DEFAULT_MODEL,
            api_key=config.api_key,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
    elif provider == "openai":
        llm = OpenAIProvider(
            model=config.model or OpenAIProvider.DEFAULT_MODEL,
            api_key=config.api_key,
            base_url=config.base_url,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )
    else:
        raise ValueError(f"Unknown LLM provider: {provider}")

    logger.info("LLM provider created", provider=llm.provider_name, model=llm.model)
    return llm
