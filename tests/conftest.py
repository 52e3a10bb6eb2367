"""
Pytest configuration and shared fixtures for Switchyard tests.
"""

from itertools import count

import pytest
from unittest.mock import AsyncMock, MagicMock

from switchyard.core.config import RunConfig
from switchyard.core.state import StateStore
from switchyard.llm.base import LLMProvider, LLMResponse, ToolCall

_call_ids = count(1)


def call(name, **arguments):
    """A tool call as the completion service would request it."""
    return ToolCall(id=f"call_{next(_call_ids)}", name=name, arguments=arguments)


def reply(*calls, content=""):
    """A completion response carrying ``calls``."""
    return LLMResponse(
        content=content,
        tool_calls=list(calls),
        finish_reason="tool_calls" if calls else "stop",
        model="mock-model",
        provider="mock",
    )


def scripted_llm(script):
    """
    Mock LLM that answers each worker from its own queue.

    ``script`` maps a tool name that identifies the worker (the first
    matching name in the tools the worker offers wins) to the responses
    it returns, in order. A worker whose queue is exhausted keeps getting
    the last response.
    """
    llm = MagicMock(spec=LLMProvider)
    llm.provider_name = "mock"
    llm.model = "mock-model"
    queues = {key: list(responses) for key, responses in script.items()}

    async def mock_generate(messages, tools=None, tool_choice=None, **kwargs):
        offered = {t.name for t in tools or []}
        for key, queue in queues.items():
            if key in offered:
                return queue.pop(0) if len(queue) > 1 else queue[0]
        return reply(content="Nothing to do.")

    llm.generate = AsyncMock(side_effect=mock_generate)
    llm.close = AsyncMock()
    return llm


@pytest.fixture
def run_config():
    """Small iteration bound for tests."""
    return RunConfig(max_iterations=5, turn_timeout=5.0)


@pytest.fixture
def state():
    return StateStore()


@pytest.fixture
def mock_llm():
    """Mock LLM that never calls a tool."""
    llm = MagicMock(spec=LLMProvider)
    llm.provider_name = "mock"
    llm.model = "mock-model"

    async def mock_generate(messages, tools=None, tool_choice=None, **kwargs):
        return LLMResponse(
            content="Mock response",
            model="mock-model",
            provider="mock",
        )

    llm.generate = AsyncMock(side_effect=mock_generate)
    llm.close = AsyncMock()

    return llm


@pytest.fixture
def picked_bar_chart():
    """``picked_chart`` as the chart picker writes it."""
    return {
        "chart_type": "bar",
        "reasoning": "Comparing categories",
        "schema": {
            "type": "bar",
            "title": "Revenue by Region",
            "data": [{"region": "North", "revenue": 100}],
            "x_key": "region",
            "y_key": "revenue",
            "config": {},
            "variant": None,
        },
        "data_requirements": {
            "minimum_data_points": 3,
            "required_fields": ["region", "revenue"],
            "optional_fields": [],
            "data_example": [{"region": "North", "revenue": 100}],
        },
    }


@pytest.fixture
def pick_bar_chart_args():
    """Arguments of a valid pick_chart call."""
    return {
        "chart_type": "bar",
        "reasoning": "Comparing categories",
        "chart_schema": {
            "type": "bar",
            "title": "Revenue by Region",
            "x_key": "region",
            "y_key": "revenue",
        },
        "data_requirements": {
            "minimum_data_points": 3,
            "required_fields": ["region", "revenue"],
        },
    }
