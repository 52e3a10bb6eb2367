"""
Wire Schemas

Request, response and result-payload models exchanged with the caller.
Payloads use the camelCase keys the chat front end renders from.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator

ChartKind = Literal[
    "bar",
    "bar-horizontal",
    "bar-stacked",
    "bar-multiple",
    "line",
    "line-multiple",
    "line-step",
    "area",
    "area-stacked",
    "area-step",
    "pie",
    "pie-donut",
    "pie-donut-text",
    "radar",
    "radial",
]

CHART_KINDS: tuple[str, ...] = get_args(ChartKind)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# Result payloads

class SeriesStyle(_WireModel):
    label: str
    color: str


class ChartSpec(_WireModel):
    """A renderable chart."""

    type: str
    title: str
    data: list[dict[str, Any]]
    x_key: str = Field(alias="xKey")
    y_key: str = Field(alias="yKey")
    config: dict[str, SeriesStyle] = Field(default_factory=dict)
    variant: str | None = None


class UIComponent(_WireModel):
    """One node of a UI component tree."""

    type: str
    props: dict[str, Any] = Field(default_factory=dict)
    children: list[UIComponent] | None = None


class UISpec(_WireModel):
    """A renderable UI layout."""

    action: str
    title: str | None = None
    components: list[UIComponent] = Field(default_factory=list)
    layout: str = "vertical"
    theme: str = "default"


class ConversationMessage(_WireModel):
    user: str | None = None
    text: str | None = None
    ts: str | None = None


class ConversationSpec(_WireModel):
    """Retrieved chat history for one channel."""

    channel: str
    messages: list[ConversationMessage] = Field(default_factory=list)


# Request / response

class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ToolCallPayload(_WireModel):
    """The tagged payload attached to an assistant reply."""

    type: Literal["chart", "component", "conversation"]
    name: str
    data: dict[str, Any]


class ChatMessage(_WireModel):
    role: ChatRole
    content: str
    tool_call: ToolCallPayload | None = Field(default=None, alias="toolCall")


class ChatRequest(_WireModel):
    """
    A chat request.

    The conversation must be non-empty and end with a non-empty user
    message.
    """

    messages: list[ChatMessage] = Field(min_length=1)

    @field_validator("messages")
    @classmethod
    def _latest_is_user(cls, messages: list[ChatMessage]) -> list[ChatMessage]:
        latest = messages[-1]
        if latest.role != ChatRole.USER:
            raise ValueError("latest message must be from user")
        if not latest.content.strip():
            raise ValueError("latest message must not be empty")
        return messages


class ChatResponse(_WireModel):
    message: ChatMessage
    status: str = "completed"
    run_id: str | None = Field(default=None, alias="runId")
