"""
Conversation History Agent

Single-shot worker that retrieves chat history from a team messaging
service. Writes the ``conversation_result`` terminal key.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog
from pydantic import Field

from switchyard.core.agent import Agent
from switchyard.core.config import SlackConfig
from switchyard.core.errors import ExternalServiceError
from switchyard.core.state import CONVERSATION_RESULT, RESULT_TYPE, StateStore
from switchyard.core.tool import Tool, ToolParams, done_tool
from switchyard.schemas import ConversationMessage, ConversationSpec

logger = structlog.get_logger(__name__)

NAME = "Conversation History Agent"

_CHANNEL_ID = re.compile(r"^[CGD][A-Z0-9]+$")

INSTRUCTIONS = """You retrieve conversation history from the team's chat channels.

- Use list_channels when you are unsure which channel the user means.
- Use get_conversation_history to fetch the messages of one channel.
Once the history is retrieved, call done with a short summary of what it contains."""


class ConversationSource(ABC):
    """Read-only access to chat channels."""

    @abstractmethod
    async def list_channels(self) -> list[dict[str, str]]:
        """Return ``{"id", "name"}`` for every visible channel."""
        ...

    @abstractmethod
    async def history(self, channel: str, limit: int) -> list[ConversationMessage]:
        """Return up to ``limit`` messages from ``channel``, newest first."""
        ...

    async def close(self) -> None:
        pass


class SlackConversationSource(ConversationSource):
    """
    Slack Web API source.

    Channels may be given by id (``C0123``) or by name (``#general`` or
    ``general``). Names are looked up through conversations.list on every
    call, following the pagination cursor.
    """

    def __init__(self, config: SlackConfig):
        if not config.token:
            raise ValueError("SlackConversationSource requires a bot token")
        self.config = config
        self._session: httpx.AsyncClient | None = None

    def _get_session(self) -> httpx.AsyncClient:
        if self._session is None:
            self._session = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={"Authorization": f"Bearer {self.config.token}"},
                timeout=self.config.timeout,
            )
        return self._session

    async def _call(self, method: str, **params: Any) -> dict[str, Any]:
        try:
            response = await self._get_session().get(f"/{method}", params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError("slack", str(e), status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError("slack", str(e)) from e

        body = response.json()
        if not body.get("ok"):
            raise ExternalServiceError("slack", f"{method} failed: {body.get('error', 'unknown error')}")
        return body

    async def list_channels(self) -> list[dict[str, str]]:
        channels: list[dict[str, str]] = []
        cursor = None
        while True:
            params: dict[str, Any] = {"exclude_archived": "true", "limit": 200}
            if cursor:
                params["cursor"] = cursor
            body = await self._call("conversations.list", **params)
            channels.extend({"id": c["id"], "name": c.get("name", c["id"])} for c in body.get("channels", []))
            cursor = (body.get("response_metadata") or {}).get("next_cursor")
            if not cursor:
                return channels

    async def _resolve(self, channel: str) -> str:
        if _CHANNEL_ID.match(channel):
            return channel
        name = channel.lstrip("#")
        for c in await self.list_channels():
            if c["name"] == name:
                return c["id"]
        raise ExternalServiceError("slack", f"channel not found: {channel}")

    async def history(self, channel: str, limit: int) -> list[ConversationMessage]:
        channel_id = await self._resolve(channel)
        body = await self._call("conversations.history", channel=channel_id, limit=limit)
        return [
            ConversationMessage(user=m.get("user") or m.get("username"), text=m.get("text"), ts=m.get("ts"))
            for m in body.get("messages", [])
        ]

    async def close(self) -> None:
        if self._session is not None:
            await self._session.aclose()
            self._session = None


class ListChannelsParams(ToolParams):
    pass


class HistoryParams(ToolParams):
    channel: str = Field(min_length=1, description="Channel id or name, e.g. #general")
    limit: int = Field(default=20, ge=1, le=200, description="Maximum number of messages to fetch")


def create_history_agent(source: ConversationSource | None = None) -> Agent:
    """Build the history worker around a conversation source."""

    def _require_source() -> ConversationSource:
        if source is None:
            raise ExternalServiceError("history", "no conversation source is configured")
        return source

    async def list_channels(params: ListChannelsParams, state: StateStore) -> str:
        channels = await _require_source().list_channels()
        if not channels:
            return "No channels are visible."
        return "Channels: " + ", ".join(f"#{c['name']} ({c['id']})" for c in channels)

    async def get_conversation_history(params: HistoryParams, state: StateStore) -> str:
        stored = state.get(CONVERSATION_RESULT)
        if stored is not None and stored.get("channel") == params.channel:
            return f"Already retrieved {len(stored.get('messages', []))} messages from {params.channel}."

        messages = await _require_source().history(params.channel, params.limit)
        spec = ConversationSpec(channel=params.channel, messages=messages)
        state.set(CONVERSATION_RESULT, spec.model_dump(by_alias=True, exclude_none=True))
        state.set(RESULT_TYPE, "conversation")
        logger.info("Conversation history retrieved", channel=params.channel, messages=len(messages))
        return f"Retrieved {len(messages)} messages from {params.channel}."

    return Agent(
        name=NAME,
        description="Retrieves and summarizes chat channel history",
        instructions=INSTRUCTIONS,
        tools=(
            Tool("list_channels", "List the chat channels the assistant can read",
                 ListChannelsParams, list_channels),
            Tool("get_conversation_history", "Fetch recent messages from a chat channel",
                 HistoryParams, get_conversation_history),
            done_tool("Call this when the history has been retrieved"),
        ),
    )
