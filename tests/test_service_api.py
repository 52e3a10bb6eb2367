"""
Tests for the chat service boundary and the HTTP API.
"""

import pytest
from fastapi.testclient import TestClient
from unittest.mock import AsyncMock, MagicMock

from conftest import call, reply, scripted_llm
from switchyard.api import build_service, create_app
from switchyard.core.config import LLMConfig, RunConfig, SlackConfig, SwitchyardConfig, TransformConfig
from switchyard.core.errors import ReasoningServiceError, RequestValidationError
from switchyard.llm.base import LLMProvider
from switchyard.service import ChatService
from switchyard.workers import BemClient, SlackConversationSource, build_assistant_network


def ui_llm():
    return scripted_llm({
        "route_to_agent": [reply(call("route_to_agent", agent="UI Generator Agent", reasoning="a form"))],
        "generate_ui": [reply(
            call("generate_ui", type="form", title="Login", components=[{"type": "Input"}]),
            call("done", message="Here's a login form."),
        )],
    })


def failing_llm():
    llm = MagicMock(spec=LLMProvider)
    llm.provider_name = "mock"
    llm.generate = AsyncMock(side_effect=ReasoningServiceError("rate limited", provider="mock", status_code=429))
    return llm


class TestChatServiceValidation:
    """Requests are validated before the network runs."""

    def test_empty_conversation(self):
        with pytest.raises(RequestValidationError):
            ChatService.parse([])

    def test_latest_must_be_user(self):
        with pytest.raises(RequestValidationError) as exc_info:
            ChatService.parse([{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}])
        assert "user" in str(exc_info.value)

    def test_latest_must_not_be_blank(self):
        with pytest.raises(RequestValidationError):
            ChatService.parse({"messages": [{"role": "user", "content": "   "}]})

    def test_valid(self):
        request = ChatService.parse([{"role": "assistant", "content": "hi"}, {"role": "user", "content": "chart"}])
        assert len(request.messages) == 2

    @pytest.mark.asyncio
    async def test_invalid_request_does_not_run(self, mock_llm):
        service = ChatService(build_assistant_network(mock_llm))
        with pytest.raises(RequestValidationError):
            await service.respond([{"role": "system", "content": "hi"}])
        mock_llm.generate.assert_not_called()


class TestChatServiceResponses:
    """Run outcomes are shaped into one assistant message."""

    @pytest.mark.asyncio
    async def test_component_payload(self):
        service = ChatService(build_assistant_network(ui_llm()))
        response = await service.respond([{"role": "user", "content": "login form please"}])

        assert response.status == "completed"
        assert response.message.content == "Here's a login form."
        assert response.message.tool_call.type == "component"
        assert response.message.tool_call.name == "generate_ui"
        assert response.message.tool_call.data["action"] == "generate_form"
        assert response.run_id

    @pytest.mark.asyncio
    async def test_plain_reply(self):
        llm = scripted_llm({"route_to_agent": [reply(call("done", summary="Hi there!"))]})
        response = await ChatService(build_assistant_network(llm)).respond([{"role": "user", "content": "hi"}])

        assert response.message.content == "Hi there!"
        assert response.message.tool_call is None

    @pytest.mark.asyncio
    async def test_incomplete_run(self):
        llm = scripted_llm({
            "route_to_agent": [reply(call("route_to_agent", agent="UI Generator Agent", reasoning="ui"))],
            "generate_ui": [reply(call("done", message="working on it"))],
        })
        network = build_assistant_network(llm, config=RunConfig(max_iterations=1))
        response = await ChatService(network).respond([{"role": "user", "content": "ui"}])

        assert response.status == "incomplete"
        assert "couldn't complete" in response.message.content

    @pytest.mark.asyncio
    async def test_reasoning_error_propagates(self):
        service = ChatService(build_assistant_network(failing_llm()))
        with pytest.raises(ReasoningServiceError):
            await service.respond([{"role": "user", "content": "hi"}])


class TestAPI:
    """Tests for the FastAPI app."""

    def client(self, llm):
        service = ChatService(build_assistant_network(llm))
        return TestClient(create_app(service=service, config=SwitchyardConfig()))

    def test_health(self, mock_llm):
        response = self.client(mock_llm).get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_chat(self):
        response = self.client(ui_llm()).post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "login form please"}]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert body["runId"]
        assert body["message"]["role"] == "assistant"
        assert body["message"]["toolCall"]["type"] == "component"
        assert body["message"]["toolCall"]["data"]["components"] == [{"type": "Input", "props": {}}]

    def test_chat_accepts_bare_list(self, mock_llm):
        response = self.client(mock_llm).post("/api/chat", json=[{"role": "user", "content": "hi"}])
        assert response.status_code == 200
        assert "toolCall" not in response.json()["message"]

    def test_bad_request(self, mock_llm):
        response = self.client(mock_llm).post("/api/chat", json={"messages": []})
        assert response.status_code == 400
        assert "error" in response.json()

    def test_reasoning_failure(self):
        response = self.client(failing_llm()).post(
            "/api/chat",
            json={"messages": [{"role": "user", "content": "hi"}]},
        )
        assert response.status_code == 502

    def test_shutdown_closes_clients(self, mock_llm):
        resource = MagicMock()
        resource.close = AsyncMock()
        service = ChatService(build_assistant_network(mock_llm), resources=[resource])

        with TestClient(create_app(service=service, config=SwitchyardConfig())) as client:
            assert client.get("/health").status_code == 200
            resource.close.assert_not_awaited()

        mock_llm.close.assert_awaited_once()
        resource.close.assert_awaited_once()


class TestBuildService:
    """Tests for wiring the service from configuration."""

    def test_owns_external_clients(self):
        config = SwitchyardConfig(
            llm=LLMConfig(provider="anthropic", api_key="sk-ant-test"),
            transform=TransformConfig(api_key="bem-key"),
            slack=SlackConfig(token="xoxb-test"),
        )
        service = build_service(config)

        assert [type(r) for r in service.resources] == [BemClient, SlackConversationSource]

    def test_local_only(self):
        service = build_service(SwitchyardConfig(llm=LLMConfig(provider="openai", api_key="sk-test")))
        assert len(service.resources) == 1
        assert service.network.llm.provider_name == "openai"
