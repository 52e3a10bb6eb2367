"""
Tests for the specialist workers' tools.
"""

import pytest

from switchyard.core.state import CHART_RESULT, CONVERSATION_RESULT, RESULT_TYPE, UI_RESULT, StateStore
from switchyard.core.tool import dispatch
from switchyard.schemas import ConversationMessage
from switchyard.workers.chart import create_chart_agent, series_config
from switchyard.workers.chart_picker import PICKED_CHART, create_chart_picker
from switchyard.workers.cleaner import (
    CLEANED_DATA,
    PREPARED_CHART_DATA,
    build_output_schema,
    create_data_cleaner,
)
from switchyard.workers.data import DATA_RESULT, create_data_agent
from switchyard.workers.email import EMAIL_SENT, EmailTransport, create_email_agent
from switchyard.workers.history import ConversationSource, create_history_agent
from switchyard.workers.transform import LocalNormalizer
from switchyard.workers.triage import create_triage_agent
from switchyard.workers.ui import clean_components, create_ui_agent


async def run_tool(agent, name, arguments, state):
    return await dispatch(agent.get_tool(name), arguments, state)


class CountingNormalizer(LocalNormalizer):
    """LocalNormalizer that counts calls."""

    def __init__(self):
        self.pipelines = 0
        self.transforms = 0

    async def create_pipeline(self, name, output_schema):
        self.pipelines += 1
        return await super().create_pipeline(name, output_schema)

    async def transform(self, pipeline, reference_id, rows):
        self.transforms += 1
        return await super().transform(pipeline, reference_id, rows)


class FakeTransport(EmailTransport):
    def __init__(self):
        self.sent = []

    async def send(self, email):
        self.sent.append(email)
        return f"<msg-{len(self.sent)}@example.com>"


class FakeSource(ConversationSource):
    async def list_channels(self):
        return [{"id": "C1", "name": "general"}, {"id": "C2", "name": "random"}]

    async def history(self, channel, limit):
        messages = [
            ConversationMessage(user="U1", text="standup at 10", ts="1700000000.0001"),
            ConversationMessage(user="U2", text="ok", ts="1700000001.0001"),
        ]
        return messages[:limit]


class GrowingSource(FakeSource):
    """Returns one more message on every fetch."""

    def __init__(self):
        self.calls = 0

    async def history(self, channel, limit):
        self.calls += 1
        return [
            ConversationMessage(user="U1", text=f"message {i}", ts=f"170000000{i}.0001")
            for i in range(self.calls)
        ][:limit]


class TestChartPicker:
    """Tests for the Chart Picker Agent."""

    @pytest.mark.asyncio
    async def test_pick_chart(self, pick_bar_chart_args):
        state = StateStore()
        invocation = await run_tool(create_chart_picker(), "pick_chart", pick_bar_chart_args, state)

        assert invocation.success
        picked = state.get(PICKED_CHART)
        assert picked["chart_type"] == "bar"
        assert picked["schema"]["x_key"] == "region"
        assert state.get("chart_picked") is True
        assert state.get("picked_chart_type") == "bar"

    @pytest.mark.asyncio
    async def test_unknown_chart_kind_rejected(self, pick_bar_chart_args):
        state = StateStore()
        pick_bar_chart_args["chart_type"] = "scatter"
        invocation = await run_tool(create_chart_picker(), "pick_chart", pick_bar_chart_args, state)
        assert invocation.error
        assert not state.has(PICKED_CHART)

    @pytest.mark.asyncio
    async def test_placeholder_records_need(self):
        state = StateStore()
        invocation = await run_tool(create_chart_picker(), "generate_data", {"reason": "needs sales"}, state)
        assert "Data Agent" in invocation.result
        assert state.get("need_data_generation") is True
        assert state.get("data_generation_reason") == "needs sales"
        assert not state.has(DATA_RESULT)


class TestDataAgent:
    """Tests for the Data Agent."""

    @pytest.mark.asyncio
    async def test_provide_data(self):
        state = StateStore()
        invocation = await run_tool(create_data_agent(), "provide_data", {
            "query": "signups per month",
            "data": [{"month": "Jan", "signups": 10}],
            "metadata": {"description": "Monthly signups", "suggested_visualization": "line"},
        }, state)

        assert invocation.success
        assert state.get(DATA_RESULT)["data"] == [{"month": "Jan", "signups": 10}]
        assert state.get(DATA_RESULT)["metadata"] == {
            "description": "Monthly signups",
            "suggested_visualization": "line",
        }
        assert state.get("data_query") == "signups per month"

    @pytest.mark.asyncio
    async def test_empty_data_rejected(self):
        state = StateStore()
        invocation = await run_tool(create_data_agent(), "provide_data", {
            "query": "nothing",
            "data": [],
            "metadata": {"description": "empty"},
        }, state)
        assert invocation.error
        assert not state.has(DATA_RESULT)

    @pytest.mark.asyncio
    async def test_no_data_needed(self):
        state = StateStore()
        await run_tool(create_data_agent(), "no_data_needed", {"reason": "example data is enough"}, state)
        assert state.has(DATA_RESULT)
        assert state.get(DATA_RESULT) is None


class TestDataCleaner:
    """Tests for the Data Cleaner Agent."""

    def test_output_schema(self, picked_bar_chart):
        schema = build_output_schema(picked_bar_chart)
        assert schema["type"] == "array"
        assert schema["items"]["properties"] == {
            "region": {"type": "string"},
            "revenue": {"type": "number"},
        }
        assert schema["items"]["required"] == ["region", "revenue"]

    @pytest.fixture
    def ready_state(self, picked_bar_chart):
        state = StateStore()
        state.set(PICKED_CHART, picked_bar_chart)
        state.set(DATA_RESULT, {
            "query": "revenue",
            "data": [
                {"region": "North", "revenue": "100"},
                {"region": "South", "revenue": 80},
                {"region": "East", "revenue": 60.5},
            ],
            "metadata": {"description": "revenue"},
        })
        return state

    @pytest.mark.asyncio
    async def test_full_sequence(self, ready_state):
        cleaner = create_data_cleaner(LocalNormalizer())
        for name in ("create_pipeline_from_state", "transform_data_from_state", "prepare_chart_data_from_state"):
            invocation = await run_tool(cleaner, name, {"confirm": True}, ready_state)
            assert invocation.success, invocation.result

        prepared = ready_state.get(PREPARED_CHART_DATA)
        assert prepared["data"][0] == {"region": "North", "revenue": 100}
        assert prepared["variant"] == "bar"
        assert ready_state.get("data_ready_for_chart") is True

    @pytest.mark.asyncio
    async def test_repeated_steps_reuse_results(self, ready_state):
        backend = CountingNormalizer()
        cleaner = create_data_cleaner(backend)
        for _ in range(2):
            await run_tool(cleaner, "create_pipeline_from_state", {"confirm": True}, ready_state)
            await run_tool(cleaner, "transform_data_from_state", {"confirm": True}, ready_state)

        assert backend.pipelines == 1
        assert backend.transforms == 1
        assert len(ready_state.get(CLEANED_DATA)) == 3

    @pytest.mark.asyncio
    async def test_transform_requires_pipeline(self, ready_state):
        cleaner = create_data_cleaner(LocalNormalizer())
        invocation = await run_tool(cleaner, "transform_data_from_state", {"confirm": True}, ready_state)
        assert "create a pipeline first" in invocation.result
        assert not ready_state.has(CLEANED_DATA)

    @pytest.mark.asyncio
    async def test_no_data_uses_example_rows(self, picked_bar_chart):
        state = StateStore()
        state.set(PICKED_CHART, picked_bar_chart)
        state.set(DATA_RESULT, None)
        cleaner = create_data_cleaner(LocalNormalizer())
        await run_tool(cleaner, "create_pipeline_from_state", {"confirm": True}, state)
        await run_tool(cleaner, "transform_data_from_state", {"confirm": True}, state)
        invocation = await run_tool(cleaner, "prepare_chart_data_from_state", {"confirm": True}, state)

        assert state.get(PREPARED_CHART_DATA)["data"] == [{"region": "North", "revenue": 100}]
        assert "Warning" in invocation.result

    @pytest.mark.asyncio
    async def test_unusable_rows_reported(self, picked_bar_chart):
        state = StateStore()
        state.set(PICKED_CHART, picked_bar_chart)
        state.set(DATA_RESULT, {"query": "q", "data": [{"region": "North"}], "metadata": {}})
        cleaner = create_data_cleaner(LocalNormalizer())
        await run_tool(cleaner, "create_pipeline_from_state", {"confirm": True}, state)
        invocation = await run_tool(cleaner, "transform_data_from_state", {"confirm": True}, state)

        assert invocation.error
        assert "no usable records" in invocation.result
        assert not state.has(CLEANED_DATA)


class TestChartAgent:
    """Tests for the Chart Generator Agent."""

    def test_series_config_multiple_series(self):
        data = [
            {"month": "Jan", "desktop": 186, "mobile": 80, "note": "x"},
            {"month": "Feb", "desktop": 305, "mobile": 200, "note": "y"},
        ]
        config = series_config(data, "month", "desktop")
        assert list(config) == ["desktop", "mobile"]
        assert config["desktop"] == {"label": "Desktop", "color": "hsl(var(--chart-1))"}
        assert config["mobile"]["color"] == "hsl(var(--chart-2))"

    def test_series_config_overrides(self):
        config = series_config([{"m": "a", "v": 1}], "m", "v", {"v": {"label": "Visitors"}})
        assert config["v"] == {"label": "Visitors", "color": "hsl(var(--chart-1))"}

    @pytest.mark.asyncio
    async def test_generate_chart(self):
        state = StateStore()
        invocation = await run_tool(create_chart_agent(), "generate_chart", {
            "type": "line",
            "title": "Signups",
            "data": [{"month": "Jan", "signups": 3}, {"month": "Feb", "signups": 5}],
            "x_key": "month",
            "y_key": "signups",
        }, state)

        assert invocation.success
        chart = state.get(CHART_RESULT)
        assert chart["xKey"] == "month"
        assert chart["yKey"] == "signups"
        assert "variant" not in chart
        assert state.get(RESULT_TYPE) == "chart"

    @pytest.mark.asyncio
    async def test_generate_chart_is_idempotent(self):
        state = StateStore()
        args = {
            "type": "pie",
            "title": "Share",
            "data": [{"browser": "chrome", "visitors": 275}],
            "x_key": "browser",
            "y_key": "visitors",
        }
        agent = create_chart_agent()
        first = await run_tool(agent, "generate_chart", args, state)
        second = await run_tool(agent, "generate_chart", args, state)
        assert first.success and second.success

        args["title"] = "Other"
        third = await run_tool(agent, "generate_chart", args, state)
        assert third.error
        assert state.get(CHART_RESULT)["title"] == "Share"

    @pytest.mark.asyncio
    async def test_render_prepared_chart_is_idempotent(self, picked_bar_chart):
        state = StateStore()
        state.set(PREPARED_CHART_DATA, {
            **picked_bar_chart["schema"],
            "data": [{"region": "North", "revenue": 100}, {"region": "South", "revenue": 80}],
        })
        agent = create_chart_agent()
        first = await run_tool(agent, "render_prepared_chart", {"confirm": True}, state)
        second = await run_tool(agent, "render_prepared_chart", {"confirm": True}, state)

        assert first.success and second.success
        assert len(state.get(CHART_RESULT)["data"]) == 2

    @pytest.mark.asyncio
    async def test_render_without_prepared_data(self):
        state = StateStore()
        invocation = await run_tool(create_chart_agent(), "render_prepared_chart", {"confirm": True}, state)
        assert "generate_chart" in invocation.result
        assert not state.has(CHART_RESULT)


class TestUIAgent:
    """Tests for the UI Generator Agent."""

    def test_clean_components_drops_untyped(self):
        cleaned = clean_components([
            {"type": "Card", "children": [{"type": "CardTitle"}, {"props": {"x": 1}}, "text"]},
            {"props": {"orphan": True}},
            42,
        ])
        assert len(cleaned) == 1
        assert cleaned[0].type == "Card"
        assert [c.type for c in cleaned[0].children] == ["CardTitle"]

    @pytest.mark.asyncio
    async def test_generate_ui(self):
        state = StateStore()
        invocation = await run_tool(create_ui_agent(), "generate_ui", {
            "type": "dashboard",
            "title": "Ops",
            "components": [{"type": "Card", "children": [{"type": "Badge", "props": {"variant": "outline"}}]}],
            "theme": "dark",
        }, state)

        assert "2 components" in invocation.result
        ui = state.get(UI_RESULT)
        assert ui["action"] == "generate_dashboard"
        assert ui["layout"] == "vertical"
        assert ui["theme"] == "dark"
        assert ui["components"][0]["children"][0]["props"] == {"variant": "outline"}
        assert state.get(RESULT_TYPE) == "component"

    @pytest.mark.asyncio
    async def test_generate_ui_is_idempotent(self):
        state = StateStore()
        args = {"type": "form", "title": "Login", "components": [{"type": "Input"}, {"type": "Button"}]}
        agent = create_ui_agent()
        first = await run_tool(agent, "generate_ui", args, state)
        second = await run_tool(agent, "generate_ui", args, state)

        assert first.success and second.success
        assert state.get(UI_RESULT)["title"] == "Login"

    @pytest.mark.asyncio
    async def test_second_terminal_result_rejected(self):
        state = StateStore()
        state.set(CHART_RESULT, {"type": "bar"})
        invocation = await run_tool(create_ui_agent(), "generate_ui", {
            "type": "card",
            "title": "Card",
            "components": [{"type": "Card"}],
        }, state)

        assert invocation.error
        assert not state.has(UI_RESULT)
        assert state.terminal_key == CHART_RESULT


class TestEmailAgent:
    """Tests for the Email Agent."""

    EMAIL = {"to": ["sam@example.com"], "subject": "Q3 numbers", "body": "Attached."}

    @pytest.mark.asyncio
    async def test_draft(self):
        state = StateStore()
        invocation = await run_tool(create_email_agent(), "draft_email", self.EMAIL, state)
        assert invocation.success
        assert state.get("email_action") == "draft"
        assert state.get("email_status") == "pending"
        assert state.get("email_result")["subject"] == "Q3 numbers"

    @pytest.mark.asyncio
    async def test_invalid_address_rejected(self):
        state = StateStore()
        invocation = await run_tool(create_email_agent(), "draft_email", {**self.EMAIL, "to": ["not-an-address"]}, state)
        assert invocation.error
        assert not state.has("email_result")

    @pytest.mark.asyncio
    async def test_send_once(self):
        transport = FakeTransport()
        agent = create_email_agent(transport)
        state = StateStore()

        first = await run_tool(agent, "send_email", self.EMAIL, state)
        second = await run_tool(agent, "send_email", self.EMAIL, state)

        assert len(transport.sent) == 1
        assert "already sent" in second.result
        assert first.success and second.success
        assert state.get("email_status") == "success"
        assert len(state.get(EMAIL_SENT)) == 1

    @pytest.mark.asyncio
    async def test_send_without_transport(self):
        state = StateStore()
        invocation = await run_tool(create_email_agent(), "send_email", self.EMAIL, state)
        assert invocation.error
        assert "draft_email" in invocation.result
        assert not state.has(EMAIL_SENT)


class TestHistoryAgent:
    """Tests for the Conversation History Agent."""

    @pytest.mark.asyncio
    async def test_list_channels(self):
        invocation = await run_tool(create_history_agent(FakeSource()), "list_channels", {}, StateStore())
        assert "#general (C1)" in invocation.result

    @pytest.mark.asyncio
    async def test_get_history(self):
        state = StateStore()
        invocation = await run_tool(
            create_history_agent(FakeSource()),
            "get_conversation_history",
            {"channel": "#general", "limit": 1},
            state,
        )
        assert "1 messages" in invocation.result
        result = state.get(CONVERSATION_RESULT)
        assert result["channel"] == "#general"
        assert result["messages"] == [{"user": "U1", "text": "standup at 10", "ts": "1700000000.0001"}]
        assert state.get(RESULT_TYPE) == "conversation"

    @pytest.mark.asyncio
    async def test_repeated_call_reuses_result(self):
        source = GrowingSource()
        agent = create_history_agent(source)
        state = StateStore()
        args = {"channel": "#general", "limit": 10}

        first = await run_tool(agent, "get_conversation_history", args, state)
        second = await run_tool(agent, "get_conversation_history", args, state)

        assert first.success and second.success
        assert source.calls == 1
        assert "Already retrieved 1 messages" in second.result
        assert len(state.get(CONVERSATION_RESULT)["messages"]) == 1

    @pytest.mark.asyncio
    async def test_other_channel_after_result_rejected(self):
        agent = create_history_agent(GrowingSource())
        state = StateStore()
        await run_tool(agent, "get_conversation_history", {"channel": "#general"}, state)
        invocation = await run_tool(agent, "get_conversation_history", {"channel": "#random"}, state)

        assert invocation.error
        assert state.get(CONVERSATION_RESULT)["channel"] == "#general"

    @pytest.mark.asyncio
    async def test_limit_bounds(self):
        state = StateStore()
        invocation = await run_tool(
            create_history_agent(FakeSource()),
            "get_conversation_history",
            {"channel": "#general", "limit": 500},
            state,
        )
        assert invocation.error

    @pytest.mark.asyncio
    async def test_no_source_configured(self):
        state = StateStore()
        invocation = await run_tool(create_history_agent(), "list_channels", {}, state)
        assert invocation.error
        assert "no conversation source" in invocation.result


class TestTriage:
    """Tests for the Assistant Router."""

    def test_instructions_list_specialists(self):
        agent = create_triage_agent({"UI Generator Agent": "Builds UIs", "Email Agent": "Sends email"})
        assert "- UI Generator Agent: Builds UIs" in agent.instructions
        assert agent.tool_names == ["route_to_agent", "done"]
