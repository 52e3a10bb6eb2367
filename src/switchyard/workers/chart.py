"""
Chart Generator Agent

Last stage of the chart pipeline, and a standalone chart maker when the
request already contains the data. Writes the ``chart_result`` terminal
key.
"""

from __future__ import annotations

from numbers import Number
from typing import Any

from pydantic import Field

from switchyard.core.agent import Agent
from switchyard.core.state import CHART_RESULT, RESULT_TYPE, StateStore
from switchyard.core.tool import Tool, ToolParams, done_tool
from switchyard.schemas import ChartKind, ChartSpec
from switchyard.workers.cleaner import PREPARED_CHART_DATA
from switchyard.workers.common import ConfirmParams, capitalize

NAME = "Chart Generator Agent"

PALETTE_SIZE = 5

INSTRUCTIONS = """You are a chart generation specialist.

If prepared chart data is available in the shared state, call
render_prepared_chart with confirm=true. Otherwise build the chart yourself
with generate_chart, structuring the data for the chosen chart type and
creating realistic sample data if the user gave none.

Chart types: bar, bar-horizontal, bar-stacked, bar-multiple, line,
line-multiple, line-step, area, area-stacked, area-step, pie, pie-donut,
pie-donut-text, radar, radial.

Always call done with a short message for the user after the chart exists."""


class GenerateChartParams(ToolParams):
    type: ChartKind = Field(description="Type of chart to generate")
    title: str = Field(description="Title for the chart")
    data: list[dict[str, Any]] = Field(min_length=1, description="Array of data points for the chart")
    x_key: str = Field(description="Key for X-axis data")
    y_key: str = Field(description="Key for Y-axis data")


def series_config(
    data: list[dict[str, Any]],
    x_key: str,
    y_key: str,
    overrides: dict[str, Any] | None = None,
) -> dict[str, dict[str, str]]:
    """
    Label and color for every plotted series.

    ``y_key`` always comes first; any other key that is numeric in every
    row is treated as an extra series. Colors cycle through the front
    end's ``--chart-1`` .. ``--chart-5`` palette.
    """
    series = [y_key]
    for key in data[0] if data else ():
        if key in (x_key, y_key):
            continue
        if all(isinstance(row.get(key), Number) and not isinstance(row.get(key), bool) for row in data):
            series.append(key)

    overrides = overrides or {}
    config = {}
    for index, key in enumerate(series):
        style = {
            "label": capitalize(key),
            "color": f"hsl(var(--chart-{index % PALETTE_SIZE + 1}))",
        }
        override = overrides.get(key)
        if isinstance(override, dict):
            style.update({k: str(v) for k, v in override.items() if k in style and v})
        config[key] = style
    return config


def _store_chart(state: StateStore, spec: ChartSpec) -> None:
    state.set(CHART_RESULT, spec.model_dump(by_alias=True, exclude_none=True))
    state.set(RESULT_TYPE, "chart")


def generate_chart(params: GenerateChartParams, state: StateStore) -> str:
    spec = ChartSpec(
        type=params.type,
        title=params.title,
        data=params.data,
        x_key=params.x_key,
        y_key=params.y_key,
        config=series_config(params.data, params.x_key, params.y_key),
    )
    _store_chart(state, spec)
    return f'Created {params.type} chart titled "{params.title}" with {len(params.data)} data points.'


def render_prepared_chart(params: ConfirmParams, state: StateStore) -> str:
    if not params.confirm:
        return "Please confirm chart rendering."

    prepared = state.get(PREPARED_CHART_DATA)
    if not prepared:
        return "No prepared chart data found. Use generate_chart instead."

    data = prepared["data"]
    spec = ChartSpec(
        type=prepared["type"],
        title=prepared["title"],
        data=data,
        x_key=prepared["x_key"],
        y_key=prepared["y_key"],
        config=series_config(data, prepared["x_key"], prepared["y_key"], prepared.get("config")),
        variant=prepared.get("variant"),
    )
    _store_chart(state, spec)
    return f'Rendered {spec.type} chart titled "{spec.title}" with {len(data)} data points.'


def create_chart_agent() -> Agent:
    return Agent(
        name=NAME,
        description="An expert at generating charts and visualizations",
        instructions=INSTRUCTIONS,
        tools=(
            Tool("generate_chart",
                 "Generate a chart with various types including bar, line, area, pie, donut, stacked variants, and more",
                 GenerateChartParams, generate_chart),
            Tool("render_prepared_chart",
                 "Render the chart prepared by the data pipeline",
                 ConfirmParams, render_prepared_chart),
            done_tool("Call this when the chart is complete and ready"),
        ),
    )
