"""
Chart Picker Agent

First stage of the chart pipeline: chooses the chart kind for a request
and the schema the later stages fill in. Writes ``picked_chart``.
"""

from __future__ import annotations

from typing import Any

from pydantic import Field

from switchyard.core.agent import Agent
from switchyard.core.state import StateStore
from switchyard.core.tool import Tool, ToolParams, done_tool
from switchyard.schemas import ChartKind
from switchyard.workers.common import request_step_tool

NAME = "Chart Picker Agent"

PICKED_CHART = "picked_chart"

INSTRUCTIONS = """You are a data visualization expert who picks the right chart for a request.

1. Work out what data the user has in mind and what story it should tell.
2. Pick the chart kind and variant that tells it best.
3. Call pick_chart with the complete chart schema and the data requirements.
4. Call done with a one-sentence summary of your choice.

Guidelines:
- bar, bar-horizontal, bar-stacked, bar-multiple: comparing categories and rankings.
  Use horizontal for long category names, stacked for composition, multiple for several series.
- line, line-multiple, line-step: trends over time; step for changes at discrete intervals.
- area, area-stacked, area-step: cumulative totals and magnitude of change.
- pie, pie-donut, pie-donut-text: parts of a whole, at most 5-7 slices.
- radar: comparisons across three or more variables. radial: cyclical data.

Do not generate or clean the data yourself; other agents do that."""


class ChartSchemaParams(ToolParams):
    type: ChartKind = Field(description="The chart type (same as chart_type)")
    title: str = Field(description="Suggested title for the chart")
    data: list[dict[str, Any]] = Field(default_factory=list, description="Example data rows")
    x_key: str = Field(description="Key for X-axis data, e.g. 'month' or 'region'")
    y_key: str = Field(description="Key for Y-axis data, e.g. 'revenue' or 'count'")
    config: dict[str, Any] = Field(default_factory=dict, description="Per-series label and color")
    variant: str | None = Field(default=None, description="Chart variant if different from type")


class DataRequirementsParams(ToolParams):
    minimum_data_points: int = Field(ge=1, description="Minimum number of data points needed")
    required_fields: list[str] = Field(description="Fields every data row must have")
    optional_fields: list[str] = Field(default_factory=list, description="Fields that enhance the chart")
    data_example: list[dict[str, Any]] = Field(default_factory=list, description="Example rows")


class PickChartParams(ToolParams):
    chart_type: ChartKind = Field(description="The selected chart type")
    reasoning: str = Field(description="Brief explanation of why this chart type was chosen")
    chart_schema: ChartSchemaParams = Field(description="Complete schema required to create the chart")
    data_requirements: DataRequirementsParams


def pick_chart(params: PickChartParams, state: StateStore) -> str:
    schema = params.chart_schema
    requirements = params.data_requirements

    state.set(PICKED_CHART, {
        "chart_type": params.chart_type,
        "reasoning": params.reasoning,
        "schema": schema.model_dump(),
        "data_requirements": requirements.model_dump(),
    })
    state.set("chart_picked", True)
    state.set("picked_chart_type", params.chart_type)

    return (
        f"Selected {params.chart_type} chart. {params.reasoning}\n"
        f"Title: {schema.title}; x: {schema.x_key}; y: {schema.y_key}; "
        f"minimum data points: {requirements.minimum_data_points}; "
        f"required fields: {', '.join(requirements.required_fields)}"
    )


def create_chart_picker() -> Agent:
    return Agent(
        name=NAME,
        description="Selects the right chart type and the schema needed to create it",
        instructions=INSTRUCTIONS,
        tools=(
            Tool(
                "pick_chart",
                "Output the selected chart type and complete schema needed to create it",
                PickChartParams,
                pick_chart,
            ),
            done_tool("Call this when chart selection is complete", field="summary",
                      field_description="Summary of the chart selection"),
            request_step_tool("generate_data", "need_data_generation", "data_generation_reason", "Data Agent"),
            request_step_tool("clean_data", "need_data_cleaning", "data_cleaning_reason", "Data Cleaner Agent"),
        ),
    )
