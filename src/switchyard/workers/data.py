"""
Data Agent

Second stage of the chart pipeline: supplies the raw rows to chart.
Writes ``data_result`` (``None`` when the request needs no data).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from switchyard.core.agent import Agent
from switchyard.core.state import StateStore
from switchyard.core.tool import Tool, ToolParams
from switchyard.workers.common import ReasonParams, request_step_tool

NAME = "Data Agent"

DATA_RESULT = "data_result"

INSTRUCTIONS = """You are a data specialist who provides data for visualizations.

1. Read the request and the chart that was picked for it.
2. Produce realistic data in the shape the chart needs:
   - time series: rows of {date, value}
   - categories: rows of {category, value}
   - multi-series: rows with one value key per series
3. Call provide_data with the rows and a short description.

If the request needs no data at all, call no_data_needed instead."""


class DataKeys(ToolParams):
    x: str | None = Field(default=None, description="Key for x-axis")
    y: str | None = Field(default=None, description="Key for y-axis")
    value: str | None = Field(default=None, description="Key for values (pie/donut)")
    category: str | None = Field(default=None, description="Key for categories")


class DataMetadata(ToolParams):
    description: str = Field(description="Description of the data")
    suggested_visualization: Literal[
        "bar", "line", "area", "pie", "scatter", "radar", "funnel", "treemap"
    ] | None = Field(default=None, description="Suggested chart type for this data")
    keys: DataKeys | None = None


class ProvideDataParams(ToolParams):
    query: str = Field(description="What data was requested")
    data: list[dict[str, Any]] = Field(min_length=1, description="The data rows")
    metadata: DataMetadata


def provide_data(params: ProvideDataParams, state: StateStore) -> str:
    state.set(DATA_RESULT, {
        "query": params.query,
        "data": params.data,
        "metadata": params.metadata.model_dump(exclude_none=True),
    })
    state.set("data_query", params.query)
    return f"Provided {len(params.data)} data points for: {params.query}"


def no_data_needed(params: ReasonParams, state: StateStore) -> str:
    state.set(DATA_RESULT, None)
    return params.reason


def create_data_agent() -> Agent:
    return Agent(
        name=NAME,
        description="Fetches or generates data for visualizations and analysis",
        instructions=INSTRUCTIONS,
        tools=(
            Tool("provide_data", "Provide data for visualization or analysis", ProvideDataParams, provide_data),
            Tool("no_data_needed", "Call this when the request doesn't require data generation",
                 ReasonParams, no_data_needed),
            request_step_tool("clean_data", "need_data_cleaning", "data_cleaning_reason", "Data Cleaner Agent"),
        ),
    )
