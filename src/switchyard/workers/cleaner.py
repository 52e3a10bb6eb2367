"""
Data Cleaner Agent

Third stage of the chart pipeline. Builds a JSON schema from the picked
chart, runs the raw rows through a transformation pipeline for that
schema and prepares the final chart data. Writes ``cleaned_data`` and
``prepared_chart_data``.

Every step reads its inputs from state, so the model only has to
confirm each one; repeating a step with the same inputs reuses the
earlier result instead of calling the transform service again.
"""

from __future__ import annotations

import json
from hashlib import sha256
from typing import Any

import structlog

from switchyard.core.agent import Agent
from switchyard.core.state import StateStore
from switchyard.core.tool import Tool, done_tool
from switchyard.workers.chart_picker import PICKED_CHART
from switchyard.workers.common import ConfirmParams
from switchyard.workers.data import DATA_RESULT
from switchyard.workers.transform import TransformBackend

logger = structlog.get_logger(__name__)

NAME = "Data Cleaner Agent"

PIPELINE_INFO = "pipeline_info"
CLEANED_DATA = "cleaned_data"
PREPARED_CHART_DATA = "prepared_chart_data"

INSTRUCTIONS = """You are a data transformation specialist.

The chart schema (picked_chart) and the raw data (data_result) are already in
the shared state. In one turn, call these tools in order, each with confirm=true:
1. create_pipeline_from_state
2. transform_data_from_state
3. prepare_chart_data_from_state
Then call done with a short summary. If a step reports an error, call done and
describe the problem."""


def build_output_schema(picked: dict[str, Any]) -> dict[str, Any]:
    """JSON Schema for one chart's data rows."""
    schema = picked["schema"]
    requirements = picked.get("data_requirements") or {}
    x_key, y_key = schema["x_key"], schema["y_key"]

    properties: dict[str, Any] = {
        x_key: {"type": "string"},
        y_key: {"type": "number"},
    }
    for field in requirements.get("optional_fields") or []:
        properties.setdefault(field, {"type": "string"})

    return {
        "type": "array",
        "items": {
            "type": "object",
            "properties": properties,
            "required": list(requirements.get("required_fields") or [x_key, y_key]),
        },
    }


def _raw_rows(state: StateStore) -> list[dict[str, Any]] | None:
    if not state.has(DATA_RESULT):
        return None
    data_result = state.get(DATA_RESULT)
    if data_result is not None:
        return data_result.get("data") or None

    # no_data_needed: fall back to the example rows the picker supplied
    picked = state.get(PICKED_CHART) or {}
    example = picked.get("schema", {}).get("data") or picked.get("data_requirements", {}).get("data_example")
    return example or None


def create_data_cleaner(backend: TransformBackend) -> Agent:
    """Build the cleaner around a transformation backend."""

    async def create_pipeline_from_state(params: ConfirmParams, state: StateStore) -> str:
        if not params.confirm:
            return "Please confirm pipeline creation."

        picked = state.get(PICKED_CHART)
        if not picked:
            return "No chart schema found. The Chart Picker Agent must run first."

        output_schema = build_output_schema(picked)
        existing = state.get(PIPELINE_INFO)
        if existing and existing["schema"] == output_schema and existing["backend"] == backend.name:
            return f"Pipeline {existing['id']} already exists for this chart schema."

        name = f"{picked['chart_type']} - {picked['schema']['title']}"
        pipeline_id = await backend.create_pipeline(name, output_schema)

        state.set("pipeline_id", pipeline_id)
        state.set(PIPELINE_INFO, {
            "id": pipeline_id,
            "name": name,
            "chart_type": picked["chart_type"],
            "schema": output_schema,
            "backend": backend.name,
        })
        return f"Created {backend.name} pipeline for {picked['chart_type']} chart with ID: {pipeline_id}"

    async def transform_data_from_state(params: ConfirmParams, state: StateStore) -> str:
        if not params.confirm:
            return "Please confirm data transformation."

        pipeline = state.get(PIPELINE_INFO)
        if not pipeline:
            return "No pipeline found. Please create a pipeline first."

        rows = _raw_rows(state)
        if rows is None:
            return "No raw data found. The Data Agent must provide data first."

        fingerprint = json.dumps([pipeline["id"], rows], sort_keys=True, default=str)
        reference_id = f"transform-{sha256(fingerprint.encode()).hexdigest()[:16]}"
        if state.get("transform_reference") == reference_id and state.has(CLEANED_DATA):
            return f"Data already transformed ({len(state.get(CLEANED_DATA))} records)."

        cleaned = await backend.transform(pipeline, reference_id, rows)
        if not cleaned:
            raise ValueError(f"Transformation {reference_id} produced no usable records")

        state.set(CLEANED_DATA, cleaned)
        state.set("data_cleaned", True)
        state.set("transform_reference", reference_id)

        dropped = len(rows) - len(cleaned)
        note = f" {dropped} records dropped." if dropped > 0 else ""
        return f"Data transformed successfully. {len(cleaned)} records processed.{note}"

    def prepare_chart_data_from_state(params: ConfirmParams, state: StateStore) -> str:
        if not params.confirm:
            return "Please confirm chart data preparation."

        picked = state.get(PICKED_CHART)
        cleaned = state.get(CLEANED_DATA)
        if not picked:
            return "No chart schema found."
        if not cleaned:
            return "No cleaned data available. Please transform data first."

        schema = picked["schema"]
        chart_data = {
            **schema,
            "data": cleaned if isinstance(cleaned, list) else [cleaned],
            "variant": schema.get("variant") or schema["type"],
        }
        state.set(PREPARED_CHART_DATA, chart_data)
        state.set("data_ready_for_chart", True)

        message = (
            f"Chart data prepared with {len(chart_data['data'])} data points. "
            f"Ready for visualization as {picked['chart_type']} chart."
        )
        minimum = (picked.get("data_requirements") or {}).get("minimum_data_points")
        if minimum and len(chart_data["data"]) < minimum:
            message += f" Warning: fewer than the {minimum} data points the chart needs."
        return message

    return Agent(
        name=NAME,
        description="Transforms raw data into the structure the picked chart needs",
        instructions=INSTRUCTIONS,
        tools=(
            Tool("create_pipeline_from_state",
                 "Create a transformation pipeline from the chart schema in state",
                 ConfirmParams, create_pipeline_from_state),
            Tool("transform_data_from_state",
                 "Transform the raw data in state through the pipeline",
                 ConfirmParams, transform_data_from_state),
            Tool("prepare_chart_data_from_state",
                 "Prepare the final chart data from the schema and cleaned data in state",
                 ConfirmParams, prepare_chart_data_from_state),
            done_tool("Call this when data cleaning is complete", field="summary",
                      field_description="Summary of the data cleaning process"),
        ),
    )
