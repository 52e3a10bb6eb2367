"""
Data Transformation Backends

The data cleaner turns raw rows into rows that match the picked chart's
schema. Two backends implement the same interface:

- BemClient: the bem.ai pipelines API over HTTP
- LocalNormalizer: in-process coercion against the JSON schema
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from hashlib import sha256
from typing import Any

import httpx
import structlog

from switchyard.core.config import TransformConfig
from switchyard.core.errors import ExternalServiceError

logger = structlog.get_logger(__name__)


class TransformBackend(ABC):
    """Creates schema pipelines and runs rows through them."""

    name: str = "transform"

    @abstractmethod
    async def create_pipeline(self, name: str, output_schema: dict[str, Any]) -> str:
        """Create a pipeline for ``output_schema`` and return its id."""
        ...

    @abstractmethod
    async def transform(
        self,
        pipeline: dict[str, Any],
        reference_id: str,
        rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """
        Run ``rows`` through ``pipeline``.

        Args:
            pipeline: Pipeline record (``id``, ``name``, ``schema``)
            reference_id: Idempotency / tracing id
            rows: Raw data rows
        """
        ...

    async def close(self) -> None:
        pass


class BemClient(TransformBackend):
    """
    bem.ai pipelines client.

    Example:
        ```python
        client = BemClient(TransformConfig(api_key="..."))
        pipeline_id = await client.create_pipeline("bar - Revenue", schema)
        rows = await client.transform({"id": pipeline_id}, "transform-abc", raw_rows)
        ```
    """

    name = "bem"

    def __init__(self, config: TransformConfig):
        if not config.api_key:
            raise ValueError("BemClient requires an API key")
        self.config = config
        self._session: httpx.AsyncClient | None = None

    def _get_session(self) -> httpx.AsyncClient:
        if self._session is None:
            self._session = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={"Authorization": f"Bearer {self.config.api_key}"},
                timeout=self.config.timeout,
            )
        return self._session

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._get_session().post(path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                "bem", e.response.text or str(e), status_code=e.response.status_code
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError("bem", str(e)) from e
        return response.json()

    async def create_pipeline(self, name: str, output_schema: dict[str, Any]) -> str:
        body = await self._post("/pipelines", {
            "name": name,
            "outputSchemaName": name,
            "outputSchema": output_schema,
        })
        pipeline_id = body.get("pipelineID")
        if not pipeline_id:
            raise ExternalServiceError("bem", "pipeline response has no pipelineID")
        logger.info("bem pipeline created", pipeline_id=pipeline_id, name=name)
        return pipeline_id

    async def transform(
        self,
        pipeline: dict[str, Any],
        reference_id: str,
        rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        body = await self._post("/transformations", {
            "pipelineID": pipeline["id"],
            "transformations": [{
                "referenceID": reference_id,
                "inputType": "text",
                "inputContent": json.dumps(rows),
            }],
        })

        output = body.get("outputJson")
        if output is None:
            transformations = body.get("transformations") or []
            if transformations:
                output = transformations[0].get("outputJson")
        if output is None:
            raise ExternalServiceError("bem", f"transformation {reference_id} returned no output")

        return output if isinstance(output, list) else [output]

    async def close(self) -> None:
        if self._session is not None:
            await self._session.aclose()
            self._session = None


class LocalNormalizer(TransformBackend):
    """
    Coerces rows to the pipeline's JSON schema without leaving the process.

    String properties are stringified, number properties parsed as floats
    (ints kept as ints), rows missing a required field or with an
    unparseable number are dropped. Fields the schema does not mention
    pass through untouched.
    """

    name = "local"

    async def create_pipeline(self, name: str, output_schema: dict[str, Any]) -> str:
        digest = sha256(json.dumps([name, output_schema], sort_keys=True).encode()).hexdigest()
        return f"local-{digest[:12]}"

    async def transform(
        self,
        pipeline: dict[str, Any],
        reference_id: str,
        rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        items = pipeline.get("schema", {}).get("items", {})
        properties: dict[str, Any] = items.get("properties", {})
        required: list[str] = items.get("required", [])

        cleaned = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            if any(row.get(key) in (None, "") for key in required):
                continue
            try:
                cleaned.append({key: _coerce(value, properties.get(key)) for key, value in row.items()})
            except (TypeError, ValueError):
                logger.debug("Dropping unparseable row", reference_id=reference_id, row=row)

        logger.debug("Rows normalized", reference_id=reference_id, kept=len(cleaned), total=len(rows))
        return cleaned


def _coerce(value: Any, prop: dict[str, Any] | None) -> Any:
    if not prop or value is None:
        return value
    kind = prop.get("type")
    if kind == "string":
        return value if isinstance(value, str) else str(value)
    if kind == "number":
        if isinstance(value, bool):
            raise ValueError("boolean is not a number")
        if isinstance(value, (int, float)):
            return value
        text = str(value).strip().replace(",", "").lstrip("$")
        number = float(text)
        return int(number) if number.is_integer() and "." not in text else number
    return value


def create_transform_backend(config: TransformConfig | None = None) -> TransformBackend:
    """bem.ai when an API key is configured, otherwise the local normalizer."""
    config = config or TransformConfig()
    if config.enabled:
        return BemClient(config)
    logger.info("No transform API key configured, using local normalizer")
    return LocalNormalizer()
