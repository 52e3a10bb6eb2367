"""
HTTP API.

Endpoints:
    POST /api/chat  - run the assistant on a conversation
    GET  /health    - health check

Run with:
    uvicorn switchyard.api:app --port 8000
"""

from __future__ import annotations

import time
from typing import Any

import structlog
from fastapi import Body, FastAPI, Request
from fastapi.responses import JSONResponse

from switchyard.core.config import SwitchyardConfig
from switchyard.core.errors import ReasoningServiceError, RequestValidationError
from switchyard.llm import create_llm
from switchyard.observability import setup_logging
from switchyard.schemas import ChatResponse
from switchyard.service import ChatService
from switchyard.workers import (
    SlackConversationSource,
    SMTPTransport,
    build_assistant_network,
    create_transform_backend,
)

logger = structlog.get_logger(__name__)


def build_service(config: SwitchyardConfig) -> ChatService:
    """Wire the assistant network from configuration."""
    transform = create_transform_backend(config.transform)
    source = SlackConversationSource(config.slack) if config.slack.token else None
    network = build_assistant_network(
        create_llm(config.llm),
        config=config.run,
        transform=transform,
        email_transport=SMTPTransport(config.email) if config.email.enabled else None,
        conversation_source=source,
    )
    return ChatService(network, resources=[r for r in (transform, source) if r is not None])


def create_app(service: ChatService | None = None, config: SwitchyardConfig | None = None) -> FastAPI:
    """
    Build the FastAPI app.

    The service is created on first use when not given, so importing this
    module needs no credentials.
    """
    app = FastAPI(title="Switchyard", description="Multi-agent chat assistant")
    state: dict[str, Any] = {"service": service}

    def get_service() -> ChatService:
        if state["service"] is None:
            cfg = config or SwitchyardConfig.from_env()
            setup_logging(cfg.logging.level, cfg.logging.format)
            state["service"] = build_service(cfg)
        return state["service"]

    @app.on_event("shutdown")
    async def close_service():
        if state["service"] is not None:
            await state["service"].close()
            logger.info("Service closed")

    @app.middleware("http")
    async def log_request_timing(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        logger.info(
            "Request handled",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(elapsed * 1000, 2),
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(ReasoningServiceError)
    async def reasoning_failed(request: Request, exc: ReasoningServiceError):
        logger.error("Completion service failed", provider=exc.provider, error=str(exc))
        return JSONResponse(status_code=502, content={"error": "The reasoning service is unavailable."})

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "switchyard"}

    @app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
    async def chat(body: Any = Body(...)):
        return await get_service().respond(body)

    return app


app = create_app()
