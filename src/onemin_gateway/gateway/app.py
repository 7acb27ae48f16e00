"""
FastAPI application exposing the OpenAI-compatible endpoints.

Streaming requests hand the upstream body to a StreamPipeline and return its
output unmodified as the response body.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, StreamingResponse
from starlette.background import BackgroundTask

from onemin_gateway.catalog import list_models
from onemin_gateway.config import GatewaySettings
from onemin_gateway.errors import GatewayError, ValidationError
from onemin_gateway.gateway.mapping import (
    chat_to_response,
    extract_api_key,
    responses_to_chat,
    to_upstream_request,
    upstream_to_chat_completion,
    validate_chat_body,
)
from onemin_gateway.pipeline import StreamPipeline
from onemin_gateway.telemetry import (
    GatewayLogger,
    LogContext,
    LogLevel,
    get_logger,
    new_request_id,
    set_log_context,
)
from onemin_gateway.tokens import counter_from_settings
from onemin_gateway.transport import UpstreamTransport

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = get_logger("onemin_gateway.gateway")

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def create_app(
    settings: GatewaySettings | None = None,
    *,
    transport: UpstreamTransport | None = None,
) -> FastAPI:
    """Build the gateway application.

    Args:
        settings: Gateway settings (default: from environment)
        transport: Upstream transport (default: built from settings)

    Returns:
        Configured FastAPI app
    """
    settings = settings or GatewaySettings.from_env()
    transport = transport or UpstreamTransport(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await transport.close()

    app = FastAPI(title="onemin-gateway", lifespan=lifespan)
    app.state.settings = settings
    app.state.transport = transport
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )

    @app.exception_handler(GatewayError)
    async def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
        logger.warning("Request failed", status=exc.status_code, error=exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_envelope())

    @app.get("/")
    @app.get("/health")
    async def health() -> PlainTextResponse:
        return PlainTextResponse("OK")

    @app.get("/v1/models", response_model=None)
    async def models() -> dict[str, Any]:
        return list_models()

    @app.post("/v1/chat/completions", response_model=None)
    async def chat_completions(request: Request) -> Any:
        api_key = extract_api_key(request.headers.get("Authorization"))
        body = validate_chat_body(await _read_json(request))
        return await _complete(app, body, api_key, endpoint="chat.completions")

    @app.post("/v1/responses", response_model=None)
    async def responses(request: Request) -> Any:
        api_key = extract_api_key(request.headers.get("Authorization"))
        body = validate_chat_body(responses_to_chat(await _read_json(request)))
        return await _complete(app, body, api_key, endpoint="responses")

    return app


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Invalid JSON in request body") from e


async def _complete(
    app: FastAPI,
    body: dict[str, Any],
    api_key: str,
    *,
    endpoint: str,
) -> Any:
    settings: GatewaySettings = app.state.settings
    transport: UpstreamTransport = app.state.transport
    counter = counter_from_settings(settings)

    set_log_context(
        LogContext(request_id=new_request_id(), endpoint=endpoint, model=body["model"])
    )
    prompt_tokens = counter.count_messages(body["messages"])
    payload = to_upstream_request(body)

    if payload["stream"]:
        upstream = await transport.open_stream(payload, api_key=api_key)
        pipeline = StreamPipeline(
            prompt_tokens,
            counter=counter,
            default_model=settings.default_model,
            stream_format=settings.stream,
        )
        stream = (
            pipeline.responses_stream(upstream)
            if endpoint == "responses"
            else pipeline.chat_stream(upstream)
        )
        return StreamingResponse(
            stream,
            media_type="text/event-stream",
            headers=SSE_HEADERS,
            background=BackgroundTask(upstream.aclose),
        )

    data = await transport.post(payload, api_key=api_key)
    chat = upstream_to_chat_completion(
        data,
        prompt_tokens=prompt_tokens,
        counter=counter,
        default_model=settings.default_model,
    )
    if endpoint == "responses":
        return chat_to_response(chat)
    return chat


def main() -> None:
    """Run the gateway with uvicorn."""
    import uvicorn

    settings = GatewaySettings.from_env()
    GatewayLogger.configure(level=LogLevel.parse(settings.log_level), format=settings.log_format)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
