"""OpenAI 兼容网关：将聊天补全流重新封装为标准事件流。

onemin-gateway: OpenAI-compatible gateway for the 1min feature API.

Reframes the provider's incremental-generation stream into chat completion
and Responses-API event streams, with a running token count and a terminal
usage summary.
"""
from __future__ import annotations

from onemin_gateway.config import GatewaySettings, StreamFormat
from onemin_gateway.errors import GatewayError, PipelineError, TransportError
from onemin_gateway.pipeline import (
    ResponseChunkTransformer,
    StreamPipeline,
    UpstreamBody,
)
from onemin_gateway.types.events import ChatChunk, ResponseChunk, Usage

__version__ = "0.1.0"

__all__ = [
    "ChatChunk",
    "GatewayError",
    "GatewaySettings",
    "PipelineError",
    "ResponseChunk",
    "ResponseChunkTransformer",
    "StreamFormat",
    "StreamPipeline",
    "TransportError",
    "UpstreamBody",
    "Usage",
    "__version__",
]
