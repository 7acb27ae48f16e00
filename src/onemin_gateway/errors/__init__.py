"""错误体系：网关请求与流处理的结构化错误类型。

Error hierarchy for onemin-gateway.
"""

from onemin_gateway.errors.base import (
    AuthenticationError,
    ErrorContext,
    GatewayError,
    MalformedEventError,
    ModelNotFoundError,
    PipelineError,
    RemoteError,
    TransportError,
    UpstreamReadError,
    ValidationError,
)

__all__ = [
    "AuthenticationError",
    "ErrorContext",
    "GatewayError",
    "MalformedEventError",
    "ModelNotFoundError",
    "PipelineError",
    "RemoteError",
    "TransportError",
    "UpstreamReadError",
    "ValidationError",
]
