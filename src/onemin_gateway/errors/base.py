"""错误基类：网关的分层错误体系和结构化错误上下文。

Base error classes for onemin-gateway.

Provides a layered error hierarchy:
- GatewayError: Base class for all gateway errors
- ValidationError: Client request validation errors
- ModelNotFoundError: Model missing from the catalog
- AuthenticationError: Missing or malformed credentials
- TransportError: HTTP/network errors talking to the provider
- RemoteError: Provider answered with an error status
- PipelineError: Stream processing errors
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ErrorContext:
    """Structured error context for diagnostics."""

    field_path: str | None = None
    """Path to the problematic field (e.g., 'messages')"""

    details: dict[str, Any] = field(default_factory=dict)
    """Additional details about the error"""

    source: str | None = None
    """Error source (e.g., 'validation', 'transport', 'pipeline')"""

    hint: str | None = None
    """Actionable hint for resolving the error"""

    def __str__(self) -> str:
        parts = []
        if self.source:
            parts.append(f"[{self.source}]")
        if self.field_path:
            parts.append(f"at '{self.field_path}'")
        if self.hint:
            parts.append(f"(hint: {self.hint})")
        return " ".join(parts)


class GatewayError(Exception):
    """Base class for all onemin-gateway errors.

    Attributes:
        message: Human-readable error message
        context: Structured error context
        status_code: HTTP status reported to the client
        error_type: OpenAI-style error type string
        error_code: OpenAI-style error code, if any
    """

    status_code: int = 500
    error_type: str = "internal_error"
    error_code: str | None = None

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
    ) -> None:
        self.message = message
        self.context = context or ErrorContext()
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the full error message."""
        ctx_str = str(self.context)
        if ctx_str:
            return f"{self.message} {ctx_str}"
        return self.message

    def to_envelope(self) -> dict[str, Any]:
        """Render the OpenAI-compatible error body."""
        return {
            "error": {
                "message": self.message,
                "type": self.error_type,
                "param": self.context.field_path,
                "code": self.error_code,
            }
        }


class ValidationError(GatewayError):
    """Invalid client request.

    Raised when:
    - The body is not valid JSON
    - Required fields are missing or empty
    """

    status_code = 400
    error_type = "invalid_request_error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        field: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="validation")
        if field:
            ctx.field_path = field
        super().__init__(message, ctx)


class ModelNotFoundError(ValidationError):
    """Requested model is not in the catalog."""

    error_code = "model_not_found"

    def __init__(self, model: str) -> None:
        super().__init__(
            f"Model '{model}' is not supported",
            ErrorContext(source="validation", hint="GET /v1/models lists the supported models"),
            field="model",
        )
        self.model = model


class AuthenticationError(GatewayError):
    """Missing or malformed Authorization header."""

    status_code = 401
    error_type = "invalid_request_error"

    def __init__(self, message: str = "Missing API key", context: ErrorContext | None = None) -> None:
        super().__init__(message, context or ErrorContext(source="auth"))


class TransportError(GatewayError):
    """Error during HTTP transport to the provider.

    Raised when:
    - Network connection failure
    - Timeout
    - Protocol errors
    """

    status_code = 502
    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        url: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="transport")
        if url:
            ctx.details["url"] = url
        super().__init__(message, ctx)
        self.url = url
        self.__cause__ = cause


class UpstreamReadError(TransportError):
    """The provider connection failed after streaming started.

    Fatal to the current stream. Headers are already sent, so this only
    surfaces as an aborted response body.
    """

    def __init__(
        self,
        message: str,
        *,
        url: str | None = None,
        cause: Exception | None = None,
        records_emitted: int = 0,
    ) -> None:
        ctx = ErrorContext(source="transport")
        ctx.details["records_emitted"] = records_emitted
        super().__init__(message, ctx, url=url, cause=cause)
        self.records_emitted = records_emitted


class RemoteError(GatewayError):
    """Provider answered with an error status.

    Attributes:
        upstream_status: HTTP status returned by the provider
        body: Raw response body text, if any
    """

    status_code = 502
    error_type = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        upstream_status: int,
        body: str | None = None,
    ) -> None:
        ctx = ErrorContext(source="remote")
        ctx.details["upstream_status"] = upstream_status
        super().__init__(message, ctx)
        self.upstream_status = upstream_status
        self.body = body

    @classmethod
    def from_response(cls, status_code: int, body: str | None = None) -> RemoteError:
        """Create RemoteError from a provider response."""
        return cls(
            f"API returned {status_code}",
            upstream_status=status_code,
            body=body,
        )


class PipelineError(GatewayError):
    """Error during stream processing.

    Raised when:
    - A record cannot be decoded
    - A stage receives input it cannot reframe
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        *,
        operator: str | None = None,
    ) -> None:
        ctx = context or ErrorContext(source="pipeline")
        if operator:
            ctx.details["operator"] = operator
        super().__init__(message, ctx)
        self.operator = operator


class MalformedEventError(PipelineError):
    """A single stream record failed structured decoding.

    Recovered locally by the parser: the record is skipped and the stream
    continues.
    """

    def __init__(self, payload: str, *, operator: str | None = None) -> None:
        ctx = ErrorContext(source="pipeline")
        ctx.details["payload_length"] = len(payload)
        super().__init__("Failed to parse stream record", ctx, operator=operator)
        self.payload = payload
