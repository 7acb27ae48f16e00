"""
Telemetry module for onemin-gateway.

Provides structured, request-scoped logging.
"""

from onemin_gateway.telemetry.logger import (
    GatewayLogger,
    LogContext,
    LogLevel,
    SensitiveDataMasker,
    clear_log_context,
    get_log_context,
    get_logger,
    new_request_id,
    set_log_context,
)

__all__ = [
    "GatewayLogger",
    "LogContext",
    "LogLevel",
    "SensitiveDataMasker",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "new_request_id",
    "set_log_context",
]
