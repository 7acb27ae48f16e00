"""
Type definitions for onemin-gateway.
"""

from onemin_gateway.types.events import (
    CHAT_ID_PREFIX,
    RESPONSE_ID_PREFIX,
    ChatChunk,
    ChunkChoice,
    ChunkDelta,
    ContentEvent,
    ResponseChunk,
    ResponseOutputDelta,
    UnrecognizedEvent,
    Usage,
    VendorEvent,
)

__all__ = [
    "CHAT_ID_PREFIX",
    "RESPONSE_ID_PREFIX",
    "ChatChunk",
    "ChunkChoice",
    "ChunkDelta",
    "ContentEvent",
    "ResponseChunk",
    "ResponseOutputDelta",
    "UnrecognizedEvent",
    "Usage",
    "VendorEvent",
]
