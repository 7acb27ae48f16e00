"""
Pipeline layer - Stream reframing operators.

This module implements the streaming reframing pipeline:
- LineFramer: Reassembles newline-delimited records from raw bytes
- EventParser: Decodes ``data:`` records into VendorEvents
- TokenAccumulator: Tracks generated text and the completion token estimate
- ChatChunkTransformer: Maps events to chat completion chunks
- ResponseChunkTransformer: Re-wraps chat chunk streams as Responses-API streams
- StreamPipeline: Wires the stages for one request
"""

from onemin_gateway.pipeline.accumulate import StreamState, TokenAccumulator
from onemin_gateway.pipeline.base import StreamPipeline
from onemin_gateway.pipeline.cancel import (
    CancelReason,
    CancelState,
    CancelToken,
    UpstreamBody,
)
from onemin_gateway.pipeline.decode import (
    EventParser,
    LineFramer,
    iter_records,
    normalize_event,
)
from onemin_gateway.pipeline.encode import encode_record
from onemin_gateway.pipeline.event_map import ChatChunkTransformer
from onemin_gateway.pipeline.responses import (
    ResponseChunkTransformer,
    to_response_chunk,
    to_response_id,
)

__all__ = [
    "CancelReason",
    "CancelState",
    "CancelToken",
    "ChatChunkTransformer",
    "EventParser",
    "LineFramer",
    "ResponseChunkTransformer",
    "StreamPipeline",
    "StreamState",
    "TokenAccumulator",
    "UpstreamBody",
    "encode_record",
    "iter_records",
    "normalize_event",
    "to_response_chunk",
    "to_response_id",
]
