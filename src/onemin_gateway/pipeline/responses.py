"""
Chat chunk stream to Responses-API stream reframing.

The second stage works on the wire bytes emitted by the chat stage rather
than its in-memory chunks, so either stage can be driven and tested against
the literal event-stream format.
"""

from __future__ import annotations

from contextlib import aclosing
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from onemin_gateway.pipeline.decode import EventParser, LineFramer, iter_records
from onemin_gateway.pipeline.encode import encode_record
from onemin_gateway.telemetry import get_logger
from onemin_gateway.types.events import (
    CHAT_ID_PREFIX,
    RESPONSE_ID_PREFIX,
    ResponseChunk,
    ResponseOutputDelta,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from onemin_gateway.config import StreamFormat

logger = get_logger("onemin_gateway.pipeline.responses")


def to_response_id(chat_id: str) -> str:
    """Swap the chat completion id prefix for the response prefix."""
    if chat_id.startswith(CHAT_ID_PREFIX):
        return RESPONSE_ID_PREFIX + chat_id[len(CHAT_ID_PREFIX) :]
    return chat_id


def to_response_chunk(chat_chunk: dict[str, Any]) -> ResponseChunk:
    """Build a ResponseChunk from a decoded chat chunk.

    Each choice becomes one output entry. ``delta`` is carried only when the
    source delta had a ``content`` field; ``finish_reason`` only when set.
    """
    output = []
    for position, choice in enumerate(chat_chunk.get("choices") or []):
        delta = choice.get("delta") or {}
        output.append(
            ResponseOutputDelta(
                index=choice.get("index", position),
                delta=delta.get("content") if "content" in delta else None,
                finish_reason=choice.get("finish_reason") or None,
            )
        )

    return ResponseChunk(
        id=to_response_id(str(chat_chunk.get("id", ""))),
        created=chat_chunk.get("created"),
        model=chat_chunk.get("model"),
        output=output,
        usage=chat_chunk.get("usage"),
    )


class ResponseChunkTransformer:
    """Re-wraps an encoded chat chunk stream as a Responses-API stream.

    Sentinel records of the chat stream are absorbed. One sentinel of this
    stage's own is emitted once the underlying byte stream is exhausted.
    """

    def __init__(self, stream_format: StreamFormat) -> None:
        self._format = stream_format
        self._parser = EventParser(stream_format)
        self._rejected = 0
        self.chunks_emitted = 0

    @property
    def malformed_count(self) -> int:
        """Records skipped for failing to decode or for an unexpected shape."""
        return self._parser.malformed_count + self._rejected

    def _build(self, decoded: Any) -> ResponseChunk | None:
        """Build a ResponseChunk, or log and count a record of the wrong shape."""
        if isinstance(decoded, dict):
            try:
                return to_response_chunk(decoded)
            except (AttributeError, TypeError, ValidationError) as e:
                reason = str(e)
        else:
            reason = f"expected object, got {type(decoded).__name__}"

        self._rejected += 1
        logger.warning(
            "Skipping chat chunk with unexpected shape",
            operator="ResponseChunkTransformer",
            reason=reason,
        )
        return None

    async def transform(self, chat_stream: AsyncIterator[bytes]) -> AsyncIterator[bytes]:
        """Reframe a chat chunk byte stream.

        Args:
            chat_stream: Encoded chat chunk records

        Yields:
            Encoded response chunk records, then the sentinel record
        """
        framer = LineFramer(self._format.delimiter)
        async with aclosing(chat_stream) as source, aclosing(
            iter_records(source, framer)
        ) as records:
            async for record in records:
                decoded = self._parser.decode(record, operator="ResponseChunkTransformer")
                if decoded is None:
                    continue

                chunk = self._build(decoded)
                if chunk is None:
                    continue
                self.chunks_emitted += 1
                yield encode_record(chunk.to_wire(), self._format)

        yield self._format.sentinel_record
