"""
Record framing and event parsing.

Implements:
- LineFramer: raw byte fragments -> complete newline-delimited records
- EventParser: ``data:`` records -> normalized VendorEvents
"""

from __future__ import annotations

import codecs
import json
from typing import TYPE_CHECKING, Any

from onemin_gateway.errors import MalformedEventError
from onemin_gateway.telemetry import get_logger
from onemin_gateway.types.events import ContentEvent, UnrecognizedEvent

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from onemin_gateway.config import StreamFormat
    from onemin_gateway.types.events import VendorEvent

logger = get_logger("onemin_gateway.pipeline.decode")

# Upstream text fields, in precedence order
_CONTENT_FIELDS = ("response", "text")


class LineFramer:
    """Reassembles newline-delimited records from arbitrary byte chunking.

    The leftover buffer only ever holds the unterminated tail of the input,
    so the records produced do not depend on how the bytes were split.

    Example:
        >>> framer = LineFramer()
        >>> framer.feed(b'data: {"respo')
        []
        >>> framer.feed(b'nse": "Hi"}\\n')
        ['data: {"response": "Hi"}']
    """

    def __init__(self, delimiter: str = "\n") -> None:
        self._delimiter = delimiter
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def leftover(self) -> str:
        """Unterminated fragment carried to the next read."""
        return self._buffer

    def feed(self, data: bytes) -> list[str]:
        """Append a byte fragment and return every completed record.

        Args:
            data: Raw bytes from the upstream read

        Returns:
            Complete records, delimiter and trailing ``\\r`` removed
        """
        self._buffer += self._decoder.decode(data)
        if self._delimiter not in self._buffer:
            return []

        *records, self._buffer = self._buffer.split(self._delimiter)
        return [record.rstrip("\r") for record in records]

    def flush(self) -> list[str]:
        """Return the residual fragment at end of stream, if any."""
        self._buffer += self._decoder.decode(b"", final=True)
        residual, self._buffer = self._buffer, ""
        residual = residual.rstrip("\r")
        return [residual] if residual.strip() else []


class EventParser:
    """Turns framed records into VendorEvents.

    Records without the data prefix, blank payloads and the done signal are
    dropped. Payloads that fail JSON decoding are logged and skipped.
    """

    def __init__(self, stream_format: StreamFormat) -> None:
        self._prefix = stream_format.prefix
        self._done_signal = stream_format.done_signal
        self.malformed_count = 0

    def payload(self, record: str) -> str | None:
        """Extract the trimmed data payload of a record.

        Returns:
            The payload, or None for non-data, blank and done records
        """
        if not record.startswith(self._prefix):
            return None
        data = record[len(self._prefix) :].strip()
        if not data or data == self._done_signal:
            return None
        return data

    def decode(self, record: str, *, operator: str = "EventParser") -> Any | None:
        """Decode a record payload as JSON.

        Returns:
            The decoded value, or None when the record carries nothing or
            fails to decode
        """
        data = self.payload(record)
        if data is None:
            return None
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            self.malformed_count += 1
            err = MalformedEventError(data, operator=operator)
            logger.warning(
                err.message,
                operator=operator,
                payload_length=len(data),
                reason=str(e),
            )
            return None

    def parse(self, record: str) -> VendorEvent | None:
        """Parse one record into a VendorEvent."""
        decoded = self.decode(record)
        if decoded is None:
            return None
        return normalize_event(decoded)


def normalize_event(decoded: Any) -> VendorEvent:
    """Normalize a decoded provider payload into a VendorEvent."""
    if not isinstance(decoded, dict):
        return UnrecognizedEvent(payload=decoded)

    model = decoded.get("model")
    if not isinstance(model, str) or not model:
        model = None

    texts = [value for value in map(decoded.get, _CONTENT_FIELDS) if isinstance(value, str)]
    if not texts:
        return UnrecognizedEvent(payload=decoded, model=model)

    # An empty field falls through to the next one
    return ContentEvent(text=next((text for text in texts if text), ""), model=model)


async def iter_records(
    byte_stream: AsyncIterator[bytes], framer: LineFramer
) -> AsyncIterator[str]:
    """Frame an async byte stream, including the residual at end of stream."""
    async for chunk in byte_stream:
        for record in framer.feed(chunk):
            yield record
    for record in framer.flush():
        yield record
