"""Wire encoding for emitted event-stream records."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from onemin_gateway.config import StreamFormat


def encode_record(payload: dict[str, Any], stream_format: StreamFormat) -> bytes:
    """Encode one JSON payload as a ``data:`` record followed by a blank line."""
    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    return f"{stream_format.prefix}{body}\n\n".encode()
