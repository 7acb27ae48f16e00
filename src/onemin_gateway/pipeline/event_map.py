"""
Provider event to chat chunk mapping.

Maps each VendorEvent to exactly one ``chat.completion.chunk`` and builds the
terminal chunk that carries the finish reason and usage summary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from onemin_gateway.types.events import ChatChunk

if TYPE_CHECKING:
    from onemin_gateway.pipeline.accumulate import StreamState
    from onemin_gateway.types.events import VendorEvent


class ChatChunkTransformer:
    """Builds chat chunks from provider events.

    Chunk ids are generated per chunk; clients consume chunks by arrival
    order, not by id continuity.
    """

    def __init__(self, default_model: str) -> None:
        self._default_model = default_model

    def transform(self, event: VendorEvent) -> ChatChunk:
        """Map one provider event to one content chunk."""
        return ChatChunk.content(event.text, event.model or self._default_model)

    def finish(self, state: StreamState) -> ChatChunk:
        """Build the terminal chunk for a completed stream."""
        return ChatChunk.terminal(self._default_model, state.usage())
