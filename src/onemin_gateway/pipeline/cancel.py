"""
Stream cancellation control.

Links the lifetime of an emitted stream to the upstream body it reads from:
when the consumer goes away or the stream fails, the upstream connection is
released.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable


class CancelReason(str, Enum):
    """Reasons a stream stopped before completing."""

    CLIENT_DISCONNECT = "client_disconnect"
    UPSTREAM_ERROR = "upstream_error"
    INTERNAL_ERROR = "internal_error"


@dataclass
class CancelState:
    """State of a cancellation token.

    Attributes:
        cancelled: Whether cancellation was requested
        reason: Reason for cancellation
        timestamp: Time of cancellation
        metadata: Details recorded with the first cancellation
    """

    cancelled: bool = False
    reason: CancelReason | None = None
    timestamp: float | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class CancelToken:
    """Records why a stream stopped early. Only the first reason is kept.

    Example:
        >>> token = CancelToken()
        >>> token.cancel(CancelReason.CLIENT_DISCONNECT, chunks=3)
        True
        >>> token.reason.value
        'client_disconnect'
    """

    def __init__(self) -> None:
        self._state = CancelState()

    def cancel(
        self,
        reason: CancelReason = CancelReason.CLIENT_DISCONNECT,
        **metadata: Any,
    ) -> bool:
        """Request cancellation.

        Returns:
            True if cancellation was newly requested, False if already cancelled
        """
        if self._state.cancelled:
            return False

        self._state.cancelled = True
        self._state.reason = reason
        self._state.timestamp = time.time()
        self._state.metadata.update(metadata)
        return True

    @property
    def is_cancelled(self) -> bool:
        return self._state.cancelled

    @property
    def reason(self) -> CancelReason | None:
        return self._state.reason

    @property
    def state(self) -> CancelState:
        return self._state


class UpstreamBody:
    """Handle on a streaming upstream response body.

    Wraps the raw byte iterator together with the call that releases the
    underlying connection. ``aclose`` is idempotent.
    """

    def __init__(
        self,
        chunks: AsyncIterator[bytes],
        close: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        self._chunks = chunks
        self._close = close
        self._closed = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._chunks

    @property
    def closed(self) -> bool:
        return self._closed

    async def aclose(self) -> None:
        """Release the upstream connection."""
        if self._closed:
            return
        self._closed = True
        aclose = getattr(self._chunks, "aclose", None)
        if aclose is not None:
            await aclose()
        if self._close is not None:
            await self._close()
