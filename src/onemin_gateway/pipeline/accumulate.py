"""
Per-stream accumulation state.

Tracks the generated text of one stream and a running completion token
estimate recomputed over the whole text after every content fragment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from onemin_gateway.types.events import Usage

if TYPE_CHECKING:
    from onemin_gateway.tokens import TokenCounter
    from onemin_gateway.types.events import VendorEvent


@dataclass
class StreamState:
    """State owned by a single in-flight stream.

    Attributes:
        prompt_tokens: Precomputed prompt token count
        accumulated_text: Concatenation of all generated text so far
        completion_tokens: Running completion token estimate (non-decreasing)
        events: Number of VendorEvents observed
    """

    prompt_tokens: int
    accumulated_text: str = ""
    completion_tokens: int = 0
    events: int = 0

    def usage(self) -> Usage:
        """Usage summary for the terminal chunk."""
        return Usage.from_counts(self.prompt_tokens, self.completion_tokens)


class TokenAccumulator:
    """Updates a StreamState from VendorEvents.

    The estimator is re-run over the entire accumulated text rather than
    summed per fragment, since token counts are not additive across splits.
    """

    def __init__(self, state: StreamState, counter: TokenCounter) -> None:
        self._state = state
        self._counter = counter
        self._state.completion_tokens = max(
            self._state.completion_tokens, counter.count(state.accumulated_text)
        )

    def observe(self, event: VendorEvent) -> int:
        """Account for one event.

        Args:
            event: Decoded upstream event

        Returns:
            The completion token estimate after the event
        """
        self._state.events += 1
        if event.text:
            self._state.accumulated_text += event.text
            estimate = self._counter.count(self._state.accumulated_text)
            self._state.completion_tokens = max(self._state.completion_tokens, estimate)
        return self._state.completion_tokens
