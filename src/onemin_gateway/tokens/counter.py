"""
Token counter implementations.

Token estimates are a pure function of text. Streams recompute the estimate
over the whole accumulated completion, so counters need not be additive.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

import tiktoken

if TYPE_CHECKING:
    from onemin_gateway.config import GatewaySettings


class TokenCounter(ABC):
    """Abstract base class for token counting.

    Example:
        >>> counter = CharacterEstimator()
        >>> counter.count("Hello, world!")
        3
    """

    @abstractmethod
    def count(self, text: str) -> int:
        """Count tokens in text.

        Args:
            text: Text to count

        Returns:
            Token count
        """
        raise NotImplementedError

    def count_messages(self, messages: list[dict[str, Any]]) -> int:
        """Count prompt tokens in OpenAI-style chat messages.

        Args:
            messages: Chat messages (``{"role": ..., "content": ...}``)

        Returns:
            Total token count
        """
        total = 0
        for message in messages:
            # Role (approximately 1 token)
            total += 1

            content = message.get("content")
            if isinstance(content, str):
                total += self.count(content)
            elif isinstance(content, list):
                for part in content:
                    if not isinstance(part, dict):
                        continue
                    if part.get("type") == "text" and part.get("text"):
                        total += self.count(part["text"])
                    elif part.get("type") in ("image_url", "image"):
                        # Images have fixed token cost (approximate)
                        total += 85

        # Message overhead (approximately 3 tokens per message)
        total += len(messages) * 3

        return total


class TiktokenCounter(TokenCounter):
    """Token counter backed by a tiktoken encoding."""

    def __init__(self, encoding_name: str = "cl100k_base") -> None:
        self._encoding = tiktoken.get_encoding(encoding_name)

    def count(self, text: str) -> int:
        """Count tokens using tiktoken."""
        if not text:
            return 0
        return len(self._encoding.encode(text))


class CharacterEstimator(TokenCounter):
    """Character-based token estimator.

    Uses the approximation of ~4 characters per token for English.
    Non-empty text is at least one token; empty text is zero.
    """

    def __init__(self, chars_per_token: float = 4.0) -> None:
        self._chars_per_token = chars_per_token

    def count(self, text: str) -> int:
        """Estimate tokens from character count."""
        if not text:
            return 0
        return max(1, int(len(text) / self._chars_per_token))


# Counters cache (tiktoken encodings are expensive to load)
_counters: dict[tuple[str, str], TokenCounter] = {}


def get_token_counter(tokenizer: str = "tiktoken", encoding: str = "cl100k_base") -> TokenCounter:
    """Get a token counter (cached).

    Args:
        tokenizer: ``tiktoken`` or ``chars``
        encoding: Tiktoken encoding name

    Returns:
        TokenCounter instance
    """
    key = (tokenizer, encoding)
    if key not in _counters:
        if tokenizer == "chars":
            _counters[key] = CharacterEstimator()
        else:
            _counters[key] = TiktokenCounter(encoding)
    return _counters[key]


def counter_from_settings(settings: GatewaySettings) -> TokenCounter:
    """Resolve the configured token counter."""
    return get_token_counter(settings.tokenizer, settings.encoding)
