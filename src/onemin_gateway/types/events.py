"""
Streaming event models.

Upstream payloads are normalized into a tagged ``VendorEvent`` at the parser
boundary. ``ChatChunk`` and ``ResponseChunk`` are the two emitted wire shapes.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

CHAT_ID_PREFIX = "chatcmpl-"
RESPONSE_ID_PREFIX = "resp-"


class ContentEvent(BaseModel):
    """Upstream fragment carrying generated text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["content"] = "content"
    text: str = Field(description="Generated text fragment")
    model: str | None = Field(default=None, description="Provider-reported model")


class UnrecognizedEvent(BaseModel):
    """Decoded upstream payload with no recognized text field."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unrecognized"] = "unrecognized"
    payload: Any = Field(default=None, description="Decoded JSON value")
    model: str | None = Field(default=None, description="Provider-reported model")

    @property
    def text(self) -> str:
        return ""


VendorEvent = Union[ContentEvent, UnrecognizedEvent]


class Usage(BaseModel):
    """Token usage summary."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @classmethod
    def from_counts(cls, prompt_tokens: int, completion_tokens: int) -> Usage:
        return cls(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )


class ChunkDelta(BaseModel):
    content: str | None = None


class ChunkChoice(BaseModel):
    index: int = 0
    delta: ChunkDelta = Field(default_factory=ChunkDelta)
    logprobs: Any = None
    finish_reason: Literal["stop"] | None = None


def _new_chat_id() -> str:
    return f"{CHAT_ID_PREFIX}{uuid.uuid4().hex}"


def _now() -> int:
    return int(time.time())


class ChatChunk(BaseModel):
    """Incremental chat completion chunk (``chat.completion.chunk``)."""

    id: str = Field(default_factory=_new_chat_id)
    object: Literal["chat.completion.chunk"] = "chat.completion.chunk"
    created: int = Field(default_factory=_now)
    model: str
    system_fingerprint: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=lambda: [ChunkChoice()])
    usage: Usage | None = None

    @classmethod
    def content(cls, text: str, model: str) -> ChatChunk:
        """Create a content delta chunk."""
        return cls(model=model, choices=[ChunkChoice(delta=ChunkDelta(content=text))])

    @classmethod
    def terminal(cls, model: str, usage: Usage) -> ChatChunk:
        """Create the final chunk carrying finish reason and usage."""
        return cls(
            model=model,
            choices=[ChunkChoice(delta=ChunkDelta(), finish_reason="stop")],
            usage=usage,
        )

    def to_wire(self) -> dict[str, Any]:
        """Wire representation: empty deltas render as ``{}``, usage only when set."""
        data = self.model_dump(exclude={"usage", "choices"})
        data["choices"] = [
            {
                "index": choice.index,
                "delta": choice.delta.model_dump(exclude_none=True),
                "logprobs": choice.logprobs,
                "finish_reason": choice.finish_reason,
            }
            for choice in self.choices
        ]
        if self.usage is not None:
            data["usage"] = self.usage.model_dump()
        return data


class ResponseOutputDelta(BaseModel):
    index: int = 0
    object: Literal["response.chunk.delta"] = "response.chunk.delta"
    delta: str | None = None
    finish_reason: str | None = None


class ResponseChunk(BaseModel):
    """Incremental Responses-API chunk (``response.chunk``)."""

    id: str
    object: Literal["response.chunk"] = "response.chunk"
    created: int | None = None
    model: str | None = None
    output: list[ResponseOutputDelta] = Field(default_factory=list)
    usage: dict[str, Any] | None = None

    def to_wire(self) -> dict[str, Any]:
        """Wire representation: absent delta, finish reason and usage are omitted."""
        data = self.model_dump(exclude={"output", "usage"})
        data["output"] = [item.model_dump(exclude_none=True) for item in self.output]
        if self.usage is not None:
            data["usage"] = self.usage
        return data
