"""Root pytest fixtures for onemin-gateway tests."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from typing import Any

import pytest

from onemin_gateway.config import GatewaySettings, StreamFormat
from onemin_gateway.pipeline import UpstreamBody
from onemin_gateway.tokens import CharacterEstimator


class RecordingBody(UpstreamBody):
    """UpstreamBody over fixed chunks that records reads and closes."""

    def __init__(self, chunks: Iterable[bytes], *, fail_after: int | None = None) -> None:
        self.chunks = list(chunks)
        self.reads = 0
        self.close_calls = 0
        self._fail_after = fail_after
        super().__init__(self._generate(), self._on_close)

    async def _generate(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            if self._fail_after is not None and self.reads >= self._fail_after:
                raise ConnectionResetError("connection reset by peer")
            self.reads += 1
            yield chunk
        if self._fail_after is not None and self.reads >= self._fail_after:
            raise ConnectionResetError("connection reset by peer")

    async def _on_close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def make_body():
    """Factory for upstream bodies built from byte chunks."""

    def factory(*chunks: bytes, fail_after: int | None = None) -> RecordingBody:
        return RecordingBody(chunks, fail_after=fail_after)

    return factory


@pytest.fixture
def counter() -> CharacterEstimator:
    return CharacterEstimator()


@pytest.fixture
def stream_format() -> StreamFormat:
    return StreamFormat()


@pytest.fixture
def settings() -> GatewaySettings:
    return GatewaySettings(
        upstream_base_url="https://upstream.test",
        tokenizer="chars",
    )


def parse_records(raw: bytes) -> list[Any]:
    """Split an emitted event stream into decoded payloads.

    The sentinel is returned as the string ``"[DONE]"``.
    """
    records: list[Any] = []
    for line in raw.decode("utf-8").split("\n"):
        if not line.startswith("data: "):
            continue
        data = line[len("data: ") :]
        records.append(data if data == "[DONE]" else json.loads(data))
    return records


async def collect(stream: AsyncIterator[bytes]) -> bytes:
    """Drain an emitted stream into one byte string."""
    return b"".join([chunk async for chunk in stream])


@pytest.fixture
def parse():
    return parse_records


@pytest.fixture
def drain():
    return collect
