"""
Streaming reframing pipeline.

Wires the stages for one request:

1. LineFramer (bytes -> records)
2. EventParser (records -> VendorEvents)
3. TokenAccumulator + ChatChunkTransformer (events -> chat chunks)
4. Optional ResponseChunkTransformer (chat chunk bytes -> response chunk bytes)

The only suspension point besides handing output to the consumer is the
upstream read, so a new read is only issued once the previous output was
taken.
"""

from __future__ import annotations

import asyncio
from contextlib import aclosing
from typing import TYPE_CHECKING

from onemin_gateway.config import StreamFormat
from onemin_gateway.errors import GatewayError, UpstreamReadError
from onemin_gateway.pipeline.accumulate import StreamState, TokenAccumulator
from onemin_gateway.pipeline.cancel import CancelReason, CancelToken, UpstreamBody
from onemin_gateway.pipeline.decode import EventParser, LineFramer, iter_records
from onemin_gateway.pipeline.encode import encode_record
from onemin_gateway.pipeline.event_map import ChatChunkTransformer
from onemin_gateway.pipeline.responses import ResponseChunkTransformer
from onemin_gateway.telemetry import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from onemin_gateway.tokens import TokenCounter

logger = get_logger("onemin_gateway.pipeline")


class StreamPipeline:
    """Per-request streaming pipeline.

    Owns the StreamState of one request. Not reusable across requests.

    Example:
        >>> pipeline = StreamPipeline(prompt_tokens=12, counter=CharacterEstimator())
        >>> async for record in pipeline.chat_stream(body):
        ...     send(record)
    """

    def __init__(
        self,
        prompt_tokens: int,
        *,
        counter: TokenCounter,
        default_model: str = "gpt-3.5-turbo",
        stream_format: StreamFormat | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            prompt_tokens: Precomputed prompt token count
            counter: Token estimator for the generated text
            default_model: Model reported when the provider omits one
            stream_format: Framing constants
        """
        self._format = stream_format or StreamFormat()
        self.state = StreamState(prompt_tokens=prompt_tokens)
        self.cancel_token = CancelToken()
        self._accumulator = TokenAccumulator(self.state, counter)
        self._parser = EventParser(self._format)
        self._chunks = ChatChunkTransformer(default_model)
        self._framer = LineFramer(self._format.delimiter)

    @property
    def malformed_count(self) -> int:
        """Number of upstream records skipped for failing to decode."""
        return self._parser.malformed_count

    @property
    def leftover(self) -> str:
        return self._framer.leftover

    async def chat_stream(self, body: UpstreamBody) -> AsyncIterator[bytes]:
        """Reframe an upstream body as a chat chunk event stream.

        Args:
            body: Streaming upstream response body

        Yields:
            Encoded chat chunk records, the terminal chunk, then the sentinel

        Raises:
            UpstreamReadError: If the upstream read fails mid-stream
        """
        emitted = 0
        try:
            async with aclosing(iter_records(body, self._framer)) as records:
                async for record in records:
                    event = self._parser.parse(record)
                    if event is None:
                        continue
                    self._accumulator.observe(event)
                    emitted += 1
                    yield encode_record(self._chunks.transform(event).to_wire(), self._format)

            terminal = self._chunks.finish(self.state)
            logger.info(
                "Stream completed",
                chunks=emitted,
                malformed=self.malformed_count,
                prompt_tokens=self.state.prompt_tokens,
                completion_tokens=self.state.completion_tokens,
            )
            yield encode_record(terminal.to_wire(), self._format)
            yield self._format.sentinel_record
        except (GeneratorExit, asyncio.CancelledError):
            self.cancel_token.cancel(CancelReason.CLIENT_DISCONNECT, chunks=emitted)
            logger.info("Client disconnected, releasing upstream", chunks=emitted)
            raise
        except GatewayError as e:
            self.cancel_token.cancel(CancelReason.UPSTREAM_ERROR, chunks=emitted)
            logger.error("Stream failed", error=e.message, chunks=emitted)
            raise
        except OSError as e:
            self.cancel_token.cancel(CancelReason.UPSTREAM_ERROR, chunks=emitted)
            logger.error("Upstream read failed", error=str(e), chunks=emitted)
            raise UpstreamReadError(
                f"Upstream read failed: {e}", cause=e, records_emitted=emitted
            ) from e
        except Exception:
            self.cancel_token.cancel(CancelReason.INTERNAL_ERROR, chunks=emitted)
            logger.exception("Stream processing failed", chunks=emitted)
            raise
        finally:
            await body.aclose()

    async def responses_stream(self, body: UpstreamBody) -> AsyncIterator[bytes]:
        """Reframe an upstream body as a Responses-API event stream.

        Chains the chat stage into the response stage across the encoded
        wire format.
        """
        stage = ResponseChunkTransformer(self._format)
        async with aclosing(stage.transform(self.chat_stream(body))) as records:
            async for record in records:
                yield record
