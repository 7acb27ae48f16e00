"""Tests for record framing and event parsing."""

import pytest

from onemin_gateway.config import StreamFormat
from onemin_gateway.pipeline import EventParser, LineFramer, iter_records, normalize_event
from onemin_gateway.types.events import ContentEvent, UnrecognizedEvent

UPSTREAM = (
    'data: {"response":"Hel"}\n\n'
    "data: {not json}\n\n"
    'data: {"text":"lö 世界"}\n\n'
    ": keep-alive\n"
    'data: {"model":"gpt-4o"}\n\n'
    "data: [DONE]\n\n"
).encode("utf-8")


def _frame(chunks: list[bytes]) -> list[str]:
    framer = LineFramer()
    records: list[str] = []
    for chunk in chunks:
        records.extend(framer.feed(chunk))
    records.extend(framer.flush())
    return records


class TestLineFramer:
    """Tests for LineFramer."""

    def test_records_across_reads(self) -> None:
        """Test a record split across two reads is reassembled."""
        framer = LineFramer()
        assert framer.feed(b'data: {"respo') == []
        assert framer.leftover == 'data: {"respo'
        records = framer.feed(b'nse":"Hel"}\n\ndata: {"response":"lo"}\n\n')
        assert records == ['data: {"response":"Hel"}', "", 'data: {"response":"lo"}', ""]
        assert framer.leftover == ""

    def test_leftover_never_holds_delimiter(self) -> None:
        """Test the leftover buffer only keeps the unterminated tail."""
        framer = LineFramer()
        framer.feed(b"a\nb\nc")
        assert "\n" not in framer.leftover
        assert framer.leftover == "c"

    def test_split_invariance(self) -> None:
        """Test framing is identical for every two-way split of the input."""
        expected = _frame([UPSTREAM])
        for cut in range(len(UPSTREAM) + 1):
            assert _frame([UPSTREAM[:cut], UPSTREAM[cut:]]) == expected

    def test_byte_at_a_time(self) -> None:
        """Test single-byte reads, including inside multi-byte characters."""
        chunks = [UPSTREAM[i : i + 1] for i in range(len(UPSTREAM))]
        assert _frame(chunks) == _frame([UPSTREAM])

    def test_crlf_records(self) -> None:
        """Test carriage returns are stripped from records."""
        assert _frame([b"data: 1\r\n\r\n"]) == ["data: 1", ""]

    def test_flush_returns_residual(self) -> None:
        """Test an unterminated final record is returned at end of stream."""
        framer = LineFramer()
        assert framer.feed(b'data: {"response":"tail"}') == []
        assert framer.flush() == ['data: {"response":"tail"}']
        assert framer.flush() == []

    def test_flush_ignores_blank_residual(self) -> None:
        """Test whitespace-only residue produces no record."""
        framer = LineFramer()
        framer.feed(b"data: x\n  ")
        assert framer.flush() == []

    @pytest.mark.asyncio
    async def test_iter_records(self) -> None:
        """Test async framing includes the flushed residual."""

        async def byte_stream():
            yield b"data: 1\nda"
            yield b"ta: 2"

        records = [r async for r in iter_records(byte_stream(), LineFramer())]
        assert records == ["data: 1", "data: 2"]


class TestEventParser:
    """Tests for EventParser."""

    def test_parse_content(self) -> None:
        """Test content extraction from the response field."""
        parser = EventParser(StreamFormat())
        event = parser.parse('data: {"response": "Hi", "model": "gpt-4o"}')
        assert event == ContentEvent(text="Hi", model="gpt-4o")

    def test_text_field_fallback(self) -> None:
        """Test the text field is used when response is absent."""
        parser = EventParser(StreamFormat())
        event = parser.parse('data: {"text": "Hi"}')
        assert isinstance(event, ContentEvent)
        assert event.text == "Hi"

    def test_response_field_wins(self) -> None:
        """Test response takes precedence over text."""
        parser = EventParser(StreamFormat())
        event = parser.parse('data: {"response": "a", "text": "b"}')
        assert event.text == "a"

    def test_ignored_records(self) -> None:
        """Test non-data, blank, empty and done records are dropped."""
        parser = EventParser(StreamFormat())
        assert parser.parse("") is None
        assert parser.parse(": comment") is None
        assert parser.parse("event: message") is None
        assert parser.parse("data: ") is None
        assert parser.parse("data:    ") is None
        assert parser.parse("data: [DONE]") is None
        assert parser.parse("data:  [DONE]  ") is None
        assert parser.malformed_count == 0

    def test_malformed_is_skipped(self) -> None:
        """Test malformed JSON is counted and skipped, not raised."""
        parser = EventParser(StreamFormat())
        assert parser.parse("data: {not json}") is None
        assert parser.malformed_count == 1
        assert parser.parse('data: {"response": "ok"}').text == "ok"

    def test_unrecognized_payloads(self) -> None:
        """Test payloads without text fields normalize to UnrecognizedEvent."""
        parser = EventParser(StreamFormat())
        event = parser.parse('data: {"model": "gpt-4o"}')
        assert isinstance(event, UnrecognizedEvent)
        assert event.text == ""
        assert event.model == "gpt-4o"

        event = parser.parse("data: [1, 2]")
        assert isinstance(event, UnrecognizedEvent)
        assert event.payload == [1, 2]

    def test_custom_prefix(self) -> None:
        """Test a custom data prefix and done signal."""
        parser = EventParser(StreamFormat(prefix="payload: ", done_signal="END"))
        assert parser.parse('data: {"response": "x"}') is None
        assert parser.parse("payload: END") is None
        assert parser.parse('payload: {"response": "x"}').text == "x"


class TestNormalizeEvent:
    """Tests for normalize_event."""

    def test_null_response_falls_through(self) -> None:
        """Test a null response field falls back to text."""
        assert normalize_event({"response": None, "text": "t"}).text == "t"

    def test_empty_response_falls_through(self) -> None:
        """Test an empty response field falls back to a non-empty text."""
        assert normalize_event({"response": "", "text": "x"}).text == "x"
        assert normalize_event({"response": "r", "text": "x"}).text == "r"

    def test_empty_response_alone(self) -> None:
        """Test an empty response without other text is still content."""
        event = normalize_event({"response": ""})
        assert isinstance(event, ContentEvent)
        assert event.text == ""

    def test_empty_model_ignored(self) -> None:
        """Test an empty model string is treated as absent."""
        assert normalize_event({"response": "x", "model": ""}).model is None

    def test_scalar_payload(self) -> None:
        """Test scalar JSON values are unrecognized."""
        assert isinstance(normalize_event("hello"), UnrecognizedEvent)
