"""Unit tests for the SSE line buffer and frame parser."""

from biomed_assistant.data_sources.sse import (
    SSEFrame,
    SSEFrameParser,
    SSELineBuffer,
    extract_session_id,
)


class TestSSELineBuffer:
    def test_holds_back_partial_line(self):
        buffer = SSELineBuffer()

        assert buffer.feed(b"data: hel") == []
        assert buffer.pending == "data: hel"
        assert buffer.feed(b"lo\nevent: x") == ["data: hello"]
        assert buffer.pending == "event: x"

    def test_strips_carriage_returns(self):
        buffer = SSELineBuffer()
        assert buffer.feed(b"event: message\r\ndata: {}\r\n") == [
            "event: message",
            "data: {}",
        ]

    def test_multibyte_character_split_across_chunks(self):
        encoded = "data: étude\n".encode()
        split = encoded.index(b"\xc3") + 1
        buffer = SSELineBuffer()

        assert buffer.feed(encoded[:split]) == []
        assert buffer.feed(encoded[split:]) == ["data: étude"]


class TestSSEFrameParser:
    def test_event_type_applies_to_next_data_line_only(self):
        parser = SSEFrameParser()
        frames = parser.parse_lines(
            ["event: result", "data: {\"a\": 1}", "data: {\"b\": 2}"]
        )

        assert frames == [
            SSEFrame(event_type="result", data_payload='{"a": 1}'),
            SSEFrame(event_type=None, data_payload='{"b": 2}'),
        ]

    def test_event_type_carries_across_calls(self):
        parser = SSEFrameParser()
        assert parser.parse_lines(["event: message"]) == []
        assert parser.parse_lines(["data: x"]) == [
            SSEFrame(event_type="message", data_payload="x")
        ]

    def test_ignores_comments_and_blank_lines(self):
        parser = SSEFrameParser()
        assert parser.parse_lines([": ping", "", "id: 4"]) == []


class TestExtractSessionId:
    def test_finds_token_in_endpoint_line(self):
        line = "data: /messages/?session_id=9f8e7d6c5b4a"
        assert extract_session_id(line) == "9f8e7d6c5b4a"

    def test_stops_at_quote(self):
        line = 'data: {"endpoint": "/messages/?session_id=abc123"}'
        assert extract_session_id(line) == "abc123"

    def test_requires_data_field(self):
        assert extract_session_id("event: endpoint session_id=abc") is None

    def test_no_token(self):
        assert extract_session_id("data: ping") is None
