from __future__ import annotations

import json
import logging

import pytest

from chatmarkup.parser.base import QuoteBlock
from chatmarkup.streaming.consumer import StreamConsumer, StreamError, TokenEvent, consume_stream


def _line(chunk_type: str, data: dict, session_id: str = "s1") -> str:
    return json.dumps({"chunkType": chunk_type, "data": data, "timestamp": "t", "sessionId": session_id}) + "\n"


def _answer_stream() -> list[str]:
    return [
        _line("start", {"message": "Starting"}),
        _line("metadata", {"contentType": "text/markdown"}),
        _line("section", {"section": "answer", "action": "start"}),
        _line("token", {"token": "Hello ", "cumulativeContent": "Hello ", "section": "answer", "index": 0}),
        _line(
            "token",
            {"token": "world", "cumulativeContent": "Hello world", "section": "answer", "index": 1, "isLastToken": True},
        ),
        _line("progress", {"progress": 100}),
        _line("section", {"section": "answer", "action": "end"}),
        _line("complete", {"finalContent": "Hello world\n\n> Done", "totalTokens": 2}),
    ]


def test_consume_stream_builds_final_content() -> None:
    events: list[TokenEvent] = []

    completion = consume_stream(_answer_stream(), on_token=events.append)

    assert completion.content == "Hello world\nDone"
    assert completion.parsed.blocks[1] == QuoteBlock(text="Done")
    assert completion.session_id == "s1"
    assert completion.metadata["totalTokens"] == 2
    assert completion.sections["answer"].content == "Hello world"
    assert completion.current_section is None

    assert [event.token for event in events] == ["Hello ", "world"]
    assert events[1].parsed.plain_text == "Hello world"
    assert events[1].section == "answer"
    assert events[1].section_content == "Hello world"
    assert events[1].is_last_token is True
    assert events[0].index == 0


def test_lines_split_across_pieces() -> None:
    consumer = StreamConsumer()
    raw = "".join(_answer_stream())

    events = []
    for offset in range(0, len(raw), 7):
        events.extend(consumer.feed(raw[offset:offset + 7]))

    assert len(events) == 2
    assert consumer.close().content == "Hello world\nDone"


def test_unterminated_last_line_is_flushed_on_close() -> None:
    consumer = StreamConsumer()
    consumer.feed(_line("token", {"token": "partial"}).rstrip("\n"))

    assert consumer.parsed.plain_text == ""
    assert consumer.close().content == "partial"


def test_start_resets_previous_message() -> None:
    consumer = StreamConsumer()
    consumer.feed(_line("token", {"token": "old"}))
    consumer.feed(_line("start", {}))
    consumer.feed(_line("token", {"token": "new"}))

    assert consumer.parsed.plain_text == "new"


def test_tokens_for_unopened_section_only_feed_main_session() -> None:
    consumer = StreamConsumer()
    [event] = consumer.feed(_line("token", {"token": "x", "section": "reasoning"}))

    assert event.section_content is None
    assert consumer.sections == {}
    assert consumer.parsed.plain_text == "x"


def test_malformed_lines_are_skipped(caplog: pytest.LogCaptureFixture) -> None:
    consumer = StreamConsumer()

    with caplog.at_level(logging.WARNING, logger="chatmarkup.streaming.consumer"):
        events = consumer.feed("{not json\n[1, 2]\n" + _line("token", {"token": "ok"}))

    assert len(events) == 1
    assert consumer.parsed.plain_text == "ok"
    assert "Failed to parse streaming chunk" in caplog.text


def test_unknown_chunk_type_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    consumer = StreamConsumer()

    with caplog.at_level(logging.WARNING, logger="chatmarkup.streaming.consumer"):
        assert consumer.feed(_line("mystery", {})) == []

    assert "Unknown chunk type: mystery" in caplog.text


def test_error_chunk_raises() -> None:
    consumer = StreamConsumer()
    error = {"message": "generation failed", "code": "GENERATION_ERROR", "details": "boom", "recoverable": True}

    with pytest.raises(StreamError) as excinfo:
        consumer.feed(_line("error", {"error": error}))

    assert str(excinfo.value) == "generation failed"
    assert excinfo.value.code == "GENERATION_ERROR"
    assert excinfo.value.details == "boom"
    assert excinfo.value.recoverable is True
