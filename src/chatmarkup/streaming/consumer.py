"""Consume newline-delimited structured chat chunks into parsed content.

The agent API streams one JSON object per line::

    {"chunkType": "token", "data": {"token": "Hi", "cumulativeContent": "Hi"},
     "timestamp": "...", "sessionId": "..."}

Chunk types are ``start``, ``metadata``, ``section``, ``token``, ``progress``,
``complete`` and ``error``. The consumer is transport-agnostic: feed it the
text pieces of a response body in arrival order.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from chatmarkup.content import ParsedMessageContent
from chatmarkup.parser.markup_parser import MarkupParser

from .session import StreamingChunk, StreamingMarkupSession

logger = logging.getLogger(__name__)


class StreamError(Exception):
    """Raised when the stream reports a server-side failure."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: str | None = None,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details
        self.recoverable = recoverable


@dataclass(slots=True)
class SectionSnapshot:
    content: str
    parsed: ParsedMessageContent


@dataclass(slots=True)
class TokenEvent:
    token: str | None
    parsed: ParsedMessageContent
    section: str | None = None
    content_type: str | None = None
    index: int | None = None
    total_tokens: int | None = None
    progress: float | None = None
    token_type: str | None = None
    is_last_token: bool | None = None
    timestamp: str | None = None
    session_id: str | None = None
    section_content: str | None = None


@dataclass(slots=True)
class StreamCompletion:
    content: str
    parsed: ParsedMessageContent
    sections: dict[str, SectionSnapshot] = field(default_factory=dict)
    current_section: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None


class StreamConsumer:
    """Route structured chunks into a main session plus one per section.

    Like :class:`StreamingMarkupSession`, a consumer serves a single stream
    and must be driven from one reader loop.
    """

    def __init__(self, parser: MarkupParser | None = None) -> None:
        self._parser = parser or MarkupParser()
        self._session = StreamingMarkupSession(self._parser)
        self._latest = self._session.get_current()
        self._buffer = ""
        self._section_sessions: dict[str, StreamingMarkupSession] = {}
        self.sections: dict[str, SectionSnapshot] = {}
        self.current_section: str | None = None
        self.stream_metadata: dict[str, Any] = {}
        self._completion_metadata: dict[str, Any] = {}
        self._session_id: str | None = None

    @property
    def parsed(self) -> ParsedMessageContent:
        return self._latest

    def feed(self, text: str) -> list[TokenEvent]:
        """Buffer *text* and handle every complete line in it."""
        self._buffer += text
        *lines, self._buffer = self._buffer.split("\n")
        events: list[TokenEvent] = []
        for line in lines:
            event = self.handle_line(line)
            if event is not None:
                events.append(event)
        return events

    def close(self) -> StreamCompletion:
        """Flush any unterminated trailing line and return the final result."""
        pending, self._buffer = self._buffer, ""
        if pending:
            self.handle_line(pending)
        return self.completion()

    def handle_line(self, line: str) -> TokenEvent | None:
        if not line.strip():
            return None
        try:
            chunk = json.loads(line)
        except json.JSONDecodeError as exc:
            logger.warning("Failed to parse streaming chunk: %s", exc)
            return None
        if not isinstance(chunk, dict):
            logger.warning("Ignoring non-object streaming chunk: %r", chunk)
            return None
        return self.handle_chunk(chunk)

    def handle_chunk(self, chunk: dict[str, Any]) -> TokenEvent | None:
        chunk_type = chunk.get("chunkType")
        data = chunk.get("data")
        if not isinstance(data, dict):
            data = {}
        if chunk.get("sessionId"):
            self._session_id = chunk["sessionId"]

        if chunk_type == "start":
            self._start()
            logger.debug("Stream started: %s", data)
        elif chunk_type == "metadata":
            self.stream_metadata.update(data)
        elif chunk_type == "section":
            self._handle_section(data)
        elif chunk_type == "token":
            return self._handle_token(chunk, data)
        elif chunk_type == "progress":
            logger.debug("Stream progress: %s%%", data.get("progress"))
        elif chunk_type == "complete":
            self._handle_complete(chunk, data)
        elif chunk_type == "error":
            error = data.get("error")
            if not isinstance(error, dict):
                error = {}
            raise StreamError(
                error.get("message") or "Unknown streaming error",
                code=error.get("code"),
                details=error.get("details"),
                recoverable=bool(error.get("recoverable", False)),
            )
        else:
            logger.warning("Unknown chunk type: %s", chunk_type)
        return None

    def completion(self) -> StreamCompletion:
        self._snapshot_all_sections()
        return StreamCompletion(
            content=self._latest.plain_text,
            parsed=self._latest,
            sections=dict(self.sections),
            current_section=self.current_section,
            metadata=dict(self._completion_metadata),
            session_id=self._session_id,
        )

    def _start(self) -> None:
        self._session.reset()
        self._latest = self._session.get_current()
        self._section_sessions.clear()
        self.sections = {}
        self.current_section = None
        self._completion_metadata = {}

    def _handle_section(self, data: dict[str, Any]) -> None:
        name = data.get("section")
        if not isinstance(name, str):
            logger.warning("Section chunk without a section name: %s", data)
            return
        action = data.get("action")
        if action == "start":
            self.current_section = name
            self._section_sessions.setdefault(name, StreamingMarkupSession(self._parser))
            logger.debug("Section start: %s", name)
        elif action == "end":
            self._snapshot_section(name)
            self.current_section = None
            logger.debug("Section end: %s", name)
        else:
            logger.warning("Unknown section action %r for %s", action, name)

    def _handle_token(self, chunk: dict[str, Any], data: dict[str, Any]) -> TokenEvent:
        token = _string_or_none(data.get("token"))
        self._latest = self._session.append(
            StreamingChunk(token=token, cumulative_content=_string_or_none(data.get("cumulativeContent")))
        )

        section = _string_or_none(data.get("section"))
        section_content: str | None = None
        section_session = self._section_sessions.get(section) if section else None
        if section_session is not None:
            section_parsed = section_session.append(StreamingChunk(token=token))
            self.sections[section] = SectionSnapshot(content=section_parsed.plain_text, parsed=section_parsed)
            section_content = section_parsed.plain_text

        return TokenEvent(
            token=token,
            parsed=self._latest,
            section=section,
            content_type=data.get("contentType"),
            index=data.get("index"),
            total_tokens=data.get("totalTokens"),
            progress=data.get("progress"),
            token_type=data.get("tokenType"),
            is_last_token=data.get("isLastToken"),
            timestamp=chunk.get("timestamp"),
            session_id=chunk.get("sessionId"),
            section_content=section_content,
        )

    def _handle_complete(self, chunk: dict[str, Any], data: dict[str, Any]) -> None:
        self._snapshot_all_sections()
        self._completion_metadata = {
            **data,
            "timestamp": chunk.get("timestamp"),
            "sessionId": chunk.get("sessionId"),
        }
        final_content = data.get("finalContent")
        if isinstance(final_content, str):
            self._latest = self._session.append(StreamingChunk(cumulative_content=final_content))
        logger.debug("Stream completed: %s", data.get("message"))

    def _snapshot_section(self, name: str) -> None:
        section_session = self._section_sessions.get(name)
        if section_session is None:
            return
        parsed = section_session.get_current()
        self.sections[name] = SectionSnapshot(content=parsed.plain_text, parsed=parsed)

    def _snapshot_all_sections(self) -> None:
        for name in self._section_sessions:
            self._snapshot_section(name)


def consume_stream(
    pieces: Iterable[str],
    on_token: Callable[[TokenEvent], None] | None = None,
    *,
    parser: MarkupParser | None = None,
) -> StreamCompletion:
    """Feed every text piece of a structured stream and return the result."""
    consumer = StreamConsumer(parser)
    for piece in pieces:
        for event in consumer.feed(piece):
            if on_token is not None:
                on_token(event)
    return consumer.close()


def _string_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None
