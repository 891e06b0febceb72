"""Accumulate a streamed message and re-parse it on every chunk."""

from __future__ import annotations

from dataclasses import dataclass

from chatmarkup.content import ParsedMessageContent, build_parsed_message_content
from chatmarkup.parser.markup_parser import MarkupParser


@dataclass(slots=True, frozen=True)
class StreamingChunk:
    """One streamed update.

    ``cumulative_content`` (even an empty string) replaces the accumulated
    text; otherwise ``token`` is appended to it.
    """

    token: str | None = None
    cumulative_content: str | None = None


class StreamingMarkupSession:
    """Mutable holder of one in-flight message.

    Every call re-parses the whole accumulated text, since a later line can
    change how earlier lines are classified (a table only exists once its
    divider and first row have arrived).

    A session is not thread-safe. Give each stream its own session and call
    it from a single reader loop.
    """

    def __init__(self, parser: MarkupParser | None = None) -> None:
        self._parser = parser or MarkupParser()
        self._content = ""

    @property
    def content(self) -> str:
        return self._content

    def append(self, chunk: StreamingChunk) -> ParsedMessageContent:
        if chunk.cumulative_content is not None:
            self._content = chunk.cumulative_content
        elif chunk.token is not None:
            self._content += chunk.token
        return self.get_current()

    def append_token(self, token: str) -> ParsedMessageContent:
        return self.append(StreamingChunk(token=token))

    def reset(self) -> None:
        self._content = ""

    def get_current(self) -> ParsedMessageContent:
        return build_parsed_message_content(self._content, parser=self._parser)
