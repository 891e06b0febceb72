"""Streaming package."""

from .consumer import StreamCompletion, StreamConsumer, StreamError, TokenEvent, consume_stream
from .session import StreamingChunk, StreamingMarkupSession

__all__ = [
    "StreamingChunk",
    "StreamingMarkupSession",
    "StreamConsumer",
    "StreamCompletion",
    "StreamError",
    "TokenEvent",
    "consume_stream",
]
