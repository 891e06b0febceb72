"""Streaming chat markup: parse markdown-like messages into blocks and custom elements."""

from .codec import decode_base64_json, decode_base64_text, encode_base64_json, encode_base64_text
from .content import ParsedMessageContent, build_parsed_message_content
from .parser import MarkupParser, parse_markdown_to_blocks
from .streaming import StreamingChunk, StreamingMarkupSession

__all__ = [
    "MarkupParser",
    "ParsedMessageContent",
    "StreamingChunk",
    "StreamingMarkupSession",
    "build_parsed_message_content",
    "decode_base64_json",
    "decode_base64_text",
    "encode_base64_json",
    "encode_base64_text",
    "parse_markdown_to_blocks",
]
