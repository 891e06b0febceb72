"""Parser package."""

from .base import (
    CodeBlock,
    ContentBlock,
    DividerBlock,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    ReportBlock,
    TableBlock,
    TableCitationBlock,
    TableData,
)
from .markup_parser import MarkupParser, parse_markdown_to_blocks

__all__ = [
    "CodeBlock",
    "ContentBlock",
    "DividerBlock",
    "HeadingBlock",
    "ListBlock",
    "ParagraphBlock",
    "QuoteBlock",
    "ReportBlock",
    "TableBlock",
    "TableCitationBlock",
    "TableData",
    "MarkupParser",
    "parse_markdown_to_blocks",
]
