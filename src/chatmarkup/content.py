"""Parsed message snapshot: blocks, plain text, elements and markup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from chatmarkup.parser.base import (
    CodeBlock,
    ContentBlock,
    HeadingBlock,
    ListBlock,
    ParagraphBlock,
    QuoteBlock,
    ReportBlock,
    TableBlock,
    TableCitationBlock,
)
from chatmarkup.parser.markup_parser import MarkupParser
from chatmarkup.renderer.element_renderer import (
    CustomElementNode,
    blocks_to_custom_elements,
    blocks_to_plain_text,
    serialize_custom_elements,
)


@dataclass(slots=True)
class ParsedMessageContent:
    blocks: list[ContentBlock] = field(default_factory=list)
    plain_text: str = ""
    elements: list[CustomElementNode] = field(default_factory=list)
    custom_markup: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form using the rendering layer's key names."""
        return {
            "blocks": [block_to_dict(block) for block in self.blocks],
            "plainText": self.plain_text,
            "elements": [element_to_dict(element) for element in self.elements],
            "customMarkup": self.custom_markup,
        }


def build_parsed_message_content(content: str, *, parser: MarkupParser | None = None) -> ParsedMessageContent:
    blocks = (parser or MarkupParser()).parse(content or "")
    elements = blocks_to_custom_elements(blocks)
    return ParsedMessageContent(
        blocks=blocks,
        plain_text=blocks_to_plain_text(blocks),
        elements=elements,
        custom_markup=serialize_custom_elements(elements),
    )


def block_to_dict(block: ContentBlock) -> dict[str, Any]:
    data: dict[str, Any] = {"type": block.type}
    if isinstance(block, HeadingBlock):
        data.update(level=block.level, text=block.text)
    elif isinstance(block, (ParagraphBlock, QuoteBlock)):
        data["text"] = block.text
    elif isinstance(block, CodeBlock):
        data["code"] = block.code
        if block.language is not None:
            data["language"] = block.language
    elif isinstance(block, ListBlock):
        data.update(ordered=block.ordered, items=list(block.items))
    elif isinstance(block, TableBlock):
        data.update(headers=list(block.headers), rows=[list(row) for row in block.rows])
        data["presentation"] = block.presentation
        if block.caption is not None:
            data["caption"] = block.caption
    elif isinstance(block, ReportBlock):
        data.update(reportId=block.report_id, title=block.title)
        if block.summary is not None:
            data["summary"] = block.summary
        if block.metadata is not None:
            data["metadata"] = block.metadata
    elif isinstance(block, TableCitationBlock):
        data["citationId"] = block.citation_id
        data["tableData"] = {
            "headers": list(block.table_data.headers),
            "rows": [list(row) for row in block.table_data.rows],
        }
        if block.caption is not None:
            data["caption"] = block.caption
    return data


def element_to_dict(node: CustomElementNode) -> dict[str, Any]:
    data: dict[str, Any] = {"tag": node.tag}
    if node.attributes:
        data["attributes"] = dict(node.attributes)
    if node.children:
        data["children"] = [
            child if isinstance(child, str) else element_to_dict(child) for child in node.children
        ]
    return data
